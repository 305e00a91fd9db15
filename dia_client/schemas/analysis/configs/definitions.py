from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, validator

from dia_client.enums.document import DocumentType
from .steps import StepDefinition


class AnalysisDefinitionInfo(BaseModel):
    """Schema for basic analysis definition information"""
    id: Optional[str] = None
    code: str = Field(..., description="Unique identifier code")
    name: str = Field(..., description="Human-readable name")
    version: str = Field(..., description="Version string (e.g., '1.0.0')")
    description: Optional[str] = Field(None, description="Detailed description")
    supported_document_types: List[DocumentType] = Field(
        default_factory=list, description="List of supported document types"
    )
    is_active: bool = Field(True, description="Whether this analysis definition is active")

    model_config = ConfigDict(frozen=True, extra="ignore", from_attributes=True)

    def supports(self, document_type: DocumentType) -> bool:
        return document_type in self.supported_document_types


class AnalysisDefinition(AnalysisDefinitionInfo):
    """Schema for analysis definition with its ordered steps"""
    steps: List[StepDefinition] = Field(..., description="Analysis steps in order")

    @validator("steps")
    def validate_steps(cls, v: List[StepDefinition]) -> List[StepDefinition]:
        if not v:
            raise ValueError("An analysis definition must have at least one step")
        codes = [s.code for s in v]
        if len(codes) != len(set(codes)):
            raise ValueError("Step codes must be unique within a definition")
        return sorted(v, key=lambda s: s.order)

    def get_step(self, code: str) -> Optional[StepDefinition]:
        return next((s for s in self.steps if s.code == code), None)

    @property
    def step_codes(self) -> List[str]:
        return [s.code for s in self.steps]
