from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, validator

from .algorithms import AlgorithmDefinition


class StepDefinition(BaseModel):
    """Schema for one stage of an analysis pipeline"""
    code: str = Field(..., description="Unique identifier code within the definition")
    name: str = Field(..., description="Human-readable name")
    version: Optional[str] = Field(None, description="Version string (e.g., '1.0.0')")
    description: Optional[str] = Field(None, description="Detailed description")
    order: int = Field(..., description="Execution order in analysis", ge=0)
    algorithms: List[AlgorithmDefinition] = Field(
        default_factory=list,
        description="Available algorithms; empty when not inlined by the backend"
    )
    is_active: bool = Field(True, description="Whether this step is active")

    model_config = ConfigDict(frozen=True, extra="ignore", from_attributes=True)

    @validator("algorithms")
    def unique_algorithm_codes(cls, v: List[AlgorithmDefinition]) -> List[AlgorithmDefinition]:
        codes = [a.code for a in v]
        if len(codes) != len(set(codes)):
            raise ValueError("Algorithm codes must be unique within a step")
        return v

    @property
    def has_inline_algorithms(self) -> bool:
        return bool(self.algorithms)
