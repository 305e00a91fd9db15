from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from .parameters import ParameterValue


class ParameterOverride(BaseModel):
    """Explicit value chosen for one parameter; ``value=None`` means cleared"""
    name: str = Field(..., description="Parameter name")
    value: Optional[ParameterValue] = Field(None, description="Typed parameter value")

    @property
    def raw_value(self) -> Any:
        return self.value.value if self.value is not None else None


class AlgorithmChoice(BaseModel):
    """Algorithm selected for a step together with its parameter overrides"""
    code: str = Field(..., description="Algorithm code")
    version: str = Field(..., description="Algorithm version")
    parameters: Dict[str, ParameterOverride] = Field(
        default_factory=dict,
        description="Overrides keyed by parameter name; missing entries use defaults"
    )


class StepRunConfig(BaseModel):
    """In-progress configuration of one step"""
    enabled: bool = Field(True, description="Whether the step will be executed")
    algorithm: Optional[AlgorithmChoice] = Field(None, description="Selected algorithm")


class StepReview(BaseModel):
    """Read-only summary line for one step, shown before submitting"""
    step_code: str
    step_name: str
    enabled: bool
    algorithm_code: Optional[str] = None
    algorithm_name: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    complete: bool
