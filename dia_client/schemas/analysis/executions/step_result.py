from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from dia_client.enums.analysis import StepStatus


class StepExecutionResultInfo(BaseModel):
    """Schema for one step execution result of an analysis run"""
    id: str
    step_code: Optional[str] = Field(None, description="Code of the executed step")
    algorithm_code: Optional[str] = Field(None, description="Code of the algorithm used")
    status: StepStatus = Field(..., description="Execution status")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Parameters used for this execution")
    result: Optional[Dict[str, Any]] = Field(None, description="Step results")
    user_corrections: Optional[Dict[str, Any]] = Field(None, description="User-provided corrections to the result")
    retry_count: int = Field(0, ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    model_config = ConfigDict(extra="ignore", from_attributes=True)
