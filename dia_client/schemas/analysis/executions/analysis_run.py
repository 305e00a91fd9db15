from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from dia_client.enums.analysis import AnalysisStatus, AnalysisMode
from dia_client.schemas.analysis.configs.algorithms import AlgorithmParameterValue
from .step_result import StepExecutionResultInfo


# Configs for Analysis Run

class AlgorithmSelection(BaseModel):
    """Schema for selecting an algorithm for a step"""
    code: str = Field(..., description="Algorithm code")
    version: str = Field(..., description="Algorithm version")
    parameters: Dict[str, AlgorithmParameterValue] = Field(
        default_factory=dict,
        description="Explicit parameter values keyed by name; omitted parameters use defaults"
    )


class StepConfig(BaseModel):
    """Configuration for a specific step in the analysis."""
    enabled: bool = Field(
        default=True,
        description="Whether this step should be executed"
    )
    algorithm: Optional[AlgorithmSelection] = Field(
        None,
        description="Algorithm configuration. Absent for disabled steps."
    )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"enabled": self.enabled}
        if self.enabled and self.algorithm is not None:
            payload["algorithm"] = self.algorithm.model_dump()
        return payload


class NotificationConfig(BaseModel):
    """Configuration for analysis run notifications."""
    notify_on_completion: bool = Field(
        default=True,
        description="Whether to send notification on completion"
    )
    notify_on_failure: bool = Field(
        default=True,
        description="Whether to send notification on failure"
    )
    websocket_channel: Optional[str] = Field(
        default=None,
        description="WebSocket channel ID for real-time notifications"
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AnalysisRunConfig(BaseModel):
    """Complete configuration for an analysis run."""
    steps: Dict[str, StepConfig] = Field(
        default_factory=dict,
        description="Configuration for each step, keyed by step code"
    )
    notifications: NotificationConfig = Field(
        default_factory=NotificationConfig,
        description="Notification configuration"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata for the analysis run, including batch information"
    )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "steps": {code: step.to_payload() for code, step in self.steps.items()},
            "notifications": self.notifications.to_payload(),
            "metadata": dict(self.metadata),
        }


class RunRequest(BaseModel):
    """Finalized payload for the run creation endpoint"""
    document_id: str = Field(..., description="ID of the document being analyzed")
    analysis_code: str = Field(..., description="Code of the analysis definition")
    mode: AnalysisMode = Field(..., description="Analysis execution mode")
    config: AnalysisRunConfig = Field(
        default_factory=AnalysisRunConfig,
        description="Configuration for the analysis run"
    )

    def to_payload(self) -> Dict[str, Any]:
        """JSON body sent to the backend."""
        return {
            "document_id": self.document_id,
            "analysis_code": self.analysis_code,
            "mode": self.mode.value,
            "config": self.config.to_payload(),
        }


class AnalysisRunInfo(BaseModel):
    """Schema for an analysis run as returned by the backend"""
    id: str
    document_id: Optional[str] = None
    analysis_code: Optional[str] = None
    mode: Optional[AnalysisMode] = None
    status: AnalysisStatus = AnalysisStatus.PENDING
    config: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    model_config = ConfigDict(extra="ignore", from_attributes=True)


class AnalysisRunWithResults(AnalysisRunInfo):
    """Schema for analysis run with step results"""
    step_results: List[StepExecutionResultInfo] = Field(
        default_factory=list,
        description="Results of individual analysis steps"
    )


class AnalysisProgress(BaseModel):
    """Progress snapshot of a running analysis"""
    status: AnalysisStatus
    progress: float = Field(0.0, ge=0, le=100, description="Completion percentage")
    message: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
