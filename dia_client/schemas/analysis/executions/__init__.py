from .analysis_run import (
    AlgorithmSelection,
    StepConfig,
    NotificationConfig,
    AnalysisRunConfig,
    RunRequest,
    AnalysisRunInfo,
    AnalysisRunWithResults,
    AnalysisProgress,
)
from .step_result import StepExecutionResultInfo

__all__ = [
    "AlgorithmSelection",
    "StepConfig",
    "NotificationConfig",
    "AnalysisRunConfig",
    "RunRequest",
    "AnalysisRunInfo",
    "AnalysisRunWithResults",
    "AnalysisProgress",
    "StepExecutionResultInfo",
]
