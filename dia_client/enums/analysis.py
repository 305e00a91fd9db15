from enum import Enum


class AnalysisMode(str, Enum):
    """
    Enum for the mode of an analysis.
    """
    AUTOMATIC = "automatic"
    STEP_BY_STEP = "step_by_step"


class AnalysisStatus(str, Enum):
    """
    Enum for the status of an analysis run.
    """
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisStatus.COMPLETED, AnalysisStatus.FAILED, AnalysisStatus.CANCELLED)


class StepStatus(str, Enum):
    """
    Enum for the status of a single step execution.
    """
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ParameterType(str, Enum):
    """
    Enum for the value type of an algorithm parameter.
    """
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    TEXT = "text"


class BatchItemStatus(str, Enum):
    """
    Enum for the state of one document inside a batch submission.
    """
    PENDING = "pending"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"
