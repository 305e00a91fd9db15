from .catalog import DefinitionCatalog
from .run_config import RunConfiguration
from .session import RunConfigurationSession
from .submission import SubmissionService, build_run_request
from .batch import BatchItem, BatchProcessor, BatchResult
from .parameters import make_parameter_value, validate_parameter_value

__all__ = [
    "DefinitionCatalog",
    "RunConfiguration",
    "RunConfigurationSession",
    "SubmissionService",
    "build_run_request",
    "BatchItem",
    "BatchProcessor",
    "BatchResult",
    "make_parameter_value",
    "validate_parameter_value",
]
