"""Client for the Document Intelligence Analysis backend."""

from dia_client.enums.analysis import AnalysisMode, AnalysisStatus, ParameterType
from dia_client.enums.document import DocumentType
from dia_client.exceptions import (
    ApiError,
    AuthError,
    ConfigurationStateError,
    DiaClientError,
    InvalidResponseError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from dia_client.services.api_client import ApiClient
from dia_client.services.documents import DocumentService
from dia_client.services.analysis import (
    BatchProcessor,
    DefinitionCatalog,
    RunConfiguration,
    RunConfigurationSession,
    SubmissionService,
    build_run_request,
)

__version__ = "1.0.0"
