from typing import Any, List, Optional, Set
import asyncio
import logging

from dia_client.enums.analysis import AnalysisMode
from dia_client.exceptions import ConfigurationStateError, ValidationError
from dia_client.schemas.analysis.configs.algorithms import AlgorithmDefinition
from dia_client.schemas.analysis.configs.definitions import AnalysisDefinition
from dia_client.schemas.analysis.executions.analysis_run import AnalysisRunInfo, RunRequest
from dia_client.schemas.document import DocumentInfo
from dia_client.services.api_client import ApiClient
from dia_client.services.analysis.catalog import DefinitionCatalog
from dia_client.services.analysis.run_config import RunConfiguration
from dia_client.services.analysis.submission import SubmissionService, build_run_request

logger = logging.getLogger(__name__)


class RunConfigurationSession:
    """
    State of one "new analysis" flow: the selected document, definition and
    mode plus the run configuration being edited.

    Sessions are independent of each other; create one per flow and call
    ``dispose()`` when the flow ends.
    """

    def __init__(
        self,
        catalog: DefinitionCatalog,
        submission: SubmissionService,
        document: Optional[DocumentInfo] = None,
    ):
        self.catalog = catalog
        self.submission = submission
        self.document: Optional[DocumentInfo] = document
        self.definition: Optional[AnalysisDefinition] = None
        self.mode: Optional[AnalysisMode] = None
        self.configuration: Optional[RunConfiguration] = None
        self._pending: Set[asyncio.Task] = set()
        self._selection_token: Optional[object] = None
        self._disposed = False

    @classmethod
    def create(
        cls,
        client: ApiClient,
        document: Optional[DocumentInfo] = None,
        catalog: Optional[DefinitionCatalog] = None,
    ) -> "RunConfigurationSession":
        """Start a session; pass a shared catalog to reuse its cache across sessions."""
        return cls(
            catalog=catalog or DefinitionCatalog(client),
            submission=SubmissionService(client),
            document=document,
        )

    def dispose(self) -> None:
        """End the session and cancel any algorithm fetch still running."""
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self.configuration = None
        self.definition = None
        self._disposed = True
        logger.debug("Run configuration session disposed")

    @property
    def disposed(self) -> bool:
        return self._disposed

    # Selection ----------------------------------------------------------------

    def select_document(self, document: DocumentInfo) -> None:
        self._check_active()
        self.document = document

    def select_mode(self, mode: AnalysisMode) -> None:
        self._check_active()
        self.mode = AnalysisMode(mode)

    async def select_definition(self, code: str, prefetch: bool = True) -> Optional[RunConfiguration]:
        """
        Select an analysis definition and start a fresh configuration for it.

        Returns None when a newer selection was made while the definition
        was being fetched; that late response is discarded.
        """
        self._check_active()
        token = object()
        self._selection_token = token

        definition = await self.catalog.get_definition(code)
        if self._disposed or self._selection_token is not token:
            logger.debug(f"Discarding stale definition response for {code}")
            return None

        configuration = RunConfiguration(definition)
        self.definition = definition
        self.configuration = configuration
        logger.info(f"Selected analysis definition {code}")

        if prefetch:
            missing = [s.code for s in definition.steps if not configuration.has_step_algorithms(s.code)]
            if missing:
                tasks = [self._spawn(self.load_step_algorithms(step_code)) for step_code in missing]
                results = await asyncio.gather(*tasks, return_exceptions=True)
                for result in results:
                    if isinstance(result, Exception):
                        raise result

        if self.configuration is not configuration:
            return None
        return configuration

    async def load_step_algorithms(self, step_code: str) -> Optional[List[AlgorithmDefinition]]:
        """
        Fetch the algorithms of a step into the current configuration.

        Returns None if the selected definition changed before the response
        arrived; the response is then dropped.
        """
        configuration = self._require_configuration()
        definition_code = configuration.definition.code
        configuration.get_step_definition(step_code)

        algorithms = await self.catalog.get_step_algorithms(definition_code, step_code)
        if self.configuration is not configuration:
            logger.debug(
                f"Discarding stale algorithms for {definition_code}.{step_code}; selection changed"
            )
            return None

        configuration.set_step_algorithms(step_code, algorithms)
        return algorithms

    # Reducer operations ---------------------------------------------------------

    def select_algorithm(self, step_code: str, algorithm_code: str, version: Optional[str] = None) -> None:
        self._require_configuration().select_algorithm(step_code, algorithm_code, version)

    def set_parameter_value(self, step_code: str, param_name: str, value: Any) -> None:
        self._require_configuration().set_parameter_value(step_code, param_name, value)

    def reset_parameters_to_default(self, step_code: str) -> None:
        self._require_configuration().reset_parameters_to_default(step_code)

    def toggle_step(self, step_code: str, enabled: bool) -> None:
        self._require_configuration().toggle_step(step_code, enabled)

    def is_step_complete(self, step_code: str) -> bool:
        return self._require_configuration().is_step_complete(step_code)

    def is_config_submit_ready(self) -> bool:
        if self._disposed:
            return False
        return (
            self.document is not None
            and self.definition is not None
            and self.mode is not None
            and self.configuration is not None
            and self.configuration.is_complete()
        )

    # Submission -----------------------------------------------------------------

    def build_request(self) -> RunRequest:
        self._check_active()
        if self.document is None:
            raise ValidationError("No document selected")
        if self.definition is None or self.configuration is None:
            raise ValidationError("No analysis definition selected")
        if self.mode is None:
            raise ValidationError("No analysis mode selected")

        return build_run_request(self.document, self.definition, self.mode, self.configuration)

    async def submit(self) -> AnalysisRunInfo:
        request = self.build_request()
        return await self.submission.submit(request)

    # Helpers --------------------------------------------------------------------

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _check_active(self) -> None:
        if self._disposed:
            raise ConfigurationStateError("Run configuration session has been disposed")

    def _require_configuration(self) -> RunConfiguration:
        self._check_active()
        if self.configuration is None:
            raise ConfigurationStateError("No analysis definition selected")
        return self.configuration
