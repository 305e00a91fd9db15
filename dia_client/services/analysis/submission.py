from datetime import datetime
from typing import Any, Dict, List, Optional
import asyncio
import logging

from pydantic import TypeAdapter, ValidationError as SchemaValidationError

from dia_client.core.config import settings
from dia_client.enums.analysis import AnalysisMode, AnalysisStatus
from dia_client.enums.document import DocumentType
from dia_client.exceptions import InvalidResponseError, NetworkError, ValidationError
from dia_client.schemas.analysis.configs.definitions import AnalysisDefinition
from dia_client.schemas.analysis.executions.analysis_run import (
    AnalysisProgress,
    AnalysisRunInfo,
    AnalysisRunWithResults,
    RunRequest,
)
from dia_client.schemas.analysis.executions.step_result import StepExecutionResultInfo
from dia_client.schemas.document import DocumentInfo
from dia_client.services.api_client import ApiClient
from dia_client.services.analysis.parameters import validate_parameter_value
from dia_client.services.analysis.run_config import RunConfiguration

logger = logging.getLogger(__name__)

_run_list = TypeAdapter(List[AnalysisRunWithResults])


def build_run_request(
    document: DocumentInfo,
    definition: AnalysisDefinition,
    mode: AnalysisMode,
    configuration: RunConfiguration,
) -> RunRequest:
    """
    Build the run creation payload from a completed configuration.

    Args:
        document: Document to analyze
        definition: Analysis definition the configuration was built for
        mode: Analysis execution mode
        configuration: Step, notification and metadata configuration

    Returns:
        RunRequest with one step entry per definition step

    Raises:
        ValidationError: if anything detectable locally would make the backend reject the run
    """
    if configuration.definition.code != definition.code:
        raise ValidationError(
            f"Configuration was built for {configuration.definition.code}, not {definition.code}"
        )

    try:
        mode = AnalysisMode(mode)
    except ValueError:
        raise ValidationError(f"Unknown analysis mode: {mode}")

    if not definition.supports(document.type):
        raise ValidationError(
            f"Document type {document.type.value} is not supported by {definition.code}",
            details={
                "document_type": document.type.value,
                "supported_document_types": [t.value for t in definition.supported_document_types],
            },
        )

    incomplete = configuration.incomplete_steps()
    if incomplete:
        raise ValidationError(
            f"Steps are not fully configured: {', '.join(incomplete)}",
            details={"incomplete_steps": incomplete},
        )

    for step_code, step_config in configuration.steps.items():
        if not step_config.enabled or step_config.algorithm is None:
            continue
        algorithm = configuration.get_algorithm(step_code, step_config.algorithm.code)
        for name, override in step_config.algorithm.parameters.items():
            parameter = algorithm.get_parameter(name)
            if parameter is None:
                raise ValidationError(
                    f"Algorithm {algorithm.code} has no parameter named '{name}'",
                    details={"parameter": name, "step": step_code},
                )
            try:
                validate_parameter_value(parameter, override.value)
            except ValidationError as e:
                e.details.setdefault("step", step_code)
                raise

    return RunRequest(
        document_id=document.id,
        analysis_code=definition.code,
        mode=mode,
        config=configuration.to_run_config(),
    )


class SubmissionService:
    """Creates analysis runs and tracks their progress."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def submit(self, request: RunRequest) -> AnalysisRunInfo:
        """
        Create an analysis run. Failures are raised, never retried.
        """
        logger.info(
            f"Submitting {request.analysis_code} run for document {request.document_id} "
            f"in {request.mode.value} mode"
        )
        data = await self.client.post(
            f"/analysis/documents/{request.document_id}/analyze",
            json=request.to_payload(),
            params={"analysis_code": request.analysis_code, "mode": request.mode.value},
        )
        run = self._parse(AnalysisRunInfo, data)
        logger.info(f"Created analysis run {run.id} with status {run.status.value}")
        return run

    async def get_run(self, run_id: str) -> AnalysisRunWithResults:
        data = await self.client.get(f"/analysis/runs/{run_id}")
        return self._parse(AnalysisRunWithResults, data)

    async def list_document_runs(self, document_id: str) -> List[AnalysisRunWithResults]:
        """List all analysis runs of a document."""
        data = await self.client.get(f"/analysis/documents/{document_id}/analyses")
        return self._parse_runs(data)

    async def list_runs(
        self,
        status: Optional[AnalysisStatus] = None,
        analysis_code: Optional[str] = None,
        document_type: Optional[DocumentType] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[AnalysisRunWithResults]:
        """
        List the current user's analysis runs, filtered on the backend.

        Args:
            status: Only runs with this status
            analysis_code: Only runs of this analysis definition
            document_type: Only runs on documents of this type
            start_date: Only runs created at or after this time
            end_date: Only runs created at or before this time
            skip: Number of records to skip
            limit: Number of records to return
        """
        filters = {
            "status": AnalysisStatus(status).value if status is not None else None,
            "analysis_code": analysis_code,
            "document_type": DocumentType(document_type).value if document_type is not None else None,
            "start_date": start_date.isoformat() if start_date is not None else None,
            "end_date": end_date.isoformat() if end_date is not None else None,
        }
        params = {k: v for k, v in filters.items() if v is not None}
        params.update({"skip": skip, "limit": limit})

        data = await self.client.get("/analysis/user/analyses", params=params)
        return self._parse_runs(data)

    async def get_run_progress(self, run_id: str) -> AnalysisProgress:
        data = await self.client.get(f"/analysis/runs/{run_id}/progress")
        return self._parse(AnalysisProgress, data)

    async def execute_step(
        self,
        run_id: str,
        step_code: str,
        algorithm_code: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> StepExecutionResultInfo:
        """
        Execute one step of a step-by-step run.

        Args:
            run_id: ID of a run created in step_by_step mode
            step_code: Step to execute
            algorithm_code: Algorithm to execute the step with
            parameters: Explicit parameter values; omitted parameters use defaults
        """
        logger.info(f"Executing step {step_code} of analysis run {run_id} with {algorithm_code}")
        data = await self.client.post(
            f"/analysis/runs/{run_id}/steps/{step_code}/execute",
            json=parameters or {},
            params={"algorithm_id": algorithm_code},
        )
        result = self._parse(StepExecutionResultInfo, data)
        logger.info(f"Step {step_code} of analysis run {run_id} is {result.status.value}")
        return result

    async def update_step_corrections(
        self,
        run_id: str,
        step_code: str,
        corrections: Dict[str, Any],
    ) -> StepExecutionResultInfo:
        """Store user corrections for the result of an executed step."""
        data = await self.client.put(
            f"/analysis/runs/{run_id}/steps/{step_code}/corrections",
            json=corrections,
        )
        logger.info(f"Updated corrections of step {step_code} in analysis run {run_id}")
        return self._parse(StepExecutionResultInfo, data)

    async def cancel_run(self, run_id: str) -> None:
        await self.client.post(f"/analysis/runs/{run_id}/cancel")
        logger.info(f"Cancelled analysis run {run_id}")

    async def retry_run(self, run_id: str) -> AnalysisRunInfo:
        """Ask the backend to rerun a failed analysis (user-triggered retry)."""
        data = await self.client.post(f"/analysis/runs/{run_id}/retry")
        run = self._parse(AnalysisRunInfo, data)
        logger.info(f"Retried analysis run {run_id}; new status {run.status.value}")
        return run

    async def wait_for_run(
        self,
        run_id: str,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> AnalysisRunWithResults:
        """
        Poll a run until it is completed, failed or cancelled.

        Raises:
            NetworkError: if the run is still active after ``timeout`` seconds
        """
        poll_interval = poll_interval if poll_interval is not None else settings.RUN_POLL_INTERVAL
        timeout = timeout if timeout is not None else settings.RUN_POLL_TIMEOUT

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            run = await self.get_run(run_id)
            if run.status.is_terminal:
                logger.info(f"Analysis run {run_id} finished with status {run.status.value}")
                return run

            if loop.time() + poll_interval > deadline:
                raise NetworkError(
                    f"Analysis run {run_id} did not finish within {timeout} seconds",
                    details={"run_id": run_id, "status": run.status.value},
                )
            logger.debug(f"Analysis run {run_id} is {run.status.value}; polling again in {poll_interval}s")
            await asyncio.sleep(poll_interval)

    @staticmethod
    def _parse_runs(data) -> List[AnalysisRunWithResults]:
        try:
            return _run_list.validate_python(data or [])
        except SchemaValidationError as e:
            raise InvalidResponseError(
                "Invalid analysis run list",
                details={"errors": e.errors(include_url=False)},
            )

    @staticmethod
    def _parse(model, data):
        try:
            return model.model_validate(data)
        except SchemaValidationError as e:
            raise InvalidResponseError(
                f"Invalid {model.__name__} payload",
                details={"errors": e.errors(include_url=False)},
            )
