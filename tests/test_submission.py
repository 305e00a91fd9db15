import json
from datetime import datetime

import httpx
import pytest

from dia_client.enums.analysis import AnalysisMode, AnalysisStatus, StepStatus
from dia_client.enums.document import DocumentType
from dia_client.exceptions import NetworkError, NotFoundError, ValidationError
from dia_client.schemas.analysis.configs.definitions import AnalysisDefinition
from dia_client.schemas.analysis.configs.parameters import NumberValue
from dia_client.schemas.analysis.configs.run_config import ParameterOverride
from dia_client.services.analysis.run_config import RunConfiguration
from dia_client.services.analysis.submission import SubmissionService, build_run_request

from payloads import TEXT_ANALYSIS


def configure_all(configuration):
    configuration.select_algorithm("detection", "fast_detector")
    configuration.select_algorithm("structure", "grid_structure")
    configuration.select_algorithm("data", "ocr_data")


def run_payload(run_id="run-1", status="pending"):
    return {
        "id": run_id,
        "document_id": "doc-1",
        "analysis_code": "table_analysis",
        "mode": "automatic",
        "status": status,
        "config": {},
        "created_at": "2025-03-01T10:00:00",
    }


def test_payload_has_one_entry_per_step(pdf_document, table_definition, configuration):
    configure_all(configuration)

    request = build_run_request(pdf_document, table_definition, AnalysisMode.AUTOMATIC, configuration)
    payload = request.to_payload()

    assert payload["document_id"] == "doc-1"
    assert payload["analysis_code"] == "table_analysis"
    assert payload["mode"] == "automatic"
    assert list(payload["config"]["steps"]) == ["detection", "structure", "data"]
    assert payload["config"]["steps"]["detection"] == {
        "enabled": True,
        "algorithm": {"code": "fast_detector", "version": "1.0.0", "parameters": {}},
    }
    assert payload["config"]["notifications"] == {
        "notify_on_completion": True,
        "notify_on_failure": True,
    }


def test_disabled_step_is_sent_without_algorithm(pdf_document, table_definition, configuration):
    configuration.select_algorithm("detection", "fast_detector")
    configuration.select_algorithm("data", "ocr_data")
    configuration.toggle_step("structure", False)

    payload = build_run_request(
        pdf_document, table_definition, AnalysisMode.STEP_BY_STEP, configuration
    ).to_payload()

    assert payload["mode"] == "step_by_step"
    assert payload["config"]["steps"]["structure"] == {"enabled": False}


def test_overrides_are_sent_as_raw_values(pdf_document, table_definition, configuration):
    configure_all(configuration)
    configuration.set_parameter_value("structure", "mode", "whitespace")
    configuration.set_parameter_value("structure", "merge_cells", True)

    payload = build_run_request(pdf_document, table_definition, "automatic", configuration).to_payload()

    assert payload["config"]["steps"]["structure"]["algorithm"]["parameters"] == {
        "mode": {"name": "mode", "value": "whitespace"},
        "merge_cells": {"name": "merge_cells", "value": True},
    }
    json.dumps(payload)


def test_unsupported_document_type_is_rejected(docx_document, table_definition, configuration):
    configure_all(configuration)

    with pytest.raises(ValidationError) as exc_info:
        build_run_request(docx_document, table_definition, AnalysisMode.AUTOMATIC, configuration)

    assert exc_info.value.details["document_type"] == "docx"


def test_incomplete_configuration_is_rejected(pdf_document, table_definition, configuration):
    configuration.select_algorithm("detection", "fast_detector")

    with pytest.raises(ValidationError) as exc_info:
        build_run_request(pdf_document, table_definition, AnalysisMode.AUTOMATIC, configuration)

    assert exc_info.value.details["incomplete_steps"] == ["structure", "data"]


def test_constraint_violation_is_rejected(pdf_document, table_definition, configuration):
    configure_all(configuration)
    configuration.set_parameter_value("detection", "threshold", 1.5)

    with pytest.raises(ValidationError) as exc_info:
        build_run_request(pdf_document, table_definition, AnalysisMode.AUTOMATIC, configuration)

    assert exc_info.value.details == {"parameter": "threshold", "step": "detection"}


def test_unknown_mode_is_rejected(pdf_document, table_definition, configuration):
    configure_all(configuration)

    with pytest.raises(ValidationError):
        build_run_request(pdf_document, table_definition, "batch", configuration)


def test_configuration_of_another_definition_is_rejected(pdf_document, table_definition):
    other = RunConfiguration(AnalysisDefinition.model_validate(TEXT_ANALYSIS))

    with pytest.raises(ValidationError):
        build_run_request(pdf_document, table_definition, AnalysisMode.AUTOMATIC, other)


@pytest.mark.asyncio
async def test_submit_posts_run_request(backend, pdf_document, table_definition, configuration):
    backend.add("POST", "/analysis/documents/doc-1/analyze", run_payload())
    configure_all(configuration)
    request = build_run_request(pdf_document, table_definition, AnalysisMode.AUTOMATIC, configuration)

    async with backend.client() as client:
        run = await SubmissionService(client).submit(request)

    assert run.id == "run-1"
    assert run.status == AnalysisStatus.PENDING

    sent = backend.requests[0]
    assert sent.url.params["analysis_code"] == "table_analysis"
    assert sent.url.params["mode"] == "automatic"
    assert sent.headers["Authorization"] == "Bearer test-token"
    assert json.loads(sent.content) == request.to_payload()


@pytest.mark.asyncio
async def test_submit_failure_is_raised(backend, pdf_document, table_definition, configuration):
    backend.add("POST", "/analysis/documents/doc-1/analyze", {"detail": "Analysis type not found"}, 404)
    configure_all(configuration)
    request = build_run_request(pdf_document, table_definition, AnalysisMode.AUTOMATIC, configuration)

    async with backend.client() as client:
        with pytest.raises(NotFoundError) as exc_info:
            await SubmissionService(client).submit(request)

    assert exc_info.value.message == "Analysis type not found"
    assert backend.count("POST", "/analysis/documents/doc-1/analyze") == 1


@pytest.mark.asyncio
async def test_wait_for_run_polls_until_terminal(backend):
    statuses = iter(["pending", "in_progress", "completed"])
    backend.add(
        "GET", "/analysis/runs/run-1",
        lambda request: httpx.Response(200, json=run_payload(status=next(statuses))),
    )

    async with backend.client() as client:
        run = await SubmissionService(client).wait_for_run("run-1", poll_interval=0, timeout=5)

    assert run.status == AnalysisStatus.COMPLETED
    assert backend.count("GET", "/analysis/runs/run-1") == 3


@pytest.mark.asyncio
async def test_wait_for_run_times_out(backend):
    backend.add("GET", "/analysis/runs/run-1", run_payload(status="in_progress"))

    async with backend.client() as client:
        with pytest.raises(NetworkError):
            await SubmissionService(client).wait_for_run("run-1", poll_interval=1, timeout=0)


@pytest.mark.asyncio
async def test_cancel_retry_and_list_runs(backend):
    backend.add("POST", "/analysis/runs/run-1/cancel", {"message": "Analysis cancelled"})
    backend.add("POST", "/analysis/runs/run-1/retry", run_payload(status="pending"))
    backend.add("GET", "/analysis/documents/doc-1/analyses", [
        dict(run_payload(status="completed"), step_results=[]),
        run_payload(run_id="run-2", status="failed"),
    ])

    async with backend.client() as client:
        service = SubmissionService(client)
        await service.cancel_run("run-1")
        retried = await service.retry_run("run-1")
        runs = await service.list_document_runs("doc-1")

    assert retried.status == AnalysisStatus.PENDING
    assert [r.status for r in runs] == [AnalysisStatus.COMPLETED, AnalysisStatus.FAILED]


def test_override_of_undeclared_parameter_is_rejected(pdf_document, table_definition, configuration):
    configure_all(configuration)
    configuration.steps["detection"].algorithm.parameters["iou_threshold"] = ParameterOverride(
        name="iou_threshold", value=NumberValue(value=0.3)
    )

    with pytest.raises(ValidationError) as exc_info:
        build_run_request(pdf_document, table_definition, AnalysisMode.AUTOMATIC, configuration)

    assert exc_info.value.details == {"parameter": "iou_threshold", "step": "detection"}


@pytest.mark.asyncio
async def test_list_runs_sends_filters(backend):
    backend.add("GET", "/analysis/user/analyses", [run_payload(status="completed")])

    async with backend.client() as client:
        runs = await SubmissionService(client).list_runs(
            status=AnalysisStatus.COMPLETED,
            analysis_code="table_analysis",
            document_type=DocumentType.PDF,
            start_date=datetime(2025, 3, 1),
            limit=20,
        )

    assert [r.id for r in runs] == ["run-1"]
    params = backend.requests[0].url.params
    assert params["status"] == "completed"
    assert params["analysis_code"] == "table_analysis"
    assert params["document_type"] == "pdf"
    assert params["start_date"] == "2025-03-01T00:00:00"
    assert "end_date" not in params
    assert params["skip"] == "0"
    assert params["limit"] == "20"


@pytest.mark.asyncio
async def test_get_run_progress(backend):
    backend.add("GET", "/analysis/runs/run-1/progress", {"status": "in_progress", "progress": 40, "message": "Detecting tables"})

    async with backend.client() as client:
        progress = await SubmissionService(client).get_run_progress("run-1")

    assert progress.status == AnalysisStatus.IN_PROGRESS
    assert progress.progress == 40


@pytest.mark.asyncio
async def test_execute_step_of_step_by_step_run(backend):
    backend.add("POST", "/analysis/runs/run-1/steps/detection/execute", {
        "id": "result-1",
        "step_code": "detection",
        "algorithm_code": "fast_detector",
        "status": "completed",
        "parameters": {"threshold": 0.7},
        "result": {"tables": []},
    })

    async with backend.client() as client:
        result = await SubmissionService(client).execute_step(
            "run-1", "detection", "fast_detector", parameters={"threshold": 0.7}
        )

    assert result.status == StepStatus.COMPLETED
    assert result.result == {"tables": []}
    sent = backend.requests[0]
    assert sent.url.params["algorithm_id"] == "fast_detector"
    assert json.loads(sent.content) == {"threshold": 0.7}


@pytest.mark.asyncio
async def test_update_step_corrections(backend):
    corrections = {"tables": [{"page": 1, "bbox": [10, 10, 200, 120]}]}
    backend.add("PUT", "/analysis/runs/run-1/steps/detection/corrections", {
        "id": "result-1",
        "status": "completed",
        "user_corrections": corrections,
    })

    async with backend.client() as client:
        result = await SubmissionService(client).update_step_corrections("run-1", "detection", corrections)

    assert result.user_corrections == corrections
    assert backend.requests[0].method == "PUT"
    assert json.loads(backend.requests[0].content) == corrections
