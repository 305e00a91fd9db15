import copy
import inspect
from collections import Counter
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest

from dia_client.schemas.analysis.configs.definitions import AnalysisDefinition
from dia_client.schemas.document import DocumentInfo
from dia_client.services.analysis.run_config import RunConfiguration
from dia_client.services.api_client import ApiClient

from payloads import BASE_URL, TABLE_ANALYSIS

@pytest.fixture
def table_definition() -> AnalysisDefinition:
    return AnalysisDefinition.model_validate(copy.deepcopy(TABLE_ANALYSIS))


@pytest.fixture
def configuration(table_definition) -> RunConfiguration:
    return RunConfiguration(table_definition)


@pytest.fixture
def pdf_document() -> DocumentInfo:
    return DocumentInfo(id="doc-1", name="report.pdf", type="pdf", size=2048)


@pytest.fixture
def docx_document() -> DocumentInfo:
    return DocumentInfo(id="doc-2", name="letter.docx", type="docx", size=1024)


Responder = Union[Any, Callable[[httpx.Request], Any]]


class FakeBackend:
    """Routes requests of an httpx.MockTransport to canned responses."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Responder] = {}
        self.requests: List[httpx.Request] = []
        self.calls: Counter = Counter()

    def add(self, method: str, path: str, responder: Responder, status_code: int = 200) -> None:
        if callable(responder):
            self.routes[(method, path)] = responder
        else:
            self.routes[(method, path)] = lambda request: httpx.Response(status_code, json=responder)

    def count(self, method: str, path: str) -> int:
        return self.calls[(method, path)]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path.replace("/api/v1", "", 1))
        self.requests.append(request)
        self.calls[key] += 1

        responder = self.routes.get(key)
        if responder is None:
            return httpx.Response(404, json={"detail": "Not Found"})

        response = responder(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    def client(self, token: str = "test-token", **kwargs) -> ApiClient:
        return ApiClient(
            BASE_URL,
            token=token,
            transport=httpx.MockTransport(self.handle),
            **kwargs,
        )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
