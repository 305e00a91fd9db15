from typing import Any, Awaitable, Callable, Dict, List, Tuple
import asyncio
import functools
import logging

from pydantic import TypeAdapter, ValidationError as SchemaValidationError

from dia_client.enums.document import DocumentType
from dia_client.exceptions import InvalidResponseError
from dia_client.schemas.analysis.configs.algorithms import AlgorithmDefinition
from dia_client.schemas.analysis.configs.definitions import AnalysisDefinition, AnalysisDefinitionInfo
from dia_client.services.api_client import ApiClient

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, ...]

_definition_list = TypeAdapter(List[AnalysisDefinitionInfo])
_algorithm_list = TypeAdapter(List[AlgorithmDefinition])


class DefinitionCatalog:
    """
    Read-only access to the analysis definitions offered by the backend.

    Results are cached per key until ``refresh()`` is called. Concurrent
    requests for the same key share a single backend call.
    """

    def __init__(self, client: ApiClient):
        self.client = client
        self._cache: Dict[CacheKey, Any] = {}
        self._inflight: Dict[CacheKey, asyncio.Task] = {}
        self._generation = 0

    async def list_definitions(self) -> List[AnalysisDefinitionInfo]:
        """List summaries of all available analysis definitions."""
        definitions = await self._load(("definitions",), self._fetch_definitions)
        return list(definitions)

    async def list_compatible_definitions(self, document_type: DocumentType) -> List[AnalysisDefinitionInfo]:
        """List definitions that accept documents of the given type."""
        return [d for d in await self.list_definitions() if d.supports(document_type)]

    async def get_definition(self, code: str) -> AnalysisDefinition:
        """
        Get the full pipeline shape of a definition.

        Raises:
            NotFoundError: if no definition with this code exists
        """
        return await self._load(
            ("definition", code),
            functools.partial(self._fetch_definition, code),
        )

    async def get_step_algorithms(self, definition_code: str, step_code: str) -> List[AlgorithmDefinition]:
        """List the algorithms selectable for one step of a definition."""
        algorithms = await self._load(
            ("algorithms", definition_code, step_code),
            functools.partial(self._fetch_step_algorithms, definition_code, step_code),
        )
        return list(algorithms)

    def refresh(self) -> None:
        """Drop every cached entry; responses still in flight are not stored."""
        self._generation += 1
        self._cache.clear()
        self._inflight.clear()
        logger.info("Definition catalog cache cleared")

    async def _load(self, key: CacheKey, fetch: Callable[[], Awaitable[Any]]) -> Any:
        if key in self._cache:
            logger.debug(f"Catalog cache hit: {key}")
            return self._cache[key]

        task = self._inflight.get(key)
        if task is None:
            logger.debug(f"Catalog cache miss: {key}")
            task = asyncio.ensure_future(self._fetch_and_store(key, fetch, self._generation))
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._release_inflight, key))
        else:
            logger.debug(f"Joining in-flight catalog request: {key}")

        # one waiter being cancelled must not cancel the shared fetch
        return await asyncio.shield(task)

    async def _fetch_and_store(self, key: CacheKey, fetch: Callable[[], Awaitable[Any]], generation: int) -> Any:
        result = await fetch()
        if generation == self._generation:
            self._cache[key] = result
        else:
            logger.debug(f"Catalog refreshed while fetching {key}; result not cached")
        return result

    def _release_inflight(self, key: CacheKey, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # mark the exception as retrieved when every waiter went away
            task.exception()

    async def _fetch_definitions(self) -> List[AnalysisDefinitionInfo]:
        data = await self.client.get("/analysis/definitions")
        try:
            definitions = _definition_list.validate_python(data or [])
        except SchemaValidationError as e:
            raise InvalidResponseError(
                "Invalid analysis definition list",
                details={"errors": e.errors(include_url=False)},
            )

        codes = [d.code for d in definitions]
        duplicates = sorted({c for c in codes if codes.count(c) > 1})
        if duplicates:
            raise InvalidResponseError(
                f"Duplicate analysis definition codes: {', '.join(duplicates)}"
            )

        logger.info(f"Fetched {len(definitions)} analysis definitions")
        return definitions

    async def _fetch_definition(self, code: str) -> AnalysisDefinition:
        data = await self.client.get(f"/analysis/definitions/{code}")
        try:
            definition = AnalysisDefinition.model_validate(data)
        except SchemaValidationError as e:
            raise InvalidResponseError(
                f"Invalid analysis definition {code}",
                details={"errors": e.errors(include_url=False)},
            )

        logger.info(f"Fetched analysis definition {code} with {len(definition.steps)} steps")
        return definition

    async def _fetch_step_algorithms(self, definition_code: str, step_code: str) -> List[AlgorithmDefinition]:
        data = await self.client.get(
            f"/analysis/definitions/{definition_code}/steps/{step_code}/algorithms"
        )
        try:
            algorithms = _algorithm_list.validate_python(data or [])
        except SchemaValidationError as e:
            raise InvalidResponseError(
                f"Invalid algorithm list for {definition_code}.{step_code}",
                details={"errors": e.errors(include_url=False)},
            )

        logger.info(f"Fetched {len(algorithms)} algorithms for {definition_code}.{step_code}")
        return algorithms
