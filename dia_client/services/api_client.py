from typing import Any, Callable, Dict, Optional
import logging

import httpx

from dia_client.core.config import settings
from dia_client.exceptions import (
    ApiError,
    AuthError,
    InvalidResponseError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class ApiClient:
    """Authenticated JSON client for the analysis backend."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._token = token
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _get_token(self) -> Optional[str]:
        if self._token_provider is not None:
            return self._token_provider()
        return self._token or settings.API_TOKEN

    def _get_headers(self) -> Dict[str, str]:
        token = self._get_token()
        if not token:
            raise AuthError("Not authenticated")

        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "User-Agent": f"{settings.PROJECT_NAME}/{settings.VERSION}",
        }

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return await self.request("POST", path, json=json, params=params)

    async def put(
        self,
        path: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return await self.request("PUT", path, json=json, params=params)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            AuthError: no token is available or the backend answered 401
            NotFoundError: the backend answered 404
            RateLimitError: the backend answered 429
            ValidationError: the backend rejected the payload (400/422)
            NetworkError: transport failure, timeout or 5xx
            ApiError: any other non-success status
        """
        headers = self._get_headers()
        logger.debug(f"Started {method} {path}")

        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.error(f"Timeout on {method} {path}: {str(e)}")
            raise NetworkError("Request timed out", details={"method": method, "path": path})
        except httpx.TransportError as e:
            logger.error(f"Transport error on {method} {path}: {str(e)}")
            raise NetworkError(
                "Could not reach the analysis service",
                details={"method": method, "path": path, "error": str(e)},
            )

        logger.debug(f"Completed {method} {path} - Status: {response.status_code}")
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Any:
        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                raise InvalidResponseError(
                    "Response body is not valid JSON",
                    status_code=response.status_code,
                )

        status_code = response.status_code
        message = self._extract_error_message(response)
        details = {"path": response.request.url.path, "status_code": status_code}
        logger.warning(f"Request to {details['path']} failed with {status_code}: {message}")

        if status_code == 401:
            raise AuthError("Authentication failed", details=details, status_code=status_code)
        if status_code == 404:
            raise NotFoundError(message, details=details, status_code=status_code)
        if status_code == 429:
            raise RateLimitError(
                "Too many requests. Please try again later.",
                details=details,
                retry_after=self._parse_retry_after(response),
            )
        if status_code in (400, 422):
            raise ValidationError(message, details=details, status_code=status_code)
        if status_code >= 500:
            raise NetworkError(message, details=details, status_code=status_code)
        raise ApiError(message, details=details, status_code=status_code)

    @staticmethod
    def _extract_error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return "An error occurred"

        if isinstance(body, dict):
            detail = body.get("detail") or body.get("message")
            if isinstance(detail, str):
                return detail
            if detail:
                return str(detail)
        return "An error occurred"

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> Optional[float]:
        value = response.headers.get("Retry-After")
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            return None
