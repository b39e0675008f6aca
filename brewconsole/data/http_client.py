"""
HTTP client for the chain management REST API.

Attaches the bearer token held by the session store and normalizes every
failure into the ApiError hierarchy. Deciding what to do about a 401 is left
to the caller.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from brewconsole.core.config import ApiConfig
from brewconsole.core.exceptions import (
    ApiError,
    AuthenticationError,
    InvalidResponseError,
    RequestRejectedError,
    ServerError,
    TransportError,
)
from brewconsole.services.session_store import SessionStore
from brewconsole.utils.reliability import call_with_retry

logger = structlog.get_logger(__name__)


def extract_error_message(payload: Any) -> Optional[str]:
    """Pull a human-readable message out of an error payload."""
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if isinstance(message, list):
        message = "; ".join(str(m) for m in message if m)
    if message:
        return str(message)
    error = payload.get("error")
    return str(error) if error else None


def error_from_response(response: httpx.Response) -> ApiError:
    """Map an error response onto the exception taxonomy."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    message = extract_error_message(payload)
    status = response.status_code
    details = {"path": response.request.url.path, "method": response.request.method}

    if status == 401:
        return AuthenticationError(message, status=status, details=details)
    if 400 <= status < 500:
        return RequestRejectedError(message, status=status, details=details)
    return ServerError(message, status=status, details=details)


class ApiClient:
    """
    Async HTTP client bound to one backend and one session store.

    GET requests are retried on transport failures; mutations are sent once.
    """

    def __init__(
        self,
        config: ApiConfig,
        session: SessionStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.session = session

        self.client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )

    def _get_headers(self) -> Dict[str, str]:
        token = self.session.access_token
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        json_data: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make a request against the API.

        Args:
            method: HTTP method
            path: API path (without base URL)
            json_data: JSON payload
            params: Query parameters

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            ApiError: normalized failure
        """
        method = method.upper()
        if method == "GET":
            return await call_with_retry(
                self._send,
                method,
                path,
                json_data,
                params,
                max_attempts=self.config.max_retries,
                backoff_max=self.config.backoff_max,
                retry_exceptions=(TransportError,),
            )
        return await self._send(method, path, json_data, params)

    async def _send(
        self,
        method: str,
        path: str,
        json_data: Optional[Any],
        params: Optional[Dict[str, Any]],
    ) -> Any:
        logger.debug("Making API request", method=method, path=path, has_data=json_data is not None)

        try:
            response = await self.client.request(
                method, path, json=json_data, params=params, headers=self._get_headers()
            )
        except httpx.TimeoutException as e:
            logger.error("API timeout", method=method, path=path, error=str(e))
            raise TransportError(f"Request timed out: {path}", details={"path": path})
        except httpx.RequestError as e:
            logger.error("API transport error", method=method, path=path, error=str(e))
            raise TransportError(details={"path": path, "error": str(e)})

        if response.is_error:
            error = error_from_response(response)
            logger.warning(
                "API error response",
                method=method,
                path=path,
                status_code=error.status,
                message=error.message,
            )
            raise error

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            logger.error("API returned non-JSON body", method=method, path=path)
            raise InvalidResponseError(status=response.status_code, details={"path": path})

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_data: Optional[Any] = None) -> Any:
        return await self.request("POST", path, json_data=json_data)

    async def patch(self, path: str, json_data: Optional[Any] = None) -> Any:
        return await self.request("PATCH", path, json_data=json_data)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
