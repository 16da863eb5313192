"""HTTP client for the remote user directory API."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import httpx

from .notices import NoticeBoard
from .sessions import SessionStore

logger = logging.getLogger("useradmin.gateway")

DEFAULT_BASE_URL = "https://reqres.in"
DEFAULT_TIMEOUT = 10.0


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNEXPECTED = "unexpected"


class RequestError(RuntimeError):
    """Raised when an API call fails for any reason."""

    kind: ErrorKind = ErrorKind.UNEXPECTED
    notice = "An unexpected error occurred."

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause


class Unauthorized(RequestError):
    kind = ErrorKind.UNAUTHORIZED
    notice = "Session expired, please log in again."


class Forbidden(RequestError):
    kind = ErrorKind.FORBIDDEN
    notice = "You are not authorized to perform this action."


class NetworkError(RequestError):
    kind = ErrorKind.NETWORK
    notice = "Network error, please check your internet connection."


class Timeout(RequestError):
    kind = ErrorKind.TIMEOUT
    notice = "Request timed out, please try again."


class Unexpected(RequestError):
    kind = ErrorKind.UNEXPECTED


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("API base URL must not be empty")
    return cleaned.rstrip("/")


def _extract_error_message(payload: object, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return default


def classify_response(response: httpx.Response) -> RequestError:
    """Map a non-2xx response onto exactly one :class:`RequestError` kind."""

    status_code = response.status_code
    try:
        payload = response.json()
    except ValueError:
        payload = None
    message = _extract_error_message(
        payload,
        f"{response.request.method} {response.request.url.path} failed with status {status_code}",
    )

    if status_code == 401:
        return Unauthorized(message, status_code=status_code)
    if status_code == 403:
        return Forbidden(message, status_code=status_code)
    return Unexpected(message, status_code=status_code)


def classify_transport_error(exc: httpx.RequestError) -> RequestError:
    if isinstance(exc, httpx.TimeoutException):
        return Timeout(f"Request timed out: {exc}", cause=exc)
    if isinstance(exc, httpx.TransportError):
        return NetworkError(f"Failed to contact API: {exc}", cause=exc)
    return Unexpected(f"Request failed: {exc}", cause=exc)


class ApiGateway:
    """Single configured client for every call made to the remote API.

    Each outgoing request carries the session token when one is stored.
    Failures are classified once, here, and the session invalidation and
    user-visible notice for the failure have already happened by the time the
    caller sees the raised :class:`RequestError`.
    """

    def __init__(
        self,
        session: SessionStore,
        notices: NoticeBoard,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._session = session
        self._notices = notices
        self._base_url = _normalize_base_url(base_url)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
            event_hooks={"request": [self._attach_token]},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _attach_token(self, request: httpx.Request) -> None:
        token = self._session.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await self._send("GET", path, params=params)

    async def post(self, path: str, body: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._send("POST", path, json=dict(body))

    async def put(self, path: str, body: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._send("PUT", path, json=dict(body))

    async def delete(self, path: str) -> Dict[str, Any]:
        return await self._send("DELETE", path)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not path.startswith("/"):
            path = "/" + path

        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.RequestError as exc:
            raise self._fail(method, classify_transport_error(exc)) from exc

        if not response.is_success:
            raise self._fail(method, classify_response(response))

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            error = Unexpected("API returned a response that is not JSON", status_code=response.status_code, cause=exc)
            raise self._fail(method, error) from exc
        if not isinstance(payload, dict):
            error = Unexpected("API returned an unexpected response payload", status_code=response.status_code)
            raise self._fail(method, error)
        return payload

    def reject_payload(
        self, method: str, message: str, *, cause: BaseException | None = None
    ) -> Unexpected:
        """Classify a well-formed response whose body has the wrong shape."""
        error = Unexpected(message, cause=cause)
        self._fail(method, error)
        return error

    def _fail(self, method: str, error: RequestError) -> RequestError:
        logger.error("%s request error: %s", method, error)
        if isinstance(error, Unauthorized):
            self._session.clear_session(reason="unauthorized")
        self._notices.error(error.notice)
        return error

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = [
    "ApiGateway",
    "ErrorKind",
    "Forbidden",
    "NetworkError",
    "RequestError",
    "Timeout",
    "Unauthorized",
    "Unexpected",
    "classify_response",
    "classify_transport_error",
]
