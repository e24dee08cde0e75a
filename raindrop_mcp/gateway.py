"""Authenticated HTTP gateway to the Raindrop.io REST API.

Every upstream call goes through ``Gateway.call``:

  1. The request value is passed through the request interceptors in
     registration order (bearer credential injection is the first one).
  2. It is sent with a bounded timeout.
  3. The response is passed through the response interceptors.
  4. Non-2xx statuses are classified into the error taxonomy. Read calls
     are retried on 408/413/429/5xx up to ``max_retries`` extra attempts;
     mutating calls are sent exactly once.
"""
import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx

from raindrop_mcp.config import DEFAULT_BASE_URL, Config
from raindrop_mcp.errors import (
    AuthError,
    RequestTimeoutError,
    UpstreamServerError,
    classify_status,
)

logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})
RETRYABLE_STATUSES = frozenset({408, 413, 429})


@dataclass(frozen=True)
class ApiRequest:
    """A single upstream request, treated as an immutable value."""
    method: str
    path: str
    params: Optional[Dict[str, Any]] = None
    body: Optional[Dict[str, Any]] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    operation: str = ""

    @property
    def idempotent(self) -> bool:
        return self.method in IDEMPOTENT_METHODS

    def with_header(self, name: str, value: str) -> "ApiRequest":
        """Return a copy of this request with one extra header."""
        return replace(self, headers={**self.headers, name: value})


RequestInterceptor = Callable[[ApiRequest], ApiRequest]
ResponseInterceptor = Callable[[ApiRequest, httpx.Response], httpx.Response]


def bearer_auth(token: str) -> RequestInterceptor:
    """Build the interceptor that injects ``Authorization: Bearer <token>``."""
    def inject(request: ApiRequest) -> ApiRequest:
        return request.with_header("Authorization", f"Bearer {token}")
    return inject


def accept_json(request: ApiRequest) -> ApiRequest:
    return request.with_header("Accept", "application/json")


def is_retryable(status: int) -> bool:
    return status in RETRYABLE_STATUSES or status >= 500


def _strip_none(values: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    # Raindrop treats an absent key as "leave unchanged" / "use default"
    if values is None:
        return None
    return {k: v for k, v in values.items() if v is not None}


def _error_detail(response: httpx.Response) -> Optional[str]:
    """Extract a human-readable message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or None
    if isinstance(body, dict):
        for key in ("errorMessage", "error", "message"):
            if body.get(key):
                return str(body[key])
    return None


class Gateway:
    """Async client for the Raindrop.io REST API.

    The credential is checked once at construction: a gateway without a
    token cannot be built, so missing configuration surfaces at startup
    instead of on the first call.
    """

    def __init__(
        self,
        access_token: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        request_interceptors: Optional[List[RequestInterceptor]] = None,
        response_interceptors: Optional[List[ResponseInterceptor]] = None,
    ):
        """Initialize the gateway.

        Args:
            access_token: Raindrop.io API token
            base_url: REST API root
            timeout: Per-call timeout in seconds
            max_retries: Extra attempts allowed for read calls
            retry_delay: Pause between read attempts in seconds
            transport: Optional httpx transport to send requests through
            request_interceptors: Extra request transforms, applied after auth
            response_interceptors: Response transforms, applied in order

        Raises:
            AuthError: If no access token is given
        """
        if not access_token:
            raise AuthError(
                "RAINDROP_ACCESS_TOKEN environment variable is required. "
                "Set it to a Raindrop.io API token."
            )

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        self._request_interceptors: List[RequestInterceptor] = [
            bearer_auth(access_token),
            accept_json,
            *(request_interceptors or []),
        ]
        self._response_interceptors: List[ResponseInterceptor] = list(response_interceptors or [])

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None) -> "Gateway":
        """Create a gateway from a Config."""
        return cls(
            access_token=config.access_token,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Interceptors
    # ------------------------------------------------------------------

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> None:
        self._request_interceptors.append(interceptor)

    def add_response_interceptor(self, interceptor: ResponseInterceptor) -> None:
        self._response_interceptors.append(interceptor)

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def call(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        operation: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send one request to the API and return its decoded JSON body.

        Args:
            method: HTTP method
            path: Path relative to the API root (e.g. "/collections")
            params: Query parameters; None values are dropped
            body: JSON body; None values are dropped
            operation: Operation name used in error messages

        Returns:
            The decoded JSON object

        Raises:
            RaindropError: A classified failure (see raindrop_mcp.errors)
        """
        method = method.upper()
        request = ApiRequest(
            method=method,
            path=path,
            params=_strip_none(params),
            body=_strip_none(body),
            operation=operation or f"{method} {path}",
        )
        for interceptor in self._request_interceptors:
            request = interceptor(request)

        attempts = 1 + (self.max_retries if request.idempotent else 0)
        attempt = 0
        while True:
            attempt += 1
            response = await self._send(request)
            for response_interceptor in self._response_interceptors:
                response = response_interceptor(request, response)

            if response.is_success:
                return self._decode(request, response)

            status = response.status_code
            if attempt < attempts and is_retryable(status):
                logger.warning(
                    "%s: upstream returned %s, retrying (attempt %d of %d)",
                    request.operation, status, attempt + 1, attempts,
                )
                if self.retry_delay > 0:
                    await asyncio.sleep(self.retry_delay)
                continue

            error = classify_status(status, request.operation, _error_detail(response))
            logger.info("%s failed: %s", request.operation, error)
            raise error

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None,
                  operation: Optional[str] = None) -> Dict[str, Any]:
        return await self.call("GET", path, params=params, operation=operation)

    async def post(self, path: str, body: Optional[Dict[str, Any]] = None,
                   operation: Optional[str] = None) -> Dict[str, Any]:
        return await self.call("POST", path, body=body, operation=operation)

    async def put(self, path: str, body: Optional[Dict[str, Any]] = None,
                  operation: Optional[str] = None) -> Dict[str, Any]:
        return await self.call("PUT", path, body=body, operation=operation)

    async def delete(self, path: str, body: Optional[Dict[str, Any]] = None,
                     operation: Optional[str] = None) -> Dict[str, Any]:
        return await self.call("DELETE", path, body=body, operation=operation)

    async def _send(self, request: ApiRequest) -> httpx.Response:
        logger.debug("%s %s params=%s", request.method, request.path, request.params)
        try:
            return await self._client.request(
                request.method,
                request.path,
                params=request.params,
                json=request.body,
                headers=dict(request.headers),
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Request timed out after {self.timeout}s", request.operation
            ) from e
        except httpx.RequestError as e:
            raise UpstreamServerError(f"Request failed: {e}", request.operation) from e

    def _decode(self, request: ApiRequest, response: httpx.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamServerError(
                "Invalid response from Raindrop.io API (not JSON)", request.operation, response.status_code
            ) from e

        if not isinstance(data, dict):
            raise UpstreamServerError(
                "Invalid response structure from Raindrop.io API", request.operation, response.status_code
            )
        if data.get("result") is False:
            detail = data.get("errorMessage") or "request was not successful"
            raise UpstreamServerError(f"Raindrop.io reported failure: {detail}", request.operation)
        return data
