"""Error taxonomy shared by the gateway, the operation registry and the resource router."""
from typing import Any, Dict, List, Optional


class RaindropError(Exception):
    """Base class for every classified failure.

    Attributes:
        code: Stable machine-readable error code
        operation: Name of the operation that failed (if known)
        status: Upstream HTTP status (None for local failures)
    """
    code = "RAINDROP_ERROR"

    def __init__(self, message: str, operation: Optional[str] = None, status: Optional[int] = None):
        self.message = message
        self.operation = operation
        self.status = status
        super().__init__(self._format())

    def _format(self) -> str:
        text = f"{self.operation}: {self.message}" if self.operation else self.message
        if self.status is not None:
            text = f"{text} (HTTP {self.status})"
        return text


class AuthError(RaindropError):
    """Missing, invalid or expired access token."""
    code = "AUTH_ERROR"


class RateLimitError(RaindropError):
    code = "RATE_LIMITED"


class NotFoundError(RaindropError):
    code = "NOT_FOUND"


class ValidationError(RaindropError):
    """Bad caller input, a malformed resource URI, or an upstream 4xx rejection."""
    code = "VALIDATION_ERROR"


class UpstreamServerError(RaindropError):
    code = "UPSTREAM_ERROR"


class RequestTimeoutError(RaindropError):
    code = "TIMEOUT"


class AggregateError(RaindropError):
    """One or more sub-calls of a batch failed.

    The batch is reported as a single failure; ``errors`` keeps the
    individual causes so the message can name every failed item.
    """
    code = "AGGREGATE_ERROR"

    def __init__(self, message: str, errors: Dict[Any, Exception], operation: Optional[str] = None):
        self.errors = dict(errors)
        details = "; ".join(f"{key}: {err.message if isinstance(err, RaindropError) else err}"
                            for key, err in self.errors.items())
        super().__init__(f"{message} ({details})" if details else message, operation=operation)

    @property
    def failed(self) -> List[Any]:
        """Keys (e.g. bookmark ids) of the sub-calls that failed."""
        return list(self.errors)


def classify_status(status: int, operation: Optional[str] = None, detail: Optional[str] = None) -> RaindropError:
    """Map a non-2xx upstream status to the matching error.

    Args:
        status: HTTP status code
        operation: Operation name for the message
        detail: Upstream error text, if any

    Returns:
        An instance of the matching RaindropError subclass (not raised)
    """
    if status == 401:
        message = "Unauthorized. The Raindrop.io access token is invalid, expired, or lacks permissions"
        return AuthError(_with_detail(message, detail), operation, status)
    if status == 429:
        message = "Rate limited. Wait before making more requests to the Raindrop.io API"
        return RateLimitError(_with_detail(message, detail), operation, status)
    if status == 404:
        return NotFoundError(_with_detail("Resource not found", detail), operation, status)
    if status >= 500:
        message = "Raindrop.io API server error. Try again later"
        return UpstreamServerError(_with_detail(message, detail), operation, status)
    return ValidationError(_with_detail("Request rejected by Raindrop.io", detail), operation, status)


def _with_detail(message: str, detail: Optional[str]) -> str:
    return f"{message}: {detail}" if detail else message
