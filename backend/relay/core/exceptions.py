from __future__ import annotations


class AppException(Exception):
    """Base exception for all application-level errors.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code to return.
        error_code: Machine-readable error identifier.
        detail: Optional additional context.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        detail: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.detail = detail or {}

    def to_dict(self) -> dict[str, object]:
        """Serialise the exception to a JSON-friendly dict."""
        payload: dict[str, object] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.detail:
            payload["detail"] = self.detail
        return payload


class ValidationException(AppException):
    """Raised when request data fails validation."""

    def __init__(
        self,
        message: str = "Validation error",
        detail: dict[str, object] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            detail=detail,
        )


class ServiceUnavailableException(AppException):
    """Raised when an upstream dependency is unreachable."""

    def __init__(
        self,
        service: str = "External service",
        detail: dict[str, object] | None = None,
    ) -> None:
        super().__init__(
            message=f"{service} is currently unavailable",
            status_code=503,
            error_code="SERVICE_UNAVAILABLE",
            detail=detail,
        )


class GatewayError(AppException):
    """Raised when the provider rejects a request or cannot be reached.

    ``upstream_status`` is the provider's HTTP status, or ``None`` for
    transport failures (connect errors, timeouts). Provider 4xx codes are
    passed through; everything else maps to 502.
    """

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        detail: dict[str, object] | None = None,
    ) -> None:
        status_code = 502
        if upstream_status is not None and 400 <= upstream_status < 500:
            status_code = upstream_status
        merged_detail: dict[str, object] = dict(detail) if detail else {}
        if upstream_status is not None:
            merged_detail["upstream_status"] = upstream_status
        super().__init__(
            message=message,
            status_code=status_code,
            error_code="GATEWAY_ERROR",
            detail=merged_detail,
        )
        self.upstream_status = upstream_status


class PollTimeoutError(AppException):
    """Raised when a polled resource has not reached a terminal status in time.

    The resource is still pending on the provider side; callers may poll
    again. This is never raised for transport failures.
    """

    def __init__(self, resource_id: str, max_wait_ms: int, resource_kind: str = "Resource") -> None:
        super().__init__(
            message=f"{resource_kind} {resource_id} did not complete within {max_wait_ms}ms",
            status_code=408,
            error_code="POLL_TIMEOUT",
            detail={"resource_id": resource_id, "max_wait_ms": max_wait_ms},
        )
        self.resource_id = resource_id
        self.max_wait_ms = max_wait_ms
