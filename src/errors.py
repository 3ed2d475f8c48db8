from __future__ import annotations


class CopilotError(RuntimeError):
    pass


class CredentialNotFound(CopilotError):
    pass


class RateLimitExceeded(CopilotError):
    pass


class UpstreamUnavailable(CopilotError):
    pass


class MalformedUpstreamResponse(CopilotError):
    pass


class HttpStatusError(CopilotError):
    """Upstream answered with a non-success status."""

    def __init__(self, message: str, *, status: int | None = None, reason: str = "", body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.body = body


class TokenExchangeFailed(HttpStatusError):
    pass


class UpstreamError(HttpStatusError):
    pass


class OperationFailed(CopilotError):
    def __init__(self, operation: str, prefix: str, cause: Exception) -> None:
        super().__init__(f"{prefix}: {cause}")
        self.operation = operation
        self.cause = cause
