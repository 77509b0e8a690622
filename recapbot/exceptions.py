"""
Exception hierarchy for Recap Bot.

Every error raised inside the package derives from RecapBotError so that the
public entry points can convert failures into results with a single handler.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class ErrorContext:
    """Structured context attached to an error for logging."""
    operation: Optional[str] = None
    user_id: Optional[str] = None
    channel_id: Optional[str] = None
    summary_kind: Optional[str] = None
    period: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "operation": self.operation,
            "user_id": self.user_id,
            "channel_id": self.channel_id,
            "summary_kind": self.summary_kind,
            "period": self.period,
            "timestamp": self.timestamp.isoformat(),
        }
        data.update(self.extra)
        return {k: v for k, v in data.items() if v is not None}


def create_error_context(operation: Optional[str] = None,
                         user_id: Optional[str] = None,
                         channel_id: Optional[str] = None,
                         summary_kind: Optional[str] = None,
                         period: Optional[str] = None,
                         **extra: Any) -> ErrorContext:
    """Build an ErrorContext, dropping unset fields from `extra`."""
    return ErrorContext(
        operation=operation,
        user_id=user_id,
        channel_id=channel_id,
        summary_kind=summary_kind,
        period=period,
        extra={k: v for k, v in extra.items() if v is not None},
    )


class RecapBotError(Exception):
    """Base class for all Recap Bot errors."""

    default_error_code = "RECAPBOT_ERROR"

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 context: Optional[ErrorContext] = None,
                 user_message: Optional[str] = None,
                 retryable: bool = False,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.context = context or ErrorContext()
        self.user_message = user_message
        self.retryable = retryable
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def get_user_response(self) -> str:
        """Message suitable for showing to the requesting user."""
        return self.user_message or self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.get_user_response(),
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "cause": repr(self.cause) if self.cause else None,
        }

    def to_log_string(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        ctx = self.context.to_dict()
        ctx.pop("timestamp", None)
        if ctx:
            parts.append(" ".join(f"{k}={v}" for k, v in ctx.items()))
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " | ".join(parts)


class InvalidInputError(RecapBotError):
    """Malformed input rejected before any I/O."""

    default_error_code = "INVALID_INPUT"

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field_name = field_name


class ConfigurationError(RecapBotError):
    """Invalid or incomplete configuration."""

    default_error_code = "CONFIGURATION_ERROR"


class NoActivityFoundError(RecapBotError):
    """No raw posts exist anywhere in the requested range."""

    default_error_code = "NO_ACTIVITY_FOUND"

    def __init__(self, period: str, **kwargs):
        kwargs.setdefault("user_message", f"No posts found for period: {period}")
        super().__init__(f"No posts found for period: {period}", **kwargs)
        self.period = period


class NoPriorSummaryFoundError(RecapBotError):
    """Sub-period summaries of the required kind could not be read back."""

    default_error_code = "NO_PRIOR_SUMMARY_FOUND"

    def __init__(self, kind: str, period: str, **kwargs):
        kwargs.setdefault("user_message", f"{kind} summary not found: {period}")
        super().__init__(f"{kind} summary not found: {period}", **kwargs)
        self.kind = kind
        self.period = period


class GatewayError(RecapBotError):
    """A messaging platform call failed."""

    default_error_code = "GATEWAY_FAILURE"

    def __init__(self, message: str, platform_error: Optional[str] = None, **kwargs):
        kwargs.setdefault("user_message", f"Slack API error: {message}")
        super().__init__(message, **kwargs)
        self.platform_error = platform_error


class GatewayRateLimitError(GatewayError):
    """The messaging platform kept rate limiting after transport retries."""

    default_error_code = "GATEWAY_RATE_LIMITED"

    def __init__(self, message: str, retry_after: Optional[int] = None, **kwargs):
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class GatewayPermissionError(GatewayError):
    """The token in use lacks a scope or channel membership."""

    default_error_code = "GATEWAY_PERMISSION_DENIED"


class GenerationError(RecapBotError):
    """The generation backend failed or returned nothing usable."""

    default_error_code = "GENERATION_FAILURE"

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("user_message", f"AI generation error: {message}")
        super().__init__(message, **kwargs)


class ClaudeAPIError(GenerationError):
    """Error reported by the Claude API."""

    default_error_code = "CLAUDE_API_ERROR"

    def __init__(self, message: str, api_error_code: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.api_error_code = api_error_code


class RateLimitError(GenerationError):
    """Rate limit hit on an upstream API after all retries."""

    default_error_code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, api_name: str, retry_after: Optional[int] = None,
                 limit_type: str = "requests", **kwargs):
        kwargs.setdefault("retryable", True)
        super().__init__(f"{api_name} rate limit exceeded ({limit_type})", **kwargs)
        self.api_name = api_name
        self.retry_after = retry_after
        self.limit_type = limit_type


class AuthenticationError(GenerationError):
    """Credentials rejected by an upstream API."""

    default_error_code = "AUTHENTICATION_ERROR"

    def __init__(self, api_name: str, details: str = "", **kwargs):
        message = f"{api_name} authentication failed"
        if details:
            message = f"{message}: {details}"
        super().__init__(message, **kwargs)
        self.api_name = api_name


class NetworkError(GenerationError):
    """Connection-level failure talking to an upstream API."""

    default_error_code = "NETWORK_ERROR"

    def __init__(self, api_name: str, details: str = "", **kwargs):
        kwargs.setdefault("retryable", True)
        message = f"{api_name} network error"
        if details:
            message = f"{message}: {details}"
        super().__init__(message, **kwargs)
        self.api_name = api_name


class TimeoutError(GenerationError):
    """Upstream API request timed out."""

    default_error_code = "TIMEOUT"

    def __init__(self, api_name: str, timeout_seconds: float, **kwargs):
        kwargs.setdefault("retryable", True)
        super().__init__(f"{api_name} request timed out after {timeout_seconds}s", **kwargs)
        self.api_name = api_name
        self.timeout_seconds = timeout_seconds


def handle_unexpected_error(error: BaseException,
                            context: Optional[ErrorContext] = None) -> RecapBotError:
    """Wrap any exception into a RecapBotError, passing ours through untouched."""
    if isinstance(error, RecapBotError):
        return error
    return RecapBotError(
        message=f"Unexpected error: {error}",
        error_code="UNEXPECTED_ERROR",
        context=context,
        user_message="An unexpected error occurred.",
        cause=error,
    )
