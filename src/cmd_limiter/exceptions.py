"""Exceptions for cmd-limiter."""

from typing import Any

from .models import Decision, Outcome


# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class CmdLimiterError(Exception):
    """
    Base exception for all cmd-limiter errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause.
    """

    pass


# ---------------------------------------------------------------------------
# Configuration Exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(CmdLimiterError):
    """
    Raised when the limiter configuration cannot be loaded.

    Only raised while building a limiter at startup, never while
    deciding whether a command may run.
    """

    pass


class ValidationError(ConfigurationError):
    """Raised when a single configuration field is invalid."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# ---------------------------------------------------------------------------
# Admission Exceptions
# ---------------------------------------------------------------------------


class AdmissionDenied(CmdLimiterError):  # noqa: N818
    """
    Base exception for denied invocations.

    Raised by ``CommandLimiter.enforce()`` only; ``decide()`` reports
    denials as return values.

    Attributes:
        decision: The denial decision
    """

    def __init__(self, decision: Decision, message: str) -> None:
        self.decision = decision
        super().__init__(message)

    @property
    def hint(self) -> str:
        """User-facing hint text (empty when suppressed)."""
        return self.decision.hint or ""


class CommandBlocked(AdmissionDenied):  # noqa: N818
    """Raised when a block rule matches the invoking user or channel."""

    def __init__(self, decision: Decision) -> None:
        super().__init__(decision, "Command blocked by rule")


class RateLimitExceeded(AdmissionDenied):  # noqa: N818
    """
    Raised when a cooldown or daily quota denies the invocation.

    Attributes:
        status: The limit status of the denying command level
        retry_after_seconds: Whole seconds until a cooldown clears
            (0 for quota denials, which clear at local midnight)
    """

    def __init__(self, decision: Decision) -> None:
        if decision.status is None or not decision.status.exceeded:
            raise ValueError("RateLimitExceeded requires an exceeded limit status")
        self.status = decision.status
        self.retry_after_seconds = decision.status.retry_after_seconds
        super().__init__(decision, self._format_message())

    def _format_message(self) -> str:
        s = self.status
        if s.outcome is Outcome.COOLDOWN:
            return f"Rate limit exceeded for {s.record_id}: retry after {s.retry_after_seconds}s"
        return f"Daily quota exhausted for {s.record_id}"

    def as_dict(self) -> dict[str, Any]:
        """
        Serialize the denial for structured logs or bot replies.

        Returns a JSON-ready dictionary with the denying record, the reason
        and the user-facing hint.
        """
        return {
            "error": "rate_limit_exceeded",
            "message": str(self),
            "reason": self.status.outcome.value,
            "record_id": self.status.record_id,
            "retry_after_seconds": self.retry_after_seconds,
            "hint": self.hint,
        }
