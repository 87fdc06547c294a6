"""Core models for cmd-limiter."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Scope(str, Enum):
    """Partition dimension used to key usage records."""

    PLATFORM = "platform"
    CHANNEL = "channel"
    USER = "user"


class IdentityType(str, Enum):
    """Kind of identifier a rule entry targets."""

    USER = "user"
    CHANNEL = "channel"


class RuleAction(str, Enum):
    """
    Effective action for an identity.

    ``LIMIT`` is the "no override" value: normal limit evaluation applies.
    Only ``BLOCK`` and ``IGNORE`` may appear in configured rule entries.
    """

    BLOCK = "block"
    IGNORE = "ignore"
    LIMIT = "limit"


class Outcome(str, Enum):
    """Why an invocation was admitted or denied."""

    ALLOWED = "allowed"
    IGNORED = "ignored"  # allowed by an ignore rule, limits skipped
    BLOCKED = "blocked"  # denied by a block rule
    COOLDOWN = "cooldown"
    QUOTA = "quota"


# A configured value is either static or computed per invocation.
Computed = Union[Any, Callable[["Identity"], Any]]


@dataclass(frozen=True)
class Identity:
    """
    Who is invoking a command, and where.

    Any identifier may be None when the transport has no such concept
    (e.g. a private message carries no channel id).
    """

    user_id: str | None = None
    channel_id: str | None = None
    platform: str | None = None


@dataclass
class UsageRecord:
    """
    Per (scope, key, command) usage state.

    A field left as None means that dimension has never been evaluated
    for this record. Timestamps are epoch seconds.
    """

    cooldown_expires_at: float | None = None
    daily_uses_left: int | None = None
    daily_reset_at: float | None = None

    def copy(self) -> "UsageRecord":
        """Return a detached copy of this record."""
        return UsageRecord(
            cooldown_expires_at=self.cooldown_expires_at,
            daily_uses_left=self.daily_uses_left,
            daily_reset_at=self.daily_reset_at,
        )


@dataclass(frozen=True)
class RuleEntry:
    """A standing override for one user or channel."""

    type: IdentityType
    content: str
    action: RuleAction

    def __post_init__(self) -> None:
        if self.action is RuleAction.LIMIT:
            raise ValueError("rule entries may only block or ignore")

    def to_dict(self) -> dict[str, str]:
        """Serialize to the plugin configuration shape."""
        return {
            "type": self.type.value,
            "content": self.content,
            "action": self.action.value,
        }


@dataclass
class LimitConfig:
    """
    Limit configuration attached to a command node.

    Every field may be a static value or a callable taking the current
    :class:`Identity`; values are resolved fresh on each invocation.

    Attributes:
        scope: Partition dimension (default: channel)
        max_day_usage: Admissions per local calendar day (0 = disabled)
        min_interval: Seconds between admitted calls (0 = disabled)
    """

    scope: Computed = Scope.CHANNEL
    max_day_usage: Computed = 0
    min_interval: Computed = 0


@dataclass(frozen=True)
class LimitStatus:
    """
    Result of evaluating one command level against the usage store.

    ``retry_after_seconds`` is the whole number of seconds left on a
    cooldown (0 unless ``outcome`` is COOLDOWN).
    """

    record_id: str
    outcome: Outcome
    retry_after_seconds: int = 0
    daily_uses_left: int | None = None

    @property
    def exceeded(self) -> bool:
        """True if this level denied the call."""
        return self.outcome in (Outcome.COOLDOWN, Outcome.QUOTA)


@dataclass(frozen=True)
class Decision:
    """
    Final admission outcome for one invocation.

    ``hint`` is None when the call is allowed. For a denied call it is the
    human-readable reason, or an empty string when hints are suppressed or
    the call was blocked by a rule.
    """

    outcome: Outcome
    hint: str | None = None
    status: LimitStatus | None = field(default=None, compare=False)

    @property
    def allowed(self) -> bool:
        """True if the command may run."""
        return self.outcome in (Outcome.ALLOWED, Outcome.IGNORED)

    @property
    def retry_after_seconds(self) -> int:
        """Seconds until a cooldown denial clears (0 otherwise)."""
        return self.status.retry_after_seconds if self.status is not None else 0

    @classmethod
    def allow(cls, status: LimitStatus | None = None) -> "Decision":
        return cls(outcome=Outcome.ALLOWED, status=status)

    @classmethod
    def ignore(cls) -> "Decision":
        return cls(outcome=Outcome.IGNORED)

    @classmethod
    def block(cls) -> "Decision":
        return cls(outcome=Outcome.BLOCKED, hint="")
