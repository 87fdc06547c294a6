"""
cmd-limiter: Admission control for hierarchical chat commands.

This library decides, before a command runs, whether to allow it, block
it silently, or block it with a hint:
- Per-user and per-channel override rules (block or ignore)
- Cooldowns (minimum interval between admitted calls)
- Daily quotas reset at local midnight
- Limits inherited from the nearest configured ancestor command
- Limits partitioned by user, channel or platform

Example:
    from cmd_limiter import Command, CommandLimiter, Identity, LimitConfig, Scope

    remind = Command("remind", LimitConfig(scope=Scope.USER, min_interval=60, max_day_usage=3))
    limiter = CommandLimiter()

    result = limiter.before_execute(Identity(user_id="u1", channel_id="c1"), remind)
    if result is not None:
        ...  # cancel execution, showing ``result`` when non-empty
"""

from importlib.metadata import PackageNotFoundError, version

from .chain import ChainWalker, Command, CommandNode, ValueResolver, resolve_computed
from .config import LimiterConfig
from .exceptions import (
    AdmissionDenied,
    CmdLimiterError,
    CommandBlocked,
    ConfigurationError,
    RateLimitExceeded,
    ValidationError,
)
from .limiter import CommandLimiter
from .models import (
    Decision,
    Identity,
    IdentityType,
    LimitConfig,
    LimitStatus,
    Outcome,
    RuleAction,
    RuleEntry,
    Scope,
    UsageRecord,
)
from .rules import RuleResolver
from .scope import derive_key
from .store import StoreStats, UsageStore

try:
    __version__ = version("cmd-limiter")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Main classes
    "CommandLimiter",
    "UsageStore",
    "RuleResolver",
    "ChainWalker",
    "Command",
    "CommandNode",
    "LimiterConfig",
    # Models
    "Decision",
    "Identity",
    "IdentityType",
    "LimitConfig",
    "LimitStatus",
    "Outcome",
    "RuleAction",
    "RuleEntry",
    "Scope",
    "StoreStats",
    "UsageRecord",
    # Functions
    "derive_key",
    "resolve_computed",
    "ValueResolver",
    # Exceptions - Base
    "CmdLimiterError",
    # Exceptions - Configuration
    "ConfigurationError",
    "ValidationError",
    # Exceptions - Admission
    "AdmissionDenied",
    "CommandBlocked",
    "RateLimitExceeded",
]
