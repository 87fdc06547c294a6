"""Admission decisions for command invocations."""

import logging
import time
from collections.abc import Callable

from .chain import ChainWalker, CommandNode, ValueResolver, resolve_computed
from .config import LimiterConfig
from .exceptions import CommandBlocked, RateLimitExceeded
from .models import Decision, Identity, LimitStatus, Outcome, RuleAction
from .rules import RuleResolver
from .store import UsageStore

logger = logging.getLogger(__name__)

COOLDOWN_HINT = "Too many requests, please retry in {seconds} seconds"
QUOTA_HINT = "Daily usage limit reached, please try again tomorrow"


def format_hint(status: LimitStatus) -> str:
    """Render the user-facing reason for a denied status."""
    if status.outcome is Outcome.COOLDOWN:
        return COOLDOWN_HINT.format(seconds=status.retry_after_seconds)
    return QUOTA_HINT


class CommandLimiter:
    """
    Decides whether a command invocation may run.

    Composes the rule table, the command chain walker and the usage
    store. Rule overrides are consulted first: a block rule denies
    silently and an ignore rule admits without touching any limit.

    Args:
        config: Limiter configuration (rules and hint flag)
        store: Usage record store; a fresh one is created when omitted
        resolver: Resolves computed limit values per invocation
        clock: Clock for a store created here (epoch seconds)

    Example:
        limiter = CommandLimiter(LimiterConfig(send_hint=True))
        result = limiter.before_execute(identity, command)
        if result is not None:
            cancel(result)  # "" means block silently
    """

    def __init__(
        self,
        config: LimiterConfig | None = None,
        store: UsageStore | None = None,
        resolver: ValueResolver = resolve_computed,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or LimiterConfig()
        self.store = store if store is not None else UsageStore(clock=clock)
        self.rules = RuleResolver(self.config.command_rules)
        self._walker = ChainWalker(self.store, resolver)

    @property
    def send_hint(self) -> bool:
        return self.config.send_hint

    def decide(self, identity: Identity, command: CommandNode) -> Decision:
        """
        Decide whether ``command`` may run for ``identity``.

        Admitted calls are recorded against the evaluated limit. Never
        raises for misconfigured limit values.
        """
        action = self.rules.resolve(identity)
        if action is RuleAction.IGNORE:
            return Decision.ignore()
        if action is RuleAction.BLOCK:
            logger.info("Blocked %s for %s by rule", command.name, identity)
            return Decision.block()

        status = self._walker.walk(identity, command)
        if status is None or not status.exceeded:
            return Decision.allow(status)

        hint = format_hint(status)
        logger.info(
            "Denied %s (%s, retry_after=%ds)",
            status.record_id,
            status.outcome.value,
            status.retry_after_seconds,
        )
        return Decision(
            outcome=status.outcome,
            hint=hint if self.send_hint else "",
            status=status,
        )

    def before_execute(self, identity: Identity, command: CommandNode) -> str | None:
        """
        Pre-execution hook for the host.

        Returns:
            None to proceed, an empty string to block silently, or the
            hint text to block with a message.
        """
        decision = self.decide(identity, command)
        if decision.allowed:
            return None
        return decision.hint or ""

    def enforce(self, identity: Identity, command: CommandNode) -> Decision:
        """
        Like :meth:`decide`, but raise on denial.

        Raises:
            CommandBlocked: If a block rule matches
            RateLimitExceeded: If a cooldown or daily quota denies the call
        """
        decision = self.decide(identity, command)
        if decision.outcome is Outcome.BLOCKED:
            raise CommandBlocked(decision)
        if not decision.allowed:
            raise RateLimitExceeded(decision)
        return decision
