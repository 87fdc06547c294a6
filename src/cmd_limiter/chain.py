"""
Command hierarchy and the walk up a command's parent chain.

Starting at the invoked command, each ancestor is visited in turn until
one carries an active limit (a positive ``min_interval`` or
``max_day_usage``) whose scope key can be derived for the current
identity. Only that level is evaluated against the usage store, whether
it admits or denies the call; ancestors above it are never consulted.
"""

import logging
import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from .models import Identity, LimitConfig, LimitStatus, Scope
from .schema import HIERARCHY_SEPARATOR, record_id
from .scope import derive_key
from .store import UsageStore

logger = logging.getLogger(__name__)

ValueResolver = Callable[[Any, Identity], Any]
"""Turns a raw configured value into a concrete one for an identity."""


def resolve_computed(raw: Any, identity: Identity) -> Any:
    """Default resolver: call computed values with the identity."""
    if callable(raw):
        return raw(identity)
    return raw


@runtime_checkable
class CommandNode(Protocol):
    """
    What the walker needs from a host command.

    Any object with these attributes works; no inheritance needed.
    """

    @property
    def name(self) -> str:
        """Dot-hierarchical command name (e.g. ``"remind.list"``)."""
        ...

    @property
    def parent(self) -> Optional["CommandNode"]:
        """Parent command, or None for a root command."""
        ...

    @property
    def limits(self) -> LimitConfig:
        """Raw limit configuration for this command."""
        ...


@dataclass(eq=False)
class Command:
    """
    A node in a command tree.

    Example:
        remind = Command("remind", LimitConfig(scope=Scope.USER, min_interval=60))
        remind_list = remind.subcommand("list")
        remind_list.name  # "remind.list"
    """

    local_name: str
    limits: LimitConfig = field(default_factory=LimitConfig)
    parent: Optional["Command"] = None
    children: dict[str, "Command"] = field(default_factory=dict, repr=False)

    @property
    def name(self) -> str:
        """Full dot-hierarchical name."""
        if self.parent is None:
            return self.local_name
        return f"{self.parent.name}{HIERARCHY_SEPARATOR}{self.local_name}"

    def subcommand(self, local_name: str, limits: LimitConfig | None = None) -> "Command":
        """Create (or replace) a child command."""
        child = Command(local_name, limits or LimitConfig(), parent=self)
        self.children[local_name] = child
        return child

    def find(self, path: str) -> "Command | None":
        """Find a descendant by dotted path relative to this command."""
        node: Command | None = self
        for part in path.split(HIERARCHY_SEPARATOR):
            if node is None:
                return None
            node = node.children.get(part)
        return node


def iter_chain(command: CommandNode) -> Iterator[CommandNode]:
    """Yield ``command`` then each ancestor up to the root."""
    node: CommandNode | None = command
    while node is not None:
        yield node
        node = node.parent


@dataclass(frozen=True)
class ResolvedLimits:
    """Concrete limit values for one command level and one identity."""

    scope: Scope | None
    max_day_usage: int
    min_interval: float

    @property
    def active(self) -> bool:
        """True if either dimension is enabled."""
        return self.max_day_usage > 0 or self.min_interval > 0


def _non_negative(value: Any, name: str, command_name: str) -> float:
    """Coerce a resolved threshold; anything invalid disables it."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Ignoring non-numeric %s %r on %s", name, value, command_name)
        return 0
    if math.isnan(number) or math.isinf(number) or number < 0:
        logger.warning("Ignoring invalid %s %r on %s", name, value, command_name)
        return 0
    return number


def _scope(value: Any, command_name: str) -> Scope | None:
    try:
        return Scope(value)
    except ValueError:
        logger.warning("Ignoring unknown scope %r on %s", value, command_name)
        return None


def resolve_limits(
    command: CommandNode,
    identity: Identity,
    resolver: ValueResolver = resolve_computed,
) -> ResolvedLimits:
    """
    Resolve a command's raw limit configuration for an identity.

    The scope is only resolved when a threshold is active.
    """
    config = command.limits
    # Fractional daily quotas round up: 0.5 allows one call, 2.5 allows three
    max_day_usage = math.ceil(
        _non_negative(resolver(config.max_day_usage, identity), "max_day_usage", command.name)
    )
    min_interval = _non_negative(
        resolver(config.min_interval, identity), "min_interval", command.name
    )
    if not max_day_usage and not min_interval:
        return ResolvedLimits(scope=None, max_day_usage=0, min_interval=0)
    scope = _scope(resolver(config.scope, identity), command.name)
    return ResolvedLimits(
        scope=scope,
        max_day_usage=max_day_usage,
        min_interval=min_interval,
    )


class ChainWalker:
    """
    Finds the nearest command level with an active limit and evaluates it.

    Args:
        store: Usage record store
        resolver: Resolves computed configuration values per invocation
    """

    def __init__(self, store: UsageStore, resolver: ValueResolver = resolve_computed) -> None:
        self._store = store
        self._resolver = resolver

    def walk(self, identity: Identity, command: CommandNode) -> LimitStatus | None:
        """
        Evaluate the first applicable limit in the command's parent chain.

        Returns:
            The status of the evaluated level, or None when no level in the
            chain carries an active limit that applies to this identity.
        """
        for node in iter_chain(command):
            limits = resolve_limits(node, identity, self._resolver)
            if not limits.active:
                continue
            if limits.scope is None:
                continue
            key = derive_key(identity, limits.scope)
            if key is None:
                logger.debug(
                    "No %s key for %s, skipping level", limits.scope.value, node.name
                )
                continue
            return self._store.check_and_consume(
                record_id(limits.scope, key, node.name),
                min_interval=limits.min_interval,
                max_day_usage=limits.max_day_usage,
            )
        return None
