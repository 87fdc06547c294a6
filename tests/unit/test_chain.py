"""Tests for command trees and the chain walker."""

from dataclasses import dataclass
from typing import Optional
from unittest.mock import Mock

import pytest

from cmd_limiter.chain import (
    ChainWalker,
    Command,
    CommandNode,
    iter_chain,
    resolve_computed,
    resolve_limits,
)
from cmd_limiter.models import Identity, LimitConfig, Outcome, Scope
from cmd_limiter.store import UsageStore


class TestCommandTree:
    """Tests for the Command node."""

    def test_subcommand_name(self) -> None:
        """Subcommand names are dot-joined to their parents."""
        root = Command("remind")
        leaf = root.subcommand("list").subcommand("all")
        assert leaf.name == "remind.list.all"
        assert leaf.parent.parent is root

    def test_find(self) -> None:
        """find() walks a dotted path."""
        root = Command("remind")
        leaf = root.subcommand("list")
        assert root.find("list") is leaf
        assert root.find("list.missing") is None
        assert root.find("missing.list") is None

    def test_satisfies_protocol(self) -> None:
        """Command is a CommandNode."""
        assert isinstance(Command("x"), CommandNode)

    def test_iter_chain_order(self) -> None:
        """The chain starts at the command and ends at the root."""
        root = Command("a")
        leaf = root.subcommand("b").subcommand("c")
        assert [c.name for c in iter_chain(leaf)] == ["a.b.c", "a.b", "a"]


class TestResolveLimits:
    """Tests for limit value resolution."""

    def test_static_values(self, identity: Identity) -> None:
        """Static values pass through."""
        cmd = Command("x", LimitConfig(scope=Scope.USER, max_day_usage=3, min_interval=5))
        limits = resolve_limits(cmd, identity)
        assert (limits.scope, limits.max_day_usage, limits.min_interval) == (Scope.USER, 3, 5)
        assert limits.active

    def test_computed_values(self, identity: Identity) -> None:
        """Callables are evaluated with the identity."""
        cmd = Command(
            "x",
            LimitConfig(
                scope=lambda i: "platform",
                min_interval=lambda i: 0 if i.user_id == "admin" else 30,
            ),
        )
        assert resolve_limits(cmd, identity).min_interval == 30
        assert not resolve_limits(cmd, Identity(user_id="admin")).active

    def test_scope_string_accepted(self, identity: Identity) -> None:
        """Scope values may be plain strings."""
        cmd = Command("x", LimitConfig(scope="user", min_interval=1))
        assert resolve_limits(cmd, identity).scope is Scope.USER

    def test_scope_not_resolved_when_inactive(self, identity: Identity) -> None:
        """An inactive level never evaluates its scope."""
        scope = Mock(return_value="user")
        resolve_limits(Command("x", LimitConfig(scope=scope)), identity)
        scope.assert_not_called()

    @pytest.mark.parametrize("bad", [-1, -0.5, "soon", None, float("nan"), float("inf"), True, 10**400])
    def test_invalid_thresholds_disable(self, identity: Identity, bad) -> None:
        """Invalid thresholds degrade to disabled."""
        cmd = Command("x", LimitConfig(max_day_usage=bad, min_interval=bad))
        assert not resolve_limits(cmd, identity).active

    @pytest.mark.parametrize(("raw", "expected"), [(0.5, 1), (2.5, 3), (2.0, 2)])
    def test_fractional_quota_rounds_up(self, identity: Identity, raw: float, expected: int) -> None:
        """Any positive quota admits at least one call."""
        limits = resolve_limits(Command("x", LimitConfig(max_day_usage=raw)), identity)
        assert limits.max_day_usage == expected
        assert limits.active

    def test_numeric_strings_accepted(self, identity: Identity) -> None:
        """Numeric strings from loosely typed configs are accepted."""
        cmd = Command("x", LimitConfig(min_interval="15"))
        assert resolve_limits(cmd, identity).min_interval == 15

    def test_unknown_scope(self, identity: Identity) -> None:
        """An unknown scope resolves to None."""
        cmd = Command("x", LimitConfig(scope="galaxy", min_interval=5))
        assert resolve_limits(cmd, identity).scope is None

    def test_custom_resolver(self, identity: Identity) -> None:
        """An injected resolver sees every raw value."""
        resolver = Mock(side_effect=lambda raw, ident: raw * 2 if isinstance(raw, int) else raw)
        cmd = Command("x", LimitConfig(scope=Scope.USER, min_interval=5))
        assert resolve_limits(cmd, identity, resolver).min_interval == 10
        assert resolver.call_count == 3


class TestChainWalker:
    """Tests for ChainWalker.walk."""

    def test_no_limits_anywhere(self, store: UsageStore, identity: Identity) -> None:
        """A chain without limits yields None and records nothing."""
        leaf = Command("a").subcommand("b")
        assert ChainWalker(store).walk(identity, leaf) is None
        assert len(store) == 0

    def test_inherits_from_ancestor(self, store: UsageStore, identity: Identity) -> None:
        """A child without limits uses its nearest limited ancestor."""
        root = Command("remind", LimitConfig(scope=Scope.USER, min_interval=60))
        leaf = root.subcommand("list")
        walker = ChainWalker(store)
        assert walker.walk(identity, leaf).record_id == "user:U1:remind"
        assert walker.walk(identity, root).outcome is Outcome.COOLDOWN

    def test_first_match_stops(self, store: UsageStore, identity: Identity) -> None:
        """Only the nearest limited level is evaluated."""
        parent_scope = Mock(return_value="user")
        root = Command("a", LimitConfig(scope=parent_scope, max_day_usage=1))
        leaf = root.subcommand("b", LimitConfig(scope=Scope.USER, max_day_usage=10))
        walker = ChainWalker(store)
        for _ in range(5):
            assert walker.walk(identity, leaf).outcome is Outcome.ALLOWED
        parent_scope.assert_not_called()
        assert "user:U1:a" not in store

    def test_first_match_stops_on_denial(self, store: UsageStore, identity: Identity) -> None:
        """A denying level is final; a permissive parent does not rescue it."""
        root = Command("a", LimitConfig(scope=Scope.USER, max_day_usage=100))
        leaf = root.subcommand("b", LimitConfig(scope=Scope.USER, max_day_usage=1))
        walker = ChainWalker(store)
        walker.walk(identity, leaf)
        assert walker.walk(identity, leaf).outcome is Outcome.QUOTA
        assert "user:U1:a" not in store

    def test_absent_key_falls_through(self, store: UsageStore) -> None:
        """A level whose scope key is missing is skipped."""
        root = Command("a", LimitConfig(scope=Scope.USER, max_day_usage=1))
        leaf = root.subcommand("b", LimitConfig(scope=Scope.CHANNEL, max_day_usage=1))
        dm = Identity(user_id="U1", platform="qq")
        status = ChainWalker(store).walk(dm, leaf)
        assert status.record_id == "user:U1:a"
        assert len(store) == 1

    def test_absent_key_everywhere_allows(self, store: UsageStore) -> None:
        """No derivable key at any level means no limit applies."""
        cmd = Command("a", LimitConfig(scope=Scope.CHANNEL, min_interval=60))
        dm = Identity(user_id="U1")
        walker = ChainWalker(store)
        assert walker.walk(dm, cmd) is None
        assert walker.walk(dm, cmd) is None
        assert len(store) == 0

    def test_unknown_scope_falls_through(self, store: UsageStore, identity: Identity) -> None:
        """A level with an unknown scope is skipped."""
        root = Command("a", LimitConfig(scope=Scope.USER, min_interval=5))
        leaf = root.subcommand("b", LimitConfig(scope="galaxy", min_interval=5))
        assert ChainWalker(store).walk(identity, leaf).record_id == "user:U1:a"

    def test_subcommand_record_is_namespaced(self, store: UsageStore, identity: Identity) -> None:
        """Subcommand records use the re-delimited full name."""
        leaf = Command("remind").subcommand("list", LimitConfig(scope=Scope.CHANNEL, min_interval=1))
        assert ChainWalker(store).walk(identity, leaf).record_id == "channel:C1:remind:list"

    def test_host_node_duck_typing(self, store: UsageStore, identity: Identity) -> None:
        """Any object with name, parent and limits can be walked."""

        @dataclass
        class HostCommand:
            name: str
            limits: LimitConfig
            parent: Optional["HostCommand"] = None

        root = HostCommand("root", LimitConfig(scope=Scope.PLATFORM, min_interval=10))
        leaf = HostCommand("root.leaf", LimitConfig(), parent=root)
        assert ChainWalker(store, resolve_computed).walk(identity, leaf).record_id == (
            "platform:discord:root"
        )
