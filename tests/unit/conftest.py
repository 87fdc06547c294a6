"""Unit test fixtures."""

from datetime import datetime

import pytest

from cmd_limiter import Command, CommandLimiter, Identity, LimitConfig, LimiterConfig, Scope
from cmd_limiter.store import UsageStore


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def set(self, when: float) -> None:
        self.now = when


# Local noon keeps every short scenario inside one local calendar day
NOON = datetime(2024, 3, 5, 12, 0, 0).timestamp()
AFTER_MIDNIGHT = datetime(2024, 3, 6, 0, 0, 1).timestamp()


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at local noon."""
    return FakeClock(NOON)


@pytest.fixture
def store(clock: FakeClock) -> UsageStore:
    """Empty usage store on the fake clock."""
    return UsageStore(clock=clock)


@pytest.fixture
def identity() -> Identity:
    """A user in a group channel."""
    return Identity(user_id="U1", channel_id="C1", platform="discord")


@pytest.fixture
def remind() -> Command:
    """Root command with a per-user cooldown and daily quota."""
    return Command("remind", LimitConfig(scope=Scope.USER, min_interval=60, max_day_usage=3))


@pytest.fixture
def make_limiter(store: UsageStore):
    """Factory for limiters sharing the fake-clock store."""

    def _make(send_hint: bool = True, rules: list[dict] | None = None, **kwargs) -> CommandLimiter:
        config = LimiterConfig.from_dict({"sendHint": send_hint, "commandRules": rules or []})
        return CommandLimiter(config, store=store, **kwargs)

    return _make
