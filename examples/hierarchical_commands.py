#!/usr/bin/env python3
"""
Hierarchical Command Limits Example

Demonstrates how subcommands inherit limits from their nearest limited
ancestor, useful for:
- One shared cooldown across a command family
- Tighter limits on an expensive subcommand
- Exempting trusted users and muting noisy channels

Run:
    uv run python examples/hierarchical_commands.py
"""

from cmd_limiter import (
    Command,
    CommandLimiter,
    Identity,
    LimitConfig,
    LimiterConfig,
    Scope,
)


def main() -> None:
    """Demonstrate limit inheritance and rule overrides."""
    print("=== Hierarchical Command Limits Example ===\n")

    config = LimiterConfig.from_yaml(
        """
sendHint: true
commandRules:
  - type: user
    content: admin
    action: ignore
  - type: channel
    content: noisy
    action: block
"""
    )
    limiter = CommandLimiter(config)

    # remind: 10s per-user cooldown, inherited by remind.list
    # remind.export: its own 2-per-day channel quota, evaluated instead
    remind = Command("remind", LimitConfig(scope=Scope.USER, min_interval=10))
    remind_list = remind.subcommand("list")
    remind_export = remind.subcommand(
        "export", LimitConfig(scope=Scope.CHANNEL, max_day_usage=2)
    )

    alice = Identity(user_id="alice", channel_id="general", platform="discord")
    admin = Identity(user_id="admin", channel_id="general", platform="discord")
    lurker = Identity(user_id="bob", channel_id="noisy", platform="discord")

    def show(who: Identity, command: Command) -> None:
        result = limiter.before_execute(who, command)
        if result is None:
            outcome = "run"
        elif result == "":
            outcome = "blocked (silent)"
        else:
            outcome = f"blocked: {result}"
        print(f"  {who.user_id:<6} {command.name:<14} -> {outcome}")

    print("Step 1: remind.list shares the remind cooldown\n")
    show(alice, remind)
    show(alice, remind_list)

    print("\nStep 2: remind.export has its own quota\n")
    for _ in range(3):
        show(alice, remind_export)

    print("\nStep 3: rule overrides\n")
    show(admin, remind_export)
    show(lurker, remind)

    print(f"\nStore stats: {limiter.store.stats().as_dict()}")


if __name__ == "__main__":
    main()
