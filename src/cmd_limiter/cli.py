"""Command-line interface for inspecting cmd-limiter configuration."""

import logging
import sys
from datetime import datetime

import click

from .chain import Command
from .config import LimiterConfig, resolve_config_path
from .exceptions import ConfigurationError
from .limiter import CommandLimiter
from .models import Identity, LimitConfig, RuleAction, Scope
from .store import UsageStore


def _load_config(file_path: str | None, required: bool = True) -> LimiterConfig:
    path = resolve_config_path(file_path)
    if path is None:
        if required:
            click.echo(
                "Error: no configuration file given (use --file or set CMD_LIMITER_CONFIG)",
                err=True,
            )
            sys.exit(1)
        return LimiterConfig()
    try:
        return LimiterConfig.load(path)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


_file_option = click.option(
    "--file",
    "-f",
    "file_path",
    type=click.Path(),
    default=None,
    help="YAML configuration file (default: $CMD_LIMITER_CONFIG).",
)


@click.group()
@click.version_option(package_name="cmd-limiter")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """cmd-limiter configuration tools."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@_file_option
def validate(file_path: str | None) -> None:
    """Validate a configuration file and print the effective rule table."""
    config = _load_config(file_path)
    limiter = CommandLimiter(config)

    click.echo(f"sendHint: {str(config.send_hint).lower()}")
    entries = limiter.rules.entries()
    if not entries:
        click.echo("No rules.")
        return

    click.echo(f"{len(entries)} rule(s):")
    for entry in entries:
        click.echo(f"  {entry.type.value:<8} {entry.content:<24} {entry.action.value}")

    duplicates = len(config.command_rules) - len(entries)
    if duplicates:
        click.echo(f"({duplicates} duplicate entr{'y' if duplicates == 1 else 'ies'} overridden)")


@cli.command()
@_file_option
@click.option("--user", "user_id", help="Invoking user id.")
@click.option("--channel", "channel_id", help="Channel id.")
def explain(file_path: str | None, user_id: str | None, channel_id: str | None) -> None:
    """Show which rule override applies to an identity."""
    config = _load_config(file_path)
    action = CommandLimiter(config).rules.resolve(Identity(user_id=user_id, channel_id=channel_id))
    click.echo("none" if action is RuleAction.LIMIT else action.value)


@cli.command()
@_file_option
@click.option("--command", "command_name", default="command", show_default=True)
@click.option(
    "--scope",
    type=click.Choice([s.value for s in Scope]),
    default=Scope.CHANNEL.value,
    show_default=True,
)
@click.option("--min-interval", type=click.FloatRange(min=0), default=0, show_default=True)
@click.option("--max-day-usage", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--user", "user_id", default="user", show_default=True)
@click.option("--channel", "channel_id", default="channel", show_default=True)
@click.option("--platform", default="platform", show_default=True)
@click.option(
    "--at",
    "offsets",
    type=float,
    multiple=True,
    required=True,
    help="Call time in seconds from start (repeatable).",
)
def simulate(
    file_path: str | None,
    command_name: str,
    scope: str,
    min_interval: float,
    max_day_usage: int,
    user_id: str,
    channel_id: str,
    platform: str,
    offsets: tuple[float, ...],
) -> None:
    """Replay calls at relative times against a fresh store.

    Calls are replayed from local noon today, so offsets under twelve hours
    stay within one daily quota window.
    """
    config = _load_config(file_path, required=False)
    start = datetime.now().replace(hour=12, minute=0, second=0, microsecond=0).timestamp()
    current = {"now": start}

    limiter = CommandLimiter(
        config,
        store=UsageStore(clock=lambda: current["now"]),
    )
    command = Command(
        command_name,
        LimitConfig(scope=Scope(scope), max_day_usage=max_day_usage, min_interval=min_interval),
    )
    identity = Identity(user_id=user_id, channel_id=channel_id, platform=platform)

    for offset in sorted(offsets):
        current["now"] = start + offset
        decision = limiter.decide(identity, command)
        if decision.allowed:
            left = decision.status.daily_uses_left if decision.status else None
            suffix = f" (uses left: {left})" if left is not None else ""
            click.echo(f"t={offset:g}s allow{suffix}")
        else:
            click.echo(f"t={offset:g}s deny: {decision.hint or decision.outcome.value}")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
