"""Limiter configuration: rule entries and the hint flag.

Accepts the plugin configuration shape::

    sendHint: true
    commandRules:
      - type: user
        content: "10001"
        action: ignore
      - type: channel
        content: spam-room
        action: block

Snake-case keys (``send_hint``, ``command_rules``) are accepted too.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError, ValidationError
from .models import IdentityType, RuleAction, RuleEntry

CONFIG_ENV_VAR = "CMD_LIMITER_CONFIG"
"""Environment variable naming the default configuration file."""

DEFAULT_RULE_TYPE = IdentityType.USER
DEFAULT_RULE_ACTION = RuleAction.IGNORE


def _pick(d: dict[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in d:
            return d[name]
    return default


def parse_rule(d: Any) -> RuleEntry:
    """Parse one rule entry, applying the plugin schema defaults."""
    if not isinstance(d, dict):
        raise ValidationError("rule", d, "Must be a mapping with type, content and action")

    type_value = d.get("type", DEFAULT_RULE_TYPE.value)
    try:
        identity_type = IdentityType(type_value)
    except ValueError:
        raise ValidationError("type", type_value, "Must be 'user' or 'channel'") from None

    action_value = d.get("action", DEFAULT_RULE_ACTION.value)
    if action_value == RuleAction.LIMIT.value:
        raise ValidationError("action", action_value, "Must be 'block' or 'ignore'")
    try:
        action = RuleAction(action_value)
    except ValueError:
        raise ValidationError("action", action_value, "Must be 'block' or 'ignore'") from None

    content = d.get("content")
    if content is None or isinstance(content, (bool, dict, list)) or str(content) == "":
        raise ValidationError("content", content, "A user or channel id is required")

    return RuleEntry(type=identity_type, content=str(content), action=action)


@dataclass(frozen=True)
class LimiterConfig:
    """
    Configuration for a :class:`~cmd_limiter.limiter.CommandLimiter`.

    Attributes:
        send_hint: Surface denial hints to the user instead of blocking
            silently
        command_rules: Ordered rule entries; for duplicate (type, content)
            pairs the last entry wins
    """

    send_hint: bool = False
    command_rules: tuple[RuleEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> LimiterConfig:
        if d is None:
            return cls()
        if not isinstance(d, dict):
            raise ConfigurationError("Limiter configuration must be a mapping")

        send_hint = _pick(d, "sendHint", "send_hint", default=False)
        if not isinstance(send_hint, bool):
            raise ValidationError("sendHint", send_hint, "Must be true or false")

        raw_rules = _pick(d, "commandRules", "command_rules", default=None) or []
        if not isinstance(raw_rules, list):
            raise ValidationError("commandRules", raw_rules, "Must be a list of rules")

        return cls(
            send_hint=send_hint,
            command_rules=tuple(parse_rule(r) for r in raw_rules),
        )

    @classmethod
    def from_yaml(cls, yaml_str: str) -> LimiterConfig:
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | Path) -> LimiterConfig:
        """Load configuration from a YAML file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e
        return cls.from_yaml(text)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sendHint": self.send_hint,
            "commandRules": [rule.to_dict() for rule in self.command_rules],
        }


def resolve_config_path(path: str | None) -> str | None:
    """Resolve the configuration file from an explicit arg or the environment.

    Resolution order: ``path`` arg → ``CMD_LIMITER_CONFIG`` env var → ``None``.
    """
    return path or os.environ.get(CONFIG_ENV_VAR) or None
