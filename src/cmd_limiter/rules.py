"""Rule table for per-user and per-channel overrides."""

import logging
from collections.abc import Iterable

from .models import Identity, IdentityType, RuleAction, RuleEntry
from .schema import RECORD_DELIMITER, rule_key

logger = logging.getLogger(__name__)


class RuleResolver:
    """
    Maps explicit per-identity overrides to an effective action.

    The table is built once from an ordered list of entries; a later
    entry for the same (type, content) pair replaces an earlier one.
    Lookups are exact matches only, and a user entry always wins over a
    channel entry.
    """

    def __init__(self, entries: Iterable[RuleEntry] = ()) -> None:
        rules: dict[str, RuleAction] = {}
        for entry in entries:
            rules[rule_key(entry.type, entry.content)] = entry.action
        self._rules = rules

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, key: object) -> bool:
        return key in self._rules

    def entries(self) -> list[RuleEntry]:
        """Return the effective rule table, one entry per key."""
        result = []
        for key, action in self._rules.items():
            type_value, _, content = key.partition(RECORD_DELIMITER)
            result.append(RuleEntry(IdentityType(type_value), content, action))
        return result

    def resolve(self, identity: Identity) -> RuleAction:
        """
        Return the override for ``identity``.

        Returns:
            BLOCK or IGNORE when a rule matches, LIMIT otherwise.
        """
        if identity.user_id:
            action = self._rules.get(rule_key(IdentityType.USER, identity.user_id))
            if action is not None:
                logger.debug("User rule %s applies to %s", action.value, identity.user_id)
                return action
        if identity.channel_id:
            action = self._rules.get(rule_key(IdentityType.CHANNEL, identity.channel_id))
            if action is not None:
                logger.debug(
                    "Channel rule %s applies to %s", action.value, identity.channel_id
                )
                return action
        return RuleAction.LIMIT
