"""Record key builders."""

from .models import IdentityType, Scope

# Separator between command levels in a command name ("remind.list")
HIERARCHY_SEPARATOR = "."

# Delimiter between record id components
RECORD_DELIMITER = ":"

# Escapes for identifiers embedded in record ids
KEY_ESCAPES = (("%", "%25"), (RECORD_DELIMITER, "%3A"))


def normalize_command_name(name: str) -> str:
    """Re-delimit a dot-hierarchical command name for use in record ids."""
    return name.replace(HIERARCHY_SEPARATOR, RECORD_DELIMITER)


def escape_key(key: str) -> str:
    """Escape the record delimiter inside a scope key."""
    for raw, escaped in KEY_ESCAPES:
        key = key.replace(raw, escaped)
    return key


def record_id(scope: Scope, key: str, command_name: str) -> str:
    """Build the composite id of a usage record."""
    return RECORD_DELIMITER.join(
        (scope.value, escape_key(key), normalize_command_name(command_name))
    )


def rule_key(identity_type: IdentityType, identity_id: str) -> str:
    """Build the lookup key for a rule entry."""
    return f"{identity_type.value}{RECORD_DELIMITER}{identity_id}"
