"""Scope key derivation."""

from .models import Identity, Scope


def derive_key(identity: Identity, scope: Scope) -> str | None:
    """
    Return the identifier that partitions usage records for ``scope``.

    Args:
        identity: The invoking identity
        scope: Partition dimension

    Returns:
        The user, channel or platform id, or None when the identity has
        no such identifier (the limit cannot be evaluated at this level).
    """
    if scope is Scope.USER:
        key = identity.user_id
    elif scope is Scope.CHANNEL:
        key = identity.channel_id
    elif scope is Scope.PLATFORM:
        key = identity.platform
    else:
        return None
    return key or None
