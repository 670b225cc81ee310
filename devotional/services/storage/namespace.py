"""
User Namespace Resolver

Key layout of the keyspace:

    currentUser                        raw username            global
    {user}_lastCompletedDay            integer as string       per user
    {user}_meditation-status           JSON {day: status}      per user
    {user}_archived-reading-{id}       JSON ArchivedReading    per user
    {user}_{journal key}               JSON list               per user
    reading-content-v{N}-{refKey}      JSON content bundle     global cache

DESIGN DECISION: The user is an explicit argument of every call.
Nothing in this module (or the repositories) remembers who is logged in,
so a login or logout between two calls can never leave a stale
namespace behind.
"""

from typing import Optional


CURRENT_USER_KEY = "currentUser"
NAMESPACE_SEPARATOR = "_"


def normalize_user(user: Optional[str]) -> Optional[str]:
    """Trim a username; blank names mean no identity."""
    if user is None:
        return None
    trimmed = user.strip()
    return trimmed or None


def user_prefix(user: str) -> str:
    """Prefix shared by every key in a user's namespace."""
    normalized = normalize_user(user)
    if normalized is None:
        raise ValueError("A user namespace needs a non-blank username")
    return f"{normalized}{NAMESPACE_SEPARATOR}"


def namespaced_key(user: Optional[str], raw_key: str) -> str:
    """
    Scope a key to a user.

    Without an identity the key is returned unchanged (global scope).
    """
    normalized = normalize_user(user)
    if normalized is None:
        return raw_key
    return f"{normalized}{NAMESPACE_SEPARATOR}{raw_key}"
