"""Scope strings of the form ``action:resource`` with ``*`` wildcards."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

WILDCARD = "*"
SUPER_SCOPE = "*:*"
SUPER_SCOPES: tuple[str, ...] = (SUPER_SCOPE,)
ASSIGN_ROLES_SCOPE = "assign:roles"


def parse_scope(scope: str) -> tuple[str, str]:
    """Split ``scope`` into ``(action, resource)``.

    Raises ``ValueError`` when the value is not of the form ``action:resource``.
    """

    action, sep, resource = str(scope).strip().partition(":")
    if not sep or not action or not resource or ":" in resource:
        raise ValueError(f"Invalid scope '{scope}', expected 'action:resource'")
    return action, resource


def _part_matches(granted: str, required: str) -> bool:
    return granted == WILDCARD or granted == required


def scope_matches(granted: str, required: str) -> bool:
    """Return ``True`` if the ``granted`` scope covers ``required``."""

    try:
        granted_action, granted_resource = parse_scope(granted)
        required_action, required_resource = parse_scope(required)
    except ValueError:
        return False
    return _part_matches(granted_action, required_action) and _part_matches(
        granted_resource, required_resource
    )


def has_scope(granted: Iterable[str], required: str) -> bool:
    """Return ``True`` if any scope in ``granted`` covers ``required``."""

    return any(scope_matches(scope, required) for scope in granted)


def is_super_scope_set(scopes: Sequence[str]) -> bool:
    """A scope list is super only when it is exactly ``["*:*"]``."""

    return list(scopes) == list(SUPER_SCOPES)


__all__ = [
    "ASSIGN_ROLES_SCOPE",
    "SUPER_SCOPE",
    "SUPER_SCOPES",
    "WILDCARD",
    "has_scope",
    "is_super_scope_set",
    "parse_scope",
    "scope_matches",
]
