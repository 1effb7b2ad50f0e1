"""
Scope definitions and scope-by-priority helpers.
"""

from enum import Enum
from typing import Any, Optional
from dataclasses import dataclass


class InjectionScope(str, Enum):
    """Service lifetime scopes."""

    SINGLETON = "singleton"  # One instance per container lifetime
    TRANSIENT = "transient"  # New instance every resolve
    REQUEST = "request"      # One instance per outer get/get_many call graph


@dataclass
class Scope:
    """Scope metadata and rules."""

    name: str
    cacheable: bool
    per_request: bool = False


SCOPES = {
    InjectionScope.SINGLETON: Scope(name="singleton", cacheable=True),
    InjectionScope.TRANSIENT: Scope(name="transient", cacheable=False),
    InjectionScope.REQUEST: Scope(name="request", cacheable=True, per_request=True),
}


def to_scope(value: Any) -> InjectionScope:
    """
    Coerce a scope name or enum member to an InjectionScope.

    Raises:
        ValueError: If the value names no known scope
    """
    if isinstance(value, InjectionScope):
        return value
    if isinstance(value, str):
        return InjectionScope(value.strip().lower())
    raise ValueError(f"Unknown injection scope: {value!r}")


def scope_from_class(target: Any) -> Optional[InjectionScope]:
    """Read the scope set by the @injectable decorator, if any."""
    if not isinstance(target, type):
        return None
    # Only the class itself counts, subclasses do not inherit the marker
    scope = target.__dict__.get("__di_scope__")
    if scope is None:
        return None
    return to_scope(scope)


def resolve_scope(
    token_scope: Optional[Any],
    target: Any,
    default_scope: Any,
) -> InjectionScope:
    """
    Pick the effective scope for a binding.

    Priority order:
    1. Scope declared on the provider token
    2. Scope declared on the class with @injectable(scope=...)
    3. The owning module default scope
    """
    if token_scope is not None:
        return to_scope(token_scope)

    decorated = scope_from_class(target)
    if decorated is not None:
        return decorated

    return to_scope(default_scope)
