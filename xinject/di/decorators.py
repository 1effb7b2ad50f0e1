"""
Injection markers and class decorators.
"""

from typing import Any, Callable, Optional, Type, TypeVar
from dataclasses import dataclass

from .scopes import InjectionScope, to_scope


T = TypeVar("T")


@dataclass(frozen=True)
class Inject:
    """
    Marker placed in ``Annotated`` metadata of a constructor parameter.

    ``token`` replaces the annotated type as the identifier to resolve,
    ``optional`` turns a missing provider into ``None``.

    Usage:
        class Client:
            def __init__(self, url: Annotated[str, Inject("API_URL")]):
                ...
    """

    token: Optional[Any] = None
    optional: bool = False


def inject(token: Optional[Any] = None, *, optional: bool = False) -> Inject:
    """Shorthand for ``Inject(token, optional=optional)``."""
    return Inject(token=token, optional=optional)


def injectable(scope: Optional[InjectionScope | str] = None) -> Callable[[Type[T]], Type[T]]:
    """
    Mark a class with the scope it prefers when bound.

    A scope set on the provider token still wins over this one, the
    module default scope only applies when neither is set.

    Example:
        @injectable(InjectionScope.TRANSIENT)
        class Engine:
            ...
    """
    resolved = to_scope(scope) if scope is not None else None

    def decorator(cls: Type[T]) -> Type[T]:
        cls.__di_scope__ = resolved  # type: ignore
        return cls

    return decorator
