"""
Module construction options.
"""

from typing import Any, Awaitable, Callable, List, Optional, Union
from dataclasses import dataclass, field, fields

from ..di.scopes import InjectionScope

Hook = Callable[..., Union[None, Awaitable[None]]]


@dataclass
class CleanupHooks:
    """
    Callbacks bracketing a reset or dispose.

    ``before(module)`` runs first, ``after()`` once everything is torn down.
    Both may be coroutine functions.
    """
    before: Optional[Hook] = None
    after: Optional[Hook] = None


@dataclass
class GetManyParam:
    """A ``get_many`` dependency carrying its own lookup options."""
    provider: Any
    is_optional: bool = False
    as_list: bool = False


@dataclass
class ModuleOptions:
    """
    Options of a provider module.

    Attributes:
        id: Non-empty ``str`` or ``Token``
        imports: Modules or blueprints to import
        providers: Providers bound on construction
        exports: Providers and modules visible to importers
        default_scope: Scope used when neither the token nor the class sets one
        is_global: Import the module into the app module on construction
        on_ready: Called with the module once constructed
        on_reset: Returns the CleanupHooks of ``reset()``
        on_dispose: Returns the CleanupHooks of ``dispose()``
    """
    id: Any = None
    imports: List[Any] = field(default_factory=list)
    providers: List[Any] = field(default_factory=list)
    exports: List[Any] = field(default_factory=list)
    default_scope: Optional[InjectionScope | str] = None
    is_global: bool = False
    on_ready: Optional[Callable[[Any], None]] = None
    on_reset: Optional[Callable[[], Optional[CleanupHooks]]] = None
    on_dispose: Optional[Callable[[], Optional[CleanupHooks]]] = None

    @classmethod
    def from_kwargs(cls, **kwargs: Any) -> "ModuleOptions":
        known = {f.name for f in fields(cls)}
        unknown = set(kwargs) - known
        if unknown:
            raise TypeError(f"Unknown module option(s): {', '.join(sorted(unknown))}")
        options = cls(**kwargs)
        options.imports = list(options.imports or [])
        options.providers = list(options.providers or [])
        options.exports = list(options.exports or [])
        return options
