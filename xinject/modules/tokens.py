"""
Provider tokens, identifiers and the helpers working on them.

A provider is either a bare identifier (class, function, ``str`` or
``Token``) bound to itself, or a ``ProviderToken``:

    ProviderToken(provide=Engine, use_class=V8Engine, scope=InjectionScope.TRANSIENT)
    ProviderToken(provide="API_URL", use_value="https://api.local")
    ProviderToken(provide=Client, use_factory=make_client, inject=(Settings,))
"""

from typing import Any, Callable, Optional, Sequence
from dataclasses import dataclass
import inspect

from ..di.core import BindingConstraints, OnEvent
from ..di.scopes import InjectionScope, scope_from_class, to_scope


class _Unset:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<unset>"


UNSET: Any = _Unset()


class Token:
    """
    Symbol-like identifier, unique by identity.

    Example:
        API_URL = Token("API_URL")
    """

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __deepcopy__(self, memo: Any) -> "Token":
        return self

    def __repr__(self) -> str:
        return f"Token({self.name})"

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class ProviderToken:
    """
    Structured provider: an identifier plus exactly one recipe.

    Attributes:
        provide: Identifier the provider is bound to
        use_class: Class instantiated on resolution
        use_value: Constant value (always singleton)
        use_factory: Callable receiving the resolved ``inject`` identifiers
        inject: Identifiers (or GetManyParam) resolved for the factory
        scope: Scope override, highest priority
        when: Predicate receiving BindingConstraints
        on_event: Activation/deactivation handlers
    """
    provide: Any
    use_class: Any = UNSET
    use_value: Any = UNSET
    use_factory: Any = UNSET
    inject: Sequence[Any] = ()
    scope: Optional[InjectionScope | str] = None
    when: Optional[Callable[[BindingConstraints], bool]] = None
    on_event: Optional[OnEvent] = None

    @property
    def kind(self) -> Optional[str]:
        """'class', 'value' or 'factory'; None when not exactly one recipe is set."""
        kinds = [
            kind
            for kind, value in (
                ("class", self.use_class),
                ("value", self.use_value),
                ("factory", self.use_factory),
            )
            if value is not UNSET
        ]
        return kinds[0] if len(kinds) == 1 else None

    def __repr__(self) -> str:
        recipe = self.kind or "unknown"
        return f"ProviderToken({provider_identifier_to_string(self.provide)}, {recipe})"


def is_provider_identifier(value: Any) -> bool:
    """True for identifiers usable on their own: str, Token, class or function."""
    return (
        isinstance(value, (str, Token))
        or inspect.isclass(value)
        or inspect.isfunction(value)
        or inspect.ismethod(value)
        or inspect.isbuiltin(value)
    )


def is_class_token(provider: Any) -> bool:
    return isinstance(provider, ProviderToken) and provider.kind == "class"


def is_value_token(provider: Any) -> bool:
    return isinstance(provider, ProviderToken) and provider.kind == "value"


def is_factory_token(provider: Any) -> bool:
    return isinstance(provider, ProviderToken) and provider.kind == "factory"


def to_provider_identifier(provider: Any) -> Any:
    """The identifier a provider binds to."""
    if isinstance(provider, ProviderToken):
        return provider.provide
    return provider


def provider_identifier_to_string(identifier: Any) -> str:
    if isinstance(identifier, (str, Token)):
        return str(identifier)
    return getattr(identifier, "__name__", repr(identifier))


def provider_token_to_string(provider: Any) -> str:
    return provider_identifier_to_string(to_provider_identifier(provider))


def provider_tokens_are_equal(p0: Any, p1: Any) -> bool:
    """Same identifier and, for structured tokens, the same recipe."""
    if p0 is p1:
        return True

    if to_provider_identifier(p0) != to_provider_identifier(p1):
        return False

    if isinstance(p0, ProviderToken) and isinstance(p1, ProviderToken) and p0.kind == p1.kind:
        if p0.kind == "class":
            return p0.use_class is p1.use_class
        if p0.kind == "value":
            return p0.use_value is p1.use_value
        if p0.kind == "factory":
            return p0.use_factory is p1.use_factory

    return True


def get_injection_scope_by_priority(provider: Any, module_default_scope: Any) -> InjectionScope:
    """
    Effective scope of a provider.

    Priority order:
    1. ``ProviderToken.scope``
    2. ``@injectable(scope)`` on the identifier class (or the ``use_class``)
    3. The module default scope
    """
    if isinstance(provider, ProviderToken):
        if provider.scope is not None:
            return to_scope(provider.scope)
        decorated = scope_from_class(provider.provide)
        if decorated is None and provider.kind == "class":
            decorated = scope_from_class(provider.use_class)
        if decorated is not None:
            return decorated
        return to_scope(module_default_scope)

    return scope_from_class(provider) or to_scope(module_default_scope)
