"""
xinject Dependency Injection Core

Synchronous container underneath every provider module.

Key Features:
- Explicit scopes: singleton, transient, request
- Own bindings preferred over proxy bindings, `when` predicates
- Activation/deactivation hooks and binding snapshots
- Cycle detection across containers
- Diagnostics listeners for bind/unbind/resolve events
"""

from .core import (
    NOT_FOUND,
    Binding,
    BindingConstraints,
    Container,
    OnEvent,
    Provider,
    ProviderMeta,
    ResolveCtx,
    token_to_key,
)

from .providers import (
    ClassProvider,
    DynamicProvider,
    FactoryProvider,
    ValueProvider,
)

from .scopes import (
    SCOPES,
    InjectionScope,
    Scope,
    resolve_scope,
    scope_from_class,
    to_scope,
)

from .decorators import (
    Inject,
    inject,
    injectable,
)

from .diagnostics import (
    ConsoleDiagnosticListener,
    DIDiagnostics,
    DIEvent,
    DIEventType,
    RecordingDiagnosticListener,
)

from .errors import (
    AmbiguousProviderError,
    DependencyCycleError,
    DIError,
    ProviderNotFoundError,
)

__all__ = [
    # Core types
    "NOT_FOUND",
    "Binding",
    "BindingConstraints",
    "Container",
    "OnEvent",
    "Provider",
    "ProviderMeta",
    "ResolveCtx",
    "token_to_key",
    # Providers
    "ClassProvider",
    "DynamicProvider",
    "FactoryProvider",
    "ValueProvider",
    # Scopes
    "SCOPES",
    "InjectionScope",
    "Scope",
    "resolve_scope",
    "scope_from_class",
    "to_scope",
    # Decorators
    "Inject",
    "inject",
    "injectable",
    # Diagnostics
    "ConsoleDiagnosticListener",
    "DIDiagnostics",
    "DIEvent",
    "DIEventType",
    "RecordingDiagnosticListener",
    # Errors
    "AmbiguousProviderError",
    "DependencyCycleError",
    "DIError",
    "ProviderNotFoundError",
]
