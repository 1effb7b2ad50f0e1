"""
xinject - Dynamic dependency injection modules for Python

Complete integration of:
- DI: Container with scopes, activation hooks and cycle detection
- Modules: Live import/export graphs with export proxies
- Middlewares: Veto, transform or filter every graph mutation and access
- Config: Layered runtime settings (files, .env, environment)
"""

__version__ = "0.1.0"

# ============================================================================
# Module Graph
# ============================================================================

from .modules import (
    AppModule,
    CleanupHooks,
    DefinitionEvent,
    DefinitionEventType,
    GetManyParam,
    MiddlewareType,
    ModuleDefinition,
    ModuleOptions,
    ModuleRuntime,
    ProviderModule,
    ProviderModuleBlueprint,
    ProviderToken,
    Signal,
    Token,
    get_runtime,
    reset_runtime,
)

# ============================================================================
# Dependency Injection
# ============================================================================

from .di import (
    NOT_FOUND,
    BindingConstraints,
    Container,
    Inject,
    InjectionScope,
    OnEvent,
    inject,
    injectable,
)

# ============================================================================
# Configuration
# ============================================================================

from .config import ConfigError, ConfigLoader, Settings, configure_logging

# ============================================================================
# Errors
# ============================================================================

from .di.errors import (
    AmbiguousProviderError,
    DependencyCycleError,
    DIError,
    ProviderNotFoundError,
)
from .modules.errors import (
    InjectionError,
    ProviderModuleAppImportError,
    ProviderModuleDisposedError,
    ProviderModuleError,
    ProviderModuleGlobalMarkError,
    ProviderModuleMissingIdentifierError,
    ProviderModuleMissingProviderError,
    ProviderModuleUnknownProviderError,
)

__all__ = [
    "__version__",
    # Module graph
    "AppModule",
    "CleanupHooks",
    "DefinitionEvent",
    "DefinitionEventType",
    "GetManyParam",
    "MiddlewareType",
    "ModuleDefinition",
    "ModuleOptions",
    "ModuleRuntime",
    "ProviderModule",
    "ProviderModuleBlueprint",
    "ProviderToken",
    "Signal",
    "Token",
    "get_runtime",
    "reset_runtime",
    # DI
    "NOT_FOUND",
    "BindingConstraints",
    "Container",
    "Inject",
    "InjectionScope",
    "OnEvent",
    "inject",
    "injectable",
    # Config
    "ConfigError",
    "ConfigLoader",
    "Settings",
    "configure_logging",
    # Errors
    "AmbiguousProviderError",
    "DependencyCycleError",
    "DIError",
    "ProviderNotFoundError",
    "InjectionError",
    "ProviderModuleAppImportError",
    "ProviderModuleDisposedError",
    "ProviderModuleError",
    "ProviderModuleGlobalMarkError",
    "ProviderModuleMissingIdentifierError",
    "ProviderModuleMissingProviderError",
    "ProviderModuleUnknownProviderError",
]
