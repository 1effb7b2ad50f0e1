"""
xinject Module Graph

Modules bundle providers, import other modules and export a subset of both.
The graph stays live: imports, providers and exports can change at any time
and importers follow along through their export proxies.

Key Features:
- Dynamic imports/providers/exports with definition events
- Export proxies resolving from the exporting module, nothing copied
- Middlewares intercepting every mutation and access
- Scope priority: provider token > @injectable > module default
- Blueprints, global modules and the app module
- Coordinated reset/dispose with cross-module side effect cleanup
"""

from .module import APP_MODULE_ID, ModuleDefinition, ModuleInternals, ProviderModule
from .blueprint import ProviderModuleBlueprint
from .runtime import AppModule, ModuleRuntime, get_runtime, reset_runtime

from .options import CleanupHooks, GetManyParam, ModuleOptions
from .tokens import (
    UNSET,
    ProviderToken,
    Token,
    get_injection_scope_by_priority,
    is_class_token,
    is_factory_token,
    is_provider_identifier,
    is_value_token,
    provider_identifier_to_string,
    provider_token_to_string,
    provider_tokens_are_equal,
    to_provider_identifier,
)

from .events import EXPORT_EVENT_TYPES, DefinitionEvent, DefinitionEventType
from .signal import Signal
from .middleware import MiddlewaresManager, MiddlewareType
from .container import ModuleContainer
from .definition import DynamicModuleDefinition
from .imported import ImportedModuleContainer
from .effects import SideEffectsRegistry

from .errors import (
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
    # Modules
    "APP_MODULE_ID",
    "ModuleDefinition",
    "ModuleInternals",
    "ProviderModule",
    "ProviderModuleBlueprint",
    "AppModule",
    "ModuleRuntime",
    "get_runtime",
    "reset_runtime",
    # Options
    "CleanupHooks",
    "GetManyParam",
    "ModuleOptions",
    # Tokens
    "UNSET",
    "ProviderToken",
    "Token",
    "get_injection_scope_by_priority",
    "is_class_token",
    "is_factory_token",
    "is_provider_identifier",
    "is_value_token",
    "provider_identifier_to_string",
    "provider_token_to_string",
    "provider_tokens_are_equal",
    "to_provider_identifier",
    # Events
    "EXPORT_EVENT_TYPES",
    "DefinitionEvent",
    "DefinitionEventType",
    "Signal",
    # Internals
    "MiddlewaresManager",
    "MiddlewareType",
    "ModuleContainer",
    "DynamicModuleDefinition",
    "ImportedModuleContainer",
    "SideEffectsRegistry",
    # Errors
    "InjectionError",
    "ProviderModuleAppImportError",
    "ProviderModuleDisposedError",
    "ProviderModuleError",
    "ProviderModuleGlobalMarkError",
    "ProviderModuleMissingIdentifierError",
    "ProviderModuleMissingProviderError",
    "ProviderModuleUnknownProviderError",
]
