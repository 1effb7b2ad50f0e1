"""
Live definition graph of a provider module.

Imports, providers and exports are insertion-ordered unique collections
which only change through the methods below, so that every change also
binds/unbinds, (un)proxies and emits the matching definition events.
"""

from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
import logging

from .errors import (
    ProviderModuleAppImportError,
    ProviderModuleDisposedError,
    ProviderModuleError,
)
from .events import EXPORT_EVENT_TYPES, DefinitionEvent, DefinitionEventType
from .helpers import is_blueprint, is_global, is_module, is_module_or_blueprint
from .imported import ImportedModuleContainer
from .middleware import MiddlewareType
from .options import ModuleOptions
from .signal import Signal
from .tokens import provider_token_to_string, to_provider_identifier

logger = logging.getLogger("xinject.modules.definition")


class DynamicModuleDefinition:
    """
    Mutation API of a module's imports, providers and exports.

    Exposed to users as ``module.update``.
    """

    __slots__ = ("_module", "_imports", "_providers", "_exports", "_event_bus", "_emitting", "_subscriptions")

    def __init__(self, module: Any):
        self._module = module
        self._imports: Dict[Any, None] = {}
        self._providers: Dict[Any, None] = {}
        self._exports: Dict[Any, None] = {}
        self._event_bus: Optional[Signal[DefinitionEvent]] = Signal(DefinitionEvent(DefinitionEventType.NOOP))
        self._emitting = False
        # imported module -> unsubscribe from its bus
        self._subscriptions: Dict[Any, Callable[[], None]] = {}

        self._build_initial_definition(module.options)

    @property
    def imports(self) -> Tuple[Any, ...]:
        return tuple(self._imports)

    @property
    def providers(self) -> Tuple[Any, ...]:
        return tuple(self._providers)

    @property
    def exports(self) -> Tuple[Any, ...]:
        return tuple(self._exports)

    @property
    def event_bus(self) -> Signal[DefinitionEvent]:
        if self._event_bus is None:
            raise ProviderModuleDisposedError(self._module)
        return self._event_bus

    def subscribe(self, callback: Callable[[DefinitionEvent], None], invoke_immediately: bool = False) -> Callable[[], None]:
        """Listen to the definition events of this module."""
        return self.event_bus.subscribe(callback, invoke_immediately)

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def add_import(self, module_or_blueprint: Any, add_to_exports: bool = False) -> None:
        """
        Import a module (a blueprint is turned into a module first).

        ``BEFORE_ADD_IMPORT`` middlewares may veto the import or swap the module.

        Raises:
            ProviderModuleAppImportError: When importing the app module
        """
        module = self._materialize(module_or_blueprint)

        result = self._module.internal.middlewares_manager.apply(MiddlewareType.BEFORE_ADD_IMPORT, module)
        if result is False:
            return
        module = self._materialize(result)

        if module.is_app_module:
            raise ProviderModuleAppImportError(self._module)
        if module is self._module:
            raise ProviderModuleError(self._module, "A module can't import itself!")
        if module.is_disposed:
            raise ProviderModuleDisposedError(module)
        if module in self._imports:
            return

        self._imports[module] = None
        self._module.internal.imported_module_containers[module] = ImportedModuleContainer(self._module, module)
        self._subscribe_to_imported_module(module)

        # Recorded before emitting so importers of this module see a consistent export set
        if add_to_exports:
            self._exports[module] = None

        logger.debug(f"[{self._module.id}] imported {module.id}{' (exported)' if add_to_exports else ''}")

        self.emit_safely(DefinitionEvent(DefinitionEventType.EXPORT, module))
        self.emit_safely(DefinitionEvent(DefinitionEventType.IMPORT, module))

        if add_to_exports:
            self.emit_safely(DefinitionEvent(DefinitionEventType.EXPORT_MODULE, module))

    async def add_import_lazy(self, resolver: Callable[[], Awaitable[Any]], add_to_exports: bool = False) -> None:
        """Await ``resolver()`` then import the module it returns."""
        module = await resolver()
        self.add_import(module, add_to_exports)

    def remove_import(self, module_or_id: Any) -> bool:
        """
        Remove an import, by module or by module id.

        Returns:
            False when the module is not imported or a middleware vetoed it
        """
        module = module_or_id if is_module(module_or_id) else self.get_imported_module_by_id(module_or_id)
        if module is None or module not in self._imports:
            return False

        if not self._module.internal.middlewares_manager.apply(MiddlewareType.BEFORE_REMOVE_IMPORT, module):
            return False

        self._unsubscribe_from_imported_module(module)

        container = self._module.internal.imported_module_containers.pop(module, None)
        if container is not None:
            container.dispose()
        del self._imports[module]

        logger.debug(f"[{self._module.id}] removed import {module.id}")

        self.emit_safely(DefinitionEvent(DefinitionEventType.IMPORT_REMOVED, module))
        self.remove_from_exports(module)

        return True

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def add_provider(self, provider: Any, add_to_exports: bool = False) -> None:
        """
        Add and bind a provider.

        ``BEFORE_ADD_PROVIDER`` middlewares may veto it or swap it.
        """
        result = self._module.internal.middlewares_manager.apply(MiddlewareType.BEFORE_ADD_PROVIDER, provider)
        if result is False:
            return
        provider = result

        if provider in self._providers:
            return

        self._module.internal.bind(provider)
        self._providers[provider] = None

        self.emit_safely(DefinitionEvent(DefinitionEventType.PROVIDER, provider))

        if not add_to_exports:
            return

        self._exports[provider] = None

        self.emit_safely(DefinitionEvent(DefinitionEventType.EXPORT, provider))
        self.emit_safely(DefinitionEvent(DefinitionEventType.EXPORT_PROVIDER, provider))

    async def add_provider_lazy(self, resolver: Callable[[], Awaitable[Any]], add_to_exports: bool = False) -> None:
        """Await ``resolver()`` then add the provider it returns."""
        provider = await resolver()
        self.add_provider(provider, add_to_exports)

    def remove_provider(self, provider_or_identifier: Any) -> bool:
        """
        Remove a provider, by token or by identifier; it is unbound and unexported.

        Returns:
            False when the provider is unknown or a middleware vetoed it
        """
        if provider_or_identifier in self._providers:
            provider = provider_or_identifier
        else:
            provider = self.get_provider_by_identifier(to_provider_identifier(provider_or_identifier))
        if provider is None:
            return False

        if not self._module.internal.middlewares_manager.apply(MiddlewareType.BEFORE_REMOVE_PROVIDER, provider):
            return False

        del self._providers[provider]
        self._module.internal.unbind(provider)

        logger.debug(f"[{self._module.id}] removed provider {provider_token_to_string(provider)}")

        self.emit_safely(DefinitionEvent(DefinitionEventType.PROVIDER_REMOVED, provider))

        identifier = to_provider_identifier(provider)
        for entry in list(self._exports):
            if entry is provider or (not is_module(entry) and to_provider_identifier(entry) == identifier):
                self.remove_from_exports(entry)

        return True

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def remove_from_exports(self, entry: Any) -> bool:
        """
        Stop exporting a provider or module.

        Returns:
            False when not exported or a middleware vetoed it
        """
        if entry not in self._exports:
            return False

        if not self._module.internal.middlewares_manager.apply(MiddlewareType.BEFORE_REMOVE_EXPORT, entry):
            return False

        del self._exports[entry]
        self._emit_export_removed(entry)

        return True

    def _emit_export_removed(self, entry: Any) -> None:
        self.emit_safely(DefinitionEvent(DefinitionEventType.EXPORT_REMOVED, entry))
        if is_module(entry):
            self.emit_safely(DefinitionEvent(DefinitionEventType.EXPORT_MODULE_REMOVED, entry))
        else:
            self.emit_safely(DefinitionEvent(DefinitionEventType.EXPORT_PROVIDER_REMOVED, entry))

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_imported_module_by_id(self, id: Any) -> Optional[Any]:
        return next((module for module in self._imports if module.id == id), None)

    def get_provider_by_identifier(self, identifier: Any) -> Optional[Any]:
        return next((p for p in self._providers if to_provider_identifier(p) == identifier), None)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def emit_safely(self, event: DefinitionEvent) -> None:
        """Emit unless this module is already emitting (cyclic re-exports)."""
        if self._emitting or self._event_bus is None:
            return

        self._emitting = True
        try:
            self._event_bus.emit(event)
        finally:
            self._emitting = False

    def _subscribe_to_imported_module(self, module: Any) -> None:
        if module in self._subscriptions:
            return

        def bubble(event: DefinitionEvent) -> None:
            if event.type in EXPORT_EVENT_TYPES:
                self.emit_safely(event)

        self._subscriptions[module] = module.internal.definition_manager.subscribe(bubble)

    def _unsubscribe_from_imported_module(self, module: Any) -> None:
        unsubscribe = self._subscriptions.pop(module, None)
        if unsubscribe is not None:
            unsubscribe()

    # ------------------------------------------------------------------
    # Construction & teardown
    # ------------------------------------------------------------------

    def _materialize(self, value: Any) -> Any:
        if is_blueprint(value):
            return value.to_module(runtime=self._module.runtime)
        if not is_module(value):
            raise ProviderModuleError(self._module, f"Can't import {value!r}, it is neither a module nor a blueprint")
        return value

    def _build_initial_definition(self, options: ModuleOptions) -> None:
        for provider in options.providers:
            self._module.internal.module_container.bind_to_container(provider)
            self._providers[provider] = None

        # Modules and blueprints are exported by the import loop below,
        # a blueprint must be turned into a module first.
        for entry in options.exports:
            if is_module_or_blueprint(entry):
                continue
            self._exports[entry] = None

        for entry in options.imports:
            # Global modules are reachable through the app module container already
            if is_global(entry):
                continue

            module = self._materialize(entry)
            exported = any(is_module_or_blueprint(x) and x.id == module.id for x in options.exports)
            self.add_import(module, exported)

    def reset(self) -> None:
        """
        Forget imports, providers and exports.

        Importers are told about every former export so they drop their proxies.
        """
        former_exports = list(self._exports)

        for unsubscribe in self._subscriptions.values():
            unsubscribe()
        self._subscriptions.clear()

        containers = self._module.internal.imported_module_containers
        for container in list(containers.values()):
            container.dispose()
        containers.clear()

        self._imports.clear()
        self._providers.clear()
        self._exports.clear()

        for entry in former_exports:
            self._emit_export_removed(entry)

    def dispose(self) -> None:
        if self._event_bus is not None:
            self._event_bus.dispose()
        self._event_bus = None
        self._subscriptions.clear()
