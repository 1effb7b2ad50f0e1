"""
Provider modules.

A module bundles providers, imports other modules and exports a subset of
both. Everything a module exports is resolvable from its importers:

    engine_module = ProviderModule.create(
        id="EngineModule",
        providers=[EngineService],
        exports=[EngineService],
    )

    car_module = ProviderModule.create(
        id="CarModule",
        imports=[engine_module],
        providers=[CarService],
        exports=[CarService],
    )

    car_module.get(CarService)
"""

from typing import Any, Dict, Mapping, Optional, Tuple
from dataclasses import dataclass
import inspect
import logging

from ..di.core import NOT_FOUND, Binding, Container
from ..di.scopes import InjectionScope, to_scope
from .container import ModuleContainer
from .definition import DynamicModuleDefinition
from .effects import SideEffectsRegistry
from .errors import (
    InjectionError,
    ProviderModuleDisposedError,
    ProviderModuleError,
    ProviderModuleMissingIdentifierError,
)
from .helpers import is_blueprint, is_module
from .imported import ImportedModuleContainer
from .middleware import MiddlewaresManager
from .options import CleanupHooks, ModuleOptions
from .tokens import is_provider_identifier, to_provider_identifier

logger = logging.getLogger("xinject.modules.module")

APP_MODULE_ID = "AppModule"


@dataclass(frozen=True)
class ModuleDefinition:
    """Read-only snapshot of a module's imports, providers and exports."""
    imports: Tuple[Any, ...]
    providers: Tuple[Any, ...]
    exports: Tuple[Any, ...]


async def _run_hook(hook: Any, *args: Any) -> None:
    if hook is None:
        return
    result = hook(*args)
    if inspect.isawaitable(result):
        await result


class ProviderModule:
    """
    A node of the module graph.

    Args:
        options: ModuleOptions, a mapping of options or a blueprint
        runtime: Runtime holding the app module, the process default runtime when omitted
        **kwargs: Options given as keywords instead of ``options``

    Raises:
        ProviderModuleMissingIdentifierError: Without a non-empty id
        InjectionError: When reusing the app module id
    """

    is_app_module = False

    def __init__(self, options: Any = None, /, *, runtime: Any = None, **kwargs: Any):
        if options is None:
            options = ModuleOptions.from_kwargs(**kwargs)
        elif kwargs:
            raise TypeError("Pass module options either positionally or as keywords, not both")
        elif is_blueprint(options):
            options = ModuleOptions.from_kwargs(**options.get_definition())
        elif isinstance(options, Mapping):
            options = ModuleOptions.from_kwargs(**options)

        if runtime is None:
            from .runtime import get_runtime

            runtime = get_runtime()

        self.options: ModuleOptions = options
        self.runtime = runtime
        self._disposed = False

        self._throw_if_id_is_missing()
        if self.options.id == APP_MODULE_ID and not self.is_app_module:
            raise InjectionError(
                f"The '{APP_MODULE_ID}' id can't be used as it is already being used by the built-in '{APP_MODULE_ID}'"
            )

        self._default_scope = to_scope(
            self.options.default_scope if self.options.default_scope is not None else runtime.settings.default_scope
        )

        self._middlewares_manager = MiddlewaresManager(self)
        self._side_effects = SideEffectsRegistry(self)
        self._imported_module_containers: Dict[Any, ImportedModuleContainer] = {}
        self._internal = ModuleInternals(self)

        parent = None if self.is_app_module else runtime.app_module.internal.container
        self._module_container: Optional[ModuleContainer] = ModuleContainer(self, parent)
        self._definition_manager: Optional[DynamicModuleDefinition] = DynamicModuleDefinition(self)

        if not self.is_app_module and self.options.is_global:
            runtime.app_module.update.add_import(self, True)
            runtime.global_modules.add(self)

        logger.debug(f"Module {self.id} ready")

        if self.options.on_ready is not None:
            self.options.on_ready(self)

    @classmethod
    def create(cls, options: Any = None, /, *, runtime: Any = None, **kwargs: Any) -> "ProviderModule":
        """Create a module from options, keywords or a blueprint."""
        return cls(options, runtime=runtime, **kwargs)

    @staticmethod
    def blueprint(options: Any = None, /, *, auto_import_into_app_module_when_global: bool = True, **kwargs: Any):
        """Create a reusable blueprint instead of a module."""
        from .blueprint import ProviderModuleBlueprint

        return ProviderModuleBlueprint(
            options if options is not None else kwargs,
            auto_import_into_app_module_when_global=auto_import_into_app_module_when_global,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def id(self) -> Any:
        return self.options.id

    @property
    def default_scope(self) -> InjectionScope:
        return self._default_scope

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def is_global(self) -> bool:
        return bool(self.options.is_global)

    @property
    def definition(self) -> ModuleDefinition:
        """Snapshot of the current imports, providers and exports."""
        self._throw_if_disposed()
        manager = self._definition_manager
        return ModuleDefinition(manager.imports, manager.providers, manager.exports)

    @property
    def update(self) -> DynamicModuleDefinition:
        """Graph mutation operations (add/remove imports, providers, exports)."""
        self._throw_if_disposed()
        return self._definition_manager

    @property
    def middlewares(self) -> MiddlewaresManager:
        self._throw_if_disposed()
        return self._middlewares_manager

    @property
    def internal(self) -> "ModuleInternals":
        """Internal wiring and raw container operations."""
        return self._internal

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, provider: Any, is_optional: bool = False, as_list: bool = False) -> Any:
        """
        Resolve a provider.

        Args:
            provider: Provider token or identifier
            is_optional: Return None instead of raising when nothing is found
            as_list: Resolve every binding of the identifier

        Raises:
            ProviderModuleMissingProviderError: Nothing found and not optional
            ProviderModuleDisposedError: The module has been disposed
        """
        self._throw_if_disposed()

        value = self._module_container.get(provider, is_optional, as_list)
        self._side_effects.invoke_get(to_provider_identifier(provider))
        return value

    def get_many(self, *deps: Any) -> Tuple[Any, ...]:
        """
        Resolve several providers at once, in order.

        Each dependency is a provider, a ``GetManyParam`` or a mapping with a
        ``"provider"`` key. Request scoped providers are shared by the call.
        """
        self._throw_if_disposed()

        with Container.request_scope():
            return tuple(self.get(*ModuleContainer._unpack_dependency(dep)) for dep in deps)

    def has_provider(self, provider: Any) -> bool:
        """Whether the provider is bound here, in an import or in the app module."""
        self._throw_if_disposed()
        return self._module_container.container.is_bound(to_provider_identifier(provider))

    def is_importing_module(self, id_or_module: Any) -> bool:
        self._throw_if_disposed()

        if is_module(id_or_module):
            return id_or_module in self._imported_module_containers

        return any(module.id == id_or_module for module in self._imported_module_containers)

    def is_exporting_module(self, id_or_module: Any) -> bool:
        self._throw_if_disposed()

        if not self.is_importing_module(id_or_module):
            return False

        exports = self._definition_manager.exports
        if is_module(id_or_module):
            return id_or_module in exports

        return any(is_module(entry) and entry.id == id_or_module for entry in exports)

    def is_exporting_provider(self, token_or_identifier: Any) -> bool:
        self._throw_if_disposed()

        exports = self._definition_manager.exports
        if any(entry is token_or_identifier for entry in exports):
            return True

        if not is_provider_identifier(token_or_identifier):
            return False

        return any(
            not is_module(entry) and to_provider_identifier(entry) == token_or_identifier
            for entry in exports
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def reset(self, invoke_hooks: bool = True) -> None:
        """
        Bring the module back to an empty definition.

        Middlewares are cleared, every provider is unbound (on-unbind effects
        fire), imports are dropped and importers lose the former exports.
        """
        self._throw_if_disposed()

        hooks = CleanupHooks()
        if invoke_hooks and self.options.on_reset is not None:
            hooks = self.options.on_reset() or CleanupHooks()
            await _run_hook(hooks.before, self)

        self._middlewares_manager.clear()
        self._internal.unbind_all()
        self._definition_manager.reset()

        logger.debug(f"Module {self.id} reset")

        if invoke_hooks:
            await _run_hook(hooks.after)

    async def dispose(self) -> None:
        """
        Reset the module then release everything it owns.

        A disposed module raises ProviderModuleDisposedError on further use.
        """
        self._throw_if_disposed()

        hooks = (self.options.on_dispose() if self.options.on_dispose is not None else None) or CleanupHooks()
        await _run_hook(hooks.before, self)

        await self.reset(False)

        self._middlewares_manager.dispose()
        self._definition_manager.dispose()
        self._module_container.dispose()
        self._side_effects.clear()
        self.runtime.global_modules.discard(self)

        self._definition_manager = None
        self._module_container = None
        self._disposed = True

        logger.debug(f"Module {self.id} disposed")

        await _run_hook(hooks.after)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _throw_if_id_is_missing(self) -> None:
        module_id = self.options.id
        if module_id is None or not str(module_id).strip():
            raise ProviderModuleMissingIdentifierError(self)

    def _throw_if_disposed(self) -> None:
        if self._disposed:
            raise ProviderModuleDisposedError(self)

    def __deepcopy__(self, memo: Dict[int, Any]) -> "ProviderModule":
        # Modules are shared, never copied
        return self

    def __str__(self) -> str:
        return str(self.id)

    def __repr__(self) -> str:
        state = ", disposed" if self._disposed else ""
        return f"ProviderModule({self.id!s}{state})"


class ModuleInternals:
    """
    Internal wiring of a module: its collaborators, the raw container
    operations and the side effect registration.

    Raw operations bypass middlewares and the definition graph.
    """

    __slots__ = ("_module",)

    def __init__(self, module: ProviderModule):
        self._module = module

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def container(self) -> Container:
        return self._module._module_container.container

    @property
    def module_container(self) -> Optional[ModuleContainer]:
        return self._module._module_container

    @property
    def definition_manager(self) -> Optional[DynamicModuleDefinition]:
        return self._module._definition_manager

    @property
    def middlewares_manager(self) -> MiddlewaresManager:
        return self._module._middlewares_manager

    @property
    def imported_module_containers(self) -> Dict[Any, ImportedModuleContainer]:
        return self._module._imported_module_containers

    @property
    def side_effects(self) -> SideEffectsRegistry:
        return self._module._side_effects

    def owner_of(self, identifier: Any, _visited: Optional[set] = None) -> Optional[ProviderModule]:
        """Module providing ``identifier``: this one or one reached through the imports."""
        module = self._module
        visited = _visited if _visited is not None else set()
        if module in visited or module.is_disposed:
            return None
        visited.add(module)

        if module._definition_manager.get_provider_by_identifier(identifier) is not None:
            return module

        for container in module._imported_module_containers.values():
            source = container.source_of(identifier)
            if source is None:
                continue
            owner = source.internal.owner_of(identifier, visited)
            if owner is not None:
                return owner
            owner = container.imported_module.internal.owner_of(identifier, visited)
            if owner is not None:
                return owner

        return None

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def on_bind(self, provider: Any, callback: Any) -> None:
        self._module._throw_if_disposed()
        self.side_effects.add_bind(to_provider_identifier(provider), callback)

    def on_get(self, provider: Any, once: bool, callback: Any) -> None:
        """
        Run ``callback`` after every successful ``get`` of the provider.

        Raises:
            ProviderModuleError: When ``once`` is not a bool
        """
        self._module._throw_if_disposed()
        if not isinstance(once, bool):
            raise ProviderModuleError(self._module, "The `once` argument of `on_get` must be a bool!")
        self.side_effects.add_get(to_provider_identifier(provider), once, callback)

    def on_rebind(self, provider: Any, callback: Any) -> None:
        self._module._throw_if_disposed()
        self.side_effects.add_rebind(to_provider_identifier(provider), callback)

    def on_unbind(self, provider: Any, callback: Any) -> None:
        """
        Run ``callback`` once the provider is unbound.

        For a provider reached through an import, the effect is kept by the
        providing module, so it also fires when that module unbinds it.
        """
        self._module._throw_if_disposed()
        identifier = to_provider_identifier(provider)
        owner = self.owner_of(identifier)

        if owner is None or owner is self._module:
            self.side_effects.add_unbind(identifier, callback)
            return

        owner.internal.side_effects.add_unbind(identifier, callback, registered_by=self._module.id)
        self.side_effects.track_foreign(identifier, owner)

    # ------------------------------------------------------------------
    # Raw container operations
    # ------------------------------------------------------------------

    def bind(self, provider: Any) -> Binding:
        self._module._throw_if_disposed()
        binding = self.module_container.bind_to_container(provider)
        self.side_effects.invoke_bind(to_provider_identifier(provider))
        return binding

    def get(self, provider: Any, optional: bool = False) -> Any:
        self._module._throw_if_disposed()
        value = self.container.resolve(to_provider_identifier(provider), optional=optional)
        return None if value is NOT_FOUND else value

    def get_all(self, provider: Any, optional: bool = False) -> list:
        self._module._throw_if_disposed()
        return self.container.resolve_all(to_provider_identifier(provider), optional=optional)

    def rebind(self, provider: Any) -> Binding:
        self._module._throw_if_disposed()
        identifier = to_provider_identifier(provider)
        self._unbind_identifier(identifier)
        binding = self.module_container.bind_to_container(provider)
        self.side_effects.invoke_rebind(identifier)
        return binding

    def unbind(self, provider: Any) -> None:
        self._module._throw_if_disposed()
        identifier = to_provider_identifier(provider)
        self._unbind_identifier(identifier)
        self.side_effects.unbind(identifier)

    def unbind_all(self) -> None:
        self._module._throw_if_disposed()
        self.container.unbind_all()
        for container in self.imported_module_containers.values():
            container.forget()
        self.side_effects.unbind_all()

    def is_bound(self, provider: Any) -> bool:
        self._module._throw_if_disposed()
        return self.container.is_bound(to_provider_identifier(provider))

    def is_current_bound(self, provider: Any) -> bool:
        self._module._throw_if_disposed()
        return self.container.is_current_bound(to_provider_identifier(provider))

    def take_snapshot(self) -> None:
        self._module._throw_if_disposed()
        self.container.snapshot()

    def restore_snapshot(self) -> None:
        self._module._throw_if_disposed()
        self.container.restore()

    def _unbind_identifier(self, identifier: Any) -> None:
        self.container.unbind(identifier)
        for container in self.imported_module_containers.values():
            container.forget(identifier)
