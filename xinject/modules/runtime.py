"""
Module runtime: the app module and the register of global modules.

Every module belongs to a runtime. Its container is a child of the app
module container, so whatever the app module provides or imports is
visible from all modules. Unless given one explicitly, modules join the
process default runtime returned by ``get_runtime()``.
"""

from typing import Any, Iterable, Optional, Set
import logging

from ..config import ConfigLoader, Settings, configure_logging
from ..di.diagnostics import ConsoleDiagnosticListener, DIDiagnostics
from .errors import InjectionError, ProviderModuleGlobalMarkError
from .helpers import is_global, is_module_or_blueprint
from .module import APP_MODULE_ID, ProviderModule

logger = logging.getLogger("xinject.modules.runtime")


class AppModule(ProviderModule):
    """
    Root module of a runtime.

    Global modules import themselves into it; it can't be imported.

    Example:
        get_runtime().app_module.register(
            imports=[ConfigModule, DatabaseModule],
            providers=[Clock],
        )
    """

    is_app_module = True

    def __init__(self, runtime: "ModuleRuntime"):
        super().__init__(runtime=runtime, id=APP_MODULE_ID)
        self._registered = False

    @property
    def is_registered(self) -> bool:
        return self._registered

    def register(
        self,
        imports: Iterable[Any] = (),
        providers: Iterable[Any] = (),
        exports: Iterable[Any] = (),
    ) -> "AppModule":
        """
        Load the app-wide imports and providers, once per runtime.

        Raises:
            InjectionError: When called a second time
            ProviderModuleGlobalMarkError: When an import is not global
        """
        if self._registered:
            raise InjectionError(f"The '{APP_MODULE_ID}' has already been registered!")

        imports = list(imports)
        for entry in imports:
            if not is_module_or_blueprint(entry) or not is_global(entry):
                raise ProviderModuleGlobalMarkError(
                    entry, "Is not marked as `global` but has been imported into the `AppModule`!"
                )

        exports = list(exports)
        for entry in imports:
            self.update.add_import(entry, True)
        for provider in providers:
            self.update.add_provider(provider, any(provider is x for x in exports))

        self._registered = True
        logger.debug(f"{APP_MODULE_ID} registered with {len(imports)} import(s)")
        return self


class ModuleRuntime:
    """
    Explicit home of the app module and of the global module register.

    Args:
        settings: Runtime settings, defaults when omitted
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.diagnostics = DIDiagnostics()
        if self.settings.diagnostics:
            self.diagnostics.add_listener(ConsoleDiagnosticListener())

        self.global_modules: Set[ProviderModule] = set()
        self.app_module = AppModule(self)

    def create_module(self, options: Any = None, /, **kwargs: Any) -> ProviderModule:
        """Create a module inside this runtime."""
        return ProviderModule.create(options, runtime=self, **kwargs)

    async def dispose(self) -> None:
        """Dispose every global module then the app module."""
        for module in list(self.global_modules):
            if not module.is_disposed:
                await module.dispose()
        if not self.app_module.is_disposed:
            await self.app_module.dispose()


_default_runtime: Optional[ModuleRuntime] = None


def get_runtime() -> ModuleRuntime:
    """The process default runtime, created from the environment on first use."""
    global _default_runtime
    if _default_runtime is None:
        settings = ConfigLoader.load()
        configure_logging(settings)
        _default_runtime = ModuleRuntime(settings)
    return _default_runtime


def reset_runtime(runtime: Optional[ModuleRuntime] = None) -> ModuleRuntime:
    """Install ``runtime`` (or a fresh one) as the process default runtime."""
    global _default_runtime
    _default_runtime = runtime or ModuleRuntime()
    return _default_runtime
