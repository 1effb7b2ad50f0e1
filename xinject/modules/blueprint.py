"""
Reusable module templates.
"""

from typing import Any, Dict, List, Mapping, Optional
import copy
import dataclasses

from .options import ModuleOptions


class ProviderModuleBlueprint:
    """
    Module options which are turned into a module only when imported.

    A global blueprint is imported into the app module on creation unless
    ``auto_import_into_app_module_when_global`` is False.
    """

    def __init__(
        self,
        options: Any,
        auto_import_into_app_module_when_global: bool = True,
        runtime: Any = None,
    ):
        self.id: Any = None
        self.imports: List[Any] = []
        self.providers: List[Any] = []
        self.exports: List[Any] = []
        self.default_scope: Any = None
        self.is_global: bool = False
        self.on_ready: Any = None
        self.on_reset: Any = None
        self.on_dispose: Any = None

        self.auto_import_into_app_module_when_global = auto_import_into_app_module_when_global
        self._runtime = runtime

        self.update_definition(options)
        self._import_into_app_module_if_global()

    def update_definition(self, options: Any) -> "ProviderModuleBlueprint":
        """Replace the blueprint options."""
        if isinstance(options, ModuleOptions):
            values = {f.name: getattr(options, f.name) for f in dataclasses.fields(ModuleOptions)}
        elif isinstance(options, Mapping):
            values = ModuleOptions.from_kwargs(**options).__dict__
        else:
            raise TypeError(f"Blueprint options must be ModuleOptions or a mapping, got {type(options).__name__}")

        self.id = values.get("id")
        self.imports = list(values.get("imports") or [])
        self.providers = list(values.get("providers") or [])
        self.exports = list(values.get("exports") or [])
        self.default_scope = values.get("default_scope")
        self.is_global = bool(values.get("is_global", False))
        self.on_ready = values.get("on_ready")
        self.on_reset = values.get("on_reset")
        self.on_dispose = values.get("on_dispose")
        return self

    def get_definition(self) -> Dict[str, Any]:
        """The module options held by this blueprint."""
        return {
            "id": self.id,
            "imports": self.imports,
            "providers": self.providers,
            "exports": self.exports,
            "default_scope": self.default_scope,
            "is_global": self.is_global,
            "on_ready": self.on_ready,
            "on_reset": self.on_reset,
            "on_dispose": self.on_dispose,
        }

    def clone(self) -> "ProviderModuleBlueprint":
        """
        A new blueprint with deep copied options.

        Classes, functions and modules are shared, containers are copied.
        """
        return ProviderModuleBlueprint(
            copy.deepcopy(self.get_definition()),
            auto_import_into_app_module_when_global=self.auto_import_into_app_module_when_global,
            runtime=self._runtime,
        )

    def to_module(self, runtime: Optional[Any] = None):
        """Create a fresh module from this blueprint."""
        from .module import ProviderModule

        return ProviderModule(self, runtime=runtime or self._runtime)

    def _import_into_app_module_if_global(self) -> None:
        if not self.is_global or not self.auto_import_into_app_module_when_global:
            return

        from .runtime import get_runtime

        runtime = self._runtime or get_runtime()
        runtime.app_module.update.add_import(self)

    def __repr__(self) -> str:
        return f"ProviderModuleBlueprint({self.id!s})"
