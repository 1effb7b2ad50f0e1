"""
Module graph error types.

Every error raised by a provider module is prefixed with the module it
happened in: ``{ProviderModule.<id>} => <message>``.
"""

from typing import Any

from ..di.errors import DIError


def _module_label(module: Any) -> str:
    try:
        return str(module.id)
    except Exception:
        return "Unknown"


class InjectionError(DIError):
    """Runtime-level violation not tied to a single module."""
    pass


class ProviderModuleError(DIError):
    """Generic error raised by a provider module."""

    def __init__(self, module: Any, message: str):
        self.module = module
        super().__init__(f"{{ProviderModule.{_module_label(module)}}} => {message}")


class ProviderModuleDisposedError(ProviderModuleError):
    """A disposed module has been used."""

    def __init__(self, module: Any):
        super().__init__(module, "Has been disposed!")


class ProviderModuleMissingIdentifierError(ProviderModuleError):
    """A module has been created without an identifier."""

    def __init__(self, module: Any):
        super().__init__(module, "An `id` must be supplied!")


class ProviderModuleMissingProviderError(ProviderModuleError):
    """The requested provider is bound neither locally, nor in an import, nor in the app module."""

    def __init__(self, module: Any, provider: Any):
        from .tokens import provider_token_to_string

        self.provider = provider
        super().__init__(
            module,
            f"The [{provider_token_to_string(provider)}] provider is not bound to this (or any imported) "
            f"module container, and was not found either in the 'AppModule'!",
        )


class ProviderModuleUnknownProviderError(ProviderModuleError):
    """A provider matches none of the supported shapes."""

    def __init__(self, module: Any, provider: Any):
        self.provider = provider
        super().__init__(module, f"The [{provider!r}] provider is of an unknown type!")


class ProviderModuleAppImportError(ProviderModuleError):
    """A module tried to import the app module."""

    def __init__(self, module: Any):
        super().__init__(module, "The 'AppModule' can't be imported!")


class ProviderModuleGlobalMarkError(ProviderModuleError):
    """A module has been registered into the app module without being global."""
    pass
