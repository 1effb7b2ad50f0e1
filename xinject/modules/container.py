"""
Container adapter owned by every provider module.

Turns provider tokens into container bindings and runs the ``BEFORE_GET``
middleware around lookups.
"""

from typing import Any, Mapping, Optional, Tuple
import inspect
import logging

from ..di.core import NOT_FOUND, Binding, Container
from ..di.providers import ClassProvider, FactoryProvider, ValueProvider
from ..di.scopes import InjectionScope
from .errors import ProviderModuleMissingProviderError, ProviderModuleUnknownProviderError
from .middleware import MiddlewareType
from .options import GetManyParam
from .tokens import (
    ProviderToken,
    get_injection_scope_by_priority,
    provider_token_to_string,
    to_provider_identifier,
)

logger = logging.getLogger("xinject.modules.container")


class ModuleContainer:
    """Wraps the module's ``Container``."""

    __slots__ = ("_module", "container")

    def __init__(self, module: Any, parent: Optional[Container] = None):
        self._module = module
        self.container = Container(
            parent=parent,
            default_scope=module.default_scope,
            diagnostics=module.runtime.diagnostics,
            name=str(module.id),
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, provider: Any, is_optional: bool = False, as_list: bool = False) -> Any:
        """
        Resolve ``provider`` through the ``BEFORE_GET`` middleware.

        Anything but NOT_FOUND coming out of the middleware is returned as is,
        including an explicit ``None``.

        Raises:
            ProviderModuleMissingProviderError: Nothing found and not optional
        """
        with Container.request_scope():
            result = self._module.internal.middlewares_manager.apply(
                MiddlewareType.BEFORE_GET,
                self.get_provider(provider, as_list),
                provider,
                self.get_provider,
            )

        if result is not NOT_FOUND:
            return result

        if is_optional:
            return None

        raise ProviderModuleMissingProviderError(self._module, provider)

    def get_many(self, *deps: Any) -> Tuple[Any, ...]:
        """Resolve every dependency in order, sharing one request scope."""
        with Container.request_scope():
            return tuple(self.get(*self._unpack_dependency(dep)) for dep in deps)

    def get_provider(self, provider: Any, as_list: bool = False) -> Any:
        """Raw optional lookup: NOT_FOUND (or ``[]`` with ``as_list``) when missing."""
        identifier = to_provider_identifier(provider)
        if as_list:
            return self.container.resolve_all(identifier, optional=True)
        return self.container.resolve(identifier, optional=True)

    @staticmethod
    def _unpack_dependency(dep: Any) -> Tuple[Any, bool, bool]:
        if isinstance(dep, GetManyParam):
            return dep.provider, dep.is_optional, dep.as_list
        if isinstance(dep, Mapping) and "provider" in dep:
            return dep["provider"], bool(dep.get("is_optional", False)), bool(dep.get("as_list", False))
        return dep, False, False

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def scope_of(self, provider: Any) -> InjectionScope:
        """Scope a provider gets when bound in this module."""
        if isinstance(provider, ProviderToken) and provider.kind == "value":
            return InjectionScope.SINGLETON
        return get_injection_scope_by_priority(provider, self._module.default_scope)

    def bind_to_container(self, provider: Any) -> Binding:
        """
        Bind a provider.

        Raises:
            ProviderModuleUnknownProviderError: The provider has no supported shape
        """
        identifier = to_provider_identifier(provider)

        if isinstance(provider, ProviderToken):
            kind = provider.kind
            if kind == "class":
                instance_provider = ClassProvider(provider.use_class, token=identifier)
            elif kind == "value":
                instance_provider = ValueProvider(provider.use_value, token=identifier)
            elif kind == "factory":
                instance_provider = FactoryProvider(
                    self._factory_for(provider),
                    token=identifier,
                    name=getattr(provider.use_factory, "__name__", None),
                )
            else:
                raise ProviderModuleUnknownProviderError(self._module, provider)

            binding = self.container.bind(
                identifier,
                instance_provider,
                scope=self.scope_of(provider),
                when=provider.when,
                on_event=provider.on_event,
            )
        elif inspect.isclass(provider):
            binding = self.container.bind(identifier, ClassProvider(provider), scope=self.scope_of(provider))
        elif callable(provider) and not isinstance(provider, str):
            binding = self.container.bind(identifier, FactoryProvider(provider), scope=self.scope_of(provider))
        else:
            raise ProviderModuleUnknownProviderError(self._module, provider)

        logger.debug(f"[{self._module.id}] bound {provider_token_to_string(provider)} ({binding.scope.value})")
        return binding

    def _factory_for(self, provider: ProviderToken):
        factory = provider.use_factory
        inject = tuple(provider.inject or ())

        def produce():
            return factory(*self.get_many(*inject))

        return produce

    def dispose(self) -> None:
        self.container.unbind_all()
        self._module = None
