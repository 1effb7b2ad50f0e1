"""
Export proxy between an importer and one imported module.

Every provider reachable through the imported module's exports gets a proxy
binding in the importer's container. Resolving the proxy fetches the value
from the container of the module which exported it, so nothing is copied:
proxies never cache, the exporter's own binding applies its scope.
"""

from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple
from dataclasses import dataclass
import logging

from ..di.core import NOT_FOUND, Binding, ResolveCtx
from ..di.providers import DynamicProvider
from ..di.scopes import InjectionScope
from .events import DefinitionEvent, DefinitionEventType
from .helpers import is_module
from .middleware import MiddlewareType
from .tokens import provider_identifier_to_string, to_provider_identifier

logger = logging.getLogger("xinject.modules.imported")


@dataclass
class _Proxy:
    binding: Binding
    entry: Any
    source: Any


class ImportedModuleContainer:
    """
    Proxy bindings of ``imported``'s exports inside ``importer``.

    Providers exported directly take precedence over providers reachable
    through exported modules (nearest wins). ``ON_EXPORT_ACCESS`` of the
    imported module is checked when a proxy is created and again every
    time it is resolved; a denial at resolution unbinds the proxy.
    """

    __slots__ = ("_importer", "_imported", "_proxied", "_unsubscribe")

    def __init__(self, importer: Any, imported: Any):
        self._importer = importer
        self._imported = imported
        self._proxied: Dict[Any, _Proxy] = {}

        self._walk(imported.internal.definition_manager.exports, imported, self._proxy, check_access=True)
        self._unsubscribe = imported.internal.definition_manager.subscribe(self._on_event)

    @property
    def imported_module(self) -> Any:
        return self._imported

    @property
    def proxied_identifiers(self) -> Tuple[Any, ...]:
        return tuple(self._proxied)

    def is_proxying(self, identifier: Any) -> bool:
        return identifier in self._proxied

    def source_of(self, identifier: Any) -> Optional[Any]:
        """Module whose exports made ``identifier`` reachable."""
        proxy = self._proxied.get(identifier)
        return proxy.source if proxy is not None else None

    # ------------------------------------------------------------------
    # Export graph
    # ------------------------------------------------------------------

    def _walk(
        self,
        exports: Iterable[Any],
        source: Any,
        callback: Callable[[Any, Any], None],
        check_access: bool = False,
        visited: Optional[Set[Any]] = None,
    ) -> None:
        if visited is None:
            visited = {self._imported}

        deferred = []
        for entry in exports:
            if is_module(entry):
                if entry not in visited:
                    visited.add(entry)
                    deferred.append(entry)
                continue

            if check_access and not self._imported.internal.middlewares_manager.apply(
                MiddlewareType.ON_EXPORT_ACCESS, self._importer, entry
            ):
                continue

            callback(entry, source)

        for module in deferred:
            if module.is_disposed:
                continue
            self._walk(module.internal.definition_manager.exports, module, callback, check_access, visited)

    def _closure(self) -> Tuple[Dict[Any, Tuple[Any, Any]], Set[Any]]:
        """Identifiers (with entry and source) and modules reachable right now."""
        providers: Dict[Any, Tuple[Any, Any]] = {}
        modules: Set[Any] = {self._imported}

        def collect(entry: Any, source: Any) -> None:
            providers.setdefault(to_provider_identifier(entry), (entry, source))

        self._walk(self._imported.internal.definition_manager.exports, self._imported, collect, visited=modules)
        return providers, modules

    def _on_event(self, event: DefinitionEvent) -> None:
        if event.type not in (DefinitionEventType.EXPORT, DefinitionEventType.EXPORT_REMOVED):
            return
        if self._imported is None or self._imported.is_disposed:
            return

        reachable, modules = self._closure()
        change = event.change

        if event.type == DefinitionEventType.EXPORT:
            if is_module(change):
                if change not in modules or change.is_disposed:
                    return

                def proxy_reachable(entry: Any, source: Any) -> None:
                    identifier = to_provider_identifier(entry)
                    if identifier in reachable:
                        self._proxy(*reachable[identifier])

                self._walk(change.internal.definition_manager.exports, change, proxy_reachable, check_access=True)
                return

            identifier = to_provider_identifier(change)
            if identifier not in reachable:
                return
            entry, source = reachable[identifier]
            if self._imported.internal.middlewares_manager.apply(MiddlewareType.ON_EXPORT_ACCESS, self._importer, entry):
                self._proxy(entry, source)
            return

        if is_module(change):
            if change in modules or change.is_disposed:
                return

            def unproxy_unreachable(entry: Any, source: Any) -> None:
                if to_provider_identifier(entry) not in reachable:
                    self._unproxy(entry)

            self._walk(change.internal.definition_manager.exports, change, unproxy_unreachable)
            return

        if to_provider_identifier(change) not in reachable:
            self._unproxy(change)

    # ------------------------------------------------------------------
    # Proxy bindings
    # ------------------------------------------------------------------

    def _proxy(self, entry: Any, source: Any) -> None:
        identifier = to_provider_identifier(entry)
        if identifier in self._proxied:
            return

        # Resolve from the exporter itself, a private binding of an
        # intermediate module must not shadow what it re-exports
        def fetch(ctx: ResolveCtx) -> Any:
            if source.is_disposed:
                return NOT_FOUND
            return source.internal.module_container.container.resolve(identifier, optional=True)

        binding = self._importer.internal.module_container.container.bind(
            identifier,
            DynamicProvider(fetch, token=identifier, name=f"proxy:{source.id}"),
            scope=InjectionScope.TRANSIENT,
            owner=self,
            guard=lambda: self._can_access(identifier, entry),
        )
        self._proxied[identifier] = _Proxy(binding, entry, source)
        logger.debug(
            f"[{self._importer.id}] proxied {provider_identifier_to_string(identifier)} "
            f"from {source.id} via {self._imported.id}"
        )

    def _unproxy(self, entry: Any) -> None:
        identifier = to_provider_identifier(entry)
        if self._proxied.pop(identifier, None) is None:
            return

        container = self._importer.internal.module_container.container
        container.unbind_owned(self, identifier)
        logger.debug(f"[{self._importer.id}] unproxied {provider_identifier_to_string(identifier)}")

        if not container.is_current_bound(identifier):
            self._importer.internal.side_effects.release_foreign(identifier)

    def _can_access(self, identifier: Any, entry: Any) -> bool:
        imported = self._imported
        allowed = (
            imported is not None
            and not imported.is_disposed
            and imported.internal.middlewares_manager.apply(MiddlewareType.ON_EXPORT_ACCESS, self._importer, entry)
        )
        if not allowed:
            # The container drops the binding itself once the guard fails
            self._proxied.pop(identifier, None)
            logger.debug(f"[{self._importer.id}] export access to {provider_identifier_to_string(identifier)} revoked")
        return bool(allowed)

    def forget(self, identifier: Any = NOT_FOUND) -> None:
        """Drop bookkeeping for bindings already removed from the importer's container."""
        if identifier is NOT_FOUND:
            self._proxied.clear()
        else:
            self._proxied.pop(identifier, None)

    def dispose(self) -> None:
        """Unload every proxy binding and stop listening to the imported module."""
        self._unsubscribe()

        identifiers = list(self._proxied)
        self._proxied.clear()

        module_container = self._importer.internal.module_container
        if module_container is not None:
            module_container.container.unbind_owned(self)
            for identifier in identifiers:
                if not module_container.container.is_current_bound(identifier):
                    self._importer.internal.side_effects.release_foreign(identifier)

        self._importer = None
        self._imported = None
