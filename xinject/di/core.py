"""
Core DI types and the underlying container.

Defines the fundamental contracts for the DI system. Module graphs in
``xinject.modules`` sit on top of this container: every module owns one
``Container`` whose parent is the app module container.
"""

from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
    runtime_checkable,
)
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging

from .diagnostics import DIDiagnostics, DIEventType
from .errors import AmbiguousProviderError, DependencyCycleError, DIError, ProviderNotFoundError
from .scopes import SCOPES, InjectionScope, to_scope

logger = logging.getLogger("xinject.di.core")

# Module-level cache: type → "module.qualname" string
_type_key_cache: Dict[type, str] = {}

T = TypeVar("T")


class _NotFound:
    """Sentinel returned by optional resolutions that found nothing."""
    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND: Any = _NotFound()


def token_to_key(token: Any) -> str:
    """Convert an identifier to a readable key for messages and diagnostics."""
    if isinstance(token, str):
        return token

    if isinstance(token, type):
        key = _type_key_cache.get(token)
        if key is None:
            key = f"{token.__module__}.{token.__qualname__}"
            _type_key_cache[token] = key
        return key

    qualname = getattr(token, "__qualname__", None)
    if qualname is not None:
        return f"{getattr(token, '__module__', '?')}.{qualname}"

    return str(token)


@dataclass(frozen=True, slots=True)
class ProviderMeta:
    """Compact provider metadata, used in diagnostics and error messages."""
    name: str
    token: str
    kind: str = "class"  # "class", "factory", "value", "dynamic"
    module: str = ""
    qualname: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "token": self.token,
            "kind": self.kind,
            "module": self.module,
            "qualname": self.qualname,
        }


class ResolveCtx:
    """
    Context for resolution operations.

    Tracks resolution stack for cycle detection and the request cache.
    One context spans a whole outer get/get_many call graph, including
    hops through other containers.
    """
    __slots__ = ("container", "stack", "cache", "labels")

    def __init__(self, container: "Container"):
        self.container = container
        self.stack: List[Tuple[int, Any]] = []
        self.labels: List[str] = []
        self.cache: Dict[int, Any] = {}

    def push(self, key: Tuple[int, Any], label: str) -> None:
        """Push a resolution key onto the stack."""
        self.stack.append(key)
        self.labels.append(label)

    def pop(self) -> None:
        """Pop the last resolution key."""
        self.stack.pop()
        self.labels.pop()

    def in_cycle(self, key: Tuple[int, Any]) -> bool:
        """Check if key is currently being resolved (cycle)."""
        return key in self.stack

    def get_trace(self) -> List[str]:
        """Get current resolution trace for error messages."""
        return self.labels.copy()

    @property
    def requested_by(self) -> Optional[str]:
        return self.labels[-1] if self.labels else None


_current_ctx: ContextVar[Optional[ResolveCtx]] = ContextVar("xinject_resolve_ctx", default=None)


@dataclass(frozen=True)
class BindingConstraints:
    """What a `when` predicate gets to look at."""
    identifier: Any
    requested_by: Optional[str] = None


@dataclass
class OnEvent:
    """
    Activation/deactivation handlers of a binding.

    ``activation(ctx, instance)`` runs after an instance is created and before
    it is cached, its return value replaces the instance.
    ``deactivation(instance)`` runs for cached instances when unbound.
    """
    activation: Optional[Callable[[ResolveCtx, Any], Any]] = None
    deactivation: Optional[Callable[[Any], None]] = None


@runtime_checkable
class Provider(Protocol):
    """
    Provider protocol - how to instantiate a dependency.

    All providers must implement this interface.
    """

    @property
    def meta(self) -> ProviderMeta:
        """Provider metadata."""
        ...

    def instantiate(self, ctx: ResolveCtx) -> Any:
        """
        Instantiate the provider.

        Args:
            ctx: Resolution context, ``ctx.container`` is the resolving container

        Returns:
            The instantiated object, or NOT_FOUND for dynamic providers
            which could not produce anything
        """
        ...


class Binding:
    """A provider bound to an identifier inside a container."""

    __slots__ = (
        "identifier",
        "provider",
        "scope",
        "when",
        "owner",
        "on_event",
        "guard",
        "_instance",
        "_has_instance",
    )

    def __init__(
        self,
        identifier: Any,
        provider: Provider,
        scope: InjectionScope,
        when: Optional[Callable[[BindingConstraints], bool]] = None,
        owner: Optional[Any] = None,
        on_event: Optional[OnEvent] = None,
        guard: Optional[Callable[[], bool]] = None,
    ):
        self.identifier = identifier
        self.provider = provider
        self.scope = scope
        self.when = when
        self.owner = owner
        self.on_event = on_event
        self.guard = guard
        self._instance: Any = None
        self._has_instance = False

    @property
    def is_proxy(self) -> bool:
        return self.owner is not None

    def matches(self, constraints: BindingConstraints) -> bool:
        return self.when is None or bool(self.when(constraints))

    def __repr__(self) -> str:
        return f"Binding({token_to_key(self.identifier)}, {self.provider.meta.kind}, {self.scope.value})"


class Container:
    """
    DI Container - manages bindings, scope caches and lifecycle hooks.

    Own bindings always win over proxy bindings (bindings registered with an
    ``owner``); among proxies the first bound wins. Lookups fall back to the
    parent container when nothing is bound locally.
    """

    __slots__ = (
        "name",
        "_bindings",
        "_parent",
        "_default_scope",
        "_diagnostics",
        "_snapshots",
        "_activations",
        "_deactivations",
    )

    def __init__(
        self,
        parent: Optional["Container"] = None,
        default_scope: InjectionScope | str = InjectionScope.SINGLETON,
        diagnostics: Optional[DIDiagnostics] = None,
        name: str = "container",
    ):
        self.name = name
        self._bindings: Dict[Any, List[Binding]] = {}
        self._parent = parent
        self._default_scope = to_scope(default_scope)
        self._diagnostics = diagnostics or (parent._diagnostics if parent else DIDiagnostics())
        self._snapshots: List[Tuple[Dict[Any, List[Binding]], Dict[Any, list], Dict[Any, list]]] = []
        self._activations: Dict[Any, List[Callable[[ResolveCtx, Any], Any]]] = {}
        self._deactivations: Dict[Any, List[Callable[[Any], None]]] = {}

    @property
    def parent(self) -> Optional["Container"]:
        return self._parent

    @property
    def default_scope(self) -> InjectionScope:
        return self._default_scope

    @property
    def diagnostics(self) -> DIDiagnostics:
        return self._diagnostics

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind(
        self,
        identifier: Any,
        provider: Provider,
        *,
        scope: Optional[InjectionScope | str] = None,
        when: Optional[Callable[[BindingConstraints], bool]] = None,
        owner: Optional[Any] = None,
        on_event: Optional[OnEvent] = None,
        guard: Optional[Callable[[], bool]] = None,
    ) -> Binding:
        """
        Bind a provider to an identifier.

        Args:
            identifier: Class, function, string or Token
            provider: Provider instance
            scope: Caching scope, defaults to the container default scope
            when: Optional predicate deciding whether the binding applies
            owner: Marks the binding as a proxy owned by ``owner``
            on_event: Optional activation/deactivation handlers
            guard: Checked before every resolution, a falsy result unbinds

        Returns:
            The created binding
        """
        binding = Binding(
            identifier,
            provider,
            scope=to_scope(scope) if scope is not None else self._default_scope,
            when=when,
            owner=owner,
            on_event=on_event,
            guard=guard,
        )
        self._bindings.setdefault(identifier, []).append(binding)

        self._diagnostics.emit(
            DIEventType.REGISTRATION,
            token=token_to_key(identifier),
            container=self.name,
            provider_name=provider.meta.name,
            metadata={"scope": binding.scope.value, "proxy": binding.is_proxy},
        )
        return binding

    def rebind(self, identifier: Any, provider: Provider, **options: Any) -> Binding:
        """Unbind every binding of the identifier then bind the new provider."""
        self.unbind(identifier)
        return self.bind(identifier, provider, **options)

    def is_bound(self, identifier: Any) -> bool:
        """Check if the identifier is bound here or in a parent container."""
        if self.is_current_bound(identifier):
            return True
        return self._parent is not None and self._parent.is_bound(identifier)

    def is_current_bound(self, identifier: Any) -> bool:
        """Check if the identifier is bound in this container only."""
        return bool(self._bindings.get(identifier))

    def bindings_for(self, identifier: Any) -> List[Binding]:
        """Bindings registered locally for the identifier."""
        return list(self._bindings.get(identifier, ()))

    def identifiers(self) -> List[Any]:
        """Identifiers with at least one local binding."""
        return [identifier for identifier, bindings in self._bindings.items() if bindings]

    # ------------------------------------------------------------------
    # Unbinding
    # ------------------------------------------------------------------

    def unbind(self, identifier: Any) -> None:
        """Remove every local binding of the identifier."""
        bindings = self._bindings.pop(identifier, None)
        if not bindings:
            return
        for binding in bindings:
            self._deactivate(binding)
        self._diagnostics.emit(DIEventType.UNREGISTRATION, token=token_to_key(identifier), container=self.name)

    def unbind_owned(self, owner: Any, identifier: Any = None) -> None:
        """Remove the proxy bindings registered by ``owner``."""
        targets = [identifier] if identifier is not None else list(self._bindings)
        for target in targets:
            bindings = self._bindings.get(target)
            if not bindings:
                continue
            kept = [b for b in bindings if b.owner is not owner]
            if len(kept) == len(bindings):
                continue
            for binding in bindings:
                if binding.owner is owner:
                    self._deactivate(binding)
            if kept:
                self._bindings[target] = kept
            else:
                del self._bindings[target]
            self._diagnostics.emit(DIEventType.UNREGISTRATION, token=token_to_key(target), container=self.name)

    def unbind_all(self) -> None:
        """Remove every local binding."""
        for identifier in list(self._bindings):
            self.unbind(identifier)

    def _remove_binding(self, binding: Binding) -> None:
        bindings = self._bindings.get(binding.identifier)
        if not bindings or binding not in bindings:
            return
        bindings.remove(binding)
        if not bindings:
            del self._bindings[binding.identifier]
        self._deactivate(binding)

    def _deactivate(self, binding: Binding) -> None:
        if not binding._has_instance:
            return
        instance = binding._instance
        binding._instance = None
        binding._has_instance = False
        if binding.on_event is not None and binding.on_event.deactivation is not None:
            binding.on_event.deactivation(instance)
        for callback in self._deactivations.get(binding.identifier, ()):
            callback(instance)

    # ------------------------------------------------------------------
    # Lifecycle hooks & snapshots
    # ------------------------------------------------------------------

    def on_activation(self, identifier: Any, callback: Callable[[ResolveCtx, Any], Any]) -> None:
        """Register a container-level activation handler."""
        self._activations.setdefault(identifier, []).append(callback)

    def on_deactivation(self, identifier: Any, callback: Callable[[Any], None]) -> None:
        """Register a container-level deactivation handler."""
        self._deactivations.setdefault(identifier, []).append(callback)

    def snapshot(self) -> None:
        """Save the current bindings so they can be restored later."""
        self._snapshots.append((
            {identifier: list(bindings) for identifier, bindings in self._bindings.items()},
            {identifier: list(cbs) for identifier, cbs in self._activations.items()},
            {identifier: list(cbs) for identifier, cbs in self._deactivations.items()},
        ))
        self._diagnostics.emit(DIEventType.SNAPSHOT, container=self.name)

    def restore(self) -> None:
        """Restore the bindings saved by the last snapshot."""
        if not self._snapshots:
            raise DIError(f"Container '{self.name}' has no snapshot to restore")
        self._bindings, self._activations, self._deactivations = self._snapshots.pop()
        self._diagnostics.emit(DIEventType.RESTORE, container=self.name)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @staticmethod
    @contextmanager
    def request_scope() -> Iterator[ResolveCtx]:
        """
        Share one resolution context (and request cache) for the block.

        Nested scopes reuse the outer context.
        """
        ctx = _current_ctx.get()
        if ctx is not None:
            yield ctx
            return

        ctx = ResolveCtx(container=None)  # type: ignore[arg-type]
        reset_token = _current_ctx.set(ctx)
        try:
            yield ctx
        finally:
            _current_ctx.reset(reset_token)

    def resolve(self, identifier: Any, *, optional: bool = False) -> Any:
        """
        Resolve a dependency.

        Args:
            identifier: Class, function, string or Token
            optional: If True, return NOT_FOUND instead of raising

        Returns:
            The resolved instance

        Raises:
            ProviderNotFoundError: If nothing is bound and not optional
        """
        with self.request_scope() as ctx:
            with self._diagnostics.measure(token=token_to_key(identifier), container=self.name):
                return self._resolve(identifier, ctx, optional=optional)

    def resolve_all(self, identifier: Any, *, optional: bool = False) -> List[Any]:
        """Resolve every binding of the identifier (local first, else parent)."""
        with self.request_scope() as ctx:
            with self._diagnostics.measure(token=token_to_key(identifier), container=self.name):
                return self._resolve_all(identifier, ctx, optional=optional)

    def _candidates(self, identifier: Any, ctx: ResolveCtx) -> List[Binding]:
        bindings = self._bindings.get(identifier)
        if not bindings:
            return []
        constraints = BindingConstraints(identifier=identifier, requested_by=ctx.requested_by)
        return [b for b in bindings if b.matches(constraints)]

    def _resolve(self, identifier: Any, ctx: ResolveCtx, *, optional: bool) -> Any:
        candidates = self._candidates(identifier, ctx)

        if not candidates:
            if self._parent is not None:
                return self._parent._resolve(identifier, ctx, optional=optional)
            return self._not_found(identifier, ctx, optional)

        own = [b for b in candidates if not b.is_proxy]
        if len(own) > 1:
            raise AmbiguousProviderError(
                token=token_to_key(identifier),
                providers=[b.provider for b in own],
            )

        for binding in own or [b for b in candidates if b.is_proxy]:
            instance = self._activate(binding, ctx)
            if instance is not NOT_FOUND:
                return instance

        return self._not_found(identifier, ctx, optional)

    def _resolve_all(self, identifier: Any, ctx: ResolveCtx, *, optional: bool) -> List[Any]:
        candidates = self._candidates(identifier, ctx)

        if not candidates:
            if self._parent is not None:
                return self._parent._resolve_all(identifier, ctx, optional=optional)
            if optional:
                return []
            self._not_found(identifier, ctx, optional)

        ordered = [b for b in candidates if not b.is_proxy] + [b for b in candidates if b.is_proxy]
        results = []
        for binding in ordered:
            instance = self._activate(binding, ctx)
            if instance is not NOT_FOUND:
                results.append(instance)
        return results

    def _activate(self, binding: Binding, ctx: ResolveCtx) -> Any:
        if binding.guard is not None and not binding.guard():
            self._remove_binding(binding)
            return NOT_FOUND

        if binding.scope == InjectionScope.SINGLETON and binding._has_instance:
            return binding._instance

        scope = SCOPES[binding.scope]
        if scope.per_request and id(binding) in ctx.cache:
            return ctx.cache[id(binding)]

        key = (id(self), binding.identifier)
        label = f"{self.name}:{token_to_key(binding.identifier)}"
        if ctx.in_cycle(key):
            raise DependencyCycleError(ctx.get_trace() + [label])

        previous = ctx.container
        ctx.container = self
        ctx.push(key, label)
        try:
            instance = binding.provider.instantiate(ctx)
        finally:
            ctx.pop()
            ctx.container = previous

        if instance is NOT_FOUND:
            return NOT_FOUND

        if binding.on_event is not None and binding.on_event.activation is not None:
            instance = binding.on_event.activation(ctx, instance)
        for callback in self._activations.get(binding.identifier, ()):
            instance = callback(ctx, instance)

        if binding.scope == InjectionScope.SINGLETON:
            binding._instance = instance
            binding._has_instance = True
        elif scope.per_request:
            ctx.cache[id(binding)] = instance

        return instance

    def _not_found(self, identifier: Any, ctx: ResolveCtx, optional: bool) -> Any:
        if optional:
            return NOT_FOUND

        token = token_to_key(identifier)
        candidates = [token_to_key(k) for k in self._bindings if token.lower() in token_to_key(k).lower()]
        raise ProviderNotFoundError(
            token=token,
            candidates=candidates,
            requested_by=ctx.requested_by,
            container=self.name,
        )

    def __repr__(self) -> str:
        return f"Container({self.name!r}, bindings={len(self.identifiers())})"
