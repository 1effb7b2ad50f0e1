"""
Providers: the strategies a binding uses to produce its value.

Every provider exposes ``meta`` and ``instantiate(ctx)``. Constructor and
factory parameters are resolved through ``ctx.container`` so a lookup
started in one container keeps its request cache and cycle stack.
"""

from typing import Annotated, Any, Callable, Dict, Optional, Type, TypeVar, get_args, get_origin
import inspect

from .core import NOT_FOUND, ProviderMeta, ResolveCtx, token_to_key
from .decorators import Inject
from .errors import DIError


T = TypeVar("T")

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def _read_annotation(annotation: Any) -> Dict[str, Any]:
    """Split ``Annotated[T, Inject(...)]`` into the token to resolve and its optionality."""
    if get_origin(annotation) is not Annotated:
        return {"token": annotation, "optional": False}

    base, *extras = get_args(annotation)
    dep = {"token": base, "optional": False}
    for extra in extras:
        if isinstance(extra, Inject):
            if extra.token is not None:
                dep["token"] = extra.token
            dep["optional"] = dep["optional"] or extra.optional
    return dep


def _resolve_into(ctx: ResolveCtx, dependencies: Dict[str, Dict[str, Any]], keep_missing: bool) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    for name, dep in dependencies.items():
        value = ctx.container._resolve(dep["token"], ctx, optional=dep["optional"])
        if value is NOT_FOUND:
            # Let the parameter default apply when there is one
            if dep["has_default"] or not keep_missing:
                continue
            value = None
        kwargs[name] = value
    return kwargs


class ClassProvider:
    """
    Builds a class, resolving every ``__init__`` parameter from its annotation.

    Unannotated parameters are an error unless they have a default.
    """

    __slots__ = ("_meta", "_cls", "_dependencies")

    def __init__(self, cls: Type[T], token: Any = None):
        self._cls = cls
        self._dependencies = self._inspect(cls)
        self._meta = ProviderMeta(
            name=cls.__name__,
            token=token_to_key(cls if token is None else token),
            kind="class",
            module=cls.__module__,
            qualname=cls.__qualname__,
        )

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    @property
    def dependencies(self) -> Dict[str, Dict[str, Any]]:
        return dict(self._dependencies)

    def instantiate(self, ctx: ResolveCtx) -> Any:
        return self._cls(**_resolve_into(ctx, self._dependencies, keep_missing=True))

    @staticmethod
    def _inspect(cls: Type) -> Dict[str, Dict[str, Any]]:
        init = cls.__init__
        if init is object.__init__:
            return {}

        try:
            params = list(inspect.signature(init).parameters.values())[1:]
        except ValueError:
            return {}

        try:
            hints = inspect.get_annotations(init, eval_str=True)
        except (NameError, TypeError):
            hints = {}

        deps: Dict[str, Dict[str, Any]] = {}
        for param in params:
            if param.kind in _VARIADIC:
                continue

            has_default = param.default is not inspect.Parameter.empty
            annotation = hints.get(param.name, param.annotation)
            if annotation is inspect.Parameter.empty:
                if has_default:
                    continue
                raise DIError(
                    f"Cannot inject parameter '{param.name}' of {cls.__qualname__}: "
                    f"it has neither a type annotation nor a default value"
                )

            dep = _read_annotation(annotation)
            dep["optional"] = dep["optional"] or has_default
            dep["has_default"] = has_default
            deps[param.name] = dep

        return deps


class FactoryProvider:
    """
    Calls a function to produce the value.

    Only annotated parameters are resolved; the rest keep their defaults.
    A parameter with a default is optional.
    """

    __slots__ = ("_meta", "_factory", "_dependencies")

    def __init__(self, factory: Callable[..., Any], token: Any = None, name: Optional[str] = None):
        self._factory = factory
        self._dependencies = self._inspect(factory)
        self._meta = ProviderMeta(
            name=name or getattr(factory, "__name__", "factory"),
            token=token_to_key(factory if token is None else token),
            kind="factory",
            module=getattr(factory, "__module__", "") or "",
            qualname=getattr(factory, "__qualname__", "") or "",
        )

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    def instantiate(self, ctx: ResolveCtx) -> Any:
        return self._factory(**_resolve_into(ctx, self._dependencies, keep_missing=False))

    @staticmethod
    def _inspect(factory: Callable) -> Dict[str, Dict[str, Any]]:
        try:
            params = inspect.signature(factory).parameters.values()
        except (TypeError, ValueError):
            return {}

        deps: Dict[str, Dict[str, Any]] = {}
        for param in params:
            if param.kind in _VARIADIC or param.annotation is inspect.Parameter.empty:
                continue
            has_default = param.default is not inspect.Parameter.empty
            dep = _read_annotation(param.annotation)
            dep["optional"] = dep["optional"] or has_default
            dep["has_default"] = has_default
            deps[param.name] = dep
        return deps


class ValueProvider:
    """Hands out a fixed value."""

    __slots__ = ("_meta", "_value")

    def __init__(self, value: Any, token: Any, name: Optional[str] = None):
        self._value = value
        self._meta = ProviderMeta(name=name or "value", token=token_to_key(token), kind="value")

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    def instantiate(self, ctx: ResolveCtx) -> Any:
        return self._value


class DynamicProvider:
    """
    Delegates to a callable receiving the resolution context.

    Returning NOT_FOUND caches nothing and lets the container try the next
    candidate binding.
    """

    __slots__ = ("_meta", "_resolver")

    def __init__(self, resolver: Callable[[ResolveCtx], Any], token: Any, name: Optional[str] = None):
        self._resolver = resolver
        self._meta = ProviderMeta(name=name or "dynamic", token=token_to_key(token), kind="dynamic")

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    def instantiate(self, ctx: ResolveCtx) -> Any:
        return self._resolver(ctx)
