"""
Per-module middleware pipeline.

Middlewares intercept graph mutations and provider access. Each
interception point combines its callbacks with one strategy:

- chain: ``BEFORE_ADD_IMPORT``, ``BEFORE_ADD_PROVIDER``
- reduce: ``BEFORE_GET``
- boolean AND: ``BEFORE_REMOVE_IMPORT``, ``BEFORE_REMOVE_PROVIDER``,
  ``BEFORE_REMOVE_EXPORT``, ``ON_EXPORT_ACCESS``
"""

from typing import Any, Callable, Dict, List, Optional
from enum import Enum
import logging

from .errors import ProviderModuleDisposedError

logger = logging.getLogger("xinject.modules.middleware")


class MiddlewareType(str, Enum):
    """Interception points."""

    BEFORE_ADD_IMPORT = "before_add_import"
    BEFORE_ADD_PROVIDER = "before_add_provider"
    BEFORE_GET = "before_get"
    BEFORE_REMOVE_IMPORT = "before_remove_import"
    BEFORE_REMOVE_PROVIDER = "before_remove_provider"
    BEFORE_REMOVE_EXPORT = "before_remove_export"
    ON_EXPORT_ACCESS = "on_export_access"


_CHAIN = frozenset({MiddlewareType.BEFORE_ADD_IMPORT, MiddlewareType.BEFORE_ADD_PROVIDER})
_GATES = frozenset({
    MiddlewareType.BEFORE_REMOVE_IMPORT,
    MiddlewareType.BEFORE_REMOVE_PROVIDER,
    MiddlewareType.BEFORE_REMOVE_EXPORT,
    MiddlewareType.ON_EXPORT_ACCESS,
})


class MiddlewaresManager:
    """
    Registry of middleware callbacks for one module.

    Callbacks run in registration order.
    """

    __slots__ = ("_module", "_middlewares")

    def __init__(self, module: Any):
        self._module = module
        self._middlewares: Optional[Dict[MiddlewareType, List[Callable[..., Any]]]] = {}

    def add(self, type: MiddlewareType, callback: Callable[..., Any]) -> None:
        """
        Register a middleware.

        Args:
            type: Interception point
            callback: Chain callbacks get the candidate; ``BEFORE_GET`` callbacks
                get ``(value, token, resolver)``; gate callbacks get the entry
                (``ON_EXPORT_ACCESS``: the importer module and the provider)
        """
        if self._middlewares is None:
            raise ProviderModuleDisposedError(self._module)
        self._middlewares.setdefault(MiddlewareType(type), []).append(callback)

    def apply(self, type: MiddlewareType, *args: Any) -> Any:
        """
        Run the middlewares registered for ``type``.

        Returns:
            Chain: the surviving candidate, or False when vetoed.
            Reduce: the final value.
            Gates: True when every callback approved.

        Raises:
            ProviderModuleDisposedError: If the owning module has been disposed
        """
        if self._middlewares is None:
            raise ProviderModuleDisposedError(self._module)

        middlewares = self._middlewares.get(type)

        if type in _CHAIN:
            if not middlewares:
                return args[0]

            candidate = args[0]
            for middleware in middlewares:
                result = middleware(candidate)
                if result is False:
                    logger.debug(f"[{self._module.id}] {type.value} vetoed {candidate!r}")
                    return False
                if result is True:
                    continue
                candidate = result
            return candidate

        if type == MiddlewareType.BEFORE_GET:
            value = args[0]
            if not middlewares:
                return value
            token, resolver = args[1], args[2]
            for middleware in middlewares:
                value = middleware(value, token, resolver)
            return value

        if type in _GATES:
            if not middlewares:
                return True
            for middleware in middlewares:
                if not middleware(*args):
                    logger.debug(f"[{self._module.id}] {type.value} denied {args[-1]!r}")
                    return False
            return True

        raise ValueError(f"Unknown middleware type: {type!r}")

    def clear(self) -> None:
        """Drop every registered middleware."""
        if self._middlewares is not None:
            self._middlewares.clear()

    def dispose(self) -> None:
        self._middlewares = None
