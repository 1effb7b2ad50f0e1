"""
Side effects registered against provider bindings.

Effects are keyed by provider identifier and hook (bind, get, rebind,
unbind). An unbind effect registered by a module for a provider it only
reaches through an import lives in the owning module, tagged with the id
of the module which registered it, so each side can clean up the other.
"""

from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
import logging

logger = logging.getLogger("xinject.modules.effects")

Effect = Callable[[], Any]


@dataclass
class GetEffect:
    callback: Effect
    once: bool


@dataclass
class UnbindEffect:
    callback: Effect
    registered_by: Optional[Any] = None


@dataclass
class ProviderSideEffects:
    """Every effect registered for one provider identifier."""
    on_bind: List[Effect] = field(default_factory=list)
    on_get: List[GetEffect] = field(default_factory=list)
    on_rebind: List[Effect] = field(default_factory=list)
    on_unbind: List[UnbindEffect] = field(default_factory=list)


class SideEffectsRegistry:
    """Side effects of one module."""

    __slots__ = ("_module", "_effects", "_foreign")

    def __init__(self, module: Any):
        self._module = module
        self._effects: Dict[Any, ProviderSideEffects] = {}
        # identifier -> module holding the unbind effects registered by this one
        self._foreign: Dict[Any, Any] = {}

    def get(self, identifier: Any) -> Optional[ProviderSideEffects]:
        return self._effects.get(identifier)

    def _entry(self, identifier: Any) -> ProviderSideEffects:
        entry = self._effects.get(identifier)
        if entry is None:
            entry = self._effects[identifier] = ProviderSideEffects()
        return entry

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_bind(self, identifier: Any, callback: Effect) -> None:
        self._entry(identifier).on_bind.append(callback)

    def add_get(self, identifier: Any, once: bool, callback: Effect) -> None:
        self._entry(identifier).on_get.append(GetEffect(callback, once))

    def add_rebind(self, identifier: Any, callback: Effect) -> None:
        self._entry(identifier).on_rebind.append(callback)

    def add_unbind(self, identifier: Any, callback: Effect, registered_by: Any = None) -> None:
        self._entry(identifier).on_unbind.append(UnbindEffect(callback, registered_by))

    def track_foreign(self, identifier: Any, owner: Any) -> None:
        """Remember that unbind effects for ``identifier`` were registered in ``owner``."""
        self._foreign[identifier] = owner

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def invoke_bind(self, identifier: Any) -> None:
        entry = self._effects.get(identifier)
        if entry is None:
            return
        for callback in list(entry.on_bind):
            callback()

    def invoke_rebind(self, identifier: Any) -> None:
        entry = self._effects.get(identifier)
        if entry is None:
            return
        for callback in list(entry.on_rebind):
            callback()

    def invoke_get(self, identifier: Any) -> None:
        entry = self._effects.get(identifier)
        if entry is None or not entry.on_get:
            return
        effects = list(entry.on_get)
        entry.on_get = [effect for effect in effects if not effect.once]
        for effect in effects:
            effect.callback()

    def unbind(self, identifier: Any) -> None:
        """Fire every unbind effect of ``identifier`` and forget its entry."""
        entry = self._effects.pop(identifier, None)
        if entry is not None:
            for effect in entry.on_unbind:
                effect.callback()
        self.release_foreign(identifier)

    def unbind_all(self) -> None:
        for identifier in list(self._effects):
            entry = self._effects.pop(identifier)
            for effect in entry.on_unbind:
                effect.callback()
        for identifier in list(self._foreign):
            self.release_foreign(identifier)

    def release(self, identifier: Any, registered_by: Any) -> None:
        """Fire and drop the unbind effects ``registered_by`` put here; the entry stays."""
        entry = self._effects.get(identifier)
        if entry is None:
            return
        released = [effect for effect in entry.on_unbind if effect.registered_by == registered_by]
        if not released:
            return
        entry.on_unbind = [effect for effect in entry.on_unbind if effect.registered_by != registered_by]
        logger.debug(f"[{self._module.id}] releasing {len(released)} unbind effect(s) of {registered_by}")
        for effect in released:
            effect.callback()

    def release_foreign(self, identifier: Any) -> None:
        """Release the unbind effects this module registered in another module."""
        owner = self._foreign.pop(identifier, None)
        if owner is None or owner.is_disposed:
            return
        owner.internal.side_effects.release(identifier, self._module.id)

    def clear(self) -> None:
        self._effects.clear()
        self._foreign.clear()
