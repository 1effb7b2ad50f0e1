"""
Errors raised by the DI container.

Messages end with a short list of likely fixes.
"""

from typing import Any, List, Optional


def _with_fixes(message: str, fixes: List[str]) -> str:
    return message + "\n\nSuggested fixes:" + "".join(f"\n  - {fix}" for fix in fixes)


class DIError(Exception):
    """Base exception for DI errors."""


class ProviderNotFoundError(DIError):
    """Nothing in the container chain is bound to the requested token."""

    def __init__(
        self,
        token: str,
        candidates: Optional[List[str]] = None,
        requested_by: Optional[str] = None,
        container: Optional[str] = None,
    ):
        self.token = token
        self.candidates = candidates or []
        self.requested_by = requested_by
        self.container = container

        where = f" in container '{container}'" if container else ""
        lines = [f"No provider found for token={token}{where}"]
        if requested_by:
            lines.append(f"Requested by: {requested_by}")
        if self.candidates:
            lines.append("Similar tokens: " + ", ".join(self.candidates))

        super().__init__(_with_fixes("\n".join(lines), [
            f"Bind a provider for {token}",
            "Import a module exporting it",
        ]))


class DependencyCycleError(DIError):
    """A provider depends on itself, directly or through other providers."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(_with_fixes("Dependency cycle: " + " -> ".join(cycle), [
            "Break the cycle with a factory provider resolving one side lazily",
            "Move the shared dependency into its own provider",
        ]))


class AmbiguousProviderError(DIError):
    """Several bindings match a token and a single value was requested."""

    def __init__(self, token: str, providers: List[Any]):
        self.token = token
        self.providers = providers
        names = ", ".join(p.meta.qualname or p.meta.name for p in providers)
        super().__init__(_with_fixes(f"Ambiguous provider for token={token}: {names}", [
            "Add a `when` predicate to tell the bindings apart",
            "Request every binding with get(..., as_list=True)",
        ]))
