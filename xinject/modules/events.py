"""
Definition events emitted by a module when its graph changes.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum


class DefinitionEventType(str, Enum):
    """Kinds of definition changes."""

    NOOP = "noop"
    IMPORT = "import"
    PROVIDER = "provider"
    EXPORT = "export"
    EXPORT_MODULE = "export_module"
    EXPORT_PROVIDER = "export_provider"
    IMPORT_REMOVED = "import_removed"
    PROVIDER_REMOVED = "provider_removed"
    EXPORT_REMOVED = "export_removed"
    EXPORT_MODULE_REMOVED = "export_module_removed"
    EXPORT_PROVIDER_REMOVED = "export_provider_removed"


# Only these bubble from an imported module into its importer.
EXPORT_EVENT_TYPES = frozenset({
    DefinitionEventType.EXPORT,
    DefinitionEventType.EXPORT_REMOVED,
    DefinitionEventType.EXPORT_MODULE,
    DefinitionEventType.EXPORT_MODULE_REMOVED,
    DefinitionEventType.EXPORT_PROVIDER,
    DefinitionEventType.EXPORT_PROVIDER_REMOVED,
})


@dataclass(frozen=True)
class DefinitionEvent:
    """A definition change: the event type and the module or provider involved."""
    type: DefinitionEventType
    change: Any = None
