"""
Shared test fixtures and helpers for the xinject test suite.
"""

import pytest
from typing import Annotated, Any, List

from xinject.di.decorators import Inject
from xinject.modules.events import DefinitionEvent
from xinject.modules.runtime import ModuleRuntime, reset_runtime


# ============================================================================
# Runtime
# ============================================================================


@pytest.fixture(autouse=True)
def runtime() -> ModuleRuntime:
    """Fresh default runtime (app module + global register) for every test."""
    return reset_runtime()


# ============================================================================
# Services
# ============================================================================


class Engine:
    pass


class Car:
    def __init__(self, engine: Engine):
        self.engine = engine


class Garage:
    def __init__(self, car: Car, name: Annotated[str, Inject("GARAGE_NAME", optional=True)] = "default"):
        self.car = car
        self.name = name


# ============================================================================
# Event Helpers
# ============================================================================


class EventRecorder:
    """Collects the definition events of a module."""

    def __init__(self, module: Any):
        self.events: List[DefinitionEvent] = []
        self.unsubscribe = module.update.subscribe(self.events.append)

    @property
    def types(self) -> list:
        return [event.type for event in self.events]

    def of_type(self, event_type) -> List[DefinitionEvent]:
        return [event for event in self.events if event.type == event_type]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def record_events():
    return EventRecorder
