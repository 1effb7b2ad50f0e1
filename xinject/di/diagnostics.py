"""
DI Diagnostics - Observability and event tracking for DI containers.
"""

import time
from typing import Any, Dict, List, Optional, Protocol
from enum import Enum
import dataclasses
import logging

logger = logging.getLogger("xinject.di.diagnostics")


class DIEventType(Enum):
    """Types of DI events."""
    REGISTRATION = "registration"
    UNREGISTRATION = "unregistration"
    RESOLUTION_SUCCESS = "resolution_success"
    RESOLUTION_FAILURE = "resolution_failure"
    SNAPSHOT = "snapshot"
    RESTORE = "restore"


@dataclasses.dataclass
class DIEvent:
    """A diagnostic event in the DI system."""
    type: DIEventType
    timestamp: float = dataclasses.field(default_factory=time.time)
    token: Optional[Any] = None
    container: Optional[str] = None
    provider_name: Optional[str] = None
    duration: Optional[float] = None
    error: Optional[Exception] = None
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)


class DiagnosticListener(Protocol):
    """Interface for DI diagnostic listeners."""
    def on_event(self, event: DIEvent) -> None:
        """Called when a DI event occurs."""
        ...


class ConsoleDiagnosticListener:
    """Simple diagnostic listener that logs to console/logging."""
    def __init__(self, log_level: int = logging.DEBUG):
        self.log_level = log_level

    def on_event(self, event: DIEvent) -> None:
        if event.type == DIEventType.REGISTRATION:
            logger.log(self.log_level, f"[{event.container}] Bound '{event.provider_name}' for token={event.token}")
        elif event.type == DIEventType.UNREGISTRATION:
            logger.log(self.log_level, f"[{event.container}] Unbound token={event.token}")
        elif event.type == DIEventType.RESOLUTION_SUCCESS:
            logger.log(self.log_level, f"[{event.container}] Resolved token={event.token} in {event.duration:.6f}s")
        elif event.type == DIEventType.RESOLUTION_FAILURE:
            logger.log(logging.ERROR, f"[{event.container}] Failed to resolve token={event.token}: {event.error}")
        else:
            logger.log(self.log_level, f"[{event.container}] {event.type.value}")


class RecordingDiagnosticListener:
    """Listener keeping every event in memory, handy in tests."""
    def __init__(self):
        self.events: List[DIEvent] = []

    def on_event(self, event: DIEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: DIEventType) -> List[DIEvent]:
        return [e for e in self.events if e.type == event_type]


class DIDiagnostics:
    """Coordinator for DI diagnostic listeners."""
    def __init__(self):
        self._listeners: List[DiagnosticListener] = []

    @property
    def enabled(self) -> bool:
        return bool(self._listeners)

    def add_listener(self, listener: DiagnosticListener) -> None:
        """Add a diagnostic listener."""
        self._listeners.append(listener)

    def emit(self, event_type: DIEventType, **kwargs) -> None:
        """Emit a diagnostic event to all listeners."""
        if not self._listeners:
            return
        event = DIEvent(type=event_type, **kwargs)
        for listener in self._listeners:
            try:
                listener.on_event(event)
            except Exception as e:
                # Diagnostics should never crash the main application
                logger.error(f"Diagnostic listener error: {e}")

    def measure(self, **kwargs):
        """Context manager to measure the duration of a resolution."""
        return _DiagnosticMeasure(self, **kwargs)


class _DiagnosticMeasure:
    def __init__(self, diagnostics: DIDiagnostics, **kwargs):
        self.diagnostics = diagnostics
        self.kwargs = kwargs
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.diagnostics.enabled:
            return False
        duration = time.perf_counter() - self.start_time
        if exc_type:
            self.diagnostics.emit(
                DIEventType.RESOLUTION_FAILURE,
                duration=duration,
                error=exc_val,
                **self.kwargs
            )
        else:
            self.diagnostics.emit(
                DIEventType.RESOLUTION_SUCCESS,
                duration=duration,
                **self.kwargs
            )
        return False
