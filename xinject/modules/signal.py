"""
Single-value synchronous event bus.
"""

from typing import Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")

SignalCallback = Callable[[T], None]


class Signal(Generic[T]):
    """
    Holds the last emitted value and fans every new value out to subscribers.

    Delivery is synchronous and in subscription order. Subscribing the same
    callable twice keeps a single registration.
    """

    __slots__ = ("_value", "_subscribers")

    def __init__(self, initial_value: T):
        self._value = initial_value
        # dict keeps insertion order and uniqueness
        self._subscribers: Optional[Dict[SignalCallback, None]] = {}

    @property
    def is_disposed(self) -> bool:
        return self._subscribers is None

    def emit(self, value: T) -> None:
        """Store ``value`` and notify the current subscribers."""
        self._value = value
        if not self._subscribers:
            return
        for callback in list(self._subscribers):
            callback(value)

    def get(self) -> T:
        """Last emitted value."""
        return self._value

    def subscribe(self, callback: SignalCallback, invoke_immediately: bool = False) -> Callable[[], None]:
        """
        Subscribe to emitted values.

        Args:
            callback: Invoked with every new value
            invoke_immediately: Also invoke it right away with the current value

        Returns:
            Callable removing the subscription
        """
        self._subscribers[callback] = None

        if invoke_immediately:
            callback(self._value)

        def unsubscribe() -> None:
            if self._subscribers is not None:
                self._subscribers.pop(callback, None)

        return unsubscribe

    def dispose(self) -> None:
        """Release subscribers and the stored value."""
        self._subscribers = None
        self._value = None
