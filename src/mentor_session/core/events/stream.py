"""Subscription stream for session lifecycle events."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, List, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by ``subscribe``; call ``unsubscribe`` on teardown."""
    
    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._active = True
    
    @property
    def active(self) -> bool:
        return self._active
    
    def unsubscribe(self) -> None:
        """Stop delivery to this subscriber. Safe to call more than once."""
        if self._active:
            self._active = False
            self._cancel()


class EventStream(Generic[T]):
    """Single-item, in-order delivery to every current subscriber.
    
    Listeners may be plain callables or coroutine functions. A failing
    listener is logged and does not stop delivery to the others.
    """
    
    def __init__(self, name: str = "events"):
        self.name = name
        self._listeners: List[Listener] = []
    
    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        
        def cancel() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        
        return Subscription(cancel)
    
    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)
    
    async def publish(self, event: T) -> None:
        # Snapshot so listeners may unsubscribe during delivery
        for listener in list(self._listeners):
            try:
                result: Any = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"{self.name} listener failed on {type(event).__name__}: {e}")
