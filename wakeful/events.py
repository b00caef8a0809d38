from enum import Enum, auto
from typing import Callable, Dict, Any, Optional
import inspect
import logging
import threading
import uuid
import weakref

logger = logging.getLogger(__name__)


class EngineEvent(Enum):
    """Notification lifecycle events emitted by the engine and coordinators."""
    NOTIFICATION_SCHEDULED = auto()
    NOTIFICATION_DELIVERED = auto()
    NOTIFICATION_EXPIRED = auto()
    NOTIFICATION_FIRED = auto()
    NOTIFICATION_CLEARED = auto()
    NOTIFICATION_REMOVED = auto()
    WAKE_ARMED = auto()
    RESTORE_COMPLETED = auto()


class Subscription:
    """Handle for one subscription; call unsubscribe() when done.

    Holds the callback strongly when it was registered with strong=True,
    so the Subscription must be kept alive for as long as the callback is.
    """

    def __init__(
        self,
        bus: "EventBus",
        event: EngineEvent,
        subscription_id: str,
        strong_ref: Optional[Callable[[Any], None]] = None,
    ):
        self._bus = bus
        self._event = event
        self._subscription_id = subscription_id
        self._active = True
        self._strong_ref = strong_ref

    @property
    def id(self) -> str:
        return self._subscription_id

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._bus._unsubscribe_by_id(self._event, self._subscription_id)
            self._active = False
            self._strong_ref = None


def _make_ref(callback: Callable[[Any], None], on_dead: Callable[[Any], None]) -> Callable[[], Any]:
    """Weak reference to a callback; builtins that cannot be weakly referenced are held strongly."""
    if inspect.ismethod(callback):
        return weakref.WeakMethod(callback, on_dead)
    try:
        return weakref.ref(callback, on_dead)
    except TypeError:
        return lambda: callback


class EventBus:
    """Singleton event bus used to observe the notification lifecycle.

    Callbacks are held by weak reference so a host component that goes away
    without unsubscribing does not leak. Lambdas and closures are held
    strongly by their Subscription, since nothing else would keep them alive.
    Handler errors are logged and never propagate into the engine.
    """
    _instance: Optional["EventBus"] = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "EventBus":
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._listeners: Dict[EngineEvent, Dict[str, Callable[[], Any]]] = {}
        return cls._instance

    def subscribe(
        self,
        event: EngineEvent,
        callback: Callable[[Any], None],
        strong: bool = False,
    ) -> Subscription:
        """Subscribe a callback to an event. Returns a Subscription for cleanup.

        Example:
            sub = event_bus.subscribe(EngineEvent.NOTIFICATION_FIRED, self.on_fired)
            ...
            sub.unsubscribe()
        """
        listeners = self._listeners.setdefault(event, {})
        subscription_id = str(uuid.uuid4())

        is_lambda = getattr(callback, "__name__", "") == "<lambda>"
        is_closure = not inspect.ismethod(callback) and getattr(callback, "__closure__", None) is not None
        strong = strong or is_lambda or is_closure

        def on_dead(_ref) -> None:
            logger.debug(f"EventBus: subscriber to {event.name} was garbage collected")
            self._unsubscribe_by_id(event, subscription_id)

        listeners[subscription_id] = _make_ref(callback, on_dead)
        return Subscription(self, event, subscription_id, strong_ref=callback if strong else None)

    def _unsubscribe_by_id(self, event: EngineEvent, subscription_id: str) -> None:
        self._listeners.get(event, {}).pop(subscription_id, None)

    def emit(self, event: EngineEvent, data: Any = None) -> None:
        """Emit an event to all live subscribers."""
        for sub_id, ref in list(self._listeners.get(event, {}).items()):
            callback = ref()
            if callback is None:
                self._unsubscribe_by_id(event, sub_id)
                continue
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Error in event handler for {event.name}: {e}")

    def clear(self) -> None:
        """Clear all event subscriptions. Used primarily for testing."""
        self._listeners.clear()


event_bus = EventBus()
