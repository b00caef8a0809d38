import logging
from typing import Optional

from wakeful.events import EngineEvent, event_bus
from wakeful.services.capabilities import HostBridge
from wakeful.services.schedule_engine import RECONCILE_ERRORS, ScheduleEngine

logger = logging.getLogger(__name__)


class ClearCoordinator:
    """Handles the user dismissing a delivered notification.

    - One-shot: the notification is retired and removed from the store.
    - Repeating, alert-while-idle: the next occurrence is armed manually,
      since the platform cannot repeat exact idle-capable wakes.
    - Repeating, not idle-capable: nothing to do, the native repeating
      wake is still active.

    The host is told about the clear in every case where the request exists.
    """

    def __init__(self, engine: ScheduleEngine, host: HostBridge) -> None:
        self._engine = engine
        self._host = host

    async def on_notification_cleared(self, notification_id: int, now: Optional[int] = None) -> bool:
        """Returns False if no request is stored for notification_id.

        Raises:
            WakePrimitiveFailure, OverflowError: If re-arming a repeating notification failed,
                after the host was notified
        """
        request = await self._engine.store.get(notification_id)
        if request is None:
            logger.info(f"Notification {notification_id} cleared but not stored, ignoring")
            return False

        rearm_error: Optional[Exception] = None
        if not request.is_repeating:
            logger.info(f"Notification {notification_id} cleared, no repeat, removing from store")
            await self._engine.store.remove(notification_id)
            event_bus.emit(EngineEvent.NOTIFICATION_REMOVED, {"notification_id": notification_id})
        elif request.alert_while_idle:
            logger.info(f"Notification {notification_id} cleared, re-arming next idle occurrence")
            try:
                await self._engine.reconcile(request, now, None, skip_immediate=True)
            except RECONCILE_ERRORS as e:
                logger.error(f"Notification {notification_id} could not be re-armed: {e}")
                rearm_error = e
        else:
            logger.debug(f"Notification {notification_id} cleared, native repeating wake still active")

        event_bus.emit(EngineEvent.NOTIFICATION_CLEARED, {
            "notification_id": notification_id,
            "payload": request.payload,
        })
        await self._host.notify_cleared(request.payload)

        if rearm_error is not None:
            raise rearm_error
        return True
