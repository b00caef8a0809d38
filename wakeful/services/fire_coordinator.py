import logging
from typing import Optional

from wakeful.events import EngineEvent, event_bus
from wakeful.services.schedule_engine import ScheduleEngine

logger = logging.getLogger(__name__)


class FireCoordinator:
    """Handles a wake alarm firing for a notification id.

    Records the firing and delivers the notification. The request is not
    removed or rescheduled here: a native repeating wake keeps repeating on
    its own, and an idle-capable one-shot is re-armed when the user clears
    the notification. Keeping the request persisted also lets a restore
    after reboot recover it.
    """

    def __init__(self, engine: ScheduleEngine) -> None:
        self._engine = engine

    async def on_alarm_fired(self, notification_id: int, now: Optional[int] = None) -> bool:
        """Deliver the notification whose wake just fired.

        Returns:
            False if the request no longer exists (removed concurrently)

        Raises:
            DisplayFailure: If display failed; the fired record is still written
        """
        request = await self._engine.store.get(notification_id)
        if request is None:
            logger.warning(f"Alarm {notification_id} fired but no notification is stored, ignoring")
            return False

        if now is None:
            now = self._engine.clock.now()
        event_bus.emit(EngineEvent.NOTIFICATION_FIRED, {"notification_id": notification_id, "fired_at": now})
        await self._engine.deliver(request, now)
        return True
