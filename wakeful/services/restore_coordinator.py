import logging
from typing import Optional

from wakeful.errors import MalformedRequest
from wakeful.events import EngineEvent, event_bus
from wakeful.models.entities import NotificationRequest, RestoreReport
from wakeful.services.schedule_engine import RECONCILE_ERRORS, ScheduleEngine

logger = logging.getLogger(__name__)


class RestoreCoordinator:
    """Replays every persisted request through the engine after downtime.

    Called when the device boots or the process comes back. Alarms do not
    survive a reboot, so each request is re-armed, and alert-while-idle
    occurrences missed while the device was off are delivered now.
    """

    def __init__(self, engine: ScheduleEngine) -> None:
        self._engine = engine

    async def restore(self, now: Optional[int] = None) -> RestoreReport:
        """Reconcile all persisted requests.

        The fired history is loaded once up front. A request that cannot be
        parsed or reconciled is logged and counted; the others still run.

        Raises:
            StoreUnavailable: If the snapshot itself cannot be loaded
        """
        store = self._engine.store
        fired_history = await store.fired_snapshot()
        raw_requests = await store.get_all_raw()
        if now is None:
            now = self._engine.clock.now()

        report = RestoreReport()
        for notification_id, data in raw_requests.items():
            try:
                request = NotificationRequest.from_json(data)
                if request.id != notification_id:
                    raise MalformedRequest(f"serialized id {request.id} does not match key")
            except MalformedRequest as e:
                logger.error(f"Notification {notification_id} could not be processed: {e}")
                report.malformed.append(notification_id)
                continue

            logger.info(f"Process previously scheduled notification {notification_id}")
            try:
                await self._engine.reconcile(request, now, fired_history, skip_immediate=False)
            except RECONCILE_ERRORS as e:
                logger.error(f"Notification {notification_id} could not be restored: {e}")
                report.failed.append(notification_id)
                continue
            report.restored.append(notification_id)

        logger.info(
            f"Restore complete: {len(report.restored)} restored, "
            f"{len(report.malformed)} malformed, {len(report.failed)} failed"
        )
        event_bus.emit(EngineEvent.RESTORE_COMPLETED, report)
        return report
