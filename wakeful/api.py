"""Programmatic API facade for the notification engine.

Exposes the operations a host application calls, taking the same option
dictionaries the native plugin accepts (id, atTime, repeatInterval,
alertWhileIdle, plus free-form payload keys such as title and body).

Usage:
    from wakeful.core import bootstrap
    from wakeful.api import LocalNotificationsAPI

    svc = await bootstrap(display=platform, alarms=platform, host=bridge)
    api = LocalNotificationsAPI(svc)

    await api.schedule({"id": 1, "title": "Stand up", "atTime": at, "repeatInterval": DAY})
    await api.device_restored()
"""
from typing import Any, Dict, List

from wakeful.core import ServiceContainer
from wakeful.errors import MalformedRequest
from wakeful.models.entities import NotificationRequest, ReconcilePlan, RestoreReport


class LocalNotificationsAPI:
    """High-level facade over the engine and coordinators.

    Each method performs a complete operation: persistence, reconciliation
    and event emission.
    """

    def __init__(self, services: ServiceContainer) -> None:
        self._svc = services

    async def schedule(self, options: Dict[str, Any]) -> ReconcilePlan:
        """Schedule one notification from host options.

        Raises:
            MalformedRequest: If the options cannot be parsed
        """
        request = NotificationRequest.from_options(options)
        return await self._svc.engine.schedule(request)

    async def schedule_many(self, options_list: List[Dict[str, Any]]) -> List[ReconcilePlan]:
        """Schedule several notifications; all options are validated first.

        Raises:
            MalformedRequest: If any entry cannot be parsed (nothing is scheduled)
        """
        requests = [NotificationRequest.from_options(options) for options in options_list]
        ids = [request.id for request in requests]
        if len(set(ids)) != len(ids):
            raise MalformedRequest(f"Duplicate notification ids in batch: {ids}")
        return [await self._svc.engine.schedule(request) for request in requests]

    async def cancel(self, notification_id: int) -> bool:
        return await self._svc.engine.cancel(notification_id)

    async def cancel_all(self) -> int:
        return await self._svc.engine.cancel_all()

    async def get_scheduled_ids(self) -> List[int]:
        return await self._svc.engine.get_scheduled_ids()

    async def alarm_fired(self, notification_id: int) -> bool:
        return await self._svc.fire.on_alarm_fired(notification_id)

    async def notification_cleared(self, notification_id: int) -> bool:
        return await self._svc.clear.on_notification_cleared(notification_id)

    async def device_restored(self) -> RestoreReport:
        return await self._svc.restore.restore()
