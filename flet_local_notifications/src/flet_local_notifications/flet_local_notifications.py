import flet as ft
from typing import Optional


@ft.control("flet_local_notifications")
class FletLocalNotifications(ft.Service):
    """Flet service bridging to the native local notifications plugin.

    Every method returns the raw result string from the Flutter side:
    "ok" on success, "error:<reason>" otherwise.
    """
    on_alarm_fired: Optional[ft.ControlEventHandler["FletLocalNotifications"]] = None
    on_notification_cleared: Optional[ft.ControlEventHandler["FletLocalNotifications"]] = None

    async def show_notification(
        self,
        notification_id: int,
        title: str,
        body: str,
        payload: str = "",
        channel_id: str = "",
        channel_name: str = "",
        channel_description: str = "",
    ) -> str:
        result = await self._invoke_method(
            method_name="show_notification",
            arguments={
                "id": notification_id,
                "title": title,
                "body": body,
                "payload": payload,
                "channel_id": channel_id,
                "channel_name": channel_name,
                "channel_description": channel_description,
            },
        )
        return str(result) if result is not None else "error:no_response"

    async def schedule_alarm(
        self,
        notification_id: int,
        at_millis: int,
        schedule_mode: str,
        repeat_interval_millis: int = 0,
    ) -> str:
        result = await self._invoke_method(
            method_name="schedule_alarm",
            arguments={
                "id": notification_id,
                "at_millis": at_millis,
                "schedule_mode": schedule_mode,
                "repeat_interval_millis": repeat_interval_millis,
            },
        )
        return str(result) if result is not None else "error:no_response"

    async def cancel_alarm(self, notification_id: int) -> str:
        result = await self._invoke_method(
            method_name="cancel_alarm",
            arguments={"id": notification_id},
        )
        return str(result) if result is not None else "error:no_response"

    async def clear_notification(self, notification_id: int) -> str:
        result = await self._invoke_method(
            method_name="clear_notification",
            arguments={"id": notification_id},
        )
        return str(result) if result is not None else "error:no_response"
