"""
Flet platform bridge for the notification engine.

Implements the display and alarm capabilities on top of the
FletLocalNotifications service extension, and routes the extension's
native callbacks (alarm fired, notification cleared) to the coordinators.

Architecture:
- The extension talks to the native plugin; every call returns "ok" or
  "error:<reason>". Anything but "ok" is raised as DisplayFailure or
  WakePrimitiveFailure so the engine can log it and leave the request
  persisted for the next restore pass.
- Native callbacks arrive on the Flet event thread. Handlers parse the id
  from e.data and hand a coroutine function to the injected async scheduler
  (page.run_task), since Flet 0.80 requires a coroutine function.
"""
import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

from wakeful.config import (
    CHANNEL_DESCRIPTION,
    CHANNEL_ID,
    CHANNEL_NAME,
    RESULT_OK,
    WakeMode,
)
from wakeful.errors import DisplayFailure, WakePrimitiveFailure
from wakeful.services.clear_coordinator import ClearCoordinator
from wakeful.services.fire_coordinator import FireCoordinator

logger = logging.getLogger(__name__)

# Errors the Flet service invocation raises when the Flutter side fails
_INVOKE_ERRORS = (RuntimeError, TimeoutError, OSError)


def _is_ok(result: Any) -> bool:
    return str(result).lower() == RESULT_OK


def _parse_notification_id(e: Any) -> Optional[int]:
    """Extract the notification id from an extension event.

    The extension sends e.data as JSON: {"id": 42, ...}.
    """
    data_str = getattr(e, "data", "") or ""
    try:
        data = json.loads(data_str)
        return int(data["id"])
    except (ValueError, KeyError, TypeError) as ex:
        logger.error(f"Unable to parse notification id from event data {data_str!r}: {ex}")
        return None


class FletNotificationPlatform:
    """NotificationDisplay and AlarmPrimitive backed by FletLocalNotifications."""

    def __init__(self, extension: Any) -> None:
        self._ext = extension
        self._fire: Optional[FireCoordinator] = None
        self._clear: Optional[ClearCoordinator] = None
        self._schedule_async: Optional[Callable[..., Any]] = None

    async def render_and_display(self, payload: Dict[str, Any], notification_id: int) -> str:
        try:
            result = await self._ext.show_notification(
                notification_id=notification_id,
                title=str(payload.get("title", "")),
                body=str(payload.get("body", "")),
                payload=json.dumps(payload),
                channel_id=CHANNEL_ID,
                channel_name=CHANNEL_NAME,
                channel_description=CHANNEL_DESCRIPTION,
            )
        except _INVOKE_ERRORS as e:
            raise DisplayFailure(f"show_notification failed for {notification_id}: {e}") from e
        logger.debug(f"show_notification raw result: {result!r}, id={notification_id}")
        if not _is_ok(result):
            raise DisplayFailure(f"show_notification returned {result!r} for {notification_id}")
        return str(result)

    async def clear(self, notification_id: int) -> None:
        try:
            result = await self._ext.clear_notification(notification_id)
        except _INVOKE_ERRORS as e:
            raise DisplayFailure(f"clear_notification failed for {notification_id}: {e}") from e
        if not _is_ok(result):
            raise DisplayFailure(f"clear_notification returned {result!r} for {notification_id}")

    async def arm_wake(
        self,
        notification_id: int,
        instant: int,
        exact: bool,
        idle_capable: bool,
        repeating: Optional[int] = None,
    ) -> None:
        mode = WakeMode.for_wake(exact, idle_capable)
        try:
            result = await self._ext.schedule_alarm(
                notification_id=notification_id,
                at_millis=instant,
                schedule_mode=mode.value,
                repeat_interval_millis=repeating or 0,
            )
        except _INVOKE_ERRORS as e:
            raise WakePrimitiveFailure(f"schedule_alarm failed for {notification_id}: {e}") from e
        logger.debug(
            f"schedule_alarm raw result: {result!r}, id={notification_id}, at={instant}, mode={mode.value}"
        )
        if not _is_ok(result):
            raise WakePrimitiveFailure(f"schedule_alarm returned {result!r} for {notification_id}")

    async def cancel_wake(self, notification_id: int) -> None:
        try:
            result = await self._ext.cancel_alarm(notification_id)
        except _INVOKE_ERRORS as e:
            raise WakePrimitiveFailure(f"cancel_alarm failed for {notification_id}: {e}") from e
        if not _is_ok(result):
            raise WakePrimitiveFailure(f"cancel_alarm returned {result!r} for {notification_id}")

    # ── Native callbacks ───────────────────────────────────────────────

    def attach(
        self,
        fire: FireCoordinator,
        clear: ClearCoordinator,
        async_scheduler: Callable[..., Any],
    ) -> None:
        """Route extension callbacks to the coordinators.

        Args:
            fire: Coordinator handling wake firings
            clear: Coordinator handling user dismissals
            async_scheduler: Function to schedule async work (page.run_task)
        """
        self._fire = fire
        self._clear = clear
        self._schedule_async = async_scheduler
        self._ext.on_alarm_fired = self._on_alarm_fired
        self._ext.on_notification_cleared = self._on_notification_cleared

    def _on_alarm_fired(self, e: Any) -> None:
        notification_id = _parse_notification_id(e)
        if notification_id is None or self._fire is None or self._schedule_async is None:
            return

        async def fire_wrapper() -> None:
            await self._fire.on_alarm_fired(notification_id)
        self._schedule_async(fire_wrapper)

    def _on_notification_cleared(self, e: Any) -> None:
        notification_id = _parse_notification_id(e)
        if notification_id is None or self._clear is None or self._schedule_async is None:
            return

        async def clear_wrapper() -> None:
            await self._clear.on_notification_cleared(notification_id)
        self._schedule_async(clear_wrapper)


def create_flet_platform() -> FletNotificationPlatform:
    """Instantiate the Flet extension and wrap it.

    Must be called while a Flet page is running; the service registers
    itself with the page on construction.
    """
    from flet_local_notifications import FletLocalNotifications

    return FletNotificationPlatform(FletLocalNotifications())


class CallbackHostBridge:
    """HostBridge that forwards cleared payloads to a sync or async callable."""

    def __init__(self, on_cleared: Optional[Callable[[Dict[str, Any]], Any]] = None) -> None:
        self._on_cleared = on_cleared

    async def notify_cleared(self, payload: Dict[str, Any]) -> None:
        if self._on_cleared is None:
            return
        result = self._on_cleared(payload)
        if asyncio.iscoroutine(result):
            await result
