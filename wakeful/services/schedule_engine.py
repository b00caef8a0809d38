"""
Scheduling and reconciliation engine.

Given a notification request, the current time and the persisted
fired-history, decides whether to deliver immediately, arm a future wake,
expire the request, or recompute an occurrence missed while the device was
off, then drives the store, display and alarm capabilities accordingly.

Decision order (see plan_reconcile):
1. Missed-while-idle: an alert-while-idle request whose trigger time has
   passed without a recorded firing is delivered now. Repeating requests
   continue to step 4 so the next occurrence is still armed.
2. Immediate: at_time == 0 is delivered now and needs no wake.
3. Expiry: a non-repeating request past its trigger time is removed.
4. Arm: the platform has no exact + idle-capable + repeating alarm, so
   repeating alert-while-idle requests get a one-shot exact wake at the next
   computed occurrence, re-armed on every clear. Other requests use the
   matching native wake.

The engine is purely reactive: it owns no timer or background task.
"""
import logging
from datetime import tzinfo
from typing import Any, Dict, List, Mapping, Optional

from wakeful.database import DatabaseError, NotificationStore
from wakeful.errors import DisplayFailure, WakePrimitiveFailure
from wakeful.events import EngineEvent, event_bus
from wakeful.models.entities import NotificationRequest, ReconcilePlan, WakeRequest
from wakeful.services.capabilities import AlarmPrimitive, Clock, NotificationDisplay, SystemClock
from wakeful.services.interval_math import next_idle_trigger

logger = logging.getLogger(__name__)

# Failures confined to the request being reconciled. OverflowError and
# ValueError come from calendar arithmetic (date out of range, unknown zone).
RECONCILE_ERRORS = (
    WakePrimitiveFailure,
    DisplayFailure,
    DatabaseError,
    OverflowError,
    ValueError,
)


def _last_fired(fired_history: Optional[Mapping[int, int]], notification_id: int) -> int:
    """Last fired timestamp from the history, -1 if unknown."""
    if fired_history is None:
        return -1
    return fired_history.get(notification_id, -1)


def _missed_while_idle(
    request: NotificationRequest,
    now: int,
    fired_history: Optional[Mapping[int, int]],
) -> bool:
    if request.at_time > now:
        return False
    last_fired = _last_fired(fired_history, request.id)
    if last_fired < 0:
        logger.debug(f"No alarm fired info found for notification {request.id}")
    if request.is_repeating:
        return last_fired < 0 or last_fired + request.repeat_interval < now
    return last_fired < 0


def _wake_for(request: NotificationRequest, now: int, zone: Optional[tzinfo]) -> WakeRequest:
    if request.is_repeating:
        if request.alert_while_idle:
            instant = next_idle_trigger(request.at_time, request.repeat_interval, now, zone)
            return WakeRequest(instant=instant, exact=True, idle_capable=True)
        return WakeRequest(
            instant=request.at_time,
            exact=False,
            idle_capable=False,
            repeat_interval=request.repeat_interval,
        )
    if request.alert_while_idle:
        return WakeRequest(instant=request.at_time, exact=True, idle_capable=True)
    return WakeRequest(instant=request.at_time, exact=False, idle_capable=False)


def plan_reconcile(
    request: NotificationRequest,
    now: int,
    fired_history: Optional[Mapping[int, int]] = None,
    skip_immediate: bool = False,
    zone: Optional[tzinfo] = None,
) -> ReconcilePlan:
    """Decide what to do with a request at time now. Pure; performs no I/O.

    Args:
        request: The persisted request
        now: Current time, epoch ms
        fired_history: Last fired timestamps by id; None means no history
        skip_immediate: Do not deliver anything now (used when re-arming after a clear)
        zone: Zone for calendar-day interval arithmetic

    Returns:
        ReconcilePlan, possibly combining delivery with a wake
    """
    plan = ReconcilePlan()

    if request.alert_while_idle and not skip_immediate and not request.is_immediate:
        if _missed_while_idle(request, now, fired_history):
            logger.debug(f"Notification {request.id} was missed while idle, delivering now")
            plan.deliver_now = True

    if request.is_immediate and not skip_immediate:
        plan.deliver_now = True
        return plan

    if not request.is_repeating and now > request.at_time:
        plan.expire = True
        return plan

    plan.wake = _wake_for(request, now, zone)
    return plan


class ScheduleEngine:
    """Applies reconciliation decisions to the store and platform capabilities.

    All collaborators are injected; the engine keeps no state of its own
    between calls.
    """

    def __init__(
        self,
        store: NotificationStore,
        display: NotificationDisplay,
        alarms: AlarmPrimitive,
        clock: Optional[Clock] = None,
        zone: Optional[tzinfo] = None,
    ) -> None:
        self._store = store
        self._display = display
        self._alarms = alarms
        self._clock = clock or SystemClock()
        self._zone = zone

    @property
    def store(self) -> NotificationStore:
        return self._store

    @property
    def clock(self) -> Clock:
        return self._clock

    async def schedule(self, request: NotificationRequest) -> ReconcilePlan:
        """Persist a new (or replacement) request and reconcile it."""
        await self._store.save(request)
        event_bus.emit(EngineEvent.NOTIFICATION_SCHEDULED, {
            "notification_id": request.id,
            "at_time": request.at_time,
            "repeat_interval": request.repeat_interval,
        })
        return await self.reconcile(request)

    async def reconcile(
        self,
        request: NotificationRequest,
        now: Optional[int] = None,
        fired_history: Optional[Mapping[int, int]] = None,
        skip_immediate: bool = False,
    ) -> ReconcilePlan:
        """Compute the plan for a request and apply it.

        A display failure does not stop the wake from being armed; it is
        raised once the remaining steps are done.

        Raises:
            DisplayFailure: If immediate delivery failed
            WakePrimitiveFailure: If the platform refused to arm the wake; chained
                to the DisplayFailure when delivery failed as well
            StoreUnavailable: If the store could not be updated
            OverflowError: If the next occurrence is outside the datetime range
        """
        if now is None:
            now = self._clock.now()
        plan = plan_reconcile(request, now, fired_history, skip_immediate, self._zone)
        logger.debug(
            f"Reconcile {request.id}: at_time={request.at_time}, interval={request.repeat_interval}, "
            f"idle={request.alert_while_idle}, skip_immediate={skip_immediate} -> {plan}"
        )

        display_error: Optional[DisplayFailure] = None
        if plan.deliver_now:
            try:
                await self.deliver(request, now)
            except DisplayFailure as e:
                display_error = e

        if plan.expire:
            logger.info(f"Notification {request.id} has expired and is removed")
            await self._store.remove(request.id)
            event_bus.emit(EngineEvent.NOTIFICATION_EXPIRED, {"notification_id": request.id})
        elif plan.wake is not None:
            try:
                await self._arm(request.id, plan.wake)
            except WakePrimitiveFailure as e:
                if display_error is not None:
                    raise e from display_error
                raise

        if display_error is not None:
            raise display_error
        return plan

    async def deliver(self, request: NotificationRequest, now: int) -> Any:
        """Record the firing, then show the notification.

        The fired record is written first so a failed display is not
        re-delivered by the next restore pass.

        Returns:
            The display handle from the display capability
        """
        await self._store.register_fired(request.id, now)
        try:
            handle = await self._display.render_and_display(request.payload, request.id)
        except DisplayFailure as e:
            logger.error(f"Notification {request.id} could not be displayed: {e}")
            raise
        event_bus.emit(EngineEvent.NOTIFICATION_DELIVERED, {
            "notification_id": request.id,
            "fired_at": now,
        })
        return handle

    async def _arm(self, notification_id: int, wake: WakeRequest) -> None:
        try:
            await self._alarms.arm_wake(
                notification_id,
                wake.instant,
                exact=wake.exact,
                idle_capable=wake.idle_capable,
                repeating=wake.repeat_interval,
            )
        except WakePrimitiveFailure as e:
            logger.error(f"Notification {notification_id} could not be scheduled: {e}")
            raise
        logger.info(
            f"Alarm {notification_id} armed at {wake.instant} "
            f"(exact={wake.exact}, idle={wake.idle_capable}, repeating={wake.repeat_interval})"
        )
        event_bus.emit(EngineEvent.WAKE_ARMED, {
            "notification_id": notification_id,
            "instant": wake.instant,
            "exact": wake.exact,
            "idle_capable": wake.idle_capable,
            "repeating": wake.repeat_interval,
        })

    async def cancel(self, notification_id: int) -> bool:
        """Remove a request, cancel its wake and clear it from the tray.

        The request is removed first, so a wake that could not be cancelled
        fires into a missing request and is ignored.

        Returns:
            True if a request with this id was persisted
        """
        existed = await self._store.get(notification_id) is not None
        await self._store.remove(notification_id)
        await self._alarms.cancel_wake(notification_id)
        await self._display.clear(notification_id)
        event_bus.emit(EngineEvent.NOTIFICATION_REMOVED, {"notification_id": notification_id})
        return existed

    async def cancel_all(self) -> int:
        """Cancel every persisted request.

        Wake and tray failures for one id are logged and do not stop the others.

        Returns:
            Number of requests removed
        """
        ids: List[int] = await self._store.get_ids()
        for notification_id in ids:
            try:
                await self._alarms.cancel_wake(notification_id)
                await self._display.clear(notification_id)
            except (WakePrimitiveFailure, DisplayFailure) as e:
                logger.error(f"Error cancelling notification {notification_id}: {e}")
        removed = await self._store.remove_all()
        for notification_id in ids:
            event_bus.emit(EngineEvent.NOTIFICATION_REMOVED, {"notification_id": notification_id})
        return removed

    async def get_scheduled_ids(self) -> List[int]:
        return await self._store.get_ids()

    async def load_fired_history(self) -> Dict[int, int]:
        return await self._store.fired_snapshot()
