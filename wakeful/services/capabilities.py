"""Interfaces of the collaborators the engine drives.

The engine never talks to the OS directly. Displaying a notification,
arming a wake alarm and informing the host application are capabilities
injected at bootstrap, so tests can substitute recording fakes and hosts
can plug in their own platform bridge (see services/flet_platform.py).
"""
import time
from typing import Any, Dict, Optional, Protocol


class NotificationDisplay(Protocol):
    """Builds and shows the user-visible notification."""

    async def render_and_display(self, payload: Dict[str, Any], notification_id: int) -> Any:
        """Show the notification and return a platform display handle.

        Raises:
            DisplayFailure: If rendering or posting the notification failed
        """
        ...

    async def clear(self, notification_id: int) -> None:
        """Remove a displayed notification from the tray, if shown."""
        ...


class AlarmPrimitive(Protocol):
    """Registers future callbacks with the OS timer service."""

    async def arm_wake(
        self,
        notification_id: int,
        instant: int,
        exact: bool,
        idle_capable: bool,
        repeating: Optional[int] = None,
    ) -> None:
        """Register (or replace) the wake for notification_id at instant.

        repeating is the period in ms for a platform-native repeating wake.

        Raises:
            WakePrimitiveFailure: If the platform refused the registration
        """
        ...

    async def cancel_wake(self, notification_id: int) -> None:
        ...


class HostBridge(Protocol):
    """Callbacks into the host application layer."""

    async def notify_cleared(self, payload: Dict[str, Any]) -> None:
        ...


class Clock(Protocol):
    def now(self) -> int:
        """Current wall-clock time in epoch milliseconds."""
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> int:
        return time.time_ns() // 1_000_000
