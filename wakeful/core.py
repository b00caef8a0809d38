"""Bootstrap for the notification engine.

Wires the store, engine and coordinators together from injected platform
capabilities. Suitable for a Flet host, scripts and tests.

Usage:
    from wakeful.core import bootstrap, shutdown

    svc = await bootstrap(display=platform, alarms=platform, host=bridge)
    await svc.restore.restore()
    ...
    await shutdown(svc)
"""
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Optional, Union

from wakeful.config import configure_logging
from wakeful.database import NotificationStore
from wakeful.services.capabilities import AlarmPrimitive, Clock, HostBridge, NotificationDisplay
from wakeful.services.clear_coordinator import ClearCoordinator
from wakeful.services.fire_coordinator import FireCoordinator
from wakeful.services.restore_coordinator import RestoreCoordinator
from wakeful.services.schedule_engine import ScheduleEngine


@dataclass
class ServiceContainer:
    """Container holding all initialized services."""
    store: NotificationStore
    engine: ScheduleEngine
    fire: FireCoordinator
    clear: ClearCoordinator
    restore: RestoreCoordinator


async def bootstrap(
    display: NotificationDisplay,
    alarms: AlarmPrimitive,
    host: HostBridge,
    db_path: Optional[Union[str, Path]] = None,
    clock: Optional[Clock] = None,
    zone: Optional[tzinfo] = None,
    log_level: Optional[Union[int, str]] = None,
) -> ServiceContainer:
    """Initialize the engine.

    Args:
        display: Capability that shows notifications
        alarms: Capability that arms wake alarms
        host: Callbacks into the host application
        db_path: Database path; WAKEFUL_DB_PATH or "wakeful.db" if None
        clock: Time source; the system clock if None
        zone: Zone for calendar-day arithmetic; WAKEFUL_TIMEZONE or local if None
        log_level: Root log level; WAKEFUL_LOG_LEVEL or INFO if None. Has no
            effect when the host already configured logging

    Returns:
        ServiceContainer with all services ready to use.

    Raises:
        StoreUnavailable: If the database cannot be opened
    """
    configure_logging(log_level)

    store = NotificationStore(db_path)
    # Open eagerly so a broken database path fails at startup
    await store.get_ids()

    engine = ScheduleEngine(store, display, alarms, clock=clock, zone=zone)
    return ServiceContainer(
        store=store,
        engine=engine,
        fire=FireCoordinator(engine),
        clear=ClearCoordinator(engine, host),
        restore=RestoreCoordinator(engine),
    )


async def shutdown(services: ServiceContainer) -> None:
    """Clean up resources (close database connection)."""
    await services.store.close()
