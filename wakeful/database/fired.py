import logging
from typing import Dict

from wakeful.database.helpers import STORE_ERRORS, StoreUnavailable, _parse_fired_value

logger = logging.getLogger(__name__)


class FiredMixin:
    """Alarm-fired timestamp operations mixin.

    One record per notification id, overwritten on every firing. Used on
    restore to decide whether an idle-capable alarm was missed while the
    device was off.
    """

    async def register_fired(self, notification_id: int, now: int) -> None:
        """Record that the alarm for notification_id fired at now (epoch ms)."""
        try:
            async with self._transaction() as conn:
                await conn.execute(
                    "INSERT OR REPLACE INTO alarms_fired (id, fired_at) VALUES (?, ?)",
                    (notification_id, now)
                )
        except STORE_ERRORS as e:
            logger.error(f"Error registering fired alarm {notification_id}: {e}")
            raise StoreUnavailable(f"Failed to register fired alarm: {e}") from e
        logger.info(f"Alarm {notification_id} registered fired at {now}")

    async def last_fired(self, notification_id: int) -> int:
        """Last fired timestamp in epoch ms, or 0 if the alarm never fired."""
        try:
            async with self._get_connection() as conn:
                async with conn.execute(
                    "SELECT fired_at FROM alarms_fired WHERE id = ?",
                    (notification_id,)
                ) as cursor:
                    row = await cursor.fetchone()
        except STORE_ERRORS as e:
            logger.error(f"Error loading fired alarm {notification_id}: {e}")
            raise StoreUnavailable(f"Failed to load fired alarm: {e}") from e
        if row is None:
            return 0
        value = _parse_fired_value(notification_id, row["fired_at"])
        return value if value is not None else 0

    async def fired_snapshot(self) -> Dict[int, int]:
        """All fired records keyed by id; unparseable values are skipped."""
        try:
            async with self._get_connection() as conn:
                async with conn.execute(
                    "SELECT id, fired_at FROM alarms_fired"
                ) as cursor:
                    rows = [(row["id"], row["fired_at"]) async for row in cursor]
        except STORE_ERRORS as e:
            logger.error(f"Error loading fired alarms: {e}")
            raise StoreUnavailable(f"Failed to load fired alarms: {e}") from e
        snapshot: Dict[int, int] = {}
        for notification_id, raw in rows:
            value = _parse_fired_value(notification_id, raw)
            if value is not None:
                snapshot[notification_id] = value
        return snapshot
