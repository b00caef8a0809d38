import logging
from typing import Dict, List, Optional

from wakeful.database.helpers import (
    DatabaseError,
    STORE_ERRORS,
    StoreUnavailable,
    _deserialize_request_row,
)
from wakeful.errors import MalformedRequest
from wakeful.models.entities import NotificationRequest

logger = logging.getLogger(__name__)


class RequestsMixin:
    """Persisted notification request operations mixin."""

    async def get(self, notification_id: int) -> Optional[NotificationRequest]:
        """Load one request. Missing, malformed or unreadable data yields None."""
        try:
            async with self._get_connection() as conn:
                async with conn.execute(
                    "SELECT id, data FROM notification_requests WHERE id = ?",
                    (notification_id,)
                ) as cursor:
                    row = await cursor.fetchone()
            if row is None:
                return None
            return _deserialize_request_row(row)
        except MalformedRequest as e:
            logger.error(f"Error parsing notification {notification_id}: {e}")
            return None
        except (DatabaseError, *STORE_ERRORS) as e:
            logger.error(f"Error loading notification {notification_id}: {e}")
            return None

    async def get_all_raw(self) -> Dict[int, str]:
        """Load every persisted request in its serialized form, keyed by id."""
        try:
            async with self._get_connection() as conn:
                async with conn.execute(
                    "SELECT id, data FROM notification_requests ORDER BY id"
                ) as cursor:
                    return {row["id"]: row["data"] async for row in cursor}
        except STORE_ERRORS as e:
            logger.error(f"Error loading notifications: {e}")
            raise StoreUnavailable(f"Failed to load notifications: {e}") from e

    async def get_all(self) -> Dict[int, NotificationRequest]:
        """Load a snapshot of all requests. Malformed rows are skipped."""
        result: Dict[int, NotificationRequest] = {}
        async with self._get_connection() as conn:
            try:
                async with conn.execute(
                    "SELECT id, data FROM notification_requests ORDER BY id"
                ) as cursor:
                    rows = [row async for row in cursor]
            except STORE_ERRORS as e:
                logger.error(f"Error loading notifications: {e}")
                raise StoreUnavailable(f"Failed to load notifications: {e}") from e
        for row in rows:
            try:
                result[row["id"]] = _deserialize_request_row(row)
            except MalformedRequest as e:
                logger.error(f"Skipping malformed notification {row['id']}: {e}")
        return result

    async def get_ids(self) -> List[int]:
        """Ids of all persisted requests, ascending."""
        try:
            async with self._get_connection() as conn:
                async with conn.execute(
                    "SELECT id FROM notification_requests ORDER BY id"
                ) as cursor:
                    return [row["id"] async for row in cursor]
        except STORE_ERRORS as e:
            logger.error(f"Error loading notification ids: {e}")
            raise StoreUnavailable(f"Failed to load notification ids: {e}") from e

    async def save(self, request: NotificationRequest) -> None:
        """Upsert a request keyed by its id."""
        try:
            async with self._transaction() as conn:
                await conn.execute(
                    "INSERT OR REPLACE INTO notification_requests (id, data) VALUES (?, ?)",
                    (request.id, request.to_json())
                )
        except STORE_ERRORS as e:
            logger.error(f"Error saving notification {request.id}: {e}")
            raise StoreUnavailable(f"Failed to save notification: {e}") from e

    async def remove(self, notification_id: int) -> None:
        """Delete a request and its fired record together. Idempotent."""
        try:
            async with self._transaction() as conn:
                await conn.execute(
                    "DELETE FROM notification_requests WHERE id = ?",
                    (notification_id,)
                )
                await conn.execute(
                    "DELETE FROM alarms_fired WHERE id = ?",
                    (notification_id,)
                )
        except STORE_ERRORS as e:
            logger.error(f"Error removing notification {notification_id}: {e}")
            raise StoreUnavailable(f"Failed to remove notification: {e}") from e

    async def remove_all(self) -> int:
        """Delete every request and fired record.

        Returns:
            Number of requests deleted
        """
        try:
            async with self._transaction() as conn:
                cursor = await conn.execute("DELETE FROM notification_requests")
                await conn.execute("DELETE FROM alarms_fired")
                return cursor.rowcount
        except STORE_ERRORS as e:
            logger.error(f"Error removing all notifications: {e}")
            raise StoreUnavailable(f"Failed to remove notifications: {e}") from e
