import logging
import sqlite3
from typing import Optional

from wakeful.errors import MalformedRequest, WakefulError
from wakeful.models.entities import NotificationRequest

logger = logging.getLogger(__name__)

# Errors raised by sqlite3/aiosqlite that mean the store itself failed.
# aiosqlite raises ValueError when the connection was closed underneath us.
STORE_ERRORS = (sqlite3.Error, OSError, ValueError)


class DatabaseError(WakefulError):
    """Custom exception for database operations."""
    pass


class StoreUnavailable(DatabaseError):
    """Raised when the persistence layer cannot be opened, read or written.

    Surfaced to the caller; the engine never retries internally.
    """
    pass


def _deserialize_request_row(row) -> NotificationRequest:
    """Convert a raw notification_requests row into a NotificationRequest.

    The row id wins over any id embedded in the JSON so a hand-edited row
    cannot shadow another notification.

    Raises:
        MalformedRequest: If the stored JSON cannot be parsed
    """
    request = NotificationRequest.from_json(row["data"])
    if request.id != row["id"]:
        raise MalformedRequest(
            f"Stored id {row['id']} does not match serialized id {request.id}"
        )
    return request


def _parse_fired_value(notification_id: int, value) -> Optional[int]:
    """Parse a stored fired timestamp; returns None if it is not an integer."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.error(f"Unable to parse last fired timestamp for notification {notification_id}: {value!r}")
        return None
