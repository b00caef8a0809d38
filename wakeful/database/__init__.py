"""Database package - async SQLite with mixin-based composition.

Two namespaces survive process and device restarts: notification
requests (id -> serialized request) and alarms fired (id -> last fired
timestamp). ``from wakeful.database import NotificationStore`` is the
public entry point.
"""
from wakeful.database.helpers import (  # noqa: F401
    DatabaseError,
    StoreUnavailable,
)
from wakeful.database.core import DatabaseCore
from wakeful.database.requests import RequestsMixin
from wakeful.database.fired import FiredMixin


class NotificationStore(DatabaseCore, RequestsMixin, FiredMixin):
    """Composed store class combining all mixins."""
    pass
