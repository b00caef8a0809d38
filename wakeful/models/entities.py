import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from wakeful.config import MAX_REPEAT_INTERVAL_MS
from wakeful.errors import MalformedRequest

# Keys that control scheduling; everything else in host options is payload
_SCHEDULING_KEYS = ("id", "atTime", "repeatInterval", "alertWhileIdle", "payload")


def _require_int(d: Dict[str, Any], key: str, default: Optional[int] = None) -> int:
    value = d.get(key, default)
    if value is None:
        raise MalformedRequest(f"Missing required field '{key}'")
    # bool is an int subclass, but "true" is not a timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise MalformedRequest(f"Field '{key}' must be an integer, got {value!r}")
    return value


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value in (0, 1):
        return value == 1
    raise MalformedRequest(f"Field 'alertWhileIdle' must be 0/1 or a boolean, got {value!r}")


@dataclass(frozen=True)
class NotificationRequest:
    """A notification the host asked to deliver, now or at a future instant.

    Immutable once scheduled; replaced by saving a request with the same id.
    """
    id: int
    at_time: int = 0
    repeat_interval: int = 0
    alert_while_idle: bool = False
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_immediate(self) -> bool:
        return self.at_time == 0

    @property
    def is_repeating(self) -> bool:
        return self.repeat_interval > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted (camelCase) dictionary form."""
        return {
            "id": self.id,
            "atTime": self.at_time,
            "repeatInterval": self.repeat_interval,
            "alertWhileIdle": 1 if self.alert_while_idle else 0,
            "payload": self.payload,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NotificationRequest":
        """Create a request from its persisted dictionary form.

        Raises:
            MalformedRequest: If required fields are missing or have the wrong type
        """
        if not isinstance(d, dict):
            raise MalformedRequest(f"Expected a JSON object, got {type(d).__name__}")
        at_time = _require_int(d, "atTime", 0)
        repeat_interval = _require_int(d, "repeatInterval", 0)
        if at_time < 0 or repeat_interval < 0:
            raise MalformedRequest(
                f"atTime and repeatInterval must be non-negative (got {at_time}, {repeat_interval})"
            )
        if repeat_interval > MAX_REPEAT_INTERVAL_MS:
            raise MalformedRequest(
                f"repeatInterval {repeat_interval} exceeds the one year maximum ({MAX_REPEAT_INTERVAL_MS})"
            )
        payload = d.get("payload") or {}
        if not isinstance(payload, dict):
            raise MalformedRequest("Field 'payload' must be a JSON object")
        return cls(
            id=_require_int(d, "id"),
            at_time=at_time,
            repeat_interval=repeat_interval,
            alert_while_idle=_parse_flag(d.get("alertWhileIdle", 0)),
            payload=payload,
        )

    @classmethod
    def from_json(cls, data: str) -> "NotificationRequest":
        try:
            parsed = json.loads(data)
        except (TypeError, ValueError) as e:
            raise MalformedRequest(f"Unparseable notification data: {e}") from e
        return cls.from_dict(parsed)

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "NotificationRequest":
        """Create a request from host-supplied schedule options.

        Scheduling keys (id, atTime, repeatInterval, alertWhileIdle) are
        extracted; every other key (title, body, ...) is kept as payload.
        """
        if not isinstance(options, dict):
            raise MalformedRequest(f"Expected options dict, got {type(options).__name__}")
        base_payload = options.get("payload") or {}
        if not isinstance(base_payload, dict):
            raise MalformedRequest("Field 'payload' must be a JSON object")
        payload = dict(base_payload)
        payload.update({k: v for k, v in options.items() if k not in _SCHEDULING_KEYS})
        return cls.from_dict({**options, "payload": payload})


@dataclass(frozen=True)
class WakeRequest:
    """A future wake to register with the alarm primitive.

    repeat_interval is only set for platform-native repeating wakes.
    """
    instant: int
    exact: bool
    idle_capable: bool
    repeat_interval: Optional[int] = None


@dataclass
class ReconcilePlan:
    """Outcome of reconciling one request; delivery and a wake may combine."""
    deliver_now: bool = False
    expire: bool = False
    wake: Optional[WakeRequest] = None

    @property
    def is_noop(self) -> bool:
        return not self.deliver_now and not self.expire and self.wake is None


@dataclass
class RestoreReport:
    """Summary of one restore pass over the persisted requests."""
    restored: List[int] = field(default_factory=list)
    malformed: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.restored) + len(self.malformed) + len(self.failed)
