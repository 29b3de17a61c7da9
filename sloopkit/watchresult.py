"""The record produced for every change seen on a watched Kubernetes resource."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class WatchType(str, Enum):
    """What happened to the resource."""

    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    def __str__(self) -> str:
        return self.value


def _format_timestamp(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    text = ts.astimezone(timezone.utc).isoformat()
    return text.replace("+00:00", "Z")


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"cannot read timestamp from {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


@dataclass
class WatchResult:
    """One observed change: when, of which kind, what happened, and the resource JSON."""

    timestamp: datetime | None = None
    kind: str = ""
    watch_type: WatchType = WatchType.ADD
    payload: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return a plain mapping suitable for YAML or JSON."""
        return {
            "timestamp": None if self.timestamp is None else _format_timestamp(self.timestamp),
            "kind": self.kind,
            "watchType": self.watch_type.value,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WatchResult:
        """Build a record from a mapping made by ``to_dict``; missing fields take defaults."""
        if not isinstance(data, dict):
            raise ValueError(f"watch result must be a mapping, got {type(data).__name__}")
        raw_type = data.get("watchType") or WatchType.ADD
        try:
            watch_type = WatchType(raw_type)
        except ValueError as exc:
            raise ValueError(f"unknown watch type: {raw_type!r}") from exc
        return cls(
            timestamp=_parse_timestamp(data.get("timestamp")),
            kind=str(data.get("kind") or ""),
            watch_type=watch_type,
            payload=str(data.get("payload") or ""),
        )