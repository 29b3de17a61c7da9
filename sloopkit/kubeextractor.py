"""Extract metadata, involved objects and event details from Kubernetes JSON payloads."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

NODE_KIND = "Node"
NAMESPACE_KIND = "Namespace"
POD_KIND = "Pod"
EVENT_KIND = "Event"

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_MISSING = object()

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})\Z"
)


@dataclass
class KubeMetadataOwnerReference:
    kind: str = ""
    name: str = ""
    uid: str = ""


@dataclass
class KubeMetadata:
    name: str = ""
    namespace: str = ""
    uid: str = ""
    self_link: str = ""
    resource_version: str = ""
    creation_timestamp: str = ""
    owner_references: list[KubeMetadataOwnerReference] = field(default_factory=list)


@dataclass
class KubeInvolvedObject:
    kind: str = ""
    name: str = ""
    namespace: str = ""
    uid: str = ""


@dataclass
class EventInfo:
    reason: str = ""
    type: str = ""
    first_timestamp: datetime = ZERO_TIME
    last_timestamp: datetime = ZERO_TIME
    count: int = 0


def _as_object(value: Any, where: str) -> dict[str, Any]:
    if value is None or value is _MISSING:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"cannot decode {type(value).__name__} into object for {where}")
    return value


def _load_object(payload: str) -> dict[str, Any]:
    return _as_object(json.loads(payload), "payload")


def _lookup(obj: dict[str, Any], name: str) -> Any:
    """Find a field by case-insensitive name; the last matching key wins."""
    lowered = name.lower()
    found = _MISSING
    for key, value in obj.items():
        if key.lower() == lowered:
            found = value
    return found


def _string(obj: dict[str, Any], name: str) -> str:
    value = _lookup(obj, name)
    if value is _MISSING or value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"cannot decode {type(value).__name__} into string field {name}")
    return value


def _integer(obj: dict[str, Any], name: str) -> int:
    value = _lookup(obj, name)
    if value is _MISSING or value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"cannot decode {value!r} into integer field {name}")
    return value


def _owner_references(obj: dict[str, Any]) -> list[KubeMetadataOwnerReference]:
    value = _lookup(obj, "ownerReferences")
    if value is _MISSING or value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("cannot decode ownerReferences: expected a list")
    references = []
    for entry in value:
        ref = _as_object(entry, "ownerReferences")
        references.append(
            KubeMetadataOwnerReference(
                kind=_string(ref, "kind"), name=_string(ref, "name"), uid=_string(ref, "uid")
            )
        )
    return references


def extract_metadata(payload: str) -> KubeMetadata:
    """Return the ``metadata`` section of a watch payload; raise ValueError on bad JSON."""
    resource = _load_object(payload)
    meta = _as_object(_lookup(resource, "metadata"), "metadata")
    return KubeMetadata(
        name=_string(meta, "name"),
        namespace=_string(meta, "namespace"),
        uid=_string(meta, "uid"),
        self_link=_string(meta, "selfLink"),
        resource_version=_string(meta, "resourceVersion"),
        creation_timestamp=_string(meta, "creationTimestamp"),
        owner_references=_owner_references(meta),
    )


def extract_involved_object(payload: str) -> KubeInvolvedObject:
    """Return the ``involvedObject`` section of an event payload."""
    resource = _load_object(payload)
    involved = _as_object(_lookup(resource, "involvedObject"), "involvedObject")
    return KubeInvolvedObject(
        kind=_string(involved, "kind"),
        name=_string(involved, "name"),
        namespace=_string(involved, "namespace"),
        uid=_string(involved, "uid"),
    )


def _parse_rfc3339(text: str) -> datetime:
    match = _RFC3339.match(text)
    if match is None:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    if offset == "Z":
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6])))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micros, tzinfo=tz
    )


def extract_event_info(payload: str) -> EventInfo:
    """Return reason, type, timestamps and count of an event payload."""
    resource = _load_object(payload)
    reason = _string(resource, "reason")
    first_raw = _string(resource, "firstTimestamp")
    last_raw = _string(resource, "lastTimestamp")
    count = _integer(resource, "count")
    event_type = _string(resource, "type")

    try:
        first = _parse_rfc3339(first_raw)
    except ValueError:
        logger.error("Could not parse first timestamp %s", first_raw)
        first = ZERO_TIME

    try:
        last = _parse_rfc3339(last_raw)
    except ValueError:
        logger.error("Could not parse last timestamp %s", last_raw)
        first = ZERO_TIME
        last = ZERO_TIME

    return EventInfo(
        reason=reason, type=event_type, first_timestamp=first, last_timestamp=last, count=count
    )


def get_involved_object_name_from_event_name(event_name: str) -> str:
    """Strip the unique suffix after the last dot from an event name."""
    dot = event_name.rfind(".")
    if dot < 0:
        raise ValueError(f"unexpected format for a k8s event name: {event_name}")
    return event_name[:dot]


def is_cluster_scoped_resource(kind: str) -> bool:
    """Return True for kinds that live outside any namespace."""
    return kind in (NODE_KIND, NAMESPACE_KIND)