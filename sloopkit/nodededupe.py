"""Detect node updates that change more than heartbeat times and resource versions."""

from __future__ import annotations

import json
from typing import Any

_REMOVED = "removed"


def _canonical_json(value: Any) -> str:
    text = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def normalize_node(node_json: str) -> str:
    """Return the node as compact, key-sorted JSON with volatile fields replaced."""
    try:
        node = json.loads(node_json)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse json for node resource: {exc}") from exc
    if node is None:
        node = {}
    if not isinstance(node, dict):
        raise ValueError("Could not replace metadata.resourceVersion in node resource")

    metadata = node.setdefault("metadata", {})
    if metadata is None:
        metadata = node["metadata"] = {}
    if not isinstance(metadata, dict):
        raise ValueError("Could not replace metadata.resourceVersion in node resource")
    metadata["resourceVersion"] = _REMOVED

    status = node.get("status")
    conditions = status.get("conditions") if isinstance(status, dict) else None
    if isinstance(conditions, list):
        for condition in conditions:
            if not isinstance(condition, dict):
                raise ValueError("Could not set node condition")
            condition["lastHeartbeatTime"] = _REMOVED

    return _canonical_json(node)


def node_has_major_update(node1: str, node2: str) -> bool:
    """Return True if the two node payloads differ beyond volatile fields."""
    return normalize_node(node1) != normalize_node(node2)