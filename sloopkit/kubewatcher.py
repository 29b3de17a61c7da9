"""Turn observed Kubernetes resource changes into watch results on a queue."""

from __future__ import annotations

import dataclasses
import json
import logging
import queue
import threading
from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sloopkit.jsonlogic import JsonLogicError, apply_logic
from sloopkit.kubeextractor import (
    EVENT_KIND,
    extract_event_info,
    extract_involved_object,
    extract_metadata,
)
from sloopkit.utilities import truncate
from sloopkit.watchresult import WatchResult, WatchType

logger = logging.getLogger(__name__)

GLOBAL_RULES_KEY = "_all"


@dataclass
class DeletedFinalStateUnknown:
    """A deleted object whose final state was missed; ``obj`` is the last known state."""

    key: str
    obj: Any


def _resource_json(obj: Any) -> str:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        obj = dataclasses.asdict(obj)
    try:
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"resource cannot be marshalled {exc}") from exc


def _object_name(resource_json: str) -> str:
    try:
        return extract_metadata(resource_json).name
    except ValueError:
        return ""


class KubeWatcher:
    """Receives add, update and delete notifications and writes them to ``out_queue``.

    Resources matching an exclusion rule (a JsonLogic expression keyed by kind, or
    by ``"_all"`` for every kind) are dropped. Nothing is written after ``stop``.
    """

    def __init__(
        self,
        out_queue: queue.Queue,
        exclusion_rules: Mapping[str, Sequence[Any]] | None = None,
        enable_granular_metrics: bool = False,
    ) -> None:
        self.out_queue = out_queue
        self.exclusion_rules = dict(exclusion_rules or {})
        self.enable_granular_metrics = enable_granular_metrics
        self.watch_counts: Counter[tuple[str, str]] = Counter()
        self.watch_bytes: Counter[tuple[str, str]] = Counter()
        self.event_counts: Counter[tuple[str, str, str, str, str]] = Counter()
        self._lock = threading.Lock()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _shell(self, kind: str, watch_type: WatchType) -> WatchResult:
        return WatchResult(
            timestamp=datetime.now(timezone.utc), kind=kind, watch_type=watch_type, payload=""
        )

    def report_add(self, kind: str) -> Callable[[Any], None]:
        """Return a handler for newly added objects of ``kind``."""

        def handle(obj: Any) -> None:
            self.process_update(kind, obj, self._shell(kind, WatchType.ADD))

        return handle

    def report_delete(self, kind: str) -> Callable[[Any], None]:
        """Return a handler for deleted objects of ``kind``."""

        def handle(obj: Any) -> None:
            if isinstance(obj, DeletedFinalStateUnknown):
                obj = obj.obj
            self.process_update(kind, obj, self._shell(kind, WatchType.DELETE))

        return handle

    def report_update(self, kind: str) -> Callable[[Any, Any], None]:
        """Return a handler for updated objects of ``kind``; only the new state is kept."""

        def handle(_old: Any, new: Any) -> None:
            self.process_update(kind, new, self._shell(kind, WatchType.UPDATE))

        return handle

    def process_update(self, kind: str, obj: Any, watch_result: WatchResult) -> None:
        """Serialise ``obj``, apply exclusion rules and metrics, and emit the result."""
        try:
            resource_json = _resource_json(obj)
        except ValueError as exc:
            logger.error("%s", exc)
            return

        if self.event_excluded(kind, resource_json):
            logger.debug("Event for object excluded: %s/%s", kind, _object_name(resource_json))
            return

        try:
            metadata = extract_metadata(resource_json)
        except ValueError as exc:
            logger.debug("No namespace for resource: %s", exc)
            metadata = None
        else:
            if not metadata.namespace:
                logger.debug("No namespace for resource: %s", None)

        if self.enable_granular_metrics and kind == EVENT_KIND:
            self._count_event(resource_json)

        watch_type = str(watch_result.watch_type)
        self.watch_counts[(kind, watch_type)] += 1
        self.watch_bytes[(kind, watch_type)] += len(resource_json.encode("utf-8"))

        if metadata is not None:
            logger.debug(
                "Informer update (%s) - Name: %s, Namespace: %s, ResourceVersion: %s",
                watch_type,
                metadata.name,
                metadata.namespace,
                metadata.resource_version,
            )
        watch_result.payload = resource_json
        self._write(watch_result)

    def _count_event(self, resource_json: str) -> None:
        reason = event_type = ""
        namespace = name = involved_kind = ""
        try:
            info = extract_event_info(resource_json)
            reason, event_type = info.reason, info.type
        except ValueError as exc:
            logger.debug("Extract event info: %s", exc)
        try:
            involved = extract_involved_object(resource_json)
            namespace, name, involved_kind = involved.namespace, involved.name, involved.kind
        except ValueError as exc:
            logger.debug("Error occurred while extracting Involved Object Info: %s", exc)
        self.event_counts[(namespace, name, involved_kind, reason, event_type)] += 1

    def _write(self, watch_result: WatchResult) -> None:
        # The lock guarantees nothing reaches the queue once stop has returned.
        with self._lock:
            if self._stopped:
                return
            self.out_queue.put(watch_result)

    def exclusion_rules_for(self, kind: str) -> list[Any]:
        """Return the rules for ``kind`` followed by the rules for every kind."""
        rules = list(self.exclusion_rules.get(kind) or [])
        rules.extend(self.exclusion_rules.get(GLOBAL_RULES_KEY) or [])
        return rules

    def event_excluded(self, kind: str, resource_json: str) -> bool:
        """Return True if any exclusion rule for ``kind`` matches the resource."""
        rules = self.exclusion_rules_for(kind)
        if not rules:
            return False
        try:
            resource = json.loads(resource_json)
        except json.JSONDecodeError as exc:
            logger.error("Failed to read resource for event filtering: %s", exc)
            return False
        for rule in rules:
            try:
                rule_json = json.dumps(rule)
            except (TypeError, ValueError) as exc:
                logger.error('Failed to parse event filtering rule "%r": %s', rule, exc)
                return False
            try:
                result = apply_logic(rule, resource)
            except JsonLogicError as exc:
                logger.error('Failed to apply event filtering rule "%s": %s', rule_json, exc)
                return False
            if "true" in json.dumps(result):
                logger.debug(
                    'Event matched logic: logic="%s" resource="%s"',
                    rule_json,
                    truncate(resource_json, 40),
                )
                return True
        return False

    def stop(self) -> None:
        """Stop emitting results; later notifications are ignored."""
        logger.info("Stopping kubeWatcher")
        with self._lock:
            self._stopped = True