"""Record watch results to a YAML file and play them back."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import Any

import yaml

from sloopkit.watchresult import WatchResult

logger = logging.getLogger(__name__)

DATA_KEY = "Data"


def _load_records(text: str) -> list[WatchResult]:
    document: Any = yaml.safe_load(text)
    if document is None:
        return []
    if not isinstance(document, dict):
        raise ValueError("playback file must hold a mapping")
    data = document.get(DATA_KEY) or []
    if not isinstance(data, list):
        raise ValueError(f"playback file field {DATA_KEY!r} must be a list")
    return [WatchResult.from_dict(entry) for entry in data]


def play_file(out_queue: queue.Queue, filename: str | Path) -> int:
    """Put every watch result stored in ``filename`` on ``out_queue``; return how many."""
    text = Path(filename).read_text(encoding="utf-8")
    records = _load_records(text)
    logger.info("Loaded %d resources from file source %s", len(records), filename)
    for record in records:
        out_queue.put(record)
    logger.info("Done writing kubeWatch events to channel")
    return len(records)


class FileRecorder:
    """Collect watch results from a queue and write them to a YAML file on close.

    Putting ``None`` on the queue ends the stream; ``close`` does so itself.
    """

    def __init__(self, filename: str | Path, in_queue: queue.Queue) -> None:
        self.filename = Path(filename)
        self.in_queue = in_queue
        self.data: list[WatchResult] = []
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Begin consuming the queue in a background thread."""
        if self._thread is not None:
            raise RuntimeError("recorder already started")
        self._thread = threading.Thread(target=self._listen, daemon=True)
        self._thread.start()

    def _listen(self) -> None:
        while True:
            record = self.in_queue.get()
            if record is None:
                return
            self.data.append(record)

    def close(self) -> None:
        """End the stream, wait for outstanding records and write the file."""
        if self._thread is not None:
            if self._thread.is_alive():
                self.in_queue.put(None)
            self._thread.join()
        document = {DATA_KEY: [record.to_dict() for record in self.data]}
        text = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
        try:
            self.filename.write_text(text, encoding="utf-8")
        except OSError as exc:
            logger.info("Wrote %d records to %s. err %s", len(self.data), self.filename, exc)
            raise
        logger.info("Wrote %d records to %s. err None", len(self.data), self.filename)

    def __enter__(self) -> FileRecorder:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()