"""Dataset sinks: append-only destinations for result batches."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Protocol

from harvester.models import ResultBatch


class Sink(Protocol):
    def append(self, batch: ResultBatch) -> None: ...


class MemoryDataset:
    """Keeps every appended record in a list; used by tests and the CLI preview."""

    def __init__(self) -> None:
        self.items: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def append(self, batch: ResultBatch) -> None:
        with self._lock:
            self.items.append(batch.to_dict())


class JsonlDataset:
    """Appends one JSON object per batch to a ``.jsonl`` file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, batch: ResultBatch) -> None:
        line = json.dumps(batch.to_dict(), ensure_ascii=False)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")

    def read(self) -> list[dict[str, Any]]:
        """Return every record written so far (empty if the file is missing)."""
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]
