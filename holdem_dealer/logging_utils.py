"""
NDJSON event log for table events.

Each record is written as one JSON object per line. The logger always keeps
the latest records in memory so a front end can render an action feed even
when no file sink is configured.
"""

from __future__ import annotations

import json
import logging
import pathlib
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class NDJSONLogger:
    """
    Writes JSON records to an optional file and a bounded in-memory tail.

    Field ordering is kept stable by serialising with ``sort_keys=True``.
    """

    def __init__(self, path: Optional[pathlib.Path] = None, tail: int = 200) -> None:
        self._path = path
        self._file = None
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file = path.open("a", encoding="utf-8")
        self._tail: Deque[Dict[str, Any]] = deque(maxlen=tail)

    @property
    def path(self) -> Optional[pathlib.Path]:
        return self._path

    def log(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "type": event_type,
            "payload": payload or {},
        }
        self._tail.append(record)
        logger.debug("%s %s", event_type, record["payload"])
        if self._file is not None and not self._file.closed:
            self._file.write(json.dumps(record, sort_keys=True, default=str) + "\n")
            self._file.flush()

    def recent(self, limit: Optional[int] = None, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        records = [r for r in self._tail if event_type is None or r["type"] == event_type]
        if limit is not None:
            records = records[-limit:]
        return records

    def close(self) -> None:
        if self._file is not None and not self._file.closed:
            self._file.close()

    def __enter__(self) -> "NDJSONLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
