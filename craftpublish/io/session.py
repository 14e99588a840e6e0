"""Session activity logs that record publish outcomes per caller."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List

from .models import PublishOutcome

logger = logging.getLogger(__name__)

SHOPIFY_UPLOAD_KIND = "shopifyUpload"

Activity = Dict[str, Any]


def _activity_entry(record: PublishOutcome | Activity) -> Activity:
    if isinstance(record, PublishOutcome):
        entry = record.to_dict()
    else:
        entry = dict(record)
    entry.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    entry["recorded_at"] = datetime.now(timezone.utc).isoformat()
    return entry


class SessionLog:
    """Append-only activity log keyed by session identity and activity kind."""

    def current_identity(self) -> str:
        raise NotImplementedError

    def append_activity(
        self, session_key: str, kind: str, record: PublishOutcome | Activity
    ) -> Activity:
        raise NotImplementedError

    def activities(self, session_key: str, kind: str) -> List[Activity]:
        raise NotImplementedError


class InMemorySessionLog(SessionLog):
    """Session log held in process memory."""

    def __init__(self, identity: str = "default") -> None:
        self._identity = identity
        self._lock = Lock()
        self._entries: Dict[str, Dict[str, List[Activity]]] = defaultdict(
            lambda: defaultdict(list)
        )

    def current_identity(self) -> str:
        return self._identity

    def append_activity(
        self, session_key: str, kind: str, record: PublishOutcome | Activity
    ) -> Activity:
        entry = _activity_entry(record)
        with self._lock:
            self._entries[session_key][kind].append(entry)
        logger.debug("Recorded %s activity for session %s", kind, session_key)
        return entry

    def activities(self, session_key: str, kind: str) -> List[Activity]:
        with self._lock:
            entries = self._entries.get(session_key, {}).get(kind, [])
            return [dict(entry) for entry in entries]


class JsonFileSessionLog(SessionLog):
    """Session log persisted as a single JSON document on disk."""

    def __init__(self, path: Path, identity: str = "default") -> None:
        self.path = Path(path)
        self._identity = identity
        self._lock = Lock()

    def current_identity(self) -> str:
        return self._identity

    def _load(self) -> Dict[str, Dict[str, List[Activity]]]:
        if not self.path.exists():
            return {}
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Session log {self.path} is not a JSON object")
        return data

    def _write(self, data: Dict[str, Dict[str, List[Activity]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def append_activity(
        self, session_key: str, kind: str, record: PublishOutcome | Activity
    ) -> Activity:
        entry = _activity_entry(record)
        with self._lock:
            data = self._load()
            data.setdefault(session_key, {}).setdefault(kind, []).append(entry)
            self._write(data)
        logger.debug(
            "Recorded %s activity for session %s in %s", kind, session_key, self.path
        )
        return entry

    def activities(self, session_key: str, kind: str) -> List[Activity]:
        with self._lock:
            data = self._load()
        return list(data.get(session_key, {}).get(kind, []))
