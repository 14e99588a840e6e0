"""Output helpers for persisting publish results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Sequence

from .models import PublishOutcome


def write_outcome(path: Path, outcome: PublishOutcome) -> Path:
    """Write *outcome* to *path* as JSON and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(outcome.to_dict(), indent=2), encoding="utf-8")
    return path


def write_records(path: Path, records: Sequence[Mapping[str, Any]]) -> Path:
    """Write a list of JSON-ready records to *path* and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(list(records), indent=2, default=str), encoding="utf-8")
    return path
