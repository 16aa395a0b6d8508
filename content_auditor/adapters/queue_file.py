"""Deferred-execution queue read from a JSON snapshot file.

The scheduler host exports its pending events as a JSON list of
`{due_at_utc, hook_name, payload_count}` objects. The file is re-read on
every call so each audit sees the latest export.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from content_auditor.domain.entities import QueueEntry

logger = logging.getLogger(__name__)


def parse_queue_snapshot(raw: object) -> list[QueueEntry]:
    if not isinstance(raw, list):
        raise ValueError("Queue snapshot must be a JSON list of entries")
    try:
        return [QueueEntry.model_validate(e) for e in raw]
    except ValidationError as e:
        raise ValueError(f"Queue snapshot validation failed:\n{e}") from e


class JsonFileQueue:
    def __init__(self, path: Path | str):
        self.path = Path(path)

    def list_entries(self) -> list[QueueEntry]:
        """Entries from the snapshot file; a missing file means an empty queue."""
        if not self.path.exists():
            logger.warning("Queue snapshot %s not found; treating queue as empty", self.path)
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Queue snapshot %s is not valid JSON: %s", self.path, e)
            raise ValueError(f"Invalid JSON in queue snapshot: {e}") from e

        return parse_queue_snapshot(raw)
