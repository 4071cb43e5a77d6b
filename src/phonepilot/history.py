"""Command history: in-memory with optional file persistence."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path

from phonepilot.models import CommandHistory

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 100
# Summaries are stored joined; a summary containing this does not round-trip
ACTION_DELIMITER = "|||"

_HISTORY_FILE = "history.json"


def _to_record(entry: CommandHistory) -> dict:
    return {
        "id": entry.id,
        "user_command": entry.user_command,
        "actions": ACTION_DELIMITER.join(entry.actions),
        "success": entry.success,
        "timestamp": entry.timestamp.isoformat(),
    }


def _from_record(record: dict) -> CommandHistory | None:
    try:
        return CommandHistory(
            id=record["id"],
            user_command=record["user_command"],
            actions=[a for a in str(record.get("actions") or "").split(ACTION_DELIMITER) if a.strip()],
            success=bool(record.get("success")),
            timestamp=datetime.fromisoformat(str(record["timestamp"]).replace("Z", "+00:00")),
        )
    except (KeyError, TypeError, ValueError):
        return None


class HistoryStore:
    """
    Append-only log of completed commands.

    In-memory by default. If ``data_dir`` is set, entries are loaded on
    init and the file is rewritten after each mutation. Appending an
    entry whose id already exists replaces the earlier one.
    """

    def __init__(self, data_dir: str | None = None) -> None:
        self._data_dir = Path(data_dir) if data_dir else None
        self._lock = threading.Lock()
        self._entries: list[CommandHistory] = []
        if self._data_dir and self._data_dir.is_dir():
            self._load()

    def _load(self) -> None:
        path = self._data_dir / _HISTORY_FILE
        if not path.is_file():
            return
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read history file %s: %s", path, e)
            return
        if not isinstance(data, list):
            return
        for record in data:
            entry = _from_record(record) if isinstance(record, dict) else None
            if entry is None:
                logger.warning("Skipping invalid history record", extra={"record": record})
                continue
            self._entries.append(entry)

    def _save(self) -> None:
        if not self._data_dir:
            return
        path = self._data_dir / _HISTORY_FILE
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            # history.json is only ever replaced whole
            tmp = path.with_suffix(".json.tmp")
            tmp.write_text(
                json.dumps([_to_record(e) for e in self._entries], indent=0),
                encoding="utf-8",
            )
            tmp.replace(path)
        except OSError as e:
            logger.warning("Could not write history file %s: %s", path, e)

    def append(self, entry: CommandHistory) -> None:
        """Record a completed command."""
        with self._lock:
            self._entries = [e for e in self._entries if e.id != entry.id]
            self._entries.append(entry)
            self._save()
        logger.debug("History entry added", extra={"history_id": entry.id, "success": entry.success})

    def recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[CommandHistory]:
        """Return up to ``limit`` entries, newest first (ties: most recently added first)."""
        with self._lock:
            entries = list(enumerate(self._entries))
        entries.sort(key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
        return [entry for _, entry in entries[: max(0, limit)]]

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            self._save()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
