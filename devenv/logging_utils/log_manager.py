"""
Operation event log.

Every event is kept in memory for the lifetime of the manager and appended
as one JSON object per line to ``events.jsonl`` in the application log
directory, so the history of start/backup/restore runs survives the process.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from ..utils.directories import get_secure_app_directory
from .events import LogEvent

logger = logging.getLogger(__name__)

EVENT_LOG_NAME = "events.jsonl"


class LogManager:
    """Collects operation events and persists them as JSON lines."""

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = (
            Path(log_dir) if log_dir else get_secure_app_directory("devenv", "logs")
        )
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.event_log_file = self.log_dir / EVENT_LOG_NAME
        self.events: List[LogEvent] = []

    async def emit_event(self, event: LogEvent) -> None:
        self.events.append(event)
        line = json.dumps(event.to_record(), default=str)
        try:
            async with aiofiles.open(self.event_log_file, "a", encoding="utf-8") as f:
                await f.write(line + "\n")
        except OSError as e:
            # best effort
            logger.error(
                "Failed to append event",
                extra={"event_type": event.event_type, "error_message": str(e)},
            )

    def read_history(self, operation: Optional[str] = None) -> List[Dict[str, Any]]:
        """Read persisted event records, optionally for one operation name.

        Lines that are not valid JSON are skipped.
        """
        if not self.event_log_file.exists():
            return []

        records = []
        for line in self.event_log_file.read_text(encoding="utf-8").splitlines():
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            if operation is None or record.get("operation") == operation:
                records.append(record)
        return records
