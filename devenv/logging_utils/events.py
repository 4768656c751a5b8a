"""
Operation lifecycle events for the event log.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class LogEvent:
    """Base class for all log events."""

    correlation_id: str
    event_type: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
    operation_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> Dict[str, Any]:
        """Flatten the event into a JSON-ready mapping.

        Metadata keys are merged into the top level; the event's own fields
        win on conflict.
        """
        record = asdict(self)
        metadata = record.pop("metadata")
        record["timestamp"] = self.timestamp.isoformat()
        return {**metadata, **record}


@dataclass
class OperationStarted(LogEvent):
    operation: str = ""
    event_type: str = "operation_started"


@dataclass
class OperationCompleted(LogEvent):
    operation: str = ""
    success: bool = False
    duration_seconds: float = 0.0
    error_message: Optional[str] = None
    event_type: str = "operation_completed"


@dataclass
class StepStarted(LogEvent):
    step_name: str = ""
    event_type: str = "step_started"


@dataclass
class StepCompleted(LogEvent):
    step_name: str = ""
    success: bool = False
    duration_seconds: float = 0.0
    error_message: Optional[str] = None
    event_type: str = "step_completed"
