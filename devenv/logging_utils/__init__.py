"""
Operation event log and progress display.
"""

from .events import (
    LogEvent,
    OperationCompleted,
    OperationStarted,
    StepCompleted,
    StepStarted,
)
from .log_manager import LogManager
from .progress_tracker import ProgressTracker

__all__ = [
    "LogEvent",
    "LogManager",
    "OperationCompleted",
    "OperationStarted",
    "ProgressTracker",
    "StepCompleted",
    "StepStarted",
]
