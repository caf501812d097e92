from .contracts import ClockSettings
from .scheduling import AsyncioScheduler, ManualScheduler, ScheduledCall, Scheduler
from .service import (
    PhaseCompleted,
    SessionAction,
    SessionActionResult,
    SessionClock,
    SessionEvent,
    SessionPhase,
    SessionSnapshot,
    SessionStateChanged,
    SessionTick,
    SettingsChanged,
)

__all__ = [
    "AsyncioScheduler",
    "ClockSettings",
    "ManualScheduler",
    "PhaseCompleted",
    "ScheduledCall",
    "Scheduler",
    "SessionAction",
    "SessionActionResult",
    "SessionClock",
    "SessionEvent",
    "SessionPhase",
    "SessionSnapshot",
    "SessionStateChanged",
    "SessionTick",
    "SettingsChanged",
]
