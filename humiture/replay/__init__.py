from .events import Reading
from .time_mapper import TimeMapper
from .clock import VirtualClock
from .source import RecordSource, TsvArchive, open_source
from .scheduler import ReplayScheduler, SchedulerState, Stream, TickResult

__all__ = [
    "Reading",
    "TimeMapper",
    "VirtualClock",
    "RecordSource",
    "TsvArchive",
    "open_source",
    "ReplayScheduler",
    "SchedulerState",
    "Stream",
    "TickResult",
]
