"""
Run Log for roll and resource event tracking.

Captures dice rolls, pool evaluations and resource value changes so a
session can be inspected or exported after the fact.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Callable
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    ROLL = "roll"  # Dice roll
    EVALUATION = "evaluation"  # Pool evaluated against a keyword
    RESOURCE_CHANGE = "resource_change"  # Resource value changed
    CUSTOM = "custom"  # Custom event


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # event_type has a default so subclass fields can have defaults;
    # subclasses set the correct value in __post_init__
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        """Create from dictionary."""
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] {self.event_type.value.upper()} {self.context}"


@dataclass
class RollEvent(LogEvent):
    """A dice roll event."""

    notation: str = ""  # e.g., "3d6kh"
    rolls: list[int] = field(default_factory=list)
    total: int = 0
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.ROLL

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "notation": self.notation,
                "rolls": self.rolls,
                "total": self.total,
                "reason": self.reason,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RollEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            notation=data.get("notation", ""),
            rolls=data.get("rolls", []),
            total=data.get("total", 0),
            reason=data.get("reason", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] ROLL {self.notation}: {self.rolls} = {self.total} ({self.reason})"


@dataclass
class EvaluationEvent(LogEvent):
    """A pool evaluated against its keyword rule."""

    keyword: str = ""
    mode: str = "kh"
    values: list[int] = field(default_factory=list)
    burned: list[bool] = field(default_factory=list)
    result_index: Optional[int] = None
    can_karma: bool = False
    can_confirm: bool = False

    def __post_init__(self):
        self.event_type = EventType.EVALUATION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "keyword": self.keyword,
                "mode": self.mode,
                "values": self.values,
                "burned": self.burned,
                "result_index": self.result_index,
                "can_karma": self.can_karma,
                "can_confirm": self.can_confirm,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EvaluationEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            keyword=data.get("keyword", ""),
            mode=data.get("mode", "kh"),
            values=data.get("values", []),
            burned=data.get("burned", []),
            result_index=data.get("result_index"),
            can_karma=data.get("can_karma", False),
            can_confirm=data.get("can_confirm", False),
        )

    def __str__(self) -> str:
        flags = []
        if self.can_karma:
            flags.append("karma")
        if self.can_confirm:
            flags.append("confirm")
        offered = ", ".join(flags) or "no follow-ups"
        return (
            f"[{self.sequence_number}] EVAL #{self.keyword} {self.mode} {self.values}"
            f" -> index {self.result_index} ({offered})"
        )


@dataclass
class ResourceChangeEvent(LogEvent):
    """A resource value change."""

    resource_id: str = ""
    resource_name: str = ""
    old_value: int = 0
    new_value: int = 0
    max_value: int = 0
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.RESOURCE_CHANGE

    @property
    def delta(self) -> int:
        return self.new_value - self.old_value

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "resource_id": self.resource_id,
                "resource_name": self.resource_name,
                "old_value": self.old_value,
                "new_value": self.new_value,
                "max_value": self.max_value,
                "reason": self.reason,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResourceChangeEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            resource_id=data.get("resource_id", ""),
            resource_name=data.get("resource_name", ""),
            old_value=data.get("old_value", 0),
            new_value=data.get("new_value", 0),
            max_value=data.get("max_value", 0),
            reason=data.get("reason", ""),
        )

    def __str__(self) -> str:
        cap = f" / {self.max_value}" if self.max_value > 0 else ""
        return (
            f"[{self.sequence_number}] RESOURCE {self.resource_name}: "
            f"{self.old_value} -> {self.new_value}{cap} ({self.reason})"
        )


@dataclass
class ResourceChangeRow:
    """One line of a merged resource change summary."""

    resource_id: str
    resource_name: str
    old_value: int
    new_value: int
    max_value: int = 0

    @property
    def delta(self) -> int:
        return self.new_value - self.old_value


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def merge_resource_changes(events: list[ResourceChangeEvent]) -> list[ResourceChangeRow]:
    """
    Collapse consecutive changes into summary rows.

    A change joins the last row of the same resource while it moves in the
    same direction; a change of direction starts a new row.
    """
    rows: list[ResourceChangeRow] = []
    for event in events:
        last = next((row for row in reversed(rows) if row.resource_id == event.resource_id), None)
        if last is not None and _sign(last.delta) == _sign(event.delta):
            last.new_value = event.new_value
            last.resource_name = event.resource_name or last.resource_name
            last.max_value = event.max_value or last.max_value
            continue
        rows.append(
            ResourceChangeRow(
                resource_id=event.resource_id,
                resource_name=event.resource_name,
                old_value=event.old_value,
                new_value=event.new_value,
                max_value=event.max_value,
            )
        )
    return rows


_EVENT_CLASSES: dict[EventType, type] = {
    EventType.ROLL: RollEvent,
    EventType.EVALUATION: EvaluationEvent,
    EventType.RESOURCE_CHANGE: ResourceChangeEvent,
}


class RunLog:
    """
    Central run log for all engine events.

    Singleton pattern - use get_run_log() to access.
    """

    _instance: Optional["RunLog"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._paused: bool = False

    def reset(self) -> None:
        """Reset the log for a new session."""
        self._events = []
        self._sequence = 0
        self._seed = None
        self._session_start = datetime.now()
        logger.info("RunLog reset")

    def set_seed(self, seed: int) -> None:
        """Record the RNG seed used for this session."""
        self._seed = seed
        logger.info(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _log_event(self, event: LogEvent) -> None:
        if self._paused:
            return

        self._sequence += 1
        event.sequence_number = self._sequence
        self._events.append(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_roll(
        self,
        notation: str,
        rolls: list[int],
        total: int,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RollEvent:
        """Log a dice roll."""
        event = RollEvent(
            notation=notation,
            rolls=rolls,
            total=total,
            reason=reason,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_evaluation(
        self,
        keyword: str,
        mode: str,
        values: list[int],
        burned: list[bool],
        result_index: Optional[int],
        can_karma: bool,
        can_confirm: bool,
        context: Optional[dict[str, Any]] = None,
    ) -> EvaluationEvent:
        """Log a pool evaluation."""
        event = EvaluationEvent(
            keyword=keyword,
            mode=mode,
            values=values,
            burned=burned,
            result_index=result_index,
            can_karma=can_karma,
            can_confirm=can_confirm,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_resource_change(
        self,
        resource_id: str,
        resource_name: str,
        old_value: int,
        new_value: int,
        max_value: int = 0,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> Optional[ResourceChangeEvent]:
        """Log a resource value change. Unchanged values are not logged."""
        if old_value == new_value:
            return None
        event = ResourceChangeEvent(
            resource_id=resource_id,
            resource_name=resource_name,
            old_value=old_value,
            new_value=new_value,
            max_value=max_value,
            reason=reason,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_custom(self, event_name: str, details: dict[str, Any]) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_evaluations(self) -> list[EvaluationEvent]:
        return [e for e in self._events if isinstance(e, EvaluationEvent)]

    def get_resource_changes(self) -> list[ResourceChangeEvent]:
        return [e for e in self._events if isinstance(e, ResourceChangeEvent)]

    def get_resource_summary(self) -> list[ResourceChangeRow]:
        """Resource changes merged into summary rows."""
        return merge_resource_changes(self.get_resource_changes())

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "rolls": len(self.get_rolls()),
            "evaluations": len(self.get_evaluations()),
            "resource_changes": len(self.get_resource_changes()),
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Load a log from a file into the global instance."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = get_run_log()
        log.reset()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._seed = data.get("seed")
        log._sequence = data.get("sequence", 0)

        for event_data in data.get("events", []):
            event_type = EventType(event_data["event_type"])
            event_cls = _EVENT_CLASSES.get(event_type, LogEvent)
            log._events.append(event_cls.from_dict(event_data))

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """Format the log as a human-readable string."""
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)


# Singleton access
_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
