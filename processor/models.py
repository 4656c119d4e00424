"""Data models for timetable processing."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from processor.errors import RecordParseFailed


@dataclass
class Unit:
    """Sub-division of a phase (a heat or qualification group)."""
    start: str
    name: str = ''
    unit_type: str = ''
    is_startlist_published: bool = False
    is_result_published: bool = False
    is_phase_summary_published: bool = False


@dataclass
class RawEvent:
    """Event as decoded from the timetable payload."""
    event_id: str
    discipline_name: str
    discipline_slug: str
    sex_code: str
    sex_name: str
    sex_slug: str
    phase_name: str
    phase_slug: str
    phase_order: str
    session_name: str
    start: str
    end: Optional[str] = None
    is_startlist_published: bool = False
    is_result_published: bool = False
    is_phase_summary_published: bool = False
    units: List[Unit] = field(default_factory=list)
    unit_type_name: str = ''
    unit_name: str = ''


@dataclass
class ExpandedEvent:
    """One event per distinct (phase, start time) pair."""
    event_id: str
    discipline_name: str
    discipline_slug: str
    sex_code: str
    sex_name: str
    sex_slug: str
    phase_name: str
    phase_slug: str
    phase_order: str
    session_name: str
    start: str
    end: Optional[str]
    is_startlist_published: bool
    is_result_published: bool
    is_phase_summary_published: bool
    units: List[Unit]
    # Position among the groups split from one grouped phase
    group_index: Optional[int] = None

    @classmethod
    def from_raw(cls, raw: RawEvent, **overrides) -> 'ExpandedEvent':
        """Copy a RawEvent, replacing the given fields."""
        values = {
            'event_id': raw.event_id,
            'discipline_name': raw.discipline_name,
            'discipline_slug': raw.discipline_slug,
            'sex_code': raw.sex_code,
            'sex_name': raw.sex_name,
            'sex_slug': raw.sex_slug,
            'phase_name': raw.phase_name,
            'phase_slug': raw.phase_slug,
            'phase_order': raw.phase_order,
            'session_name': raw.session_name,
            'start': raw.start,
            'end': raw.end,
            'is_startlist_published': raw.is_startlist_published,
            'is_result_published': raw.is_result_published,
            'is_phase_summary_published': raw.is_phase_summary_published,
            'units': list(raw.units),
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class NormalizedEvent:
    """Expanded event with start/end converted to the target timezone."""
    event: ExpandedEvent
    start_at: datetime
    end_at: Optional[datetime]
    session: str

    @property
    def event_id(self) -> str:
        return self.event.event_id

    @property
    def phase_name(self) -> str:
        return self.event.phase_name

    @property
    def units(self) -> List[Unit]:
        return self.event.units

    @property
    def is_startlist_published(self) -> bool:
        return self.event.is_startlist_published

    @property
    def is_result_published(self) -> bool:
        return self.event.is_result_published

    @property
    def is_phase_summary_published(self) -> bool:
        return self.event.is_phase_summary_published


@dataclass
class TimetableDocument:
    """Decoded timetable payload, resolved to a single schema variant."""
    variant: str
    events: List[RawEvent]
    competition_slug: str = ''
    errors: List[RecordParseFailed] = field(default_factory=list)


@dataclass
class NormalizationResult:
    """Result of timezone normalization."""
    events: List[NormalizedEvent]
    errors: List[RecordParseFailed]


@dataclass
class DayBucket:
    """Events of one target-timezone calendar day, grouped by session."""
    label: str
    date: date
    day_number: int
    sessions: Dict[str, List[NormalizedEvent]] = field(default_factory=dict)

    @property
    def events(self) -> List[NormalizedEvent]:
        return [event for events in self.sessions.values() for event in events]


@dataclass
class EventLinks:
    """Result, startlist and summary URLs shown for an event."""
    results_url: Optional[str] = None
    startlist_url: Optional[str] = None
    summary_url: Optional[str] = None


@dataclass
class EventView:
    """Display attributes for a single event row."""
    dom_id: str
    time_label: str
    sex_label: str
    discipline_name: str
    phase_name: str
    category: str
    color: str
    is_live: bool
    is_ended: bool
    links: EventLinks


@dataclass
class SessionView:
    """Display attributes for a session accordion."""
    name: str
    dom_id: str
    is_ended: bool
    events: List[EventView]

    @property
    def event_count(self) -> int:
        return len(self.events)


@dataclass
class DayView:
    """Display attributes for a day tab."""
    label: str
    dom_id: str
    day_caption: str
    date_caption: str
    is_today: bool
    is_active: bool
    sessions: List[SessionView]


@dataclass
class TimetableResult:
    """Outcome of the in-memory pipeline for one render."""
    variant: str
    days: Dict[str, DayBucket]
    views: List[DayView]
    errors: List[RecordParseFailed]
