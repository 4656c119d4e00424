"""Display attributes derived from grouped timetable data."""
import re
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from processor.config import TimetableConfig
from processor.models import (
    DayBucket,
    DayView,
    EventLinks,
    EventView,
    NormalizedEvent,
    SessionView,
)


CATEGORY_FINAL = 'final'
CATEGORY_QUALIFICATION = 'qualification'
CATEGORY_HEATS = 'heats'
CATEGORY_OTHER = 'other'

# First match wins
PHASE_CATEGORIES = (
    (CATEGORY_FINAL, ('Final',)),
    (CATEGORY_QUALIFICATION, ('Qualification', 'Preliminary', 'Decathlon', 'Heptathlon')),
    (CATEGORY_HEATS, ('Heats',)),
)

CATEGORY_COLORS = {
    CATEGORY_FINAL: '#fbd1bb',
    CATEGORY_QUALIFICATION: '#dfd0fa',
    CATEGORY_HEATS: '#c2e9ed',
    CATEGORY_OTHER: 'transparent',
}

MULTI_EVENT_MARKERS = ('Decathlon', 'Heptathlon')
SEX_CODES = {'M': "Men's", 'W': "Women's", 'X': 'Mixed'}


def all_units_have(event, flag: str) -> bool:
    """
    Whether a publication flag is set on every unit of an event.

    Falls back to the event's own flag when it has no units.
    """
    if not event.units:
        return bool(getattr(event, flag, False))
    return all(getattr(unit, flag, False) for unit in event.units)


def is_live(
    event: NormalizedEvent,
    now: datetime,
    window: timedelta,
    lead: timedelta = timedelta(0)
) -> bool:
    """
    Whether the event is in progress and its results are not yet out.

    Args:
        event: Normalized event
        now: Current aware instant
        window: How long after start an event without end time stays live
        lead: How long before start the event counts as live

    Returns:
        True if the LIVE badge applies
    """
    if all_units_have(event, 'is_result_published'):
        return False
    end_at = event.end_at or event.start_at + window
    return event.start_at - lead <= now <= end_at


def phase_category(phase_name: str) -> str:
    for category, markers in PHASE_CATEGORIES:
        if any(marker in phase_name for marker in markers):
            return category
    return CATEGORY_OTHER


def active_day(days: Dict[str, DayBucket], today: date) -> Optional[DayBucket]:
    """
    The day bucket shown first.

    Args:
        days: Grouped timetable
        today: Current date in the target timezone

    Returns:
        The bucket for today, else the first bucket, else None
    """
    for bucket in days.values():
        if bucket.date == today:
            return bucket
    return next(iter(days.values()), None)


def sex_label(event: NormalizedEvent) -> str:
    slug = event.event.sex_slug
    if slug:
        label = slug.capitalize()
        if label in ('Men', 'Women'):
            label += "'s"
        return label
    if event.event.sex_code:
        return SEX_CODES.get(event.event.sex_code, 'N/A')
    return 'N/A'


def event_links(event: NormalizedEvent, base_url: str) -> EventLinks:
    """
    Result, startlist and summary links for an event.

    Results replace the startlist once published. Multi-event phases
    (decathlon, heptathlon) put the phase before the discipline in the path.

    Args:
        event: Normalized event
        base_url: Results base URL ending with a slash

    Returns:
        EventLinks with only the published links set
    """
    source = event.event
    if any(marker in source.phase_name for marker in MULTI_EVENT_MARKERS):
        path = f"{source.sex_slug}/{source.phase_slug}/{source.discipline_slug}"
    else:
        path = f"{source.sex_slug}/{source.discipline_slug}/{source.phase_slug}"

    links = EventLinks()
    if all_units_have(event, 'is_result_published'):
        links.results_url = f"{base_url}{path}/results"
    elif all_units_have(event, 'is_startlist_published'):
        links.startlist_url = f"{base_url}{path}/startlist"
    if all_units_have(event, 'is_phase_summary_published'):
        links.summary_url = f"{base_url}{path}/summary"
    return links


def slugify(text: str) -> str:
    return re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')


def time_label(instant: datetime) -> str:
    """Format as "5:30 AM"."""
    return instant.strftime('%I:%M %p').lstrip('0')


class ViewModelBuilder:
    """Builds day, session and event view models for the renderer."""

    def __init__(self, config: TimetableConfig, competition_slug: str = ''):
        self.config = config
        self.base_url = config.results_url_for(competition_slug)

    def build(self, days: Dict[str, DayBucket], now: datetime) -> List[DayView]:
        """
        Build view models for all days.

        Args:
            days: Grouped timetable
            now: Current aware instant

        Returns:
            List of DayView in display order
        """
        local_now = now.astimezone(self.config.target_zone)
        today = local_now.date()
        active = active_day(days, today)

        views = []
        for bucket in days.values():
            day_caption, _, date_caption = bucket.label.partition(' - ')
            is_today = bucket.date == today
            views.append(DayView(
                label=bucket.label,
                dom_id=slugify(bucket.label),
                day_caption='TODAY' if is_today else day_caption,
                date_caption=date_caption,
                is_today=is_today,
                is_active=bucket is active,
                sessions=[
                    self._build_session(bucket, name, events, local_now)
                    for name, events in bucket.sessions.items()
                ]
            ))
        return views

    def _build_session(
        self,
        bucket: DayBucket,
        name: str,
        events: List[NormalizedEvent],
        now: datetime
    ) -> SessionView:
        event_views = [self._build_event(event, now) for event in events]
        return SessionView(
            name=name,
            dom_id=slugify(f"{bucket.label}-{name}"),
            is_ended=all(view.is_ended for view in event_views),
            events=event_views
        )

    def _build_event(self, event: NormalizedEvent, now: datetime) -> EventView:
        category = phase_category(event.phase_name)
        suffix = event.event.phase_order or event.start_at.strftime('%H%M')
        if event.event.group_index is not None:
            suffix = f"{suffix}-g{event.event.group_index}"
        return EventView(
            dom_id=f"event-{event.event_id}-{suffix}",
            time_label=time_label(event.start_at),
            sex_label=sex_label(event),
            discipline_name=event.event.discipline_name or 'N/A',
            phase_name=event.phase_name,
            category=category,
            color=CATEGORY_COLORS[category],
            is_live=is_live(event, now, self.config.live_window, self.config.live_lead),
            is_ended=all_units_have(event, 'is_result_published'),
            links=event_links(event, self.base_url)
        )
