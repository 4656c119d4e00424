"""Timezone conversion of expanded events."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

from processor.config import SessionSwapPolicy, TimetableConfig
from processor.errors import RecordParseFailed
from processor.models import ExpandedEvent, NormalizationResult, NormalizedEvent

logger = logging.getLogger(__name__)


NO_SESSION = 'No Session'
SESSION_SWAPS = {
    'Morning Session': 'Evening Session',
    'Evening Session': 'Morning Session',
}
HALF_DAY = timedelta(hours=12)


def parse_timestamp(value: str, default_zone: ZoneInfo) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Args:
        value: Timestamp such as "2025-09-13T10:00:00+09:00" or
            "2025-09-13T01:00:00.000Z"
        default_zone: Zone applied when the timestamp carries no offset

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp
    """
    text = value.strip()
    if text[-1:] in ('Z', 'z'):
        text = text[:-1] + '+00:00'

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_zone)
    return parsed


class TimezoneNormalizer:
    """Converts event times from the source to the target timezone."""

    def __init__(self, config: TimetableConfig):
        """
        Initialize the normalizer.

        Args:
            config: Timetable configuration (zones, swap policy, session names)
        """
        self.config = config
        self.source_zone = config.source_zone
        self.target_zone = config.target_zone

    def normalize(self, events: List[ExpandedEvent]) -> NormalizationResult:
        """
        Convert every event, skipping those with unparseable timestamps.

        Args:
            events: Expanded events

        Returns:
            NormalizationResult with converted events and per-record errors
        """
        normalized = []
        errors = []

        for event in events:
            try:
                normalized.append(self.normalize_event(event))
            except RecordParseFailed as e:
                logger.warning(
                    f"Skipping event '{event.phase_name}': {e}",
                    extra={'event_id': event.event_id}
                )
                errors.append(e)

        logger.info(
            f"Normalized {len(normalized)} events out of {len(events)} total events"
        )
        return NormalizationResult(events=normalized, errors=errors)

    def normalize_event(self, event: ExpandedEvent) -> NormalizedEvent:
        """
        Convert a single event.

        Args:
            event: Expanded event

        Returns:
            NormalizedEvent in the target timezone

        Raises:
            RecordParseFailed: If the start or end timestamp cannot be parsed
        """
        start_at = self.convert(event.start, event.event_id)
        end_at: Optional[datetime] = None
        if event.end:
            end_at = self.convert(event.end, event.event_id)

        return NormalizedEvent(
            event=event,
            start_at=start_at,
            end_at=end_at,
            session=self.session_label(event.session_name, start_at)
        )

    def convert(self, value: str, record_id: str = '') -> datetime:
        """
        Convert a source timestamp to the target timezone.

        Args:
            value: ISO-8601 timestamp from the payload
            record_id: Event id used in error reports

        Returns:
            Aware datetime in the target timezone

        Raises:
            RecordParseFailed: If the timestamp cannot be parsed
        """
        try:
            parsed = parse_timestamp(value, self.source_zone)
        except (ValueError, TypeError, AttributeError) as e:
            raise RecordParseFailed(
                f"Invalid timestamp {value!r}: {e}", record_id=record_id, value=value
            ) from e
        return parsed.astimezone(self.target_zone)

    def should_swap_sessions(self, instant: datetime) -> bool:
        """
        Apply the configured swap policy at the given instant.

        Args:
            instant: Aware event start

        Returns:
            True if Morning and Evening session names should be exchanged
        """
        policy = self.config.session_swap_policy
        if policy is SessionSwapPolicy.ALWAYS:
            return True
        if policy is SessionSwapPolicy.NEVER:
            return False

        source_offset = instant.astimezone(self.source_zone).utcoffset()
        target_offset = instant.astimezone(self.target_zone).utcoffset()
        return abs(source_offset - target_offset) >= HALF_DAY

    def session_label(self, session_name: str, instant: datetime) -> str:
        """
        Display label for a session after swapping and overrides.

        Args:
            session_name: Session name from the payload
            instant: Aware event start

        Returns:
            Session label
        """
        name = session_name or NO_SESSION
        if name in SESSION_SWAPS and self.should_swap_sessions(instant):
            name = SESSION_SWAPS[name]
        return self.config.session_names.get(name) or name
