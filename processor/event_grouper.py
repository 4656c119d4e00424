"""Chronological sorting and day/session bucketing."""
import logging
from datetime import date
from typing import Dict, List

from processor.config import TimetableConfig
from processor.models import DayBucket, NormalizedEvent

logger = logging.getLogger(__name__)


class EventGrouper:
    """Groups normalized events into numbered days and sessions."""

    DATE_FORMAT = '%b %d'

    def __init__(self, config: TimetableConfig):
        self.config = config

    def day_number(self, day: date) -> int:
        """
        Day number relative to the competition start date.

        The start date is day 1. Days before it yield 0 or negative numbers.
        """
        return (day - self.config.reference_date).days + 1

    def day_label(self, day: date) -> str:
        return f"Day {self.day_number(day)} - {day.strftime(self.DATE_FORMAT)}"

    def group(self, events: List[NormalizedEvent]) -> Dict[str, DayBucket]:
        """
        Sort events and bucket them by target-timezone date and session.

        Args:
            events: Normalized events in any order

        Returns:
            Ordered mapping of day label to DayBucket
        """
        # sorted() is stable, so simultaneous events keep their input order
        ordered = sorted(events, key=lambda event: event.start_at)
        target_zone = self.config.target_zone

        days: Dict[str, DayBucket] = {}
        current_date = None
        bucket = None

        for event in ordered:
            event_date = event.start_at.astimezone(target_zone).date()
            if event_date != current_date:
                current_date = event_date
                label = self.day_label(event_date)
                bucket = days.get(label)
                if bucket is None:
                    bucket = DayBucket(
                        label=label,
                        date=event_date,
                        day_number=self.day_number(event_date)
                    )
                    days[label] = bucket

            bucket.sessions.setdefault(event.session, []).append(event)

        logger.info(f"Grouped {len(ordered)} events into {len(days)} days")
        return days
