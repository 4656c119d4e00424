"""Expansion of grouped qualification phases into flat events."""
import logging
from typing import Dict, List

from processor.models import ExpandedEvent, RawEvent, Unit

logger = logging.getLogger(__name__)


class EventExpander:
    """Rewrites grouped sub-events into one event per distinct start time."""

    GROUPED_UNIT_TYPE = 'G'

    def expand(self, raw_events: List[RawEvent]) -> List[ExpandedEvent]:
        """
        Expand raw events.

        Units of a grouped phase are partitioned by exact start timestamp.
        Concurrent units collapse into one event carrying the phase name;
        a unit with its own start time becomes "<phase> - Group <unit>".

        Args:
            raw_events: Events in payload order

        Returns:
            Expanded events (not yet chronological)
        """
        expanded = []

        for event in raw_events:
            if self.is_grouped(event):
                expanded.extend(self._expand_grouped(event))
            elif event.unit_type_name and event.unit_name:
                expanded.append(ExpandedEvent.from_raw(
                    event,
                    phase_name=f"{event.phase_name} - {event.unit_type_name} {event.unit_name}"
                ))
            else:
                expanded.append(ExpandedEvent.from_raw(event))

        logger.info(f"Expanded {len(raw_events)} raw events into {len(expanded)} events")
        return expanded

    def is_grouped(self, event: RawEvent) -> bool:
        """Whether the event is a grouped qualification phase."""
        return bool(event.units) and event.units[0].unit_type == self.GROUPED_UNIT_TYPE

    def _expand_grouped(self, event: RawEvent) -> List[ExpandedEvent]:
        partitions: Dict[str, List[Unit]] = {}
        for unit in event.units:
            # Undated units share the phase start
            partitions.setdefault(unit.start or event.start, []).append(unit)

        expanded = []
        for index, (start, units) in enumerate(partitions.items()):
            if len(units) > 1:
                # Simultaneous heats are not individually named
                phase_name = event.phase_name
            else:
                phase_name = f"{event.phase_name} - Group {units[0].name}"
            expanded.append(ExpandedEvent.from_raw(
                event,
                phase_name=phase_name,
                start=start,
                units=units,
                group_index=index
            ))
        return expanded
