"""Extractor for the timetable JSON embedded in the source page."""
import hashlib
import json
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from processor.errors import (
    DecodeFailed,
    EmptyBody,
    MarkerNotFound,
    RecordParseFailed,
    SchemaInvalid,
)
from processor.models import RawEvent, TimetableDocument, Unit

logger = logging.getLogger(__name__)


class TimetableExtractor:
    """Locates, decodes and validates the embedded timetable payload."""

    MARKER_ID = '__NEXT_DATA__'
    # Checked in order; the first list found decides the schema variant.
    VARIANT_KEYS = ('phases', 'eventTimetable')

    def extract(self, text: str) -> TimetableDocument:
        """
        Extract the timetable document from HTML or raw JSON text.

        Args:
            text: Page HTML or the JSON payload itself

        Returns:
            TimetableDocument with the decoded events of one schema variant

        Raises:
            EmptyBody: If the text is empty
            MarkerNotFound: If the HTML has no embedded data script
            DecodeFailed: If the payload is not valid JSON
            SchemaInvalid: If the timetable path is missing
        """
        if not text or not text.strip():
            raise EmptyBody('Could not retrieve timetable content.')

        stripped = text.lstrip()
        if stripped.startswith('{') or stripped.startswith('['):
            json_string = stripped
        else:
            json_string = self._find_json_block(text)

        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise DecodeFailed(
                f"Failed to decode the JSON data: {e.msg}",
                context={'line': e.lineno, 'column': e.colno}
            ) from e

        variant, entries = self._resolve_variant(data)
        events, errors = self._parse_events(entries)

        page_props = data['props']['pageProps']
        competition_slug = self._get_path(page_props, ('page', 'event', 'nameUrlSlug'))

        logger.info(
            f"Extracted {len(events)} events from '{variant}' payload",
            extra={'variant': variant, 'record_errors': len(errors)}
        )
        return TimetableDocument(
            variant=variant,
            events=events,
            competition_slug=competition_slug if isinstance(competition_slug, str) else '',
            errors=errors
        )

    def _find_json_block(self, html_content: str) -> str:
        """
        Return the text of the embedded data script tag.

        Args:
            html_content: Page HTML

        Returns:
            JSON string inside the script tag

        Raises:
            MarkerNotFound: If the tag is absent or empty
        """
        soup = BeautifulSoup(html_content, 'html.parser')
        script = soup.find('script', id=self.MARKER_ID)
        if script is None:
            raise MarkerNotFound(
                'The data script tag was not found in the page source.',
                context={'marker': self.MARKER_ID}
            )

        json_string = script.string or script.get_text()
        if not json_string or not json_string.strip():
            raise MarkerNotFound(
                'The data script tag is empty.',
                context={'marker': self.MARKER_ID}
            )
        return json_string

    def _resolve_variant(self, data: Any) -> tuple[str, List[Any]]:
        """
        Find the event list and its schema variant.

        Args:
            data: Decoded JSON document

        Returns:
            Tuple of (variant name, list of raw entries)

        Raises:
            SchemaInvalid: If no variant list is present
        """
        page_props = self._get_path(data, ('props', 'pageProps'))
        if isinstance(page_props, dict):
            for key in self.VARIANT_KEYS:
                entries = page_props.get(key)
                if isinstance(entries, list):
                    return key, entries

        raise SchemaInvalid(
            'The expected data path within the JSON is invalid.',
            context=self._describe_shape(data)
        )

    def _describe_shape(self, data: Any) -> Dict[str, Any]:
        """Summarize the document shape for SchemaInvalid diagnostics."""
        shape: Dict[str, Any] = {
            'expected': [f"props.pageProps.{key}" for key in self.VARIANT_KEYS],
            'top_level_type': type(data).__name__,
        }
        if isinstance(data, dict):
            shape['top_level_keys'] = sorted(data.keys())

        resolved = []
        node = data
        for key in ('props', 'pageProps'):
            if not isinstance(node, dict) or key not in node:
                break
            node = node[key]
            resolved.append(key)
        shape['resolved_path'] = '.'.join(resolved)
        if isinstance(node, dict) and resolved:
            shape['resolved_keys'] = sorted(node.keys())
        return shape

    def _parse_events(self, entries: List[Any]) -> tuple[List[RawEvent], List[RecordParseFailed]]:
        """
        Decode raw entries into RawEvent objects, skipping invalid ones.

        Args:
            entries: Event entries from the payload

        Returns:
            Tuple of (events, per-record errors)
        """
        events = []
        errors = []

        for index, entry in enumerate(entries):
            try:
                events.append(self._parse_event(entry))
            except RecordParseFailed as e:
                if not e.record_id:
                    e.record_id = f"#{index}"
                logger.warning(f"Skipping timetable entry: {e}")
                errors.append(e)

        return events, errors

    def _parse_event(self, entry: Any) -> RawEvent:
        """
        Decode a single timetable entry.

        Args:
            entry: Decoded JSON object for one phase

        Returns:
            RawEvent

        Raises:
            RecordParseFailed: If the entry lacks a phase name or start time
        """
        if not isinstance(entry, dict):
            raise RecordParseFailed(
                f"Expected an object, got {type(entry).__name__}", value=entry
            )

        record_id = self._text(entry, 'id')
        phase_name = self._text(entry, 'phaseName')
        if not phase_name:
            raise RecordParseFailed('Missing phaseName', record_id=record_id)

        units = self._parse_units(entry.get('units'), record_id)

        start = self._text(entry, 'phaseDateAndTime')
        if not start:
            start = next((unit.start for unit in units if unit.start), '')
        if not start:
            raise RecordParseFailed('Missing phaseDateAndTime', record_id=record_id)

        discipline = entry.get('discipline')
        if not isinstance(discipline, dict):
            discipline = {}

        sex_code = self._text(entry, 'sexCode')
        discipline_name = self._text(discipline, 'name')

        return RawEvent(
            event_id=record_id or self.generate_event_id(
                discipline=discipline_name,
                sex=sex_code,
                phase=phase_name,
                start=start
            ),
            discipline_name=discipline_name,
            discipline_slug=self._text(discipline, 'nameUrlSlug'),
            sex_code=sex_code,
            sex_name=self._text(entry, 'sexName'),
            sex_slug=self._text(entry, 'sexNameUrlSlug'),
            phase_name=phase_name,
            phase_slug=self._text(entry, 'phaseNameUrlSlug'),
            phase_order=self._text(entry, 'phaseOrder'),
            session_name=self._text(entry, 'phaseSessionName'),
            start=start,
            end=self._text(entry, 'phaseEndDateAndTime') or None,
            is_startlist_published=entry.get('isStartlistPublished') is True,
            is_result_published=entry.get('isResultPublished') is True,
            is_phase_summary_published=entry.get('isPhaseSummaryPublished') is True,
            units=units,
            unit_type_name=self._text(entry, 'unitTypeName'),
            unit_name=self._text(entry, 'unitName')
        )

    def _parse_units(self, raw_units: Any, record_id: str) -> List[Unit]:
        """
        Decode the optional units list.

        Every entry is kept so publication flags are judged over all units.
        A unit without a start gets an empty start; a non-object entry
        becomes an undated, unpublished unit.
        """
        if not isinstance(raw_units, list):
            return []

        units = []
        for raw_unit in raw_units:
            if not isinstance(raw_unit, dict):
                logger.warning(f"Malformed unit in event {record_id or '?'}, treating it as unpublished")
                units.append(Unit(start=''))
                continue
            if not self._text(raw_unit, 'startDateTime'):
                logger.warning(f"Unit without startDateTime in event {record_id or '?'}")
            units.append(Unit(
                start=self._text(raw_unit, 'startDateTime'),
                name=self._text(raw_unit, 'unitName'),
                unit_type=self._text(raw_unit, 'unitType'),
                is_startlist_published=raw_unit.get('isStartlistPublished') is True,
                is_result_published=raw_unit.get('isResultPublished') is True,
                is_phase_summary_published=raw_unit.get('isPhaseSummaryPublished') is True
            ))
        return units

    @staticmethod
    def _text(data: Dict[str, Any], key: str) -> str:
        value = data.get(key)
        if value is None:
            return ''
        return str(value).strip()

    @staticmethod
    def _get_path(data: Any, path: tuple) -> Optional[Any]:
        node = data
        for key in path:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return node

    @staticmethod
    def generate_event_id(discipline: str, sex: str, phase: str, start: str) -> str:
        """
        Generate a placeholder identifier for an event without an id.

        Args:
            discipline: Discipline name
            sex: Sex code
            phase: Phase name
            start: Start timestamp as given in the payload

        Returns:
            SHA256 hex digest of the composite key
        """
        composite = f"{discipline}|{sex}|{phase}|{start}"
        return hashlib.sha256(composite.encode('utf-8')).hexdigest()
