"""In-memory timetable pipeline: extraction through view models."""
import logging
from datetime import datetime, timezone
from typing import Optional

from processor.config import TimetableConfig
from processor.event_expander import EventExpander
from processor.event_grouper import EventGrouper
from processor.models import TimetableResult
from processor.timezone_normalizer import TimezoneNormalizer
from processor.view_model import ViewModelBuilder
from scraper.timetable_extractor import TimetableExtractor

logger = logging.getLogger(__name__)


def build_timetable(
    text: str,
    config: TimetableConfig,
    now: Optional[datetime] = None
) -> TimetableResult:
    """
    Turn fetched page text into grouped days and view models.

    Args:
        text: Page HTML or raw JSON payload
        config: Timetable configuration
        now: Current instant (defaults to the current UTC time)

    Returns:
        TimetableResult; per-record errors are collected, not raised

    Raises:
        TimetableError: If the payload cannot be extracted
    """
    now = now or datetime.now(timezone.utc)

    document = TimetableExtractor().extract(text)
    expanded = EventExpander().expand(document.events)
    normalized = TimezoneNormalizer(config).normalize(expanded)
    days = EventGrouper(config).group(normalized.events)
    views = ViewModelBuilder(config, document.competition_slug).build(days, now)

    errors = document.errors + normalized.errors
    if errors:
        logger.warning(
            f"Timetable built with {len(errors)} skipped records",
            extra={'record_errors': [str(e) for e in errors]}
        )

    return TimetableResult(
        variant=document.variant,
        days=days,
        views=views,
        errors=errors
    )
