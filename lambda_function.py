"""AWS Lambda handler rendering the athletics timetable as HTML."""
import json
import logging
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from processor.config import TimetableConfig
from processor.errors import TimetableError
from processor.pipeline import build_timetable
from renderer.html_renderer import HtmlRenderer
from scraper.timetable_fetcher import TimetableFetcher


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    # Attributes every LogRecord has; anything else came from `extra=`
    RESERVED_ATTRS = frozenset(
        logging.LogRecord('', 0, '', 0, '', (), None).__dict__
    ) | {'message', 'asctime'}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self.RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _html_response(status_code: int, html: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    response_headers = {'Content-Type': 'text/html; charset=utf-8'}
    response_headers.update(headers or {})
    return {
        'statusCode': status_code,
        'headers': response_headers,
        'body': html
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Fetch, process and render the timetable.

    Args:
        event: Invocation payload (unused)
        context: Lambda context object

    Returns:
        Response dict with statusCode, headers and HTML body
    """
    start_time = time.time()

    try:
        config = TimetableConfig.from_env()
    except ValueError as e:
        setup_logging()
        logger = logging.getLogger(__name__)
        logger.error(f"Invalid timetable configuration: {e}", exc_info=True)
        return _html_response(
            500, HtmlRenderer(TimetableConfig()).render_error(f"Invalid configuration: {e}")
        )

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)
    renderer = HtmlRenderer(config)

    logger.info(
        "Timetable render started",
        extra={
            'url': config.url,
            'source_timezone': config.source_timezone,
            'target_timezone': config.target_timezone
        }
    )

    try:
        logger.info("Fetching timetable page")
        body = TimetableFetcher(config).fetch()

        logger.info("Processing timetable data")
        result = build_timetable(body, config, now=datetime.now(timezone.utc))

        html = renderer.render(result.views)

    except TimetableError as e:
        duration = time.time() - start_time
        logger.error(
            f"Timetable render failed: {e}",
            extra={
                'error_code': e.code,
                'context': e.context,
                'duration_seconds': round(duration, 2)
            }
        )
        return _html_response(502, renderer.render_error(str(e)))

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Timetable render failed unexpectedly: {str(e)}",
            extra={
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            },
            exc_info=True
        )
        return _html_response(500, renderer.render_error('The timetable is currently unavailable.'))

    duration = time.time() - start_time
    logger.info(
        "Timetable render completed successfully",
        extra={
            'variant': result.variant,
            'days': len(result.days),
            'skipped_records': len(result.errors),
            'duration_seconds': round(duration, 2)
        }
    )

    return _html_response(200, html, {'X-Skipped-Records': str(len(result.errors))})
