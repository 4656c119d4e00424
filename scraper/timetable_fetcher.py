"""HTTP fetcher for the timetable page."""
import logging
import time
from typing import Optional

import requests

from processor.config import TimetableConfig
from processor.errors import EmptyBody, FetchFailed

logger = logging.getLogger(__name__)


class TimetableFetcher:
    """Fetches the raw timetable HTML (or JSON) for the configured URL."""

    BASE_DELAY = 1  # seconds

    def __init__(self, config: TimetableConfig):
        """
        Initialize the fetcher.

        Args:
            config: Timetable configuration (URL, timeout, retries, TLS)
        """
        self.config = config

    def fetch(self, url: Optional[str] = None) -> str:
        """
        Fetch the timetable page with retry logic.

        Args:
            url: URL to fetch instead of the configured one

        Returns:
            Response body as string

        Raises:
            FetchFailed: If all retry attempts fail
            EmptyBody: If the response body is empty
        """
        url = url or self.config.url
        max_retries = self.config.max_retries

        for attempt in range(max_retries):
            try:
                logger.info(
                    f"Fetching timetable from {url} (attempt {attempt + 1}/{max_retries})"
                )
                response = requests.get(
                    url,
                    timeout=self.config.timeout,
                    verify=self.config.verify_tls
                )
                response.raise_for_status()
                break

            except requests.RequestException as e:
                if attempt < max_retries - 1:
                    # Exponential backoff
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise FetchFailed(
                        f"Error fetching timetable data: {e}",
                        context={'url': url, 'error_type': type(e).__name__}
                    ) from e

        body = response.text
        if not body or not body.strip():
            raise EmptyBody(
                'Could not retrieve timetable content from the URL.',
                context={'url': url, 'status_code': response.status_code}
            )

        logger.info(f"Fetched {len(body)} characters from {url}")
        return body
