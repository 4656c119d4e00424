"""Configuration for a timetable render."""
import os
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


DEFAULT_TIMETABLE_URL = (
    'https://worldathletics.org/competitions/'
    'world-athletics-championships/tokyo25/timetable'
)
DEFAULT_HEADERS = ('Time', 'Sex', 'Event', 'Round')


class SessionSwapPolicy(Enum):
    """When Morning and Evening session names are exchanged on conversion."""
    NEVER = 'never'
    ALWAYS = 'always'
    # Swap when the zones are at least half a day apart at the event instant,
    # which inverts the perceived time of day.
    OFFSET = 'offset'


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class TimetableConfig:
    """Settings passed explicitly into every pipeline stage."""
    url: str = DEFAULT_TIMETABLE_URL
    timeout: int = 30
    max_retries: int = 3
    verify_tls: bool = True
    headers: Tuple[str, str, str, str] = DEFAULT_HEADERS
    source_timezone: str = 'Asia/Tokyo'
    target_timezone: str = 'America/Jamaica'
    session_swap_policy: SessionSwapPolicy = SessionSwapPolicy.OFFSET
    session_names: Mapping[str, str] = field(default_factory=dict)
    reference_date: date = date(2025, 9, 12)
    results_base_url: Optional[str] = None
    live_window: timedelta = timedelta(minutes=120)
    live_lead: timedelta = timedelta(0)
    log_level: str = 'INFO'

    def __post_init__(self):
        if len(self.headers) != 4:
            raise ValueError(
                f"Exactly 4 table headers are required, got {len(self.headers)}"
            )
        for name in (self.source_timezone, self.target_timezone):
            try:
                ZoneInfo(name)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone: {name}") from e
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")
        if self.max_retries < 1:
            raise ValueError("At least one fetch attempt is required")

    @property
    def source_zone(self) -> ZoneInfo:
        return ZoneInfo(self.source_timezone)

    @property
    def target_zone(self) -> ZoneInfo:
        return ZoneInfo(self.target_timezone)

    def results_url_for(self, competition_slug: str = '') -> str:
        """
        Base URL for result/startlist/summary links.

        Args:
            competition_slug: Competition slug from the payload, if any

        Returns:
            URL ending with a slash
        """
        if self.results_base_url:
            base = self.results_base_url
        elif competition_slug:
            base = (
                'https://worldathletics.org/competitions/'
                f'world-athletics-championships/{competition_slug}/results/'
            )
        else:
            base = self.url.rsplit('/', 1)[0] + '/results/'
        return base if base.endswith('/') else base + '/'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'TimetableConfig':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            TimetableConfig instance

        Raises:
            ValueError: If a value cannot be parsed
        """
        env = os.environ if environ is None else environ

        headers = DEFAULT_HEADERS
        if env.get('TABLE_HEADERS'):
            headers = tuple(h.strip() for h in env['TABLE_HEADERS'].split(','))

        session_names: Dict[str, str] = {}
        for canonical, var in (
            ('Morning Session', 'MORNING_SESSION_NAME'),
            ('Afternoon Session', 'AFTERNOON_SESSION_NAME'),
            ('Evening Session', 'EVENING_SESSION_NAME'),
        ):
            value = env.get(var, '').strip()
            if value:
                session_names[canonical] = value

        reference_date = cls.reference_date
        if env.get('COMPETITION_START_DATE'):
            reference_date = date.fromisoformat(env['COMPETITION_START_DATE'].strip())

        return cls(
            url=env.get('TIMETABLE_URL', DEFAULT_TIMETABLE_URL),
            timeout=int(env.get('TIMEOUT_SECONDS', '30')),
            max_retries=int(env.get('MAX_RETRIES', '3')),
            verify_tls=_parse_bool(env.get('VERIFY_TLS', 'true')),
            headers=headers,
            source_timezone=env.get('SOURCE_TIMEZONE', 'Asia/Tokyo'),
            target_timezone=env.get('TARGET_TIMEZONE', 'America/Jamaica'),
            session_swap_policy=SessionSwapPolicy(
                env.get('SESSION_SWAP_POLICY', 'offset').strip().lower()
            ),
            session_names=session_names,
            reference_date=reference_date,
            results_base_url=env.get('RESULTS_BASE_URL') or None,
            live_window=timedelta(minutes=int(env.get('LIVE_WINDOW_MINUTES', '120'))),
            live_lead=timedelta(minutes=int(env.get('LIVE_LEAD_MINUTES', '0'))),
            log_level=env.get('LOG_LEVEL', 'INFO'),
        )
