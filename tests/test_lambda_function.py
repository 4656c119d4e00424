"""Integration tests for Lambda handler."""
import json
import logging
import os
from datetime import date
from unittest.mock import Mock, patch

import pytest
from bs4 import BeautifulSoup

from lambda_function import JsonFormatter, lambda_handler, setup_logging
from processor.errors import FetchFailed, SchemaInvalid


@pytest.fixture
def mock_env():
    """Set up environment variables for testing."""
    env_vars = {
        'TIMETABLE_URL': 'https://example.com/tokyo25/timetable',
        'LOG_LEVEL': 'INFO',
        'TIMEOUT_SECONDS': '15',
        'SOURCE_TIMEZONE': 'Asia/Tokyo',
        'TARGET_TIMEZONE': 'America/Jamaica',
        'COMPETITION_START_DATE': '2025-09-12',
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    context = Mock()
    context.function_name = 'test-function'
    context.aws_request_id = 'test-request-id'
    return context


@pytest.fixture
def sample_page():
    payload = {'props': {'pageProps': {'phases': [
        {
            'id': '1',
            'discipline': {'name': '100 Metres', 'nameUrlSlug': '100-metres'},
            'sexNameUrlSlug': 'men',
            'phaseName': 'Heats',
            'phaseSessionName': 'Evening Session',
            'phaseDateAndTime': '2025-09-13T19:30:00+09:00',
        },
        {
            'id': '2',
            'discipline': {'name': 'Shot Put', 'nameUrlSlug': 'shot-put'},
            'sexNameUrlSlug': 'women',
            'phaseName': 'Final',
            'phaseSessionName': 'Evening Session',
            'phaseDateAndTime': 'broken',
        },
    ]}}}
    return (
        '<html><body><script id="__NEXT_DATA__" type="application/json">'
        f'{json.dumps(payload)}</script></body></html>'
    )


class TestLambdaHandler:
    """Test cases for Lambda handler."""

    @patch('lambda_function.setup_logging')
    @patch('lambda_function.TimetableFetcher')
    def test_successful_render(
        self,
        mock_fetcher_class,
        mock_setup_logging,
        mock_env,
        mock_context,
        sample_page
    ):
        """Test successful end-to-end render."""
        mock_fetcher = Mock()
        mock_fetcher.fetch.return_value = sample_page
        mock_fetcher_class.return_value = mock_fetcher

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        assert response['headers']['Content-Type'].startswith('text/html')
        assert response['headers']['X-Skipped-Records'] == '1'
        soup = BeautifulSoup(response['body'], 'html.parser')
        assert soup.find('div', class_='wa-timetable-container') is not None
        assert [a.get_text(' ', strip=True) for a in soup.select('#timetableTabs a')] == ['Day 2 Sep 13']
        rows = soup.find_all('tr', class_='event-item')
        assert len(rows) == 1
        assert '5:30 AM' in rows[0].get_text()

        config = mock_fetcher_class.call_args.args[0]
        assert config.url == 'https://example.com/tokyo25/timetable'
        assert config.timeout == 15
        mock_fetcher.fetch.assert_called_once_with()
        mock_setup_logging.assert_called_once_with('INFO')

    @patch('lambda_function.setup_logging')
    @patch('lambda_function.TimetableFetcher')
    def test_fetch_failure_renders_inline_error(
        self,
        mock_fetcher_class,
        mock_setup_logging,
        mock_env,
        mock_context
    ):
        """Test error handling for fetch failures."""
        mock_fetcher = Mock()
        mock_fetcher.fetch.side_effect = FetchFailed('Error fetching timetable data: timed out')
        mock_fetcher_class.return_value = mock_fetcher

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 502
        soup = BeautifulSoup(response['body'], 'html.parser')
        alert = soup.find('div', class_='alert-danger')
        assert alert.get_text() == 'Error fetching timetable data: timed out'

    @patch('lambda_function.setup_logging')
    @patch('lambda_function.build_timetable')
    @patch('lambda_function.TimetableFetcher')
    def test_schema_failure_renders_inline_error(
        self,
        mock_fetcher_class,
        mock_build,
        mock_setup_logging,
        mock_env,
        mock_context
    ):
        """Test error handling for invalid payloads."""
        mock_fetcher_class.return_value.fetch.return_value = '{}'
        mock_build.side_effect = SchemaInvalid(
            'The expected data path within the JSON is invalid.',
            context={'top_level_keys': []}
        )

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 502
        assert 'expected data path' in response['body']

    @patch('lambda_function.setup_logging')
    @patch('lambda_function.build_timetable')
    @patch('lambda_function.TimetableFetcher')
    def test_unexpected_failure(
        self,
        mock_fetcher_class,
        mock_build,
        mock_setup_logging,
        mock_env,
        mock_context
    ):
        """Test that unexpected exceptions do not escape the handler."""
        mock_fetcher_class.return_value.fetch.return_value = '{}'
        mock_build.side_effect = RuntimeError('boom')

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        assert 'boom' not in response['body']
        assert 'currently unavailable' in response['body']

    @patch('lambda_function.setup_logging')
    @patch('lambda_function.TimetableFetcher')
    def test_invalid_configuration(
        self,
        mock_fetcher_class,
        mock_setup_logging,
        mock_context
    ):
        """Test that a bad timezone setting is reported without fetching."""
        with patch.dict(os.environ, {'TARGET_TIMEZONE': 'Mars/Olympus_Mons'}):
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        assert 'Unknown timezone: Mars/Olympus_Mons' in response['body']
        mock_fetcher_class.assert_not_called()

    @patch('lambda_function.setup_logging')
    @patch('lambda_function.TimetableFetcher')
    def test_logging_output(
        self,
        mock_fetcher_class,
        mock_setup_logging,
        mock_env,
        mock_context,
        sample_page,
        caplog
    ):
        """Test that logging output is generated correctly."""
        mock_fetcher_class.return_value.fetch.return_value = sample_page

        with caplog.at_level(logging.INFO):
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        log_messages = [record.message for record in caplog.records]
        assert any('Timetable render started' in msg for msg in log_messages)
        assert any('Fetching timetable page' in msg for msg in log_messages)
        assert any('Processing timetable data' in msg for msg in log_messages)
        assert any('Timetable render completed successfully' in msg for msg in log_messages)
        assert any("Skipping event 'Final'" in msg for msg in log_messages)


class TestSetupLogging:
    """Test cases for logging setup."""

    def test_setup_logging_default_level(self):
        """Test logging setup with default INFO level."""
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test logging setup with DEBUG level."""
        setup_logging('DEBUG')
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_uses_json_formatter(self):
        """Test that the root handler emits JSON."""
        setup_logging('WARNING')
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)

        record = logging.LogRecord('timetable', logging.WARNING, __file__, 1, 'hello %s', ('x',), None)
        data = json.loads(handler.formatter.format(record))
        assert data['message'] == 'hello x'
        assert data['level'] == 'WARNING'
        assert data['logger'] == 'timetable'

    def test_json_formatter_includes_extra_fields(self):
        """Test that fields passed with extra= appear in the JSON output."""
        formatter = JsonFormatter()
        record = logging.LogRecord('timetable', logging.ERROR, __file__, 1, 'Render failed', (), None)
        record.error_code = 'schema_invalid'
        record.context = {'resolved_path': 'props.pageProps'}
        record.duration_seconds = 0.25

        data = json.loads(formatter.format(record))

        assert data['error_code'] == 'schema_invalid'
        assert data['context'] == {'resolved_path': 'props.pageProps'}
        assert data['duration_seconds'] == 0.25
        assert 'args' not in data
        assert 'msg' not in data

    def test_json_formatter_stringifies_unserializable_extras(self):
        """Test that extras json cannot encode are written as strings."""
        formatter = JsonFormatter()
        record = logging.LogRecord('timetable', logging.INFO, __file__, 1, 'Rendered', (), None)
        record.reference_date = date(2025, 9, 12)

        data = json.loads(formatter.format(record))

        assert data['reference_date'] == '2025-09-12'
