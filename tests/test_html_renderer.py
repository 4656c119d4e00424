"""Unit tests for HtmlRenderer."""
import pytest
from bs4 import BeautifulSoup

from processor.config import TimetableConfig
from processor.models import DayView, EventLinks, EventView, SessionView
from renderer.html_renderer import HtmlRenderer


def event_view(**overrides):
    values = dict(
        dom_id='event-1-1',
        time_label='5:30 AM',
        sex_label="Men's",
        discipline_name='100 Metres',
        phase_name='Heats',
        category='heats',
        color='#c2e9ed',
        is_live=False,
        is_ended=False,
        links=EventLinks(),
    )
    values.update(overrides)
    return EventView(**values)


def day_view(label='Day 2 - Sep 13', sessions=None, **overrides):
    values = dict(
        label=label,
        dom_id=label.lower().replace(' - ', '-').replace(' ', '-'),
        day_caption=label.split(' - ')[0],
        date_caption=label.split(' - ')[1],
        is_today=False,
        is_active=False,
        sessions=sessions or [],
    )
    values.update(overrides)
    return DayView(**values)


@pytest.fixture
def renderer():
    return HtmlRenderer(TimetableConfig(headers=('Hora', 'Sexo', 'Prueba', 'Ronda')))


class TestHtmlRenderer:
    """Test cases for HtmlRenderer class."""

    def test_render_tabs_and_sessions(self, renderer):
        session = SessionView(
            name='Morning Session',
            dom_id='day-2-sep-13-morning-session',
            is_ended=False,
            events=[
                event_view(is_live=True, links=EventLinks(
                    startlist_url='https://example.com/startlist',
                    summary_url='https://example.com/summary'
                )),
                event_view(dom_id='event-2-1', phase_name='Final <A>', category='final'),
            ]
        )
        days = [
            day_view('Day 1 - Sep 12'),
            day_view(sessions=[session], is_active=True, is_today=True, day_caption='TODAY'),
        ]

        soup = BeautifulSoup(renderer.render(days), 'html.parser')

        tabs = soup.select('#timetableTabs a.nav-link')
        assert len(tabs) == 2
        assert 'active' in tabs[1]['class']
        assert 'active' not in tabs[0]['class']
        assert tabs[1].find('span', class_='day-caption').get_text() == 'TODAY'

        pane = soup.find('div', id='day-2-sep-13')
        assert 'active' in pane['class']
        assert [th.get_text() for th in pane.find_all('th')][:4] == ['Hora', 'Sexo', 'Prueba', 'Ronda']
        assert '2 event sections' in pane.find('span', class_='event-count').get_text()
        assert pane.find('span', class_='ended-badge') is None

        rows = pane.find_all('tr', class_='event-item')
        assert [row['id'] for row in rows] == ['event-1-1', 'event-2-1']
        assert rows[0].find('span', class_='live-badge').get_text() == 'LIVE'
        assert [a.get_text() for a in rows[0].find_all('a')] == ['Startlist', 'Summary']
        assert rows[1].find('span', class_='phase-final').get_text() == 'Final <A>'

    def test_escapes_text(self, renderer):
        session = SessionView(
            name='<b>Evening</b>', dom_id='s', is_ended=True,
            events=[event_view(phase_name='<script>x</script>')]
        )

        html = renderer.render([day_view(sessions=[session])])

        assert '<script>' not in html
        assert '&lt;script&gt;' in html
        assert 'ENDED' in html

    def test_render_empty(self, renderer):
        soup = BeautifulSoup(renderer.render([]), 'html.parser')

        assert soup.find('div', class_='alert').get_text() == 'No events scheduled.'

    def test_render_error(self, renderer):
        soup = BeautifulSoup(renderer.render_error('Error fetching timetable data: boom'), 'html.parser')

        alert = soup.find('div')
        assert alert['class'] == ['alert', 'alert-danger']
        assert alert.get_text() == 'Error fetching timetable data: boom'
