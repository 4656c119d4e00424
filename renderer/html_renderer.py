"""HTML rendering of timetable view models."""
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from processor.config import TimetableConfig
from processor.models import DayView, EventView, SessionView


class HtmlRenderer:
    """Renders day tabs, session accordions and event tables."""

    def __init__(self, config: TimetableConfig):
        self.config = config
        self.soup = BeautifulSoup('', 'html.parser')

    def _tag(self, name: str, text: Optional[str] = None, **attrs: str) -> Tag:
        # Trailing underscores allow reserved names such as class_
        tag = self.soup.new_tag(name, attrs={
            key.rstrip('_').replace('_', '-'): value for key, value in attrs.items()
        })
        if text is not None:
            tag.string = text
        return tag

    def render(self, days: List[DayView]) -> str:
        """
        Render the full timetable.

        Args:
            days: Day view models in display order

        Returns:
            HTML string
        """
        container = self._tag('div', class_='wa-timetable-container')
        if not days:
            container.append(self._tag(
                'div', 'No events scheduled.', class_='alert alert-info'
            ))
            return str(container)

        nav = self._tag('ul', class_='nav nav-pills nav-justified', id='timetableTabs', role='tablist')
        for day in days:
            nav.append(self._render_tab(day))
        container.append(nav)

        content = self._tag('div', class_='tab-content mt-3')
        for day in days:
            content.append(self._render_day(day))
        container.append(content)

        return str(container)

    def render_error(self, message: str, level: str = 'danger') -> str:
        """Render an inline alert."""
        return str(self._tag('div', message, class_=f"alert alert-{level}"))

    def _render_tab(self, day: DayView) -> Tag:
        item = self._tag('li', class_='nav-item day-item')
        link = self._tag(
            'a',
            class_='nav-link active' if day.is_active else 'nav-link',
            id=f"{day.dom_id}-tab",
            data_bs_toggle='tab',
            data_bs_target=f"#{day.dom_id}",
            role='tab',
            aria_selected='true' if day.is_active else 'false'
        )
        link.append(self._tag(
            'span', day.day_caption, class_='day-caption today-text' if day.is_today else 'day-caption'
        ))
        link.append(self._tag('span', day.date_caption, class_='date-caption'))
        item.append(link)
        return item

    def _render_day(self, day: DayView) -> Tag:
        pane = self._tag(
            'div',
            class_='tab-pane fade show active' if day.is_active else 'tab-pane fade',
            id=day.dom_id,
            role='tabpanel'
        )
        accordion = self._tag('div', class_='accordion', id=f"accordion-{day.dom_id}")
        for session in day.sessions:
            accordion.append(self._render_session(session))
        pane.append(accordion)
        return pane

    def _render_session(self, session: SessionView) -> Tag:
        item = self._tag('div', class_='accordion-item border-0')
        header = self._tag('h2', class_='accordion-header', id=f"heading-{session.dom_id}")
        button = self._tag(
            'button',
            class_='accordion-button',
            type='button',
            data_bs_toggle='collapse',
            data_bs_target=f"#collapse-{session.dom_id}",
            aria_expanded='true'
        )
        name = self._tag('span', session.name, class_='session-name')
        if session.is_ended:
            name.append(self._tag('span', 'ENDED', class_='ended-badge'))
        button.append(name)
        button.append(self._tag(
            'span', f"{session.event_count} event sections", class_='event-count'
        ))
        header.append(button)
        item.append(header)

        body = self._tag(
            'div', class_='accordion-collapse collapse show', id=f"collapse-{session.dom_id}"
        )
        body.append(self._render_table(session.events))
        item.append(body)
        return item

    def _render_table(self, events: List[EventView]) -> Tag:
        table = self._tag('table', class_='table table-striped table-hover table-sm')
        head_row = self._tag('tr')
        for header in self.config.headers:
            head_row.append(self._tag('th', header, scope='col'))
        head_row.append(self._tag('th', scope='col'))
        thead = self._tag('thead')
        thead.append(head_row)
        table.append(thead)

        tbody = self._tag('tbody')
        for event in events:
            tbody.append(self._render_event(event))
        table.append(tbody)
        return table

    def _render_event(self, event: EventView) -> Tag:
        row = self._tag('tr', class_='event-item', id=event.dom_id)

        time_cell = self._tag('td', class_='event-time')
        if event.is_live:
            time_cell.append(self._tag('span', 'LIVE', class_='live-badge'))
        time_cell.append(event.time_label)
        row.append(time_cell)

        row.append(self._tag('td', event.sex_label))
        row.append(self._tag('td', event.discipline_name))
        phase_cell = self._tag('td')
        phase_cell.append(self._tag(
            'span', event.phase_name, class_=f"phase phase-{event.category}",
            style=f"background-color: {event.color};"
        ))
        row.append(phase_cell)

        links_cell = self._tag('td', class_='event-links')
        for label, url in self._links(event).items():
            links_cell.append(self._tag(
                'a', label, href=url, target='_blank', class_=f"{label.lower()}-link"
            ))
        row.append(links_cell)
        return row

    @staticmethod
    def _links(event: EventView) -> Dict[str, str]:
        links = {}
        if event.links.results_url:
            links['Results'] = event.links.results_url
        if event.links.startlist_url:
            links['Startlist'] = event.links.startlist_url
        if event.links.summary_url:
            links['Summary'] = event.links.summary_url
        return links
