"""
Page-grouped comment sidebar model.

The model only listens to the event bus; it never reads the record store
directly, so it converges on whatever the change events describe.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from marginalia.core.annotations.models import (
    AnnotationMode,
    AnnotationRecord,
    ChangeType,
    Comment,
    HighlightParams,
    NoteParams,
)
from marginalia.core.events import (
    ANNOTATION_COMMENT_INPUT,
    COMMENT_CARD_FOCUSED,
    DOCUMENT_PAGE_COUNT_KNOWN,
    NOTE_CONTENT_INPUT,
    RECORD_STORE_CHANGED,
    EventBus,
)

logger = logging.getLogger(__name__)


def format_timestamp(timestamp: Optional[int]) -> str:
    """Format epoch millis as ``MM-DD HH:MM`` in local time."""
    if not timestamp:
        return ""
    return datetime.fromtimestamp(timestamp / 1000).strftime("%m-%d %H:%M")


@dataclass
class CommentCard:
    """Sidebar view of one annotation record."""
    id: str
    page_index: int
    name: str
    title: str
    mode: AnnotationMode
    color: Optional[str] = None
    author: str = ""
    create_time: int = 0
    comments: List[Comment] = field(default_factory=list)

    @property
    def time_label(self) -> str:
        return format_timestamp(self.create_time)

    @property
    def needs_content(self) -> bool:
        """A note without text yet; the sidebar prompts for it."""
        return self.name == NoteParams.name and not self.title

    @staticmethod
    def from_record(record: AnnotationRecord) -> 'CommentCard':
        params = record.editor_params
        if isinstance(params, HighlightParams):
            title = params.text
            color = params.color
        elif isinstance(params, NoteParams):
            title = params.content
            color = None
        else:
            title = ""
            color = None

        return CommentCard(
            id=record.id,
            page_index=record.page_index,
            name=params.name,
            title=title,
            mode=params.mode,
            color=color,
            author=record.creator.name,
            create_time=record.create_time,
            comments=list(record.comments)
        )


class CommentSidebarModel(QObject):
    """Keeps comment cards grouped by 0-based page index."""

    # Signals
    pages_reset = pyqtSignal(int)  # page count
    page_changed = pyqtSignal(int)  # page index

    def __init__(self, bus: EventBus):
        super().__init__()
        self.bus = bus
        self.page_count: Optional[int] = None
        self._pages: Dict[int, List[CommentCard]] = {}
        self._subscriptions = [
            bus.subscribe(DOCUMENT_PAGE_COUNT_KNOWN, self.on_page_count_known),
            bus.subscribe(RECORD_STORE_CHANGED, self.on_store_changed),
        ]

    def destroy(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []

    # Queries

    def cards(self, page_index: int) -> List[CommentCard]:
        return list(self._pages.get(page_index, []))

    def card(self, annotation_id: str) -> Optional[CommentCard]:
        for cards in self._pages.values():
            for card in cards:
                if card.id == annotation_id:
                    return card
        return None

    def is_page_visible(self, page_index: int) -> bool:
        return bool(self._pages.get(page_index))

    def visible_pages(self) -> List[int]:
        return sorted(index for index, cards in self._pages.items() if cards)

    def notes_needing_content(self) -> List[CommentCard]:
        """Note cards still waiting for their text, in page order."""
        return [card for index in sorted(self._pages) for card in self._pages[index]
                if card.needs_content]

    # Bus handlers

    def on_page_count_known(self, payload: Dict[str, Any]) -> None:
        """Allocate one (hidden) group per page, keeping cards that still fit."""
        num_pages = int(payload['numPages'])
        previous = self._pages
        self.page_count = num_pages
        self._pages = {index: previous.get(index, []) for index in range(num_pages)}
        dropped = sum(len(cards) for index, cards in previous.items() if index >= num_pages)
        if dropped:
            logger.debug("Dropped %d card(s) beyond page %d", dropped, num_pages)
        self.pages_reset.emit(num_pages)

    def on_store_changed(self, payload: Dict[str, Any]) -> None:
        change_type = ChangeType(payload['type'])
        data = payload['data']
        if change_type is ChangeType.INIT:
            self._handle_init(data)
        elif change_type is ChangeType.ADD:
            self._add(data)
        elif change_type is ChangeType.EDIT:
            self._edit(data)
        elif change_type is ChangeType.DELETE:
            self._delete(data)

    # User actions

    def submit_comment(self, annotation_id: str, value: str) -> None:
        self.bus.dispatch(ANNOTATION_COMMENT_INPUT, {'editorId': annotation_id, 'value': value})

    def focus_card(self, annotation_id: str) -> None:
        self.bus.dispatch(COMMENT_CARD_FOCUSED, {'editorId': annotation_id})

    def confirm_note_content(self, annotation_id: str, value: str) -> None:
        self.bus.dispatch(NOTE_CONTENT_INPUT,
                          {'editorId': annotation_id, 'inputType': 'confirm', 'value': value})

    def cancel_note_content(self, annotation_id: str) -> None:
        """Abandon the content prompt; a note that is still empty goes away."""
        self.bus.dispatch(NOTE_CONTENT_INPUT,
                          {'editorId': annotation_id, 'inputType': 'cancel', 'value': ''})

    # Internals

    def _page(self, page_index: int) -> Optional[List[CommentCard]]:
        cards = self._pages.get(page_index)
        if cards is None and self.page_count is None:
            # Page count not announced yet; group lazily
            cards = self._pages.setdefault(page_index, [])
        return cards

    def _handle_init(self, records: List[AnnotationRecord]) -> None:
        touched = set(self._pages)
        for cards in self._pages.values():
            cards.clear()
        for record in records:
            cards = self._page(record.page_index)
            if cards is not None:
                cards.append(CommentCard.from_record(record))
                touched.add(record.page_index)
        for page_index in sorted(touched):
            self.page_changed.emit(page_index)

    def _add(self, record: AnnotationRecord) -> None:
        cards = self._page(record.page_index)
        if cards is None:
            logger.debug("No sidebar page %d for %s", record.page_index, record.id)
            return
        cards.append(CommentCard.from_record(record))
        self.page_changed.emit(record.page_index)

    def _edit(self, record: AnnotationRecord) -> None:
        cards = self._pages.get(record.page_index) or []
        for index, card in enumerate(cards):
            if card.id == record.id:
                cards[index] = CommentCard.from_record(record)
                self.page_changed.emit(record.page_index)
                return
        logger.debug("Edit for a card not in the sidebar: %s", record.id)

    def _delete(self, record: AnnotationRecord) -> None:
        cards = self._pages.get(record.page_index) or []
        for index, card in enumerate(cards):
            if card.id == record.id:
                del cards[index]
                self.page_changed.emit(record.page_index)
                return
