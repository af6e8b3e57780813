"""
Tree widget showing annotation cards grouped under their page.

Note cards without content are editable in place: committing text fills
the note, escaping the editor of a still empty note discards it.
"""
from typing import Dict, List

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import QAbstractItemDelegate, QTreeWidget, QTreeWidgetItem

from marginalia.ui.sidebar import CommentCard, CommentSidebarModel

CARD_ROLE = Qt.UserRole
NOTE_PROMPT_ROLE = Qt.UserRole + 1
EMPTY_NOTE_TEXT = "(empty note)"


class CommentSidebar(QTreeWidget):
    """Tree of annotation cards grouped under their page."""

    card_clicked = pyqtSignal(str)

    def __init__(self, model: CommentSidebarModel, parent=None):
        super().__init__(parent)
        self.model = model
        self._page_items: Dict[int, QTreeWidgetItem] = {}
        # Card items detached by the last refresh, alive until the next one
        self._retired: List[QTreeWidgetItem] = []

        self.setHeaderHidden(True)
        self.setFixedWidth(280)
        self.itemClicked.connect(self._item_clicked)
        self.itemChanged.connect(self._item_changed)

        model.pages_reset.connect(self._rebuild)
        model.page_changed.connect(self._refresh_page)
        self._rebuild()

    def page_item(self, page_index: int) -> QTreeWidgetItem:
        item = self._page_items.get(page_index)
        if item is None:
            item = QTreeWidgetItem([f"Page {page_index + 1}"])
            # Keep page groups in page order even when created lazily
            position = sum(1 for index in self._page_items if index < page_index)
            self.insertTopLevelItem(position, item)
            item.setHidden(True)
            self._page_items[page_index] = item
        return item

    def closeEditor(self, editor, hint):
        item = self.currentItem()
        super().closeEditor(editor, hint)
        if hint == QAbstractItemDelegate.RevertModelCache and item is not None \
                and item.data(0, NOTE_PROMPT_ROLE):
            self.model.cancel_note_content(item.data(0, CARD_ROLE))

    def _item_clicked(self, item, _column):
        annotation_id = item.data(0, CARD_ROLE)
        if annotation_id:
            self.card_clicked.emit(annotation_id)
            self.model.focus_card(annotation_id)

    def _item_changed(self, item, _column):
        if not item.data(0, NOTE_PROMPT_ROLE):
            return
        value = item.text(0).strip()
        if value and value != EMPTY_NOTE_TEXT:
            self.model.confirm_note_content(item.data(0, CARD_ROLE), value)

    def _rebuild(self, *args):
        self.clear()
        self._page_items = {}
        page_count = self.model.page_count or 0
        for page_index in range(page_count):
            self.page_item(page_index)
        for page_index in self.model.visible_pages():
            self._refresh_page(page_index)

    def _refresh_page(self, page_index: int):
        item = self.page_item(page_index)
        # Rebuilding children must not look like user edits
        self.blockSignals(True)
        try:
            self._retired = item.takeChildren()
            cards = self.model.cards(page_index)
            for card in cards:
                item.addChild(self._card_item(card))
            item.setHidden(not cards)
            item.setExpanded(True)
        finally:
            self.blockSignals(False)

    def _card_item(self, card: CommentCard) -> QTreeWidgetItem:
        card_item = QTreeWidgetItem([card.title or EMPTY_NOTE_TEXT])
        card_item.setData(0, CARD_ROLE, card.id)
        if card.needs_content:
            card_item.setData(0, NOTE_PROMPT_ROLE, True)
            card_item.setFlags(card_item.flags() | Qt.ItemIsEditable)
            font = card_item.font(0)
            font.setItalic(True)
            card_item.setFont(0, font)
        if card.color:
            card_item.setForeground(0, QColor(card.color))
        if card.author:
            card_item.setToolTip(0, f"{card.author} {card.time_label}".strip())

        for comment in card.comments:
            comment_item = QTreeWidgetItem([comment.value])
            comment_item.setToolTip(0, comment.creator.name)
            card_item.addChild(comment_item)
        return card_item
