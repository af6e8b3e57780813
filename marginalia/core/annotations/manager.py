"""
Main annotation manager that coordinates all annotation operations.

It is the only writer of the record store: editing-layer callbacks and
bus events come in, persistence writes and change events go out.
"""
import logging
from typing import Any, Dict, List, Optional

from marginalia.config import Settings

from ..events import (
    ANNOTATION_COMMENT_INPUT,
    COMMENT_CARD_FOCUSED,
    DOCUMENT_LOADED,
    EDITOR_SESSION_READY,
    PAGE_LAYER_RENDERED,
    NOTE_CONTENT_INPUT,
    RECONCILIATION_COMPLETE,
    RECORD_STORE_CHANGED,
    SCROLL_TO_PAGE,
    EventBus,
    Subscription,
)
from .converter import ParamsConverter
from .display import DisplayReconciler
from .identifiers import IdentifierAllocator
from .models import AnnotationRecord, ChangeType
from .persistence import AnnotationPersistence
from .store import RecordStore, StoreChange, now_millis

logger = logging.getLogger(__name__)

NOTE_INPUT_TYPES = ('confirm', 'cancel')


class AnnotationManager:
    """Keeps the record store, storage and editing layer in sync for one document."""

    def __init__(self, bus: EventBus, persistence: AnnotationPersistence,
                 settings: Optional[Settings] = None,
                 converter: Optional[ParamsConverter] = None,
                 clock=now_millis):
        self.bus = bus
        self.persistence = persistence
        self.settings = settings or Settings()

        self.allocator = IdentifierAllocator(self.settings.stable_id_prefix)
        self.store = RecordStore(converter, self.settings.user_name, clock)
        self.store.changed.connect(self._on_store_changed)

        self.ui_manager = None
        self.reconciler: Optional[DisplayReconciler] = None

        # Editor to select once its page has been reconciled
        self._wait_to_select: Optional[str] = None

        self._subscriptions: List[Subscription] = [
            bus.subscribe(EDITOR_SESSION_READY, self.on_editor_session_ready),
            bus.subscribe(PAGE_LAYER_RENDERED, self.on_page_layer_rendered),
            bus.subscribe(DOCUMENT_LOADED, self.on_document_loaded),
            bus.subscribe(ANNOTATION_COMMENT_INPUT, self.on_comment_input),
            bus.subscribe(NOTE_CONTENT_INPUT, self.on_note_content_input),
            bus.subscribe(COMMENT_CARD_FOCUSED, self.on_comment_card_focused),
            bus.subscribe(RECONCILIATION_COMPLETE, self.on_reconciliation_complete),
        ]

    def destroy(self) -> None:
        """Detach from the bus, the store and the editing layer."""
        if not self._subscriptions:
            return
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        self.store.changed.disconnect(self._on_store_changed)

        if self.ui_manager is not None:
            self.ui_manager.on_editor_add_complete = None
            self.ui_manager.on_editor_edit_complete = None
            self.ui_manager.on_editor_delete_complete = None
        self.ui_manager = None
        self.reconciler = None

    def list(self) -> List[AnnotationRecord]:
        return self.store.list()

    def new_virtual_id(self) -> str:
        return self.allocator.new_virtual_id()

    # --------------------------------------------------------------------------
    # Session
    # --------------------------------------------------------------------------

    def on_editor_session_ready(self, payload: Dict[str, Any]) -> None:
        """Wire the editing layer's callbacks and load stored annotations."""
        ui_manager = payload['uiManager']
        self.ui_manager = ui_manager
        self.reconciler = DisplayReconciler(self.store, ui_manager, self.bus)
        self._wait_to_select = None

        ui_manager.on_editor_add_complete = self.on_editor_add_complete
        ui_manager.on_editor_edit_complete = self.on_editor_edit_complete
        ui_manager.on_editor_delete_complete = self.on_editor_delete_complete

        self.load()

    def load(self) -> List[AnnotationRecord]:
        """
        Seed the store from storage and show what the mounted layers can hold.

        Returns:
            The loaded records
        """
        records = self.store.init(self.persistence.load())
        logger.info("Loaded %d annotation(s) for %s", len(records), self.persistence.key)

        next_id = self.allocator.observe(record.id for record in records)
        if self.ui_manager is not None:
            self.ui_manager.set_id(next_id)
        if self.reconciler is not None:
            self.reconciler.reset()
            self.reconciler.reconcile()
        return records

    # --------------------------------------------------------------------------
    # Editing layer callbacks
    # --------------------------------------------------------------------------

    def on_editor_add_complete(self, editor) -> None:
        logger.debug("editor add complete: %s", getattr(editor, 'id', None))
        record = self.store.upsert_from_editor(editor)
        if record is not None:
            self.allocator.observe([record.id])

    def on_editor_edit_complete(self, editor) -> None:
        logger.debug("editor edit complete: %s", getattr(editor, 'id', None))
        record = self.store.upsert_from_editor(editor)
        if record is not None:
            self.allocator.observe([record.id])

    def on_editor_delete_complete(self, editor) -> None:
        logger.debug("editor delete complete: %s", getattr(editor, 'id', None))
        record = self.store.remove_from_editor(editor)
        if record is None:
            return
        if self.reconciler is not None:
            self.reconciler.forget(record.id)
        if self._wait_to_select == record.id:
            self._wait_to_select = None

    # --------------------------------------------------------------------------
    # Bus events
    # --------------------------------------------------------------------------

    def on_page_layer_rendered(self, payload: Dict[str, Any]) -> None:
        if self.reconciler is None:
            logger.debug("Page layer rendered before the editing session started")
            return
        self.reconciler.reconcile(int(payload['pageNumber']) - 1)

    def on_document_loaded(self, payload: Dict[str, Any]) -> None:
        if self.reconciler is None:
            return
        self.reconciler.reconcile()

    def on_comment_input(self, payload: Dict[str, Any]) -> None:
        value = (payload.get('value') or '').strip()
        if not value:
            return
        self.store.add_comment(payload.get('editorId'), value, self.settings.user_name)

    def on_note_content_input(self, payload: Dict[str, Any]) -> None:
        """
        Hand text typed for a note back to its live editor.

        A confirmed value becomes the note content; the editor reports the
        edit itself. Cancelling a note that never got content removes it.
        """
        input_type = payload.get('inputType')
        if input_type not in NOTE_INPUT_TYPES:
            logger.debug("Ignoring note input of type %r", input_type)
            return

        annotation_id = payload.get('editorId')
        editor = self.ui_manager.get_editor(annotation_id) if self.ui_manager is not None else None
        update_content = getattr(editor, 'update_content', None)
        if update_content is None:
            logger.debug("No note editor to receive content for %s", annotation_id)
            return
        update_content(input_type, payload.get('value') or '')

    def on_comment_card_focused(self, payload: Dict[str, Any]) -> None:
        """Select the editor behind a sidebar card, scrolling to it if needed."""
        annotation_id = payload.get('editorId')
        record = self.store.get(annotation_id)
        if record is None or self.ui_manager is None:
            logger.debug("Focus for unknown annotation %s", annotation_id)
            return

        editor = self.ui_manager.get_editor(annotation_id)
        if editor is not None:
            self._wait_to_select = None
            self.ui_manager.set_selected(editor)
            return

        self._wait_to_select = annotation_id
        self.bus.dispatch(SCROLL_TO_PAGE, {'pageIndex': record.page_index})

    def on_reconciliation_complete(self, payload: Dict[str, Any]) -> None:
        annotation_id = self._wait_to_select
        if annotation_id is None or self.ui_manager is None:
            return
        editor = self.ui_manager.get_editor(annotation_id)
        if editor is None:
            return
        self._wait_to_select = None
        self.ui_manager.set_selected(editor)

    # --------------------------------------------------------------------------
    # Change propagation
    # --------------------------------------------------------------------------

    def _on_store_changed(self, change: StoreChange) -> None:
        # Loading must not rewrite what was just read
        if change.type is not ChangeType.INIT:
            self.persistence.save(self.store.list())
        self.bus.dispatch(RECORD_STORE_CHANGED, change.to_payload())
