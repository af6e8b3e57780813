"""
Materializes stored records into page editing layers as they mount.
"""
import copy
import logging
from enum import Enum
from typing import Dict, List, Optional

from ..events import EventBus, RECONCILIATION_COMPLETE
from .models import AnnotationRecord, EditorParams
from .store import RecordStore

logger = logging.getLogger(__name__)


class DisplayState(Enum):
    PENDING = "pending"
    SHOWN = "shown"


class DisplayReconciler:
    """
    Shows stored records in the editing layer of their page.

    Pages render progressively, so a record may arrive before its layer.
    Such a record stays pending until a sweep for its page finds the layer
    mounted. Nothing here ever hides an editor again; removal follows the
    store's delete changes.
    """

    def __init__(self, store: RecordStore, ui_manager, bus: EventBus):
        self.store = store
        self.ui_manager = ui_manager
        self.bus = bus
        # Outcome of the last attempt per record, for inspection only; sweeps
        # always ask the editing layer whether an editor exists
        self._states: Dict[str, DisplayState] = {}

    def state(self, annotation_id: str) -> Optional[DisplayState]:
        """Last known display state of a record; None if never swept."""
        return self._states.get(annotation_id)

    def is_shown(self, annotation_id: str) -> bool:
        return self.ui_manager.get_editor(annotation_id) is not None

    def pending_ids(self, page_index: int) -> List[str]:
        """Ids of visible records on ``page_index`` with no editor yet."""
        return [
            record.id for record in self.store.list()
            if record.page_index == page_index
            and not record.hidden
            and not self.is_shown(record.id)
        ]

    def forget(self, annotation_id: str) -> None:
        self._states.pop(annotation_id, None)

    def reset(self) -> None:
        self._states.clear()

    def reconcile(self, page_index: Optional[int] = None) -> List[EditorParams]:
        """
        Sweep the store and show every record whose layer is available.

        Args:
            page_index: Only consider records on this page; None sweeps
                whatever layers are currently mounted

        Returns:
            Params of the records shown by this sweep
        """
        previous_mode = self.ui_manager.get_mode()
        shown: List[EditorParams] = []

        for record in self.store.list():
            if page_index is not None and record.page_index != page_index:
                continue
            if record.hidden:
                continue
            params = self.show(record.id)
            if params is not None:
                shown.append(params)

        if shown:
            # Building editors may switch the tool; leave the user's tool as it was
            self.ui_manager.update_mode(shown[-1].mode)
            self.ui_manager.update_mode(previous_mode)

        logger.debug("Reconciled page %s: %d shown", page_index, len(shown))
        self.bus.dispatch(RECONCILIATION_COMPLETE, {'pageIndex': page_index})
        return shown

    def show(self, annotation_id: str) -> Optional[EditorParams]:
        """
        Build and attach the editor for one record.

        Returns:
            The materialized params, or None if the record was already
            shown, no longer exists or its layer is not mounted
        """
        if self.is_shown(annotation_id):
            self._states[annotation_id] = DisplayState.SHOWN
            return None

        record = self.store.get(annotation_id)
        if record is None:
            # Deleted while its page was waiting to render
            self.forget(annotation_id)
            return None

        layer = self.ui_manager.get_layer(record.page_index)
        if layer is None:
            self._states[annotation_id] = DisplayState.PENDING
            return None

        if not self._attach(layer, record):
            self._states[annotation_id] = DisplayState.PENDING
            return None

        self._states[annotation_id] = DisplayState.SHOWN
        return record.editor_params

    def _attach(self, layer, record: AnnotationRecord) -> bool:
        try:
            editor = layer.build_editor(copy.deepcopy(record.editor_params))
            if editor is None:
                return False
            layer.add(editor)
        except Exception:
            logger.exception("Failed to show annotation %s", record.id)
            return False
        return True
