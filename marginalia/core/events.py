"""
Named-topic event bus shared by the annotation core and its views.
"""
import logging
from typing import Any, Callable, Dict, Optional

from PyQt5.QtCore import QObject, pyqtSignal

logger = logging.getLogger(__name__)

# Consumed by the annotation core
EDITOR_SESSION_READY = "editor-session-ready"
PAGE_LAYER_RENDERED = "page-layer-rendered"
DOCUMENT_LOADED = "document-loaded"
ANNOTATION_COMMENT_INPUT = "annotation-comment-input"
NOTE_CONTENT_INPUT = "note-content-input"
COMMENT_CARD_FOCUSED = "comment-card-focused"

# Consumed by the sidebar
DOCUMENT_PAGE_COUNT_KNOWN = "document-page-count-known"

# Emitted by the annotation core
RECORD_STORE_CHANGED = "record-store-changed"
RECONCILIATION_COMPLETE = "reconciliation-complete"
SCROLL_TO_PAGE = "scroll-to-page"

Handler = Callable[[Dict[str, Any]], None]


class Subscription:
    """Handle returned by EventBus.subscribe; cancel() detaches the handler."""

    def __init__(self, bus: 'EventBus', event_name: str, slot: Callable):
        self._bus = bus
        self.event_name = event_name
        self._slot = slot

    @property
    def active(self) -> bool:
        return self._slot is not None

    def cancel(self) -> None:
        if self._slot is None:
            return
        self._bus.dispatched.disconnect(self._slot)
        self._slot = None


class EventBus(QObject):
    """
    Publish/subscribe channel with named topics.

    Handlers are invoked synchronously, in subscription order, on the
    thread that dispatches.
    """

    dispatched = pyqtSignal(str, object)  # event name, payload dict

    def subscribe(self, event_name: str, handler: Handler) -> Subscription:
        """
        Register ``handler`` for ``event_name``.

        Returns:
            Subscription whose cancel() removes the handler
        """
        def slot(name: str, payload: Dict[str, Any]) -> None:
            if name != event_name:
                return
            try:
                handler(payload)
            except Exception:
                # An exception escaping a Qt slot aborts the process
                logger.exception("Handler for %r failed", event_name)

        self.dispatched.connect(slot)
        return Subscription(self, event_name, slot)

    def dispatch(self, event_name: str, payload: Optional[Dict[str, Any]] = None) -> None:
        logger.debug("dispatch %s", event_name)
        self.dispatched.emit(event_name, payload if payload is not None else {})
