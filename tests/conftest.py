"""Shared fixtures and editing-layer fakes for annotation tests."""

from __future__ import annotations

import itertools
import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtWidgets import QApplication

from marginalia.config import Settings
from marginalia.core.annotations import (
    AnnotationManager,
    AnnotationMode,
    AnnotationPersistence,
    EditorParams,
    MemoryStorage,
)
from marginalia.core.events import (
    RECONCILIATION_COMPLETE,
    RECORD_STORE_CHANGED,
    SCROLL_TO_PAGE,
    EventBus,
)

DOC_KEY = "test-document"


class FakeHighlightEditor:
    """Stands in for a live highlight editor of the editing layer."""

    name = "highlightEditor"

    def __init__(self, id: str, page_index: int = 0, text: str = "highlighted text",
                 mode: str = "highlight", color: str = "#ffff98",
                 boxes: Optional[List[Any]] = None) -> None:
        self.id = id
        self.page_index = page_index
        self.x = 0.1
        self.y = 0.2
        self.width = 0.3
        self.height = 0.05
        self.initial_options = {"is_centered": False}
        self.color = color
        self.opacity = 1.0
        self.thickness = 12.0
        self.text = text
        self.mode = mode
        self.boxes = boxes if boxes is not None else [
            SimpleNamespace(x=0.1, y=0.2, width=0.3, height=0.02),
            SimpleNamespace(x=0.1, y=0.23, width=0.2, height=0.02),
        ]

    def get_text(self) -> str:
        return self.text

    def get_mode(self) -> str:
        return self.mode

    def get_method_of_creation(self) -> str:
        return "main_toolbar"

    def get_boxes(self) -> List[Any]:
        return self.boxes


class FakeNoteEditor:
    name = "noteEditor"

    def __init__(self, id: str, page_index: int = 0, content: str = "a note") -> None:
        self.id = id
        self.page_index = page_index
        self.x = 0.5
        self.y = 0.5
        self.width = 0.1
        self.height = 0.1
        self.initial_options = {"is_centered": True}
        self.content = content
        self.ui_manager: Optional["FakeUIManager"] = None

    def update_content(self, input_type: str, value: str) -> None:
        if input_type == "confirm":
            self.content = value
            self.ui_manager.on_editor_edit_complete(self)
        elif input_type == "cancel" and not self.content:
            self.ui_manager.user_deletes(self)


class FakeStampEditor:
    """A variant the annotation core does not model."""

    name = "stampEditor"

    def __init__(self, id: str, page_index: int = 0) -> None:
        self.id = id
        self.page_index = page_index


class FakeLayer:
    def __init__(self, ui_manager: "FakeUIManager", page_index: int) -> None:
        self.ui_manager = ui_manager
        self.page_index = page_index
        self.built: List[EditorParams] = []
        self.fail = False

    def build_editor(self, params: EditorParams) -> SimpleNamespace:
        if self.fail:
            raise RuntimeError("layer is broken")
        self.built.append(params)
        # Building an editor switches the tool, as the real layer does
        self.ui_manager.mode = params.mode
        return SimpleNamespace(id=params.id, params=params)

    def add(self, editor: SimpleNamespace) -> None:
        self.ui_manager.editors[editor.id] = editor


class FakeUIManager:
    """Minimal editing-layer manager: editors by id, layers by page."""

    def __init__(self) -> None:
        self.editors: Dict[str, Any] = {}
        self.layers: Dict[int, FakeLayer] = {}
        self.mode = AnnotationMode.NONE
        self.mode_history: List[AnnotationMode] = []
        self.next_id: Optional[int] = None
        self.selected: Any = None
        self.on_editor_add_complete = None
        self.on_editor_edit_complete = None
        self.on_editor_delete_complete = None

    def mount(self, page_index: int) -> FakeLayer:
        layer = FakeLayer(self, page_index)
        self.layers[page_index] = layer
        return layer

    def get_editor(self, annotation_id: str) -> Any:
        return self.editors.get(annotation_id)

    def get_layer(self, page_index: int) -> Optional[FakeLayer]:
        return self.layers.get(page_index)

    def get_mode(self) -> AnnotationMode:
        return self.mode

    def update_mode(self, mode: AnnotationMode) -> None:
        self.mode_history.append(mode)
        self.mode = mode

    def set_id(self, next_id: int) -> None:
        self.next_id = next_id

    def set_selected(self, editor: Any) -> None:
        self.selected = editor

    # User actions, reported the way the editing layer reports them

    def user_adds(self, editor: Any) -> None:
        editor.ui_manager = self
        self.editors[editor.id] = editor
        self.on_editor_add_complete(editor)

    def user_edits(self, editor: Any) -> None:
        self.on_editor_edit_complete(editor)

    def user_deletes(self, editor: Any) -> None:
        self.editors.pop(editor.id, None)
        self.on_editor_delete_complete(editor)

    def built_count(self) -> int:
        return sum(len(layer.built) for layer in self.layers.values())


class EventRecorder:
    def __init__(self, bus: EventBus, names: Tuple[str, ...]) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self._subscriptions = [
            bus.subscribe(name, lambda payload, name=name: self.events.append((name, payload)))
            for name in names
        ]

    def of(self, name: str) -> List[Dict[str, Any]]:
        return [payload for event_name, payload in self.events if event_name == name]

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def clear(self) -> None:
        self.events.clear()


def note_entry(annotation_id: str, page_index: int = 0, content: str = "hi",
               **extra: Any) -> Dict[str, Any]:
    """A persisted note record in wire format."""
    entry = {
        "id": annotation_id,
        "editorParams": {
            "id": annotation_id,
            "name": "noteEditor",
            "pageIndex": page_index,
            "content": content,
        },
    }
    entry.update(extra)
    return entry


@pytest.fixture(scope="session", autouse=True)
def qapp() -> QApplication:
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus: EventBus) -> EventRecorder:
    return EventRecorder(bus, (RECORD_STORE_CHANGED, RECONCILIATION_COMPLETE, SCROLL_TO_PAGE))


@pytest.fixture
def clock():
    counter = itertools.count(1_700_000_000_000, 1000)
    return lambda: next(counter)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "annotations", user_name="Tester")


@pytest.fixture
def ui_manager() -> FakeUIManager:
    return FakeUIManager()


@pytest.fixture
def manager(bus, storage, settings, clock):
    manager = AnnotationManager(bus, AnnotationPersistence(storage, DOC_KEY), settings, clock=clock)
    yield manager
    manager.destroy()
