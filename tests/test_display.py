"""Tests for materializing records into page layers."""

from __future__ import annotations

import pytest

from marginalia.core.annotations import (
    AnnotationMode,
    DisplayReconciler,
    DisplayState,
    RecordStore,
)
from marginalia.core.events import RECONCILIATION_COMPLETE

from conftest import FakeNoteEditor, note_entry


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()


@pytest.fixture
def reconciler(store, ui_manager, bus) -> DisplayReconciler:
    return DisplayReconciler(store, ui_manager, bus)


def test_record_waits_for_its_layer(store, ui_manager, reconciler) -> None:
    store.init([note_entry("a1", page_index=5)])

    assert reconciler.reconcile(5) == []
    assert reconciler.state("a1") is DisplayState.PENDING
    assert reconciler.pending_ids(5) == ["a1"]

    ui_manager.mount(5)
    shown = reconciler.reconcile(5)

    assert [p.id for p in shown] == ["a1"]
    assert ui_manager.built_count() == 1
    assert reconciler.state("a1") is DisplayState.SHOWN
    assert reconciler.pending_ids(5) == []


def test_sweep_is_limited_to_the_page(store, ui_manager, reconciler) -> None:
    store.init([note_entry("a1", page_index=0), note_entry("b2", page_index=1)])
    ui_manager.mount(0)
    ui_manager.mount(1)

    shown = reconciler.reconcile(1)

    assert [p.id for p in shown] == ["b2"]
    assert ui_manager.get_editor("a1") is None


def test_shown_record_is_not_built_twice(store, ui_manager, reconciler) -> None:
    store.init([note_entry("a1")])
    ui_manager.mount(0)

    reconciler.reconcile(0)
    assert reconciler.reconcile(0) == []

    assert ui_manager.built_count() == 1


def test_editor_created_by_the_user_counts_as_shown(store, ui_manager, reconciler) -> None:
    layer = ui_manager.mount(0)
    editor = FakeNoteEditor("ed_1")
    ui_manager.editors[editor.id] = editor
    store.upsert_from_editor(editor)

    reconciler.reconcile(0)

    assert layer.built == []
    assert reconciler.state("ed_1") is DisplayState.SHOWN


def test_hidden_records_stay_unmaterialized(store, ui_manager, reconciler) -> None:
    store.init([note_entry("a1", hidden=True)])
    ui_manager.mount(0)

    assert reconciler.reconcile(0) == []
    assert reconciler.pending_ids(0) == []


def test_whole_document_sweep_only_touches_mounted_layers(store, ui_manager, reconciler) -> None:
    store.init([note_entry("a1", page_index=0), note_entry("b2", page_index=7)])
    ui_manager.mount(0)

    shown = reconciler.reconcile()

    assert [p.id for p in shown] == ["a1"]
    assert reconciler.state("b2") is DisplayState.PENDING


def test_sweep_restores_the_active_tool(store, ui_manager, reconciler) -> None:
    store.init([
        note_entry("a1"),
        {"id": "h1", "editorParams": {"id": "h1", "name": "highlightEditor",
                                      "pageIndex": 0, "mode": "strikethrough"}},
    ])
    ui_manager.mount(0)
    ui_manager.mode = AnnotationMode.UNDERLINE

    reconciler.reconcile(0)

    assert ui_manager.mode_history == [AnnotationMode.STRIKETHROUGH, AnnotationMode.UNDERLINE]
    assert ui_manager.mode is AnnotationMode.UNDERLINE


def test_empty_sweep_leaves_the_tool_alone(store, ui_manager, reconciler) -> None:
    ui_manager.mount(0)

    reconciler.reconcile(0)

    assert ui_manager.mode_history == []


def test_every_sweep_announces_completion(store, ui_manager, reconciler, recorder) -> None:
    store.init([note_entry("a1", page_index=2)])

    reconciler.reconcile(2)
    reconciler.reconcile()

    assert recorder.of(RECONCILIATION_COMPLETE) == [{"pageIndex": 2}, {"pageIndex": None}]


def test_failing_layer_keeps_record_pending(store, ui_manager, reconciler) -> None:
    store.init([note_entry("a1")])
    layer = ui_manager.mount(0)
    layer.fail = True

    assert reconciler.reconcile(0) == []
    assert reconciler.state("a1") is DisplayState.PENDING

    layer.fail = False
    assert [p.id for p in reconciler.reconcile(0)] == ["a1"]


def test_layer_gets_a_copy_of_the_params(store, ui_manager, reconciler) -> None:
    store.init([note_entry("a1", content="original")])
    layer = ui_manager.mount(0)

    reconciler.reconcile(0)
    layer.built[0].content = "mutated by the layer"

    assert store.get("a1").editor_params.content == "original"


def test_sweep_rebuilds_an_editor_the_layer_dropped(store, ui_manager, reconciler) -> None:
    store.init([note_entry("a1")])
    layer = ui_manager.mount(0)
    reconciler.reconcile(0)
    assert reconciler.state("a1") is DisplayState.SHOWN

    # The layer was torn down and mounted again without the editor
    ui_manager.editors.clear()
    ui_manager.mount(0)
    shown = reconciler.reconcile(0)

    assert [p.id for p in shown] == ["a1"]
    assert len(layer.built) == 1
    assert ui_manager.built_count() == 1
