"""Tests for slidekit.core.state — DocumentStore mutations, selection, undo/redo."""

import asyncio

import pytest
from pydantic import ValidationError

from slidekit.core.errors import ImageDecodeError
from slidekit.core.slides import Document, make_image, make_rect, make_slide
from slidekit.core.state import DocumentStore, merge_element


def _observable(store: DocumentStore):
    return (store.document.model_copy(deep=True), store.active_slide_id, store.selected_element_id)


def _all_element_ids(store: DocumentStore) -> set[str]:
    return {el.id for s in store.document.slides for el in s.elements}


# ── Construction ────────────────────────────────────────────────────────

class TestInitialState:
    def test_starts_with_one_active_slide(self, store):
        assert len(store.document.slides) == 1
        assert store.active_slide_id == store.document.slides[0].id
        assert store.selected_element_id is None
        assert not store.can_undo()
        assert not store.can_redo()

    def test_injected_document(self):
        doc = Document(slides=[make_slide(), make_slide()])
        store = DocumentStore(document=doc)
        assert store.active_slide_id == doc.slides[0].id

    def test_empty_document_has_no_active_slide(self):
        store = DocumentStore(document=Document())
        assert store.active_slide_id is None
        assert store.active_slide is None

    def test_stores_are_independent(self):
        a, b = DocumentStore(), DocumentStore()
        a.add_slide()
        assert len(b.document.slides) == 1

    def test_summary(self, store):
        store.add_rect()
        summary = store.summary()
        assert summary["active_slide_id"] == store.active_slide_id
        assert summary["can_undo"] is True
        assert summary["slides"][0]["element_count"] == 1


# ── Slides ──────────────────────────────────────────────────────────────

class TestSlides:
    def test_add_slide_becomes_active(self, store):
        store.add_rect()
        store.set_selected_element(store.active_slide.elements[0].id)
        new_id = store.add_slide()
        assert len(store.document.slides) == 2
        assert store.document.slides[-1].id == new_id
        assert store.active_slide_id == new_id
        assert store.selected_element_id is None

    def test_delete_active_slide_moves_to_first(self, store):
        first = store.active_slide_id
        second = store.add_slide()
        store.delete_slide(second)
        assert store.active_slide_id == first

    def test_delete_inactive_slide_keeps_active(self, store):
        first = store.active_slide_id
        second = store.add_slide()
        store.delete_slide(first)
        assert store.active_slide_id == second

    def test_delete_last_slide_leaves_none(self, store):
        store.delete_slide(store.active_slide_id)
        assert store.document.slides == []
        assert store.active_slide_id is None

    def test_delete_unknown_slide_is_noop(self, store):
        store.delete_slide("s_missing")
        assert len(store.document.slides) == 1
        assert not store.can_undo()

    def test_delete_slide_removes_its_elements(self, store):
        store.add_rect()
        store.add_text()
        doomed = store.active_slide_id
        doomed_ids = {el.id for el in store.active_slide.elements}
        store.add_slide()
        store.add_rect()
        store.delete_slide(doomed)
        assert store.document.get_slide(doomed) is None
        assert doomed_ids.isdisjoint(_all_element_ids(store))
        assert len(_all_element_ids(store)) == 1

    def test_insert_template(self, store):
        slide_id = store.insert_template("kanban")
        assert store.active_slide_id == slide_id
        slide = store.active_slide
        assert len(slide.elements) > 0
        assert any(el.type == "rect" and el.style.fill == "#FF009C" for el in slide.elements)

    def test_insert_template_uses_current_accent(self, store):
        store.set_accent_color("#00FF00")
        store.insert_template("flow")
        assert store.active_slide.elements[-1].style.fill == "#00FF00"

    def test_insert_unknown_template_is_blank(self, store):
        store.insert_template("nope")
        assert len(store.document.slides) == 2
        assert store.active_slide.elements == []

    def test_without_active_slide_insert_still_works(self):
        store = DocumentStore(document=Document())
        store.insert_template("title")
        assert store.active_slide is not None


# ── View state ──────────────────────────────────────────────────────────

class TestViewState:
    def test_set_active_slide_clears_selection(self, store):
        first = store.active_slide_id
        store.add_rect()
        store.set_selected_element(store.active_slide.elements[0].id)
        store.add_slide()
        store.set_active_slide(first)
        assert store.active_slide_id == first
        assert store.selected_element_id is None

    def test_set_active_unknown_is_noop(self, store):
        first = store.active_slide_id
        store.set_active_slide("s_missing")
        assert store.active_slide_id == first

    def test_selection_not_recorded_in_history(self, store):
        store.add_rect()
        el_id = store.active_slide.elements[0].id
        depth = len(store.history.past)
        store.set_selected_element(el_id)
        store.set_active_slide(store.active_slide_id)
        assert len(store.history.past) == depth

    def test_selection_does_not_clear_redo(self, store):
        store.add_rect()
        el_id = store.active_slide.elements[0].id
        store.add_text()
        store.undo()
        assert store.can_redo()
        store.set_selected_element(el_id)
        store.set_active_slide(store.active_slide_id)
        assert store.can_redo()

    def test_select_unknown_element_is_noop(self, store):
        store.set_selected_element("r_missing")
        assert store.selected_element_id is None

    def test_selected_element(self, store):
        el_id = store.add_rect()
        store.set_selected_element(el_id)
        assert store.selected_element.id == el_id
        store.set_selected_element(None)
        assert store.selected_element is None


# ── Elements ────────────────────────────────────────────────────────────

class TestElements:
    def test_add_rect_defaults(self, store):
        el_id = store.add_rect()
        el = store.active_slide.get_element(el_id)
        assert el.type == "rect"
        assert (el.x, el.y, el.w, el.h) == (120, 120, 240, 140)
        assert el.style.fill == "#EFEFEF"
        assert el.style.radius == 18

    def test_add_text_defaults(self, store):
        el_id = store.add_text()
        el = store.active_slide.get_element(el_id)
        assert el.type == "text"
        assert el.text == "Text"
        assert (el.x, el.y, el.w, el.h) == (140, 140, 520, 80)

    def test_elements_keep_insertion_order(self, store):
        ids = [store.add_rect(), store.add_text(), store.add_rect()]
        assert [el.id for el in store.active_slide.elements] == ids

    def test_add_without_active_slide_is_noop(self):
        store = DocumentStore(document=Document())
        assert store.add_rect() is None
        assert store.add_text() is None
        assert not store.can_undo()

    def test_update_element_geometry(self, store):
        el_id = store.add_rect()
        store.update_element(el_id, {"x": 10, "y": 20, "rotation": 45, "appear_step": 2})
        el = store.active_slide.get_element(el_id)
        assert (el.x, el.y, el.rotation, el.appear_step) == (10, 20, 45, 2)
        assert el.w == 240

    def test_partial_style_patch_keeps_siblings(self, store):
        el_id = store.add_text()
        store.update_element(el_id, {"style": {"color": "#FF0000"}})
        store.update_element(el_id, {"style": {"font_size": 40}})
        style = store.active_slide.get_element(el_id).style
        assert style.font_size == 40
        assert style.color == "#FF0000"
        assert style.font_family == "Calibri"
        assert style.bold is False

    def test_update_element_style_helper(self, store):
        el_id = store.add_rect()
        store.update_element_style(el_id, {"stroke": "#000"})
        style = store.active_slide.get_element(el_id).style
        assert style.stroke == "#000"
        assert style.fill == "#EFEFEF"

    def test_update_keeps_id_and_type(self, store):
        el_id = store.add_rect()
        store.update_element(el_id, {"id": "hijack", "type": "text", "x": 1})
        el = store.active_slide.elements[0]
        assert el.id == el_id
        assert el.type == "rect"
        assert el.x == 1

    def test_update_unknown_is_noop(self, store):
        store.add_rect()
        depth = len(store.history.past)
        store.update_element("r_missing", {"x": 1})
        assert len(store.history.past) == depth

    def test_update_only_touches_active_slide(self, store):
        el_id = store.add_rect()
        store.add_slide()
        store.update_element(el_id, {"x": 999})
        assert store.document.slides[0].get_element(el_id).x == 120

    def test_invalid_patch_raises_before_commit(self, store):
        el_id = store.add_rect()
        depth = len(store.history.past)
        with pytest.raises(ValidationError):
            store.update_element(el_id, {"appear_step": -1})
        assert len(store.history.past) == depth
        assert store.active_slide.get_element(el_id).appear_step == 0

    def test_style_patch_on_image_rejected(self, store, small_png):
        el_id = asyncio.run(store.add_image_from_file(small_png))
        depth = len(store.history.past)
        with pytest.raises(ValidationError):
            store.update_element(el_id, {"style": {"fill": "#000"}})
        assert len(store.history.past) == depth

    def test_unknown_field_rejected(self, store):
        el_id = store.add_rect()
        with pytest.raises(ValidationError):
            store.update_element(el_id, {"colour": "#000"})

    def test_update_replaces_records(self, store):
        el_id = store.add_rect()
        before_doc = store.document
        before_el = store.active_slide.get_element(el_id)
        store.update_element(el_id, {"x": 1})
        assert store.document is not before_doc
        assert before_el.x == 120

    def test_delete_selected(self, store):
        keep = store.add_text()
        doomed = store.add_rect()
        store.set_selected_element(doomed)
        store.delete_selected()
        assert [el.id for el in store.active_slide.elements] == [keep]
        assert store.selected_element_id is None

    def test_delete_selected_without_selection_is_noop(self, store):
        store.add_rect()
        depth = len(store.history.past)
        store.delete_selected()
        assert len(store.active_slide.elements) == 1
        assert len(store.history.past) == depth


# ── Background ──────────────────────────────────────────────────────────

class TestBackground:
    def test_set_color(self, store):
        store.set_slide_bg_color("#101010")
        assert store.active_slide.background.color == "#101010"

    def test_set_image_defaults_to_cover(self, store, small_png):
        asyncio.run(store.set_slide_bg_image_from_file(small_png))
        image = store.active_slide.background.image
        assert image.fit == "cover"
        assert (image.natural_width, image.natural_height) == (200, 100)
        assert image.source_data.startswith("data:image/png;base64,")

    def test_set_image_keeps_color(self, store, small_png):
        store.set_slide_bg_color("#101010")
        asyncio.run(store.set_slide_bg_image_from_file(small_png))
        assert store.active_slide.background.color == "#101010"

    def test_set_fit(self, store, small_png):
        asyncio.run(store.set_slide_bg_image_from_file(small_png))
        store.set_slide_bg_image_fit("contain")
        assert store.active_slide.background.image.fit == "contain"
        store.set_slide_bg_image_fit(None)
        assert store.active_slide.background.image.fit == "cover"

    def test_invalid_fit_rejected(self, store, small_png):
        asyncio.run(store.set_slide_bg_image_from_file(small_png))
        with pytest.raises(ValidationError):
            store.set_slide_bg_image_fit("stretch")

    def test_set_fit_without_image_is_noop(self, store):
        store.set_slide_bg_image_fit("contain")
        assert not store.can_undo()

    def test_clear_image(self, store, small_png):
        asyncio.run(store.set_slide_bg_image_from_file(small_png))
        store.clear_slide_bg_image()
        assert store.active_slide.background.image is None

    def test_truncated_image_commits_nothing(self, store, make_png):
        with pytest.raises(ImageDecodeError):
            asyncio.run(store.set_slide_bg_image_from_file(make_png(300, 200)[:60]))
        assert not store.can_undo()
        assert store.active_slide.background.image is None

    def test_background_ops_without_active_slide(self, small_png):
        store = DocumentStore(document=Document())
        store.set_slide_bg_color("#000")
        store.clear_slide_bg_image()
        store.set_slide_bg_image_fit("contain")
        asyncio.run(store.set_slide_bg_image_from_file(small_png))
        assert not store.can_undo()


# ── Async image insertion ───────────────────────────────────────────────

class TestAddImage:
    def test_scaled_to_max_width(self, store, wide_png):
        el_id = asyncio.run(store.add_image_from_file(wide_png))
        el = store.active_slide.get_element(el_id)
        assert el.type == "image"
        assert (el.x, el.y) == (140, 160)
        assert (el.w, el.h) == (520, 260)

    def test_small_image_not_upscaled(self, store, small_png):
        el_id = asyncio.run(store.add_image_from_file(small_png))
        el = store.active_slide.get_element(el_id)
        assert (el.w, el.h) == (200, 100)

    def test_only_insertion_is_undoable(self, store, small_png):
        asyncio.run(store.add_image_from_file(small_png))
        assert len(store.history.past) == 1
        store.undo()
        assert store.active_slide.elements == []

    def test_decode_failure_commits_nothing(self, store, tmp_path):
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not an image")
        with pytest.raises(ImageDecodeError):
            asyncio.run(store.add_image_from_file(bad))
        assert not store.can_undo()
        assert store.active_slide.elements == []

    def test_truncated_file_commits_nothing(self, store, tmp_path, make_png):
        cut = tmp_path / "cut.png"
        cut.write_bytes(make_png(300, 200)[:60])
        with pytest.raises(ImageDecodeError):
            asyncio.run(store.add_image_from_file(cut))
        assert not store.can_undo()
        assert store.active_slide.elements == []

    def test_missing_file(self, store, tmp_path):
        with pytest.raises(ImageDecodeError):
            asyncio.run(store.add_image_from_file(tmp_path / "missing.png"))

    def test_no_active_slide_is_noop(self, small_png):
        store = DocumentStore(document=Document())
        assert asyncio.run(store.add_image_from_file(small_png)) is None

    def test_targets_slide_active_at_call_time(self, store, small_png):
        target = store.active_slide_id

        async def scenario():
            task = asyncio.create_task(store.add_image_from_file(small_png))
            await asyncio.sleep(0)
            store.add_slide()
            return await task

        el_id = asyncio.run(scenario())
        assert store.document.get_slide(target).get_element(el_id) is not None
        assert store.active_slide.elements == []

    def test_deleted_target_slide_is_silent_noop(self, store, small_png):
        target = store.active_slide_id
        store.add_slide()
        store.set_active_slide(target)

        async def scenario():
            task = asyncio.create_task(store.add_image_from_file(small_png))
            await asyncio.sleep(0)
            store.delete_slide(target)
            return await task

        assert asyncio.run(scenario()) is None
        assert store.document.get_slide(target) is None
        assert len(store.document.slides) == 1
        assert _all_element_ids(store) == set()

    def test_deleted_target_slide_background(self, store, small_png):
        target = store.active_slide_id
        store.add_slide()
        store.set_active_slide(target)

        async def scenario():
            task = asyncio.create_task(store.set_slide_bg_image_from_file(small_png))
            await asyncio.sleep(0)
            store.delete_slide(target)
            await task

        asyncio.run(scenario())
        assert store.document.get_slide(target) is None
        assert all(s.background.image is None for s in store.document.slides)


# ── Undo / redo through the store ───────────────────────────────────────

class TestStoreUndoRedo:
    def test_undo_restores_selection_and_active(self, store):
        first = store.active_slide_id
        el_id = store.add_rect()
        store.set_selected_element(el_id)
        store.add_slide()
        store.undo()
        assert store.active_slide_id == first
        assert store.selected_element_id == el_id

    def test_undo_redo_identity_over_mixed_edits(self, store, small_png):
        r = store.add_rect()
        store.update_element(r, {"style": {"fill": "#123456"}})
        store.insert_template("dashboard")
        asyncio.run(store.add_image_from_file(small_png))
        store.set_slide_bg_color("#222")
        store.set_selected_element(store.active_slide.elements[0].id)
        store.delete_selected()

        while store.can_undo():
            before = _observable(store)
            store.undo()
            store.redo()
            assert _observable(store) == before
            store.undo()

        assert len(store.document.slides) == 1
        assert store.document.slides[0].elements == []

    def test_undo_delete_slide_restores_elements(self, store):
        store.add_rect()
        store.add_text()
        slide_id = store.active_slide_id
        ids = {el.id for el in store.active_slide.elements}
        store.delete_slide(slide_id)
        store.undo()
        assert {el.id for el in store.document.get_slide(slide_id).elements} == ids
        assert store.active_slide_id == slide_id

    def test_new_edit_clears_redo(self, store):
        store.add_rect()
        store.add_text()
        store.undo()
        assert store.can_redo()
        store.add_slide()
        assert not store.can_redo()

    def test_history_bounded(self):
        store = DocumentStore(history_limit=80)
        for _ in range(100):
            store.add_rect()
        assert len(store.history.past) == 80
        for _ in range(80):
            store.undo()
        assert not store.can_undo()
        assert len(store.active_slide.elements) == 20

    def test_snapshot_isolated_from_live_document(self, store):
        store.add_rect()
        store.active_slide.elements[0].x = 500  # in-place edit bypassing history
        store.add_text()
        store.undo()
        store.undo()
        assert store.active_slide.elements == []

    def test_title_and_accent_are_undoable(self, store):
        store.set_title("Quarterly")
        store.set_accent_color("#00AAFF")
        store.undo()
        assert store.document.theme.accent_color == "#FF009C"
        store.undo()
        assert store.document.metadata.title == "Untitled"


# ── merge_element ───────────────────────────────────────────────────────

class TestMergeElement:
    def test_accepts_model_values(self):
        from slidekit.core.slides import RectStyle
        el = make_rect(x=0, y=0, w=10, h=10, fill="#000")
        merged = merge_element(el, {"style": RectStyle(fill="#FFF", radius=4)})
        assert merged.style.fill == "#FFF"
        assert merged.style.radius == 4

    def test_does_not_mutate_input(self):
        el = make_rect(x=0, y=0, w=10, h=10)
        merge_element(el, {"x": 5, "style": {"fill": "#FFF"}})
        assert el.x == 0
        assert el.style.fill == "#DDD"

    def test_validates_as_own_variant(self):
        el = make_image(x=0, y=0, w=10, h=10, source_data="data:image/png;base64,AA==")
        merged = merge_element(el, {"w": 20})
        assert merged.type == "image"
        assert merged.source_data == el.source_data

    def test_style_on_image_raises_validation_error(self):
        el = make_image(x=0, y=0, w=10, h=10, source_data="data:image/png;base64,AA==")
        with pytest.raises(ValidationError):
            merge_element(el, {"style": {"fill": "#000"}})
