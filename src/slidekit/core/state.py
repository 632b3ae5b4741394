"""Document store: the mutation surface over a slide document, with undo/redo.

Every edit is routed through ``History.commit`` and replaces the records it
changes rather than mutating them in place. Selection and active-slide
changes are view state and are not recorded in history.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional
from pydantic import BaseModel

from .history import HISTORY_LIMIT, History, Snapshot
from .slides import (
    ELEMENT_TYPES,
    BackgroundImage,
    Document,
    Element,
    Slide,
    TemplateLibrary,
    make_image,
    make_rect,
    make_slide,
    make_text,
)
from ..intake.images import decode_image, scale_to_max_width

logger = logging.getLogger("SlideKit.core.state")

# Where new elements land on the canvas
NEW_RECT = dict(x=120, y=120, w=240, h=140, fill="#EFEFEF", radius=18)
NEW_TEXT = dict(x=140, y=140, w=520, h=80, text="Text")
NEW_IMAGE_POS = (140, 160)

_IMMUTABLE_KEYS = {"id", "type"}


def merge_element(element: Element, patch: dict[str, Any]) -> Element:
    """Shallow-merge ``patch`` into an element, merging ``style`` key by key.

    ``id`` and ``type`` are never changed. The result is validated, so a bad
    value (e.g. a negative appear_step, an unknown field or a
    ``style`` on an image) raises ``pydantic.ValidationError``.
    """
    data = element.model_dump()
    for key, value in patch.items():
        if key in _IMMUTABLE_KEYS:
            logger.debug(f"Ignoring attempt to patch '{key}' of {element.id}")
            continue
        if isinstance(value, BaseModel):
            value = value.model_dump()
        if key == "style" and isinstance(value, dict) and "style" in data:
            data["style"] = {**data["style"], **value}
        else:
            data[key] = value
    return ELEMENT_TYPES[element.type].model_validate(data)


class DocumentStore:
    """Editable slide document plus active-slide/selection state and history."""

    def __init__(self, document: Optional[Document] = None,
                 history_limit: int = HISTORY_LIMIT,
                 templates: Optional[TemplateLibrary] = None):
        if document is None:
            document = Document(slides=[make_slide()])
        self.document = document
        self.active_slide_id: Optional[str] = document.slides[0].id if document.slides else None
        self.selected_element_id: Optional[str] = None
        self.templates = templates or TemplateLibrary()
        self.history = History(self._snapshot, self._restore, limit=history_limit)

    # ── Read API ─────────────────────────────────────────────────────────

    @property
    def active_slide(self) -> Optional[Slide]:
        return self.document.get_slide(self.active_slide_id)

    @property
    def selected_element(self) -> Optional[Element]:
        slide = self.active_slide
        if slide is None or self.selected_element_id is None:
            return None
        return slide.get_element(self.selected_element_id)

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def summary(self) -> dict:
        return {
            "title": self.document.metadata.title,
            "accent_color": self.document.theme.accent_color,
            "active_slide_id": self.active_slide_id,
            "selected_element_id": self.selected_element_id,
            "can_undo": self.can_undo(),
            "can_redo": self.can_redo(),
            "slides": self.document.to_summary(),
        }

    # ── History ──────────────────────────────────────────────────────────

    def _snapshot(self, description: str = "") -> Snapshot:
        return Snapshot(
            description=description,
            document_json=self.document.model_dump_json(),
            active_slide_id=self.active_slide_id,
            selected_element_id=self.selected_element_id,
        )

    def _restore(self, snap: Snapshot) -> None:
        document = Document.model_validate_json(snap.document_json)
        self.document = document
        self.active_slide_id = snap.active_slide_id
        self.selected_element_id = snap.selected_element_id

    def undo(self) -> Optional[str]:
        return self.history.undo()

    def redo(self) -> Optional[str]:
        return self.history.redo()

    def _set_slides(self, slides: list[Slide]) -> None:
        self.document = self.document.model_copy(update={"slides": slides})

    def _commit_to_slide(self, slide_id: Optional[str],
                         edit: Callable[[Slide], Optional[Slide]],
                         description: str) -> bool:
        """Commit ``edit`` against one slide. No-op if the slide does not exist.

        ``edit`` returns the replacement slide, or None to skip the commit.
        """
        slide = self.document.get_slide(slide_id)
        if slide is None:
            logger.debug(f"'{description}' skipped: slide {slide_id!r} not found")
            return False
        replacement = edit(slide)
        if replacement is None:
            return False

        def mutate():
            self._set_slides([replacement if s.id == slide.id else s for s in self.document.slides])

        self.history.commit(mutate, description)
        return True

    # ── View state (not recorded) ────────────────────────────────────────

    def set_active_slide(self, slide_id: Optional[str]) -> None:
        if slide_id is not None and self.document.get_slide(slide_id) is None:
            logger.debug(f"set_active_slide: unknown slide {slide_id}")
            return
        self.active_slide_id = slide_id
        self.selected_element_id = None

    def set_selected_element(self, element_id: Optional[str]) -> None:
        if element_id is not None:
            slide = self.active_slide
            if slide is None or slide.get_element(element_id) is None:
                logger.debug(f"set_selected_element: unknown element {element_id}")
                return
        self.selected_element_id = element_id

    # ── Slides ───────────────────────────────────────────────────────────

    def _append_slide(self, slide: Slide, description: str) -> str:
        def mutate():
            self._set_slides(self.document.slides + [slide])
            self.active_slide_id = slide.id
            self.selected_element_id = None

        self.history.commit(mutate, description)
        return slide.id

    def add_slide(self) -> str:
        """Append a blank slide and make it active. Returns its id."""
        return self._append_slide(make_slide(), "Add slide")

    def insert_template(self, template_id: str) -> str:
        """Append a slide built from a template (blank if unknown). Returns its id."""
        slide = self.templates.build(template_id, self.document.theme.accent_color)
        return self._append_slide(slide, f"Insert template '{template_id}'")

    def delete_slide(self, slide_id: str) -> None:
        """Remove a slide and all of its elements."""
        if self.document.get_slide(slide_id) is None:
            logger.debug(f"delete_slide: unknown slide {slide_id}")
            return

        def mutate():
            slides = [s for s in self.document.slides if s.id != slide_id]
            self._set_slides(slides)
            if self.active_slide_id == slide_id:
                self.active_slide_id = slides[0].id if slides else None
            self.selected_element_id = None

        self.history.commit(mutate, "Delete slide")

    # ── Elements ─────────────────────────────────────────────────────────

    def _append_element(self, slide_id: Optional[str], element: Element,
                        description: str) -> Optional[str]:
        added = self._commit_to_slide(
            slide_id,
            lambda s: s.model_copy(update={"elements": s.elements + [element]}),
            description,
        )
        return element.id if added else None

    def add_rect(self) -> Optional[str]:
        return self._append_element(self.active_slide_id, make_rect(**NEW_RECT), "Add rect")

    def add_text(self) -> Optional[str]:
        return self._append_element(self.active_slide_id, make_text(**NEW_TEXT), "Add text")

    async def add_image_from_file(self, file: str | Path | bytes) -> Optional[str]:
        """Decode an image file and append it to the slide active at call time.

        Decoding happens outside history; only the insertion is undoable. If
        that slide is deleted while decoding, the result is dropped.

        Raises:
            ImageDecodeError: the file could not be decoded (nothing is committed).
        """
        slide_id = self.active_slide_id
        if slide_id is None:
            return None

        decoded = await decode_image(file)
        w, h = scale_to_max_width(decoded.natural_width, decoded.natural_height)
        x, y = NEW_IMAGE_POS
        element = make_image(x=x, y=y, w=w, h=h, source_data=decoded.source_data)
        return self._append_element(slide_id, element, "Add image")

    def update_element(self, element_id: str, patch: dict[str, Any]) -> None:
        """Merge ``patch`` into an element of the active slide."""
        slide = self.active_slide
        if slide is None:
            return
        element = slide.get_element(element_id)
        if element is None:
            logger.debug(f"update_element: unknown element {element_id}")
            return
        updated = merge_element(element, patch)

        self._commit_to_slide(
            slide.id,
            lambda s: s.model_copy(update={
                "elements": [updated if el.id == element_id else el for el in s.elements],
            }),
            "Update element",
        )

    def update_element_style(self, element_id: str, style_patch: dict[str, Any]) -> None:
        self.update_element(element_id, {"style": style_patch})

    def delete_selected(self) -> None:
        """Remove the selected element from the active slide and clear selection."""
        slide = self.active_slide
        selected = self.selected_element_id
        if slide is None or selected is None:
            return

        def mutate():
            replacement = slide.model_copy(update={
                "elements": [el for el in slide.elements if el.id != selected],
            })
            self._set_slides([replacement if s.id == slide.id else s for s in self.document.slides])
            self.selected_element_id = None

        self.history.commit(mutate, "Delete element")

    # ── Background ───────────────────────────────────────────────────────

    def _with_background(self, slide: Slide, **changes) -> Slide:
        return slide.model_copy(update={"background": slide.background.model_copy(update=changes)})

    def set_slide_bg_color(self, color: str) -> None:
        self._commit_to_slide(
            self.active_slide_id,
            lambda s: self._with_background(s, color=color),
            "Set background color",
        )

    async def set_slide_bg_image_from_file(self, file: str | Path | bytes) -> None:
        """Decode an image and make it the background of the slide active at call time.

        Raises:
            ImageDecodeError: the file could not be decoded (nothing is committed).
        """
        slide_id = self.active_slide_id
        if slide_id is None:
            return

        decoded = await decode_image(file)
        image = BackgroundImage(
            source_data=decoded.source_data,
            natural_width=decoded.natural_width,
            natural_height=decoded.natural_height,
            fit="cover",
        )
        self._commit_to_slide(
            slide_id,
            lambda s: self._with_background(s, image=image),
            "Set background image",
        )

    def set_slide_bg_image_fit(self, fit: Optional[str]) -> None:
        slide = self.active_slide
        if slide is None or slide.background.image is None:
            return
        image = BackgroundImage.model_validate({
            **slide.background.image.model_dump(),
            "fit": fit or "cover",
        })
        self._commit_to_slide(
            slide.id,
            lambda s: self._with_background(s, image=image),
            "Set background fit",
        )

    def clear_slide_bg_image(self) -> None:
        self._commit_to_slide(
            self.active_slide_id,
            lambda s: self._with_background(s, image=None),
            "Clear background image",
        )

    # ── Document settings ────────────────────────────────────────────────

    def set_accent_color(self, color: str) -> None:
        """Change the theme accent used by templates inserted from now on."""
        def mutate():
            theme = self.document.theme.model_copy(update={"accent_color": color})
            self.document = self.document.model_copy(update={"theme": theme})

        self.history.commit(mutate, "Set accent color")

    def set_title(self, title: str) -> None:
        def mutate():
            meta = self.document.metadata.model_copy(update={"title": title})
            self.document = self.document.model_copy(update={"metadata": meta})

        self.history.commit(mutate, "Set title")
