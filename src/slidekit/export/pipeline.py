"""Export pipeline: flatten a slide document into static output slides.

Each source slide expands into one output slide per reveal step, with
geometry converted from editor pixels to page inches. The pipeline only
reads the document.
"""

import logging
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field

from ..core.geometry import PAGE_H, PAGE_W, page_background_placement, px_to_units
from ..core.slides import Document, ImageElement, RectElement, Slide, TextElement

logger = logging.getLogger("SlideKit.export.pipeline")


class ShapePrimitive(BaseModel):
    kind: Literal["shape"] = "shape"
    shape: Literal["rect", "roundRect"]
    x: float
    y: float
    w: float
    h: float
    rotation: float = 0.0
    fill: str
    corner_radius: float = 0.0  # inches
    line_color: str
    line_width: float


class TextPrimitive(BaseModel):
    kind: Literal["text"] = "text"
    text: str
    x: float
    y: float
    w: float
    h: float
    rotation: float = 0.0
    font_face: str
    font_size: float
    bold: bool
    color: str


class ImagePrimitive(BaseModel):
    kind: Literal["image"] = "image"
    data: str
    x: float
    y: float
    w: float
    h: float
    rotation: float = 0.0


Primitive = Annotated[
    Union[ShapePrimitive, TextPrimitive, ImagePrimitive],
    Field(discriminator="kind"),
]


class BackgroundPlacement(BaseModel):
    """Background picture box on the page; may overflow the page with cover fit."""
    data: str
    x: float
    y: float
    w: float
    h: float


class OutputSlide(BaseModel):
    source_slide_id: str
    step: int
    background_color: str
    background_image: Optional[BackgroundPlacement] = None
    primitives: list[Primitive] = Field(default_factory=list)


def strip_hash(color: str) -> str:
    return color[1:] if color.startswith("#") else color


def _box(el) -> dict:
    return dict(
        x=px_to_units(el.x),
        y=px_to_units(el.y),
        w=px_to_units(el.w),
        h=px_to_units(el.h),
        rotation=el.rotation or 0.0,
    )


def element_to_primitive(el) -> Primitive:
    """Map one element to its output primitive, converting geometry to inches."""
    if isinstance(el, RectElement):
        fill = strip_hash(el.style.fill or "#CCCCCC")
        if el.style.stroke:
            line_color, line_width = strip_hash(el.style.stroke), el.style.stroke_width
        else:
            # borderless; some consumers require a line definition
            line_color, line_width = fill, 0.0
        radius = el.style.radius or 0
        return ShapePrimitive(
            shape="roundRect" if radius > 0 else "rect",
            fill=fill,
            corner_radius=px_to_units(min(radius, el.w / 2, el.h / 2)) if radius > 0 else 0.0,
            line_color=line_color,
            line_width=line_width,
            **_box(el),
        )
    if isinstance(el, TextElement):
        return TextPrimitive(
            text=el.text or "",
            font_face=el.style.font_family or "Calibri",
            font_size=el.style.font_size or 18,
            bold=bool(el.style.bold),
            color=strip_hash(el.style.color or "#111111"),
            **_box(el),
        )
    if isinstance(el, ImageElement):
        return ImagePrimitive(data=el.source_data, **_box(el))
    raise TypeError(f"Unsupported element type: {type(el).__name__}")


def background_placement(slide: Slide) -> Optional[BackgroundPlacement]:
    image = slide.background.image
    if image is None or not image.source_data:
        return None
    box = page_background_placement(image.natural_width, image.natural_height, image.fit or "cover")
    return BackgroundPlacement(data=image.source_data, x=box.x, y=box.y, w=box.w, h=box.h)


def expand_slide(slide: Slide) -> list[OutputSlide]:
    """One output slide per reveal step 0..max_step; step s shows elements with appear_step <= s."""
    bg_color = strip_hash(slide.background.color or "#FFFFFF")
    bg_image = background_placement(slide)
    primitives = [(el.appear_step, element_to_primitive(el)) for el in slide.elements]

    return [
        OutputSlide(
            source_slide_id=slide.id,
            step=step,
            background_color=bg_color,
            background_image=bg_image,
            primitives=[p for appear, p in primitives if appear <= step],
        )
        for step in range(slide.max_step + 1)
    ]


def export_document(document: Document) -> list[OutputSlide]:
    """Flatten a document into ordered output slides for a static presentation."""
    out: list[OutputSlide] = []
    for slide in document.slides:
        out.extend(expand_slide(slide))
    logger.info(f"Exported {len(document.slides)} slides as {len(out)} output slides "
                f"({PAGE_W}x{PAGE_H} in)")
    return out
