"""Element models and factories.

Elements form a tagged union on ``type``: rect, text and image share the same
positional base and differ only in their payload.
"""

import uuid
from typing import Annotated, Literal, Union
from pydantic import BaseModel, ConfigDict, Field

from .styles import RectStyle, TextStyle


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


class ElementBase(BaseModel):
    """Geometry shared by every element, in editor pixels.

    Width and height are kept positive by the geometry collaborators
    (see ``geometry.clamp_size``), not by the model.
    """
    model_config = ConfigDict(extra="forbid")

    id: str
    x: float
    y: float
    w: float
    h: float
    rotation: float = 0.0  # degrees
    appear_step: int = Field(default=0, ge=0)


class RectElement(ElementBase):
    type: Literal["rect"] = "rect"
    style: RectStyle = Field(default_factory=RectStyle)


class TextElement(ElementBase):
    type: Literal["text"] = "text"
    text: str = ""
    style: TextStyle = Field(default_factory=TextStyle)


class ImageElement(ElementBase):
    type: Literal["image"] = "image"
    source_data: str  # encoded image, usually a data: URL


Element = Annotated[
    Union[RectElement, TextElement, ImageElement],
    Field(discriminator="type"),
]

ELEMENT_TYPES: dict[str, type[ElementBase]] = {
    "rect": RectElement,
    "text": TextElement,
    "image": ImageElement,
}


# ── Factories ───────────────────────────────────────────────────────────

def make_rect(*, x: float, y: float, w: float, h: float, fill: str = "#DDD",
              radius: float = 0, stroke: str | None = None,
              stroke_width: float = 1, appear_step: int = 0) -> RectElement:
    return RectElement(
        id=new_id("r"),
        x=x, y=y, w=w, h=h,
        appear_step=appear_step,
        style=RectStyle(fill=fill, radius=radius, stroke=stroke, stroke_width=stroke_width),
    )


def make_text(*, x: float, y: float, w: float, h: float, text: str,
              size: float = 18, color: str = "#111", bold: bool = False,
              font_family: str = "Calibri", appear_step: int = 0) -> TextElement:
    return TextElement(
        id=new_id("t"),
        x=x, y=y, w=w, h=h,
        appear_step=appear_step,
        text=text,
        style=TextStyle(font_family=font_family, font_size=size, color=color, bold=bold),
    )


def make_image(*, x: float, y: float, w: float, h: float, source_data: str,
               appear_step: int = 0) -> ImageElement:
    return ImageElement(
        id=new_id("i"),
        x=x, y=y, w=w, h=h,
        appear_step=appear_step,
        source_data=source_data,
    )


def make_pill(*, x: float, y: float, d: float, fill: str, appear_step: int = 0) -> RectElement:
    """Circle: a d x d rect with a corner radius big enough to fully round it."""
    return make_rect(x=x, y=y, w=d, h=d, fill=fill, radius=999, appear_step=appear_step)
