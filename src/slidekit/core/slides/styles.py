"""Visual style models for slide elements — shape fill/stroke and typography."""

from typing import Optional
from pydantic import BaseModel, Field


class RectStyle(BaseModel):
    """Fill, corner radius and optional stroke of a rect element.

    A radius of 999 is used as "fully rounded" (circles and capsules);
    renderers cap it at min(w, h) / 2.
    """
    fill: str = "#DDD"
    radius: float = Field(default=0, ge=0)
    stroke: Optional[str] = None
    stroke_width: float = 1


class TextStyle(BaseModel):
    """Typography of a text element (font size in points)."""
    font_family: str = "Calibri"
    font_size: float = 18
    color: str = "#111"
    bold: bool = False
