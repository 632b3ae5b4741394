"""Slide and document data models."""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from .elements import Element, new_id


class BackgroundImage(BaseModel):
    """An embedded background picture and how it fills the slide."""
    source_data: str
    natural_width: int = Field(gt=0)
    natural_height: int = Field(gt=0)
    fit: Literal["cover", "contain"] = "cover"


class Background(BaseModel):
    color: str = "#FFFFFF"
    image: Optional[BackgroundImage] = None


class Slide(BaseModel):
    """A single slide. Element order is z-order: later elements draw on top."""
    id: str = Field(default_factory=lambda: new_id("s"))
    background: Background = Field(default_factory=Background)
    elements: list[Element] = Field(default_factory=list)

    @property
    def max_step(self) -> int:
        return max((el.appear_step for el in self.elements), default=0)

    def get_element(self, element_id: str) -> Optional[Element]:
        for el in self.elements:
            if el.id == element_id:
                return el
        return None


class DocumentMeta(BaseModel):
    title: str = "Untitled"
    layout: str = "wide"


class Theme(BaseModel):
    accent_color: str = "#FF009C"


class Document(BaseModel):
    """The whole presentation being edited. Owns its slides exclusively."""
    metadata: DocumentMeta = Field(default_factory=DocumentMeta)
    theme: Theme = Field(default_factory=Theme)
    slides: list[Slide] = Field(default_factory=list)

    def get_slide(self, slide_id: Optional[str]) -> Optional[Slide]:
        if slide_id is None:
            return None
        for s in self.slides:
            if s.id == slide_id:
                return s
        return None

    def to_summary(self) -> list[dict]:
        return [
            {
                "id": s.id,
                "index": i,
                "element_count": len(s.elements),
                "steps": s.max_step + 1,
                "background": s.background.color,
                "has_background_image": s.background.image is not None,
            }
            for i, s in enumerate(self.slides)
        ]


def make_slide() -> Slide:
    """A blank white slide with a fresh id."""
    return Slide()
