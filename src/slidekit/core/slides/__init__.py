"""Slides package — public API re-exports."""

from .styles import RectStyle, TextStyle
from .elements import (
    ELEMENT_TYPES,
    Element,
    ElementBase,
    ImageElement,
    RectElement,
    TextElement,
    make_image,
    make_pill,
    make_rect,
    make_text,
)
from .slide import Background, BackgroundImage, Document, DocumentMeta, Slide, Theme, make_slide
from .templates import (
    TEMPLATE_IDS,
    SlideTemplate,
    TemplateLibrary,
    build_template,
    list_templates,
)

__all__ = [
    "Document",
    "DocumentMeta",
    "Theme",
    "Slide",
    "Background",
    "BackgroundImage",
    "Element",
    "ElementBase",
    "RectElement",
    "TextElement",
    "ImageElement",
    "ELEMENT_TYPES",
    "RectStyle",
    "TextStyle",
    "make_slide",
    "make_rect",
    "make_text",
    "make_image",
    "make_pill",
    "SlideTemplate",
    "TemplateLibrary",
    "TEMPLATE_IDS",
    "build_template",
    "list_templates",
]
