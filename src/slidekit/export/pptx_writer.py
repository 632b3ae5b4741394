"""Write exported output slides to a .pptx file with python-pptx."""

import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Any, Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_AUTO_SHAPE_TYPE
from pptx.oxml.ns import qn
from pptx.oxml.xmlchemy import OxmlElement
from pptx.util import Inches, Pt

from ..core.geometry import PAGE_H, PAGE_W
from ..core.slides import Document
from ..intake.images import data_url_to_bytes
from .pipeline import ImagePrimitive, OutputSlide, ShapePrimitive, TextPrimitive, export_document

logger = logging.getLogger("SlideKit.export.pptx")

BLANK_LAYOUT = 6

_RGBA_RE = re.compile(r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)$")


def parse_color(value: Optional[str]) -> tuple[Optional[RGBColor], Optional[float]]:
    """Parse '#RGB', '#RRGGBB', 'RRGGBB', 'rgb(...)' or 'rgba(...)'.

    Returns (color, alpha) where alpha is 0..1 or None when opaque/unspecified.
    Unparseable input gives (None, None).
    """
    if not value:
        return None, None
    s = value.strip()
    m = _RGBA_RE.match(s.lower())
    if m:
        r, g, b = (max(0, min(255, int(float(c)))) for c in m.group(1, 2, 3))
        alpha = float(m.group(4)) if m.group(4) is not None else None
        return RGBColor(r, g, b), alpha
    if s.startswith("#"):
        s = s[1:]
    if len(s) == 3:
        s = "".join(c * 2 for c in s)
    if len(s) != 6:
        return None, None
    try:
        return RGBColor.from_string(s.upper()), None
    except ValueError:
        return None, None


def _set_solid_fill_alpha(shape: Any, alpha: float) -> None:
    """Set the opacity (0..1) of a shape's solid fill in DrawingML."""
    solid = shape._element.spPr.find(qn("a:solidFill"))
    if solid is None:
        return
    clr = solid.find(qn("a:srgbClr"))
    if clr is None:
        return
    for tag in ("a:alpha", "a:alphaMod", "a:alphaOff"):
        el = clr.find(qn(tag))
        if el is not None:
            clr.remove(el)
    # a:alpha val is percent * 1000
    ael = OxmlElement("a:alpha")
    ael.set("val", str(int(round(max(0.0, min(1.0, alpha)) * 100000))))
    clr.append(ael)


def _add_shape(slide: Any, p: ShapePrimitive) -> None:
    kind = MSO_AUTO_SHAPE_TYPE.ROUNDED_RECTANGLE if p.shape == "roundRect" else MSO_AUTO_SHAPE_TYPE.RECTANGLE
    shape = slide.shapes.add_shape(kind, Inches(p.x), Inches(p.y), Inches(p.w), Inches(p.h))
    shape.rotation = p.rotation

    if p.shape == "roundRect":
        short_side = min(p.w, p.h)
        if short_side > 0:
            shape.adjustments[0] = min(0.5, p.corner_radius / short_side)

    fill, alpha = parse_color(p.fill)
    if fill is None:
        shape.fill.background()
    else:
        shape.fill.solid()
        shape.fill.fore_color.rgb = fill
        if alpha is not None and alpha < 1:
            _set_solid_fill_alpha(shape, alpha)

    line, _ = parse_color(p.line_color)
    if p.line_width > 0 and line is not None:
        shape.line.color.rgb = line
        shape.line.width = Pt(p.line_width)
    else:
        shape.line.fill.background()


def _add_text(slide: Any, p: TextPrimitive) -> None:
    box = slide.shapes.add_textbox(Inches(p.x), Inches(p.y), Inches(p.w), Inches(p.h))
    box.rotation = p.rotation
    tf = box.text_frame
    tf.word_wrap = True
    tf.text = p.text
    color, _ = parse_color(p.color)
    for para in tf.paragraphs:
        for run in para.runs:
            run.font.name = p.font_face
            run.font.size = Pt(p.font_size)
            run.font.bold = p.bold
            if color is not None:
                run.font.color.rgb = color


def _add_image(slide: Any, p: ImagePrimitive) -> None:
    pic = slide.shapes.add_picture(BytesIO(data_url_to_bytes(p.data)),
                                   Inches(p.x), Inches(p.y), Inches(p.w), Inches(p.h))
    pic.rotation = p.rotation


def write_pptx(slides: list[OutputSlide], path: str | Path, title: str = "deck") -> Path:
    """Serialize output slides to a widescreen .pptx file."""
    path = Path(path)
    prs = Presentation()
    prs.slide_width = Inches(PAGE_W)
    prs.slide_height = Inches(PAGE_H)
    prs.core_properties.title = title
    prs.core_properties.author = "slidekit"
    layout = prs.slide_layouts[BLANK_LAYOUT]

    for out in slides:
        slide = prs.slides.add_slide(layout)

        bg, _ = parse_color(out.background_color)
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = bg or RGBColor(0xFF, 0xFF, 0xFF)

        if out.background_image is not None:
            img = out.background_image
            slide.shapes.add_picture(BytesIO(data_url_to_bytes(img.data)),
                                     Inches(img.x), Inches(img.y), Inches(img.w), Inches(img.h))

        for p in out.primitives:
            if isinstance(p, ShapePrimitive):
                _add_shape(slide, p)
            elif isinstance(p, TextPrimitive):
                _add_text(slide, p)
            elif isinstance(p, ImagePrimitive):
                _add_image(slide, p)

    path.parent.mkdir(parents=True, exist_ok=True)
    prs.save(str(path))
    logger.info(f"Wrote {len(slides)} slides to {path}")
    return path


def export_to_pptx(document: Document, path: str | Path) -> Path:
    """Run the export pipeline on a document and write the result to ``path``."""
    return write_pptx(export_document(document), path, title=document.metadata.title or "deck")
