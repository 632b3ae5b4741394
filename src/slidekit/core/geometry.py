"""Coordinate contract between the editor canvas and the exported page.

Editor space is a fixed 1333x750 pixel canvas; the exported page is a
13.333x7.5 inch widescreen slide. Both axes share one scale factor.
"""

from typing import Literal
from pydantic import BaseModel

# Editor pixels (what the canvas shows)
EDITOR_W = 1333
EDITOR_H = 750

# Physical page, inches (widescreen)
PAGE_W = 13.333
PAGE_H = 7.5

PX_PER_UNIT = EDITOR_W / PAGE_W  # ~100

# Smallest size a resize gesture may produce, per element kind
MIN_SIZE: dict[str, float] = {
    "rect": 5,
    "text": 20,
    "image": 10,
}

FALLBACK_ASPECT = 16 / 9

Fit = Literal["cover", "contain"]


class Placement(BaseModel):
    """A positioned box, in whatever units the caller's box uses."""
    x: float
    y: float
    w: float
    h: float


def px_to_units(v: float) -> float:
    return v / PX_PER_UNIT


def units_to_px(v: float) -> float:
    return v * PX_PER_UNIT


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def clamp_size(kind: str, w: float, h: float) -> tuple[float, float]:
    """Clamp a width/height pair to the editor bounds for an element kind."""
    lo = MIN_SIZE.get(kind, 1)
    return clamp(w, lo, EDITOR_W), clamp(h, lo, EDITOR_H)


def transform_patch(element, x: float, y: float,
                    scale_x: float, scale_y: float, rotation: float) -> dict:
    """Build the update patch for the end of a canvas resize/rotate gesture.

    Images keep their aspect ratio, so they scale by the smaller factor.
    """
    if element.type == "image":
        scale_x = scale_y = min(scale_x, scale_y)
    w, h = clamp_size(element.type, element.w * scale_x, element.h * scale_y)
    return {"x": x, "y": y, "w": w, "h": h, "rotation": rotation}


def fit_image(natural_w: float, natural_h: float,
              box_w: float, box_h: float, fit: Fit = "cover") -> Placement:
    """Center an image of the given natural size inside (contain) or over (cover) a box.

    The box aspect decides which axis is pinned to the box edge. With cover the
    result may overflow the box; clipping is up to whoever draws it.
    Unknown or zero natural sizes are treated as 16:9.
    """
    if natural_w and natural_h and natural_w > 0 and natural_h > 0:
        aspect = natural_w / natural_h
    else:
        aspect = FALLBACK_ASPECT
    box_aspect = box_w / box_h

    if fit == "contain":
        if aspect >= box_aspect:
            w, h = box_w, box_w / aspect
        else:
            w, h = box_h * aspect, box_h
    else:
        if aspect >= box_aspect:
            w, h = box_h * aspect, box_h
        else:
            w, h = box_w, box_w / aspect

    return Placement(x=(box_w - w) / 2, y=(box_h - h) / 2, w=w, h=h)


def editor_background_placement(natural_w: float, natural_h: float,
                                fit: Fit = "cover") -> Placement:
    """Background image box in editor pixels, as the canvas previews it."""
    return fit_image(natural_w, natural_h, EDITOR_W, EDITOR_H, fit)


def page_background_placement(natural_w: float, natural_h: float,
                              fit: Fit = "cover") -> Placement:
    """Background image box in page inches, as the export places it."""
    return fit_image(natural_w, natural_h, PAGE_W, PAGE_H, fit)
