"""Slide templates — hand-composed layouts built from rect and text primitives.

Every builder is a pure function of the accent color: calling it twice yields
slides with identical geometry, text and style (only ids differ).
"""

import math
from dataclasses import dataclass
from typing import Callable, Optional

from ..geometry import EDITOR_W, EDITOR_H
from .elements import make_pill, make_rect, make_text
from .slide import Slide, make_slide

DEFAULT_TEMPLATE = "blank"


def _round(v: float) -> int:
    # half-up, so odd widths land on the same pixel in every renderer
    return math.floor(v + 0.5)


def _with_elements(elements: list, bg: str = "#FFFFFF") -> Slide:
    s = make_slide()
    s.background.color = bg
    s.elements = elements
    return s


def template_blank(accent: str) -> Slide:
    return make_slide()


def template_title(accent: str) -> Slide:
    return _with_elements([
        make_rect(x=0, y=0, w=EDITOR_W, h=EDITOR_H, fill="#FFFFFF"),
        make_text(x=120, y=230, w=1100, h=120, text="Title", size=64, bold=True),
        make_text(x=120, y=340, w=1100, h=60, text="Subtitle", size=28, color="#444"),
    ])


def template_two_col(accent: str) -> Slide:
    return _with_elements([
        make_text(x=80, y=60, w=1170, h=60, text="Section Title", size=36, bold=True),
        make_rect(x=80, y=140, w=560, h=520, fill="#EFEFEF", radius=18),
        make_rect(x=690, y=140, w=560, h=520, fill="#EFEFEF", radius=18),
        make_text(x=110, y=170, w=500, h=40, text="Left", size=22, bold=True, color="#333"),
        make_text(x=720, y=170, w=500, h=40, text="Right", size=22, bold=True, color="#333"),
    ])


def template_desktop_app(accent: str) -> Slide:
    card = dict(fill="#FFFFFF", radius=14, stroke="#E3E3EE", stroke_width=1)
    els = [
        make_rect(x=40, y=40, w=EDITOR_W - 80, h=EDITOR_H - 80, fill="#FFFFFF",
                  radius=18, stroke="#D9D9E3", stroke_width=1),
        # browser chrome
        make_rect(x=60, y=60, w=EDITOR_W - 120, h=54, fill="#F2F2F7", radius=14,
                  stroke="#D9D9E3", stroke_width=1),
        make_pill(x=80, y=78, d=12, fill="#FF5F57"),
        make_pill(x=98, y=78, d=12, fill="#FEBC2E"),
        make_pill(x=116, y=78, d=12, fill="#28C840"),
        make_rect(x=160, y=72, w=520, h=30, fill="#FFFFFF", radius=10,
                  stroke="#D9D9E3", stroke_width=1),
        make_text(x=175, y=78, w=490, h=20, text="https://app.example.com", size=14, color="#666"),
        # sidebar
        make_rect(x=60, y=120, w=240, h=EDITOR_H - 180, fill="#FAFAFC", radius=14,
                  stroke="#E3E3EE", stroke_width=1),
        make_text(x=80, y=145, w=200, h=28, text="App Name", size=18, bold=True, color="#111"),
    ]

    for i, label in enumerate(["Dashboard", "Projects", "Inbox", "Settings"]):
        y = 190 + i * 44
        if i == 0:
            els.append(make_rect(x=75, y=y, w=210, h=34, fill=accent, radius=10))
            els.append(make_text(x=92, y=y + 7, w=180, h=20, text=label, size=14,
                                 color="#FFFFFF", bold=True))
        else:
            els.append(make_text(x=92, y=y + 7, w=180, h=20, text=label, size=14, color="#444"))

    # toolbar
    els += [
        make_rect(x=320, y=120, w=EDITOR_W - 380, h=64, **card),
        make_text(x=340, y=140, w=500, h=28, text="Page Title", size=22, bold=True, color="#111"),
        make_rect(x=EDITOR_W - 260, y=136, w=160, h=34, fill=accent, radius=10),
        make_text(x=EDITOR_W - 245, y=144, w=130, h=20, text="Primary action", size=14,
                  color="#FFF", bold=True),
    ]

    card_y = 200
    card_w = (EDITOR_W - 380 - 40) / 2
    card_h = 170
    left_x = 320
    right_x = 320 + card_w + 20
    for r in range(2):
        y = card_y + r * (card_h + 20)
        els.append(make_rect(x=left_x, y=y, w=card_w, h=card_h, **card))
        els.append(make_rect(x=right_x, y=y, w=card_w, h=card_h, **card))
        for cx in (left_x, right_x):
            els += [
                make_text(x=cx + 16, y=y + 16, w=card_w - 32, h=24, text="Card title",
                          size=16, bold=True, color="#111"),
                make_rect(x=cx + 16, y=y + 52, w=card_w - 32, h=10, fill="#EFEFF6", radius=6),
                make_rect(x=cx + 16, y=y + 70, w=card_w - 90, h=10, fill="#EFEFF6", radius=6),
            ]

    return _with_elements(els)


def template_mobile_frame(accent: str) -> Slide:
    dev_w, dev_h = 420, 700
    dev_x = _round((EDITOR_W - dev_w) / 2)
    dev_y = _round((EDITOR_H - dev_h) / 2)
    pad = 18
    sx, sy = dev_x + pad, dev_y + pad
    sw, sh = dev_w - pad * 2, dev_h - pad * 2

    els = [
        make_rect(x=0, y=0, w=EDITOR_W, h=EDITOR_H, fill="#0B0B0F"),
        make_rect(x=dev_x, y=dev_y, w=dev_w, h=dev_h, fill="#111217", radius=48,
                  stroke="#2A2B35", stroke_width=2),
        make_rect(x=sx, y=sy, w=sw, h=sh, fill="#FFFFFF", radius=34),
        # status bar
        make_rect(x=sx + 18, y=sy + 14, w=sw - 36, h=20, fill="#FFFFFF"),
        make_text(x=sx + 18, y=sy + 14, w=100, h=20, text="9:41", size=14, bold=True, color="#111"),
        make_rect(x=sx + sw - 84, y=sy + 18, w=60, h=12, fill="#EDEDF5", radius=6),
        # header
        make_rect(x=sx, y=sy + 40, w=sw, h=64, fill="#FAFAFC"),
        make_text(x=sx + 18, y=sy + 58, w=sw - 36, h=24, text="Mobile Screen", size=18,
                  bold=True, color="#111"),
    ]

    top = sy + 120
    for i in range(3):
        y = top + i * 118
        els += [
            make_rect(x=sx + 18, y=y, w=sw - 36, h=96, fill="#FFFFFF", radius=16,
                      stroke="#E3E3EE", stroke_width=1),
            make_rect(x=sx + 34, y=y + 18, w=54, h=54, fill="#EFEFF6", radius=14),
            make_text(x=sx + 100, y=y + 18, w=sw - 150, h=20, text="List item title", size=14,
                      bold=True, color="#111"),
            make_rect(x=sx + 100, y=y + 44, w=sw - 180, h=10, fill="#EFEFF6", radius=6),
            make_rect(x=sx + 100, y=y + 62, w=sw - 220, h=10, fill="#EFEFF6", radius=6),
        ]

    tab_h = 74
    tab_w = (sw - 36) / 3
    els.append(make_rect(x=sx, y=sy + sh - tab_h, w=sw, h=tab_h, fill="#FAFAFC"))
    for i, label in enumerate(["Home", "Search", "Profile"]):
        x = sx + 18 + i * tab_w
        active = i == 0
        els.append(make_pill(x=x + 18, y=sy + sh - tab_h + 16, d=10,
                             fill=accent if active else "#C9CAD6"))
        els.append(make_text(x=x, y=sy + sh - tab_h + 30, w=tab_w, h=20, text=label, size=12,
                             color=accent if active else "#666", bold=active))

    return _with_elements(els, bg="#0B0B0F")


def template_dashboard(accent: str) -> Slide:
    card = dict(fill="#FFFFFF", radius=14, stroke="#E3E3EE", stroke_width=1)
    els = [
        make_rect(x=0, y=0, w=EDITOR_W, h=EDITOR_H, fill="#FFFFFF"),
        make_rect(x=40, y=40, w=240, h=EDITOR_H - 80, fill="#0F0F15", radius=18),
        make_text(x=60, y=70, w=200, h=28, text="Dashboard", size=18, bold=True, color="#FFFFFF"),
    ]

    for i, label in enumerate(["Overview", "Reports", "Users", "Billing"]):
        y = 120 + i * 44
        if i == 0:
            els.append(make_rect(x=58, y=y, w=204, h=34, fill=accent, radius=10))
            els.append(make_text(x=74, y=y + 7, w=170, h=20, text=label, size=14,
                                 bold=True, color="#FFFFFF"))
        else:
            els.append(make_text(x=74, y=y + 7, w=170, h=20, text=label, size=14, color="#CFCFE2"))

    els += [
        make_rect(x=300, y=40, w=EDITOR_W - 340, h=64, **card),
        make_text(x=320, y=60, w=400, h=24, text="Overview", size=20, bold=True, color="#111"),
        make_rect(x=EDITOR_W - 340, y=58, w=260, h=30, fill="#FAFAFC", radius=10,
                  stroke="#E3E3EE", stroke_width=1),
        make_text(x=EDITOR_W - 325, y=64, w=230, h=20, text="Search…", size=14, color="#888"),
    ]

    kpi_y = 120
    kpi_w = (EDITOR_W - 340 - 40) / 3
    for i in range(3):
        x = 300 + i * (kpi_w + 20)
        els += [
            make_rect(x=x, y=kpi_y, w=kpi_w, h=110, **card),
            make_text(x=x + 16, y=kpi_y + 16, w=kpi_w - 32, h=18, text="Metric", size=12,
                      color="#666", bold=True),
            make_text(x=x + 16, y=kpi_y + 40, w=kpi_w - 32, h=40, text="123", size=34,
                      color="#111", bold=True),
            make_rect(x=x + 16, y=kpi_y + 86, w=70, h=10, fill=accent, radius=6),
        ]

    chart_y = 250
    left_w = _round((EDITOR_W - 340) * 0.62)
    right_w = EDITOR_W - 340 - left_w - 20

    els.append(make_rect(x=300, y=chart_y, w=left_w, h=300, **card))
    els.append(make_text(x=316, y=chart_y + 16, w=left_w - 32, h=20, text="Chart", size=14,
                         bold=True, color="#111"))
    for i in range(8):
        els.append(make_rect(x=330 + i * 44, y=chart_y + 70 + (i % 3) * 24, w=22,
                             h=170 - (i % 3) * 24, fill="#EFEFF6", radius=6))
    els.append(make_rect(x=330, y=chart_y + 260, w=left_w - 60, h=10, fill=accent, radius=6))

    rx = 300 + left_w + 20
    els.append(make_rect(x=rx, y=chart_y, w=right_w, h=300, **card))
    els.append(make_text(x=rx + 16, y=chart_y + 16, w=right_w - 32, h=20, text="Activity",
                         size=14, bold=True, color="#111"))
    for i in range(6):
        y = chart_y + 56 + i * 38
        els.append(make_rect(x=rx + 16, y=y, w=10, h=10,
                             fill=accent if i == 0 else "#C9CAD6", radius=6))
        els.append(make_rect(x=rx + 34, y=y, w=right_w - 60, h=10, fill="#EFEFF6", radius=6))

    return _with_elements(els)


def template_modal(accent: str) -> Slide:
    return _with_elements([
        make_rect(x=0, y=0, w=EDITOR_W, h=EDITOR_H, fill="#0b0b12"),
        make_rect(x=0, y=0, w=EDITOR_W, h=EDITOR_H, fill="rgba(0,0,0,0.55)"),
        make_rect(x=320, y=170, w=700, h=420, fill="#ffffff", radius=18,
                  stroke="#E6E6E6", stroke_width=2),
        make_text(x=360, y=210, w=620, h=50, text="Modal Title", size=32, bold=True),
        make_text(x=360, y=270, w=620, h=140,
                  text="Modal body text goes here.\nYou can add more content and buttons.",
                  size=20, color="#333"),
        make_rect(x=360, y=460, w=160, h=56, fill=accent, radius=14),
        make_text(x=360, y=470, w=160, h=40, text="Confirm", size=20, bold=True, color="#fff"),
        make_rect(x=540, y=460, w=140, h=56, fill="#EFEFF5", radius=14),
        make_text(x=540, y=470, w=140, h=40, text="Cancel", size=20, bold=True, color="#222"),
    ], bg="#0b0b12")


def template_kanban(accent: str) -> Slide:
    els = [
        make_rect(x=0, y=0, w=EDITOR_W, h=EDITOR_H, fill="#0b0b12"),
        make_text(x=70, y=40, w=1200, h=50, text="Kanban Board", size=40, bold=True, color="#fff"),
    ]

    col_w, gap, x0, y0 = 380, 36, 70, 120
    for i, title in enumerate(["To Do", "Doing", "Done"]):
        x = x0 + i * (col_w + gap)
        els += [
            make_rect(x=x, y=y0, w=col_w, h=560, fill="#151524", radius=18,
                      stroke="#2b2b44", stroke_width=2),
            make_text(x=x + 18, y=y0 + 16, w=col_w - 36, h=36, text=title, size=22,
                      bold=True, color="#fff"),
            make_rect(x=x + 18, y=y0 + 70, w=col_w - 36, h=110, fill="#ffffff", radius=14),
            make_text(x=x + 32, y=y0 + 88, w=col_w - 64, h=80, text="Card 1", size=20,
                      bold=True, color="#111"),
            make_rect(x=x + 18, y=y0 + 200, w=col_w - 36, h=110, fill="#ffffff", radius=14),
            make_text(x=x + 32, y=y0 + 218, w=col_w - 64, h=80, text="Card 2", size=20,
                      bold=True, color="#111"),
        ]

    els.append(make_rect(x=70, y=92, w=180, h=6, fill=accent, radius=6))
    return _with_elements(els, bg="#0b0b12")


def template_flow(accent: str) -> Slide:
    els = [make_rect(x=0, y=0, w=EDITOR_W, h=EDITOR_H, fill="#FFFFFF")]

    def box(x, y, label):
        els.append(make_rect(x=x, y=y, w=280, h=90, fill="#EFEFF5", radius=18,
                             stroke="#D6D6E6", stroke_width=2))
        els.append(make_text(x=x + 20, y=y + 22, w=240, h=50, text=label, size=24,
                             bold=True, color="#111"))

    def arrow(x, y, w, h):
        els.append(make_rect(x=x, y=y, w=w, h=h, fill="#111", radius=6))

    box(120, 140, "Start")
    box(520, 140, "Process")
    box(920, 140, "Decision")
    arrow(410, 182, 90, 10)
    arrow(810, 182, 90, 10)
    box(520, 340, "Outcome A")
    box(920, 340, "Outcome B")
    arrow(1060, 230, 10, 90)
    arrow(760, 230, 10, 90)

    els.append(make_rect(x=120, y=110, w=220, h=6, fill=accent, radius=6))
    return _with_elements(els)


@dataclass(frozen=True)
class SlideTemplate:
    """A registered template: display metadata plus its builder."""
    id: str
    name: str
    description: str
    build: Callable[[str], Slide]


class TemplateLibrary:
    """Registry of slide templates keyed by id."""

    def __init__(self, templates: Optional[list[SlideTemplate]] = None):
        self.templates: dict[str, SlideTemplate] = {}
        for t in templates or BUILTIN_TEMPLATES:
            self.add(t)

    def get(self, template_id: str) -> Optional[SlideTemplate]:
        return self.templates.get(template_id)

    def add(self, template: SlideTemplate) -> SlideTemplate:
        self.templates[template.id] = template
        return template

    def build(self, template_id: str, accent: str) -> Slide:
        """Build a slide from a template; unknown ids fall back to blank."""
        template = self.get(template_id) or self.get(DEFAULT_TEMPLATE)
        if template is None:
            return make_slide()
        return template.build(accent)

    def list_templates(self) -> list[dict]:
        return [
            {"id": t.id, "name": t.name, "description": t.description}
            for t in self.templates.values()
        ]


BUILTIN_TEMPLATES: list[SlideTemplate] = [
    SlideTemplate("blank", "Blank", "Empty white slide", template_blank),
    SlideTemplate("title", "Title", "Large title with a subtitle", template_title),
    SlideTemplate("twoCol", "Two columns", "Section title over two rounded panels", template_two_col),
    SlideTemplate("desktop-app", "Desktop app", "Browser window with sidebar, toolbar and cards",
                  template_desktop_app),
    SlideTemplate("mobile-frame", "Mobile frame", "Phone mockup with list items and tab bar",
                  template_mobile_frame),
    SlideTemplate("dashboard", "Dashboard", "Sidebar, KPI tiles, bar chart and activity feed",
                  template_dashboard),
    SlideTemplate("modal", "Modal dialog", "Dimmed backdrop with a confirm/cancel dialog",
                  template_modal),
    SlideTemplate("kanban", "Kanban board", "Three columns of cards", template_kanban),
    SlideTemplate("flow", "Flow diagram", "Boxes joined by arrow bars", template_flow),
]

TEMPLATE_IDS = [t.id for t in BUILTIN_TEMPLATES]

_default_library = TemplateLibrary()


def build_template(template_id: str, accent: str) -> Slide:
    """Build a template slide from the built-in library (blank for unknown ids)."""
    return _default_library.build(template_id, accent)


def list_templates() -> list[dict]:
    return _default_library.list_templates()
