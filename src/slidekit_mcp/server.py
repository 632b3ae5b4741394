"""SlideKit MCP Server - slide deck editing and PPTX export tools for MCP clients."""

from mcp.server.fastmcp import FastMCP, Context
import json
import logging
import os
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Any

from pydantic import ValidationError

from slidekit.core.errors import SlideKitError
from slidekit.core.history import HISTORY_LIMIT
from slidekit.core.slides import list_templates as _list_templates
from slidekit.core.state import DocumentStore
from slidekit.export.pipeline import export_document
from slidekit.export.pptx_writer import write_pptx

# Configure logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("SlideKit.mcp")

# Default configuration
DEFAULT_EXPORT_DIR = "./exports"


def _file_stem(title: str) -> str:
    """Turn a deck title into a filename that stays inside the export dir."""
    stem = re.sub(r"[^\w .-]+", "_", title).strip(" .")
    return stem or "deck"


def _history_limit() -> int:
    try:
        return int(os.getenv("SLIDEKIT_HISTORY_LIMIT", HISTORY_LIMIT))
    except ValueError:
        logger.warning("Invalid SLIDEKIT_HISTORY_LIMIT, using default")
        return HISTORY_LIMIT


# ── Global State ────────────────────────────────────────────────────────

_store = DocumentStore(history_limit=_history_limit())


def get_store() -> DocumentStore:
    return _store


def reset_store() -> DocumentStore:
    """Start over with a fresh one-slide document."""
    global _store
    _store = DocumentStore(history_limit=_history_limit())
    return _store


def _state_json() -> str:
    return json.dumps(_store.summary(), indent=2)


# ── Server Setup ────────────────────────────────────────────────────────

@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    try:
        logger.info("SlideKit MCP server starting up")
        yield {}
    finally:
        logger.info("SlideKit MCP server shut down")


mcp = FastMCP("SlideKitMCP", lifespan=server_lifespan)


# ═══════════════════════════════════════════════════════════════════════
# DECK TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def get_deck_state(ctx: Context) -> str:
    """Get the deck overview: slides, active slide, selection and undo/redo availability."""
    return _state_json()


@mcp.tool()
def get_slide(ctx: Context, slide_id: str = "") -> str:
    """Get the full element list of a slide.

    Parameters:
    - slide_id: Slide to inspect (defaults to the active slide)
    """
    slide = _store.document.get_slide(slide_id or _store.active_slide_id)
    if not slide:
        return f"Error: Slide '{slide_id}' not found."
    return slide.model_dump_json(indent=2, exclude={
        "elements": {"__all__": {"source_data"}},
        "background": {"image": {"source_data"}},
    })


@mcp.tool()
def new_deck(ctx: Context, title: str = "Untitled") -> str:
    """Discard the current deck and start a new one with a single blank slide.

    Parameters:
    - title: Deck title
    """
    store = reset_store()
    if title != store.document.metadata.title:
        store.set_title(title)
        store.history.clear()
    return _state_json()


@mcp.tool()
def set_deck_title(ctx: Context, title: str) -> str:
    """Rename the deck (used as the exported file name)."""
    _store.set_title(title)
    return f"Deck title set to '{title}'."


@mcp.tool()
def set_accent_color(ctx: Context, color: str) -> str:
    """Set the theme accent color used by templates inserted afterwards.

    Parameters:
    - color: Hex color, e.g. #FF009C
    """
    _store.set_accent_color(color)
    return f"Accent color set to {color}."


# ═══════════════════════════════════════════════════════════════════════
# SLIDE TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def list_templates(ctx: Context) -> str:
    """List the available slide templates."""
    return json.dumps(_list_templates(), indent=2)


@mcp.tool()
def add_slide(ctx: Context) -> str:
    """Append a blank slide and make it active."""
    slide_id = _store.add_slide()
    return json.dumps({"status": "added", "slide_id": slide_id}, indent=2)


@mcp.tool()
def insert_template(ctx: Context, template_id: str) -> str:
    """Append a slide built from a template and make it active.

    Parameters:
    - template_id: One of the ids from list_templates (unknown ids insert a blank slide)
    """
    slide_id = _store.insert_template(template_id)
    slide = _store.document.get_slide(slide_id)
    return json.dumps({
        "status": "added",
        "slide_id": slide_id,
        "template_id": template_id,
        "element_count": len(slide.elements),
    }, indent=2)


@mcp.tool()
def delete_slide(ctx: Context, slide_id: str) -> str:
    """Delete a slide and everything on it."""
    if not _store.document.get_slide(slide_id):
        return f"Error: Slide '{slide_id}' not found."
    _store.delete_slide(slide_id)
    return f"Deleted slide {slide_id}. Slide count: {len(_store.document.slides)}"


@mcp.tool()
def set_active_slide(ctx: Context, slide_id: str) -> str:
    """Make a slide the target of element and background tools."""
    if not _store.document.get_slide(slide_id):
        return f"Error: Slide '{slide_id}' not found."
    _store.set_active_slide(slide_id)
    return f"Active slide: {slide_id}"


# ═══════════════════════════════════════════════════════════════════════
# ELEMENT TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def select_element(ctx: Context, element_id: str = "") -> str:
    """Select an element on the active slide (empty id clears the selection)."""
    _store.set_selected_element(element_id or None)
    if element_id and _store.selected_element_id != element_id:
        return f"Error: Element '{element_id}' not found on the active slide."
    return f"Selected: {_store.selected_element_id or 'nothing'}"


@mcp.tool()
def add_rect(ctx: Context) -> str:
    """Add a default rounded rectangle to the active slide."""
    element_id = _store.add_rect()
    if not element_id:
        return "Error: No active slide."
    return json.dumps({"status": "added", "element_id": element_id}, indent=2)


@mcp.tool()
def add_text(ctx: Context) -> str:
    """Add a default text box to the active slide."""
    element_id = _store.add_text()
    if not element_id:
        return "Error: No active slide."
    return json.dumps({"status": "added", "element_id": element_id}, indent=2)


@mcp.tool()
async def add_image(ctx: Context, file_path: str) -> str:
    """Add an image file to the active slide, scaled to at most 520px wide.

    Parameters:
    - file_path: Path to a PNG/JPEG/GIF/WebP image
    """
    if not _store.active_slide_id:
        return "Error: No active slide."
    try:
        element_id = await _store.add_image_from_file(file_path)
    except SlideKitError as e:
        return f"Error: {str(e)}"
    if not element_id:
        return "Error: The target slide no longer exists."
    return json.dumps({"status": "added", "element_id": element_id}, indent=2)


@mcp.tool()
def update_element(ctx: Context, element_id: str, patch_json: str) -> str:
    """Update fields of an element on the active slide.

    Parameters:
    - element_id: Element to update
    - patch_json: JSON object of fields, e.g. {"x": 100, "appear_step": 1, "style": {"fill": "#FF0000"}}
      Style patches are merged, so unspecified style fields are kept.
    """
    try:
        patch = json.loads(patch_json)
    except json.JSONDecodeError as e:
        return f"Error: Invalid patch JSON: {str(e)}"
    if not isinstance(patch, dict):
        return "Error: Patch must be a JSON object."

    slide = _store.active_slide
    if not slide or not slide.get_element(element_id):
        return f"Error: Element '{element_id}' not found on the active slide."
    try:
        _store.update_element(element_id, patch)
    except ValidationError as e:
        return f"Error: Invalid value: {str(e)}"
    return _store.active_slide.get_element(element_id).model_dump_json(
        indent=2, exclude={"source_data"})


@mcp.tool()
def delete_selected(ctx: Context) -> str:
    """Delete the selected element from the active slide."""
    if not _store.selected_element_id:
        return "Error: Nothing selected."
    _store.delete_selected()
    return "Deleted selected element."


# ═══════════════════════════════════════════════════════════════════════
# BACKGROUND TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def set_background_color(ctx: Context, color: str) -> str:
    """Set the active slide's background color (hex)."""
    if not _store.active_slide_id:
        return "Error: No active slide."
    _store.set_slide_bg_color(color)
    return f"Background color set to {color}."


@mcp.tool()
async def set_background_image(ctx: Context, file_path: str) -> str:
    """Use an image file as the active slide's background (cover fit)."""
    if not _store.active_slide_id:
        return "Error: No active slide."
    try:
        await _store.set_slide_bg_image_from_file(file_path)
    except SlideKitError as e:
        return f"Error: {str(e)}"
    return "Background image set."


@mcp.tool()
def set_background_fit(ctx: Context, fit: str = "cover") -> str:
    """Set how the background image fills the slide: cover or contain."""
    slide = _store.active_slide
    if not slide or not slide.background.image:
        return "Error: Active slide has no background image."
    try:
        _store.set_slide_bg_image_fit(fit)
    except ValidationError:
        return f"Error: Unknown fit '{fit}'. Use cover or contain."
    return f"Background fit set to {fit}."


@mcp.tool()
def clear_background_image(ctx: Context) -> str:
    """Remove the active slide's background image."""
    if not _store.active_slide_id:
        return "Error: No active slide."
    _store.clear_slide_bg_image()
    return "Background image cleared."


# ═══════════════════════════════════════════════════════════════════════
# HISTORY TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def undo(ctx: Context) -> str:
    """Undo the last deck edit."""
    description = _store.undo()
    if description is not None:
        return f"Undone: {description or 'edit'}. Slide count: {len(_store.document.slides)}"
    return "Nothing to undo."


@mcp.tool()
def redo(ctx: Context) -> str:
    """Redo the last undone deck edit."""
    description = _store.redo()
    if description is not None:
        return f"Redone: {description or 'edit'}. Slide count: {len(_store.document.slides)}"
    return "Nothing to redo."


# ═══════════════════════════════════════════════════════════════════════
# EXPORT TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def export_preview(ctx: Context) -> str:
    """Show how the deck will be flattened on export (one output slide per reveal step)."""
    out = export_document(_store.document)
    return json.dumps([
        {
            "index": i,
            "source_slide_id": o.source_slide_id,
            "step": o.step,
            "background_color": o.background_color,
            "has_background_image": o.background_image is not None,
            "primitives": [p.kind for p in o.primitives],
        }
        for i, o in enumerate(out)
    ], indent=2)


@mcp.tool()
def export_pptx(ctx: Context, output_path: str = "") -> str:
    """Export the deck to a .pptx file.

    Parameters:
    - output_path: Destination file (defaults to <SLIDEKIT_EXPORT_DIR>/<title>.pptx)
    """
    title = _store.document.metadata.title or "deck"
    if output_path:
        path = Path(output_path)
    else:
        path = Path(os.getenv("SLIDEKIT_EXPORT_DIR", DEFAULT_EXPORT_DIR)) / f"{_file_stem(title)}.pptx"

    try:
        slides = export_document(_store.document)
        write_pptx(slides, path, title=title)
    except Exception as e:
        logger.error(f"Export failed: {str(e)}")
        return f"Error exporting deck: {str(e)}"

    return json.dumps({
        "status": "exported",
        "path": str(path),
        "source_slides": len(_store.document.slides),
        "output_slides": len(slides),
    }, indent=2)


def main():
    """Run the MCP server"""
    mcp.run()


if __name__ == "__main__":
    main()
