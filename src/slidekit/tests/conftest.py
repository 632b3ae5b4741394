"""Shared fixtures: generated images and a fresh document store."""

import io

import pytest
from PIL import Image

from slidekit.core.state import DocumentStore


def png_bytes(width: int, height: int, color=(255, 0, 156)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def store():
    return DocumentStore()


@pytest.fixture
def wide_png(tmp_path):
    """A 1040x520 PNG on disk (2:1, wider than the 520px insert limit)."""
    path = tmp_path / "wide.png"
    path.write_bytes(png_bytes(1040, 520))
    return path


@pytest.fixture
def small_png(tmp_path):
    path = tmp_path / "small.png"
    path.write_bytes(png_bytes(200, 100))
    return path


@pytest.fixture
def make_png():
    """Factory for in-memory PNG bytes of a given size."""
    return png_bytes
