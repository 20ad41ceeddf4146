"""Shared helpers: draw Piet programs as real PNG files."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from piet_interpreter import PALETTE

COLOR_RGB = {color: rgb for rgb, color in PALETTE}


def render(rows, codel_size: int = 1) -> np.ndarray:
    """Rows of Color values -> (H, W, 3) uint8 pixels, codel_size pixels per codel."""
    pixels = np.array([[COLOR_RGB[c] for c in row] for row in rows], dtype=np.uint8)
    return pixels.repeat(codel_size, axis=0).repeat(codel_size, axis=1)


@pytest.fixture
def write_program(tmp_path):
    def _write(rows, codel_size: int = 1, name: str = "program.png"):
        path = tmp_path / name
        Image.fromarray(render(rows, codel_size)).save(path)
        return path

    return _write
