"""
PNG decode/encode for PixelGrids

Alpha must survive exactly in both directions: 252 and 253 are material
tags, so no premultiplication, no colour management, no lossy formats.
"""

import os
import tempfile
import time

import numpy as np
from PIL import Image, UnidentifiedImageError

from .pixel_grid import PixelGrid


class ImageLoadError(Exception):
    """Image could not be read or decoded."""


class ImageSaveError(Exception):
    """Image could not be written."""


def decode_image(img):
    """PIL image -> PixelGrid (converted to straight RGBA)."""
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return PixelGrid(np.asarray(img, dtype=np.uint8))


def encode_image(grid):
    """PixelGrid -> PIL RGBA image."""
    return Image.fromarray(np.array(grid.rgba, dtype=np.uint8))


def load_png(path):
    """Read an image file into a PixelGrid. Raises ImageLoadError."""
    try:
        with Image.open(path) as img:
            img.load()
            return decode_image(img)
    except (OSError, UnidentifiedImageError, ValueError) as e:
        raise ImageLoadError(f"cannot load {path}: {e}") from e


def save_png(grid, path):
    """Write a PixelGrid as lossless PNG.

    Writes to a temp file beside `path` and moves it into place, so a failed
    save leaves no partial file. The grid is never modified.
    """
    path = os.fspath(path)
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(suffix=".png", dir=directory)
        with os.fdopen(fd, "wb") as f:
            encode_image(grid).save(f, format="PNG")
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise ImageSaveError(f"cannot save {path}: {e}") from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
    return path


def edited_filename(now=None):
    """Timestamped name for a saved edit, e.g. edited_png_1718000000000.png."""
    millis = int((time.time() if now is None else now) * 1000)
    return f"edited_png_{millis}.png"
