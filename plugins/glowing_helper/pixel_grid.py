"""
Pixel Grid - the RGBA raster of one open image

Backed by a (height, width, 4) uint8 numpy array in straight (not
premultiplied) RGBA. Alpha is the only channel edits touch, and it doubles
as a material tag: 252 and 253 mark light sources (see material.py).

Coordinates are (x, y) with x the column. Index order is row-major:
pixel i has x = i % width, y = i // width.
"""

import numpy as np


class InvalidCoordinate(IndexError):
    """Pixel access outside the grid."""

    def __init__(self, x, y, width, height):
        super().__init__(f"pixel ({x}, {y}) outside {width}x{height} grid")
        self.x = x
        self.y = y


class InvalidAlpha(ValueError):
    """Alpha edit outside 0-255."""


class Pixel:
    """One pixel value. Read-only snapshot; edits go through PixelGrid."""

    __slots__ = ("x", "y", "r", "g", "b", "a")

    def __init__(self, x, y, r, g, b, a):
        self.x = x
        self.y = y
        self.r = r
        self.g = g
        self.b = b
        self.a = a

    @property
    def rgb(self):
        return (self.r, self.g, self.b)

    def with_alpha(self, a):
        return Pixel(self.x, self.y, self.r, self.g, self.b, a)

    def __eq__(self, other):
        if not isinstance(other, Pixel):
            return NotImplemented
        return (self.x, self.y, self.r, self.g, self.b, self.a) == \
            (other.x, other.y, other.r, other.g, other.b, other.a)

    def __hash__(self):
        return hash((self.x, self.y, self.r, self.g, self.b, self.a))

    def __repr__(self):
        return (f"Pixel(x={self.x}, y={self.y}, "
                f"rgba=({self.r}, {self.g}, {self.b}, {self.a}))")


def _check_alpha(alpha):
    if isinstance(alpha, bool) or not isinstance(alpha, (int, np.integer)):
        raise InvalidAlpha(f"alpha must be an integer 0-255, got {alpha!r}")
    if not 0 <= alpha <= 255:
        raise InvalidAlpha(f"alpha must be an integer 0-255, got {alpha}")
    return int(alpha)


class PixelGrid:
    """RGBA raster with bounds-checked pixel access and alpha edits.

    The grid keeps a revision counter bumped on every mutation so derived
    data (glow masks, cached base layers) can tell when to rebuild.
    """

    def __init__(self, rgba):
        """
        Args:
            rgba: (height, width, 4) array-like of 0-255 values. Copied.
        """
        data = np.array(rgba, dtype=np.uint8, copy=True)
        if data.ndim != 3 or data.shape[2] != 4:
            raise ValueError(f"expected (height, width, 4) RGBA array, got shape {data.shape}")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError("grid must be at least 1x1")
        self._rgba = data
        self.revision = 0

    @classmethod
    def blank(cls, width, height, color=(0, 0, 0, 0)):
        """Grid filled with one RGBA color."""
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[:] = color
        return cls(data)

    @classmethod
    def from_pixels(cls, width, height, pixels):
        """Build from a row-major sequence of (r, g, b, a) tuples or Pixels."""
        if len(pixels) != width * height:
            raise ValueError(
                f"{len(pixels)} pixels do not fill a {width}x{height} grid")
        flat = [p if isinstance(p, (tuple, list)) else (p.r, p.g, p.b, p.a)
                for p in pixels]
        return cls(np.array(flat, dtype=np.uint8).reshape(height, width, 4))

    @property
    def width(self):
        return self._rgba.shape[1]

    @property
    def height(self):
        return self._rgba.shape[0]

    @property
    def shape(self):
        return self._rgba.shape

    @property
    def rgba(self):
        """Read-only view of the raster."""
        view = self._rgba.view()
        view.flags.writeable = False
        return view

    @property
    def alpha(self):
        """Read-only (height, width) view of the alpha channel."""
        return self.rgba[:, :, 3]

    def copy(self):
        return PixelGrid(self._rgba)

    def __len__(self):
        return self.width * self.height

    def __eq__(self, other):
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self._rgba, other._rgba)

    def __repr__(self):
        return f"PixelGrid({self.width}x{self.height}, revision={self.revision})"

    def in_bounds(self, x, y):
        return 0 <= x < self.width and 0 <= y < self.height

    def _check(self, x, y):
        if not self.in_bounds(x, y):
            raise InvalidCoordinate(x, y, self.width, self.height)

    def get_pixel(self, x, y):
        """Return the Pixel at (x, y). Raises InvalidCoordinate when outside."""
        self._check(x, y)
        r, g, b, a = (int(c) for c in self._rgba[y, x])
        return Pixel(x, y, r, g, b, a)

    def __iter__(self):
        """Yield every pixel in row-major order."""
        for y in range(self.height):
            row = self._rgba[y]
            for x in range(self.width):
                r, g, b, a = row[x]
                yield Pixel(x, y, int(r), int(g), int(b), int(a))

    def update_pixel_alpha(self, x, y, new_alpha):
        """Rewrite the alpha of one pixel."""
        self._check(x, y)
        self._rgba[y, x, 3] = _check_alpha(new_alpha)
        self.revision += 1

    def update_all_pixels_with_color(self, r, g, b, new_alpha):
        """Rewrite alpha of every pixel whose RGB equals (r, g, b) exactly.

        Returns:
            Number of pixels matched.
        """
        new_alpha = _check_alpha(new_alpha)
        match = ((self._rgba[:, :, 0] == r) &
                 (self._rgba[:, :, 1] == g) &
                 (self._rgba[:, :, 2] == b))
        count = int(match.sum())
        if count:
            self._rgba[:, :, 3][match] = new_alpha
            self.revision += 1
        return count

    def count_color(self, r, g, b):
        """Number of pixels with RGB (r, g, b)."""
        return int(((self._rgba[:, :, 0] == r) &
                    (self._rgba[:, :, 1] == g) &
                    (self._rgba[:, :, 2] == b)).sum())
