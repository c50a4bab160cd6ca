"""
Glow Bleed Detection

An ordinary pixel next to a light source picks up an additive "leak" layer.
The neighbourhood is Moore (8 cells, centre excluded). Neighbours outside the
grid are skipped: no wrapping, never treated as glowing.
"""

import numpy as np
from scipy.ndimage import maximum_filter

from .material import FULL_GLOW_ALPHA, PARTIAL_GLOW_ALPHA, glow_mask


_MOORE_OFFSETS = [(dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1)
                  if not (dx == 0 and dy == 0)]

# 3x3 ring footprint, centre excluded
_RING = np.ones((3, 3), dtype=bool)
_RING[1, 1] = False


def has_glowing_neighbor(grid, x, y):
    """True if any in-bounds Moore neighbour of (x, y) is glow-tagged.

    Stops at the first match.
    """
    alpha = grid.alpha
    w, h = grid.width, grid.height
    for dx, dy in _MOORE_OFFSETS:
        nx, ny = x + dx, y + dy
        if 0 <= nx < w and 0 <= ny < h:
            a = alpha[ny, nx]
            if a == FULL_GLOW_ALPHA or a == PARTIAL_GLOW_ALPHA:
                return True
    return False


def glow_neighbor_mask(grid):
    """(height, width) bool map: has_glowing_neighbor for every pixel at once.

    Max-filter of the glow mask over the ring footprint; the constant 0
    border means cells outside the grid never count as glowing.
    """
    glowing = glow_mask(grid.alpha).astype(np.uint8)
    return maximum_filter(glowing, footprint=_RING, mode="constant", cval=0) > 0


class GlowNeighborCache:
    """Holds glow_neighbor_mask for one grid, rebuilt when its revision changes."""

    def __init__(self):
        self._grid = None
        self._revision = None
        self._mask = None

    def get(self, grid):
        if grid is not self._grid or grid.revision != self._revision:
            self._mask = glow_neighbor_mask(grid)
            self._grid = grid
            self._revision = grid.revision
        return self._mask
