"""
Reference Renderer

Executes compositor DrawOps into a float32 RGB buffer in [0, 1]. Colour and
alpha are clamped here, on paint, never earlier.

Blend modes (src is the clamped colour, a the clamped alpha):
  NORMAL  dst = src*a + dst*(1 - a)
  SCREEN  dst = s + dst - s*dst,  s = src*a
  PLUS    dst = min(1, dst + src*a)

Rects cover every cell they overlap; circles cover cells whose centre lies
inside the radius. Anything off-canvas is clipped.
"""

import math
import numpy as np

from .compositor import BlendMode, Shape


class Canvas:
    """Float RGB paint target."""

    def __init__(self, width, height, background=(0.0, 0.0, 0.0)):
        self.width = int(width)
        self.height = int(height)
        self.background = tuple(background)
        self.buffer = np.empty((self.height, self.width, 3), dtype=np.float32)
        self.clear()

    def clear(self):
        self.buffer[:] = self.background

    def _rect_region(self, origin, size):
        x0, y0 = origin
        c0 = max(0, int(math.floor(x0)))
        r0 = max(0, int(math.floor(y0)))
        c1 = min(self.width, int(math.ceil(x0 + size)))
        r1 = min(self.height, int(math.ceil(y0 + size)))
        if c0 >= c1 or r0 >= r1:
            return None
        return (slice(r0, r1), slice(c0, c1)), None

    def _circle_region(self, center, radius):
        cx, cy = center
        c0 = max(0, int(math.floor(cx - radius)))
        r0 = max(0, int(math.floor(cy - radius)))
        c1 = min(self.width, int(math.ceil(cx + radius)) + 1)
        r1 = min(self.height, int(math.ceil(cy + radius)) + 1)
        if c0 >= c1 or r0 >= r1:
            return None
        Y, X = np.ogrid[r0:r1, c0:c1]
        inside = (X + 0.5 - cx) ** 2 + (Y + 0.5 - cy) ** 2 <= radius * radius
        if not inside.any():
            return None
        return (slice(r0, r1), slice(c0, c1)), inside

    def paint(self, op):
        """Paint one DrawOp."""
        if op.shape is Shape.RECT:
            region = self._rect_region(op.origin, op.size)
        else:
            region = self._circle_region(op.origin, op.size)
        if region is None:
            return
        window, inside = region

        r, g, b, a = op.color
        a = min(max(a, 0.0), 1.0)
        if a <= 0.0:
            return
        src = np.clip(np.array((r, g, b), dtype=np.float32), 0.0, 1.0)

        dst = self.buffer[window]
        if op.blend is BlendMode.NORMAL:
            out = src * a + dst * (1.0 - a)
        elif op.blend is BlendMode.SCREEN:
            s = src * a
            out = s + dst - s * dst
        else:
            out = np.minimum(dst + src * a, 1.0)

        if inside is None:
            dst[:] = out
        else:
            dst[inside] = out[inside]

    def paint_all(self, ops):
        for op in ops:
            self.paint(op)
        return self

    def to_uint8(self):
        """(H, W, 3) uint8 image."""
        return (np.clip(self.buffer, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def render(ops, width, height, background=(0.0, 0.0, 0.0)):
    """Paint ops onto a fresh canvas and return the uint8 RGB image."""
    return Canvas(width, height, background).paint_all(ops).to_uint8()
