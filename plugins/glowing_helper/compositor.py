"""
Glow Compositor

Turns a PixelGrid, a GlowParameters snapshot and a shimmer time into the
ordered list of draw operations a renderer paints back-to-front.

Per visible pixel with alpha > 0, in row-major order:

  Normal pixel
    base   rect  (rgb * ambient, a/255)                    NORMAL
    bleed  rect  (rgb * ambient * leak, a/255 * leak)      PLUS
           only with leak > 0 and a glow-tagged neighbour

  Glow pixel (strength s: 1.0 full, 0.4 partial)
    base   rect  (rgb * ambient, a/255)                    NORMAL
    core   rect  (rgb * glow * s * (1 + shimmer*0.3), 0.8) SCREEN
    halo   3 circles, radius size*0.5*glow*0.3 * i/3,
           (rgb * glow * 0.2, 0.3*(1 - i/3))               SCREEN
           only with glow > 0

rgb is the pixel colour scaled to [0, 1]. Colours are deliberately left
unclamped: Screen/Plus layers past 1.0 are clipped by the renderer, which is
what blows out the highlights.

Nothing here keeps state between frames except GlowCompositor's optional
cache of base layers, which shimmer never affects.
"""

import enum

from .bleed import GlowNeighborCache, glow_neighbor_mask
from .layout import Viewport
from .material import MaterialClass, classify
from .shimmer import shimmer


# Presentation constants; 0.7 core alpha with a Plus halo is the brighter variant.
GLOW_CORE_ALPHA = 0.8
SHIMMER_BOOST = 0.3
HALO_RINGS = 3
HALO_RADIUS_FACTOR = 0.5 * 0.3
HALO_COLOR_FACTOR = 0.2
HALO_BASE_ALPHA = 0.3


class BlendMode(str, enum.Enum):
    NORMAL = "normal"
    SCREEN = "screen"
    PLUS = "plus"


HALO_BLEND = BlendMode.SCREEN


class Shape(str, enum.Enum):
    RECT = "rect"
    CIRCLE = "circle"


class Layer(str, enum.Enum):
    """Which compositing layer an op belongs to."""
    BASE = "base"
    BLEED = "bleed"
    CORE = "core"
    HALO = "halo"


class GlowParameters:
    """Immutable snapshot of the four glow controls.

    No validation: producers (sliders, GlowSettings) keep values in range.
    """

    __slots__ = ("ambient", "glow_intensity", "shimmer_intensity",
                 "glow_leak_intensity")

    def __init__(self, ambient=0.4, glow_intensity=2.2, shimmer_intensity=1.0,
                 glow_leak_intensity=0.4):
        object.__setattr__(self, "ambient", float(ambient))
        object.__setattr__(self, "glow_intensity", float(glow_intensity))
        object.__setattr__(self, "shimmer_intensity", float(shimmer_intensity))
        object.__setattr__(self, "glow_leak_intensity", float(glow_leak_intensity))

    def __setattr__(self, name, value):
        raise AttributeError("GlowParameters is immutable; use replace()")

    def replace(self, **changes):
        values = self.as_dict()
        values.update(changes)
        return GlowParameters(**values)

    def as_dict(self):
        return {name: getattr(self, name) for name in self.__slots__}

    def __eq__(self, other):
        if not isinstance(other, GlowParameters):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __hash__(self):
        return hash(tuple(self.as_dict().values()))

    def __repr__(self):
        inner = ", ".join(f"{k}={v:g}" for k, v in self.as_dict().items())
        return f"GlowParameters({inner})"


class DrawOp:
    """One paint instruction.

    For RECT, `origin` is the top-left corner and `size` the side length.
    For CIRCLE, `origin` is the centre and `size` the radius.
    `color` is (r, g, b, a) floats; r/g/b may exceed 1.0.
    """

    __slots__ = ("shape", "origin", "size", "color", "blend", "layer", "x", "y")

    def __init__(self, shape, origin, size, color, blend, layer, x, y):
        self.shape = shape
        self.origin = origin
        self.size = size
        self.color = color
        self.blend = blend
        self.layer = layer
        self.x = x
        self.y = y

    def _key(self):
        return (self.shape, self.origin, self.size, self.color, self.blend,
                self.layer, self.x, self.y)

    def __eq__(self, other):
        if not isinstance(other, DrawOp):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        r, g, b, a = self.color
        return (f"DrawOp({self.layer.value} {self.shape.value} @({self.x},{self.y}) "
                f"rgba=({r:.3f}, {g:.3f}, {b:.3f}, {a:.3f}) {self.blend.value})")


def _scaled(r, g, b, k):
    return (r / 255.0 * k, g / 255.0 * k, b / 255.0 * k)


def base_layer(x, y, r, g, b, a, ambient, cell, size):
    """Ambient-lit self colour. Identical for normal and glow pixels."""
    return DrawOp(Shape.RECT, cell, size,
                  _scaled(r, g, b, ambient) + (a / 255.0,),
                  BlendMode.NORMAL, Layer.BASE, x, y)


def _pixel_ops(x, y, r, g, b, a, material, strength, params, time,
               glowing_neighbor, viewport, base=None):
    """Draw ops for one pixel, back-to-front."""
    size = viewport.pixel_size
    cell = viewport.cell_origin(x, y)
    ops = [base if base is not None else
           base_layer(x, y, r, g, b, a, params.ambient, cell, size)]

    if material is MaterialClass.NORMAL:
        leak = params.glow_leak_intensity
        if leak > 0 and glowing_neighbor():
            ops.append(DrawOp(Shape.RECT, cell, size,
                              _scaled(r, g, b, params.ambient * leak) + (a / 255.0 * leak,),
                              BlendMode.PLUS, Layer.BLEED, x, y))
        return ops

    glow = params.glow_intensity
    s = shimmer(x, y, time, params.shimmer_intensity)
    ops.append(DrawOp(Shape.RECT, cell, size,
                      _scaled(r, g, b, glow * strength * (1.0 + s * SHIMMER_BOOST))
                      + (GLOW_CORE_ALPHA,),
                      BlendMode.SCREEN, Layer.CORE, x, y))

    radius = size * HALO_RADIUS_FACTOR * glow
    if radius > 0:
        center = viewport.cell_center(x, y)
        halo_rgb = _scaled(r, g, b, glow * HALO_COLOR_FACTOR)
        for i in range(1, HALO_RINGS + 1):
            ops.append(DrawOp(Shape.CIRCLE, center, radius * i / HALO_RINGS,
                              halo_rgb + (HALO_BASE_ALPHA * (1.0 - i / HALO_RINGS),),
                              HALO_BLEND, Layer.HALO, x, y))
    return ops


def iter_draw_ops(grid, params, time, viewport=None, neighbor_mask=None):
    """Yield each visible pixel's draw ops as a list, in row-major order.

    A caller may stop iterating at any point; every yielded list is
    self-contained.

    Args:
        grid: PixelGrid, not mutated during iteration
        params: GlowParameters
        time: Shimmer phase
        viewport: Viewport; defaults to 1 canvas unit per pixel
        neighbor_mask: Precomputed glow_neighbor_mask(grid). Built here when
            omitted and leak is on.
    """
    if viewport is None:
        viewport = Viewport.identity(grid.width, grid.height)
    if neighbor_mask is None and params.glow_leak_intensity > 0:
        neighbor_mask = glow_neighbor_mask(grid)

    rgba = grid.rgba
    for y in range(grid.height):
        row = rgba[y]
        for x in range(grid.width):
            r, g, b, a = (int(c) for c in row[x])
            if a == 0 or not viewport.is_visible(x, y):
                continue
            material, strength = classify(a)
            yield _pixel_ops(x, y, r, g, b, a, material, strength, params, time,
                             lambda: bool(neighbor_mask[y, x]), viewport)


def composite(grid, params, time, viewport=None):
    """All draw ops for one frame. Pure: same inputs, same list."""
    ops = []
    for pixel_ops in iter_draw_ops(grid, params, time, viewport):
        ops.extend(pixel_ops)
    return ops


class GlowCompositor:
    """Frame-to-frame compositor with caches for the shimmer-independent parts.

    The neighbour mask is rebuilt when the grid revision changes. Base
    layers are reused while (grid revision, ambient, viewport) stay the same.
    Output is identical to composite().
    """

    def __init__(self):
        self._neighbors = GlowNeighborCache()
        self._base_key = None
        self._base_ops = {}

    def _bases(self, grid, params, viewport):
        key = (id(grid), grid.revision, params.ambient, viewport.key())
        if key != self._base_key:
            self._base_ops = {}
            self._base_key = key
        return self._base_ops

    def iter_draw_ops(self, grid, params, time, viewport=None):
        if viewport is None:
            viewport = Viewport.identity(grid.width, grid.height)
        neighbor_mask = self._neighbors.get(grid)
        bases = self._bases(grid, params, viewport)
        size = viewport.pixel_size

        rgba = grid.rgba
        for y in range(grid.height):
            row = rgba[y]
            for x in range(grid.width):
                r, g, b, a = (int(c) for c in row[x])
                if a == 0 or not viewport.is_visible(x, y):
                    continue
                base = bases.get((x, y))
                if base is None:
                    base = base_layer(x, y, r, g, b, a, params.ambient,
                                      viewport.cell_origin(x, y), size)
                    bases[(x, y)] = base
                material, strength = classify(a)
                yield _pixel_ops(x, y, r, g, b, a, material, strength, params, time,
                                 lambda: bool(neighbor_mask[y, x]), viewport, base=base)

    def composite(self, grid, params, time, viewport=None):
        ops = []
        for pixel_ops in self.iter_draw_ops(grid, params, time, viewport):
            ops.extend(pixel_ops)
        return ops
