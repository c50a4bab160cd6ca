#!/usr/bin/env python3
"""
Test script for the glow compositing engine.

Verifies:
1. Alpha -> material classification
2. Shimmer function and clock
3. Glowing-neighbour detection (scalar and precomputed mask)
4. Compositor layer synthesis, culling, determinism and caching
5. Reference renderer blend modes
"""

import math
import numpy as np

from glowing_helper.bleed import GlowNeighborCache, glow_neighbor_mask, has_glowing_neighbor
from glowing_helper.compositor import (
    GLOW_CORE_ALPHA, BlendMode, DrawOp, GlowCompositor, GlowParameters, Layer,
    Shape, composite, iter_draw_ops,
)
from glowing_helper.layout import Viewport
from glowing_helper.material import MaterialClass, classify, glow_mask, strength_map
from glowing_helper.pixel_grid import PixelGrid
from glowing_helper.raster import Canvas, render
from glowing_helper.shimmer import ShimmerClock, shimmer, shimmer_field


def _close(a, b, tol=1e-6):
    return abs(a - b) <= tol


def _rgb_close(got, want, tol=1e-6):
    return all(_close(g, w, tol) for g, w in zip(got, want))


def _scenario_grid():
    # full-glow red next to a fully transparent pixel
    return PixelGrid.from_pixels(2, 1, [(255, 0, 0, 252), (0, 0, 0, 0)])


SCENARIO_PARAMS = GlowParameters(ambient=0.4, glow_intensity=2.2,
                                 shimmer_intensity=0.0, glow_leak_intensity=0.4)


def test_classify():
    """Only 252 and 253 are light sources."""
    print("Testing classify...")
    assert classify(252) == (MaterialClass.FULL_GLOW, 1.0)
    assert classify(253) == (MaterialClass.PARTIAL_GLOW, 0.4)
    for a in range(256):
        material, strength = classify(a)
        if a in (252, 253):
            assert material.is_glow
        else:
            assert material is MaterialClass.NORMAL, f"alpha {a} should be normal"
            assert strength == 0.0
        assert classify(a) == (material, strength), "classify must be pure"

    alpha = np.arange(256, dtype=np.uint8)
    strengths = strength_map(alpha)
    assert strengths[252] == 1.0
    assert _close(float(strengths[253]), 0.4)
    assert np.count_nonzero(strengths) == 2
    assert list(np.flatnonzero(glow_mask(alpha))) == [252, 253]
    print("  ✓ classify working correctly")


def test_shimmer():
    """Zero intensity, bounds, linearity and the vectorised field."""
    print("Testing shimmer...")
    for x, y, t in [(0, 0, 0.0), (3, 7, 1.3), (120, 5, 6.2), (1, 1, 100.0)]:
        assert shimmer(x, y, t, 0.0) == 0.0
        unit = shimmer(x, y, t, 1.0)
        assert 0.0 <= unit <= 1.0
        for k in (0.25, 0.5, 1.0):
            assert math.isclose(shimmer(x, y, t, k), k * unit, abs_tol=1e-12)

    # sin(0)^2 at the origin when t = 0
    assert shimmer(0, 0, 0.0, 1.0) == 0.0
    # exact nested-sine formula
    pos = 5
    t = 2.0
    raw = math.sin(1.5708 * pos + 0.7854 * math.sin(pos + 0.1 * t) + 0.8 * t)
    assert shimmer(2, 3, t, 0.7) == raw * raw * 0.7

    field = shimmer_field(6, 4, 1.7, 0.8)
    assert field.shape == (4, 6)
    for y in range(4):
        for x in range(6):
            assert math.isclose(field[y, x], shimmer(x, y, 1.7, 0.8), abs_tol=1e-9)
    print("  ✓ shimmer working correctly")


def test_shimmer_clock():
    """2*pi every 4 seconds, wraps, pausable."""
    print("Testing ShimmerClock...")
    clock = ShimmerClock()
    clock.advance(1.0)
    assert _close(clock.time, math.pi / 2)
    clock.advance(4.0)
    assert _close(clock.time, math.pi / 2), f"Full period should wrap: {clock.time}"
    clock.toggle_pause()
    clock.advance(1.0)
    assert _close(clock.time, math.pi / 2), "Paused clock must not move"
    clock.toggle_pause()
    for _ in range(600):
        clock.advance(1 / 60)
    assert 0.0 <= clock.time < 2 * math.pi
    clock.reset()
    assert clock.time == 0.0
    print("  ✓ ShimmerClock working correctly")


def test_isolated_glow_has_no_glowing_neighbor():
    """Centre light source surrounded by opaque normal pixels."""
    print("Testing isolated glow pixel...")
    data = np.full((3, 3, 4), 200, dtype=np.uint8)
    data[:, :, 3] = 255
    data[1, 1, 3] = 252
    grid = PixelGrid(data)

    assert not has_glowing_neighbor(grid, 1, 1)
    for y in range(3):
        for x in range(3):
            if (x, y) != (1, 1):
                assert has_glowing_neighbor(grid, x, y), f"({x},{y}) touches the centre"
    print("  ✓ isolated glow pixel working correctly")


def test_corner_partial_glow_bleeds_into_three_cells():
    print("Testing corner partial glow...")
    data = np.full((3, 3, 4), 255, dtype=np.uint8)
    data[0, 0, 3] = 253
    grid = PixelGrid(data)

    expected = {(1, 0), (0, 1), (1, 1)}
    for y in range(3):
        for x in range(3):
            assert has_glowing_neighbor(grid, x, y) == ((x, y) in expected), (x, y)

    mask = glow_neighbor_mask(grid)
    assert {(int(x), int(y)) for y, x in zip(*np.nonzero(mask))} == expected
    print("  ✓ corner partial glow working correctly")


def test_neighbor_mask_matches_scan():
    """Precomputed mask gives the same answer as the 8-neighbour scan."""
    print("Testing glow_neighbor_mask...")
    rng = np.random.RandomState(7)
    data = rng.randint(0, 256, size=(17, 23, 4)).astype(np.uint8)
    tags = rng.random_sample((17, 23))
    data[:, :, 3][tags < 0.05] = 252
    data[:, :, 3][(tags >= 0.05) & (tags < 0.08)] = 253
    grid = PixelGrid(data)

    mask = glow_neighbor_mask(grid)
    for y in range(grid.height):
        for x in range(grid.width):
            assert bool(mask[y, x]) == has_glowing_neighbor(grid, x, y), (x, y)

    cache = GlowNeighborCache()
    first = cache.get(grid)
    assert cache.get(grid) is first, "Unchanged grid should reuse the mask"
    grid.update_pixel_alpha(0, 0, 252)
    assert cache.get(grid) is not first, "Edit should rebuild the mask"
    assert cache.get(grid)[1, 1]
    print("  ✓ glow_neighbor_mask working correctly")


def test_full_glow_scenario():
    """Red full-glow pixel beside a transparent one."""
    print("Testing full glow scenario...")
    ops = composite(_scenario_grid(), SCENARIO_PARAMS, 0.0)

    assert len(ops) == 5, ops
    assert all((op.x, op.y) == (0, 0) for op in ops), "Transparent pixel emits nothing"

    base, core = ops[0], ops[1]
    assert base.layer is Layer.BASE and base.blend is BlendMode.NORMAL
    assert base.shape is Shape.RECT and base.origin == (0.0, 0.0) and base.size == 1.0
    assert _rgb_close(base.color, (0.4, 0.0, 0.0, 252 / 255))

    assert core.layer is Layer.CORE and core.blend is BlendMode.SCREEN
    assert _rgb_close(core.color, (2.2, 0.0, 0.0, GLOW_CORE_ALPHA))
    assert 0.7 <= core.color[3] <= 0.8

    halos = ops[2:]
    assert [op.layer for op in halos] == [Layer.HALO] * 3
    assert all(op.shape is Shape.CIRCLE and op.origin == (0.5, 0.5) for op in halos)
    assert all(op.blend is BlendMode.SCREEN for op in halos)
    radii = [op.size for op in halos]
    assert _rgb_close(radii, [0.11, 0.22, 0.33], tol=1e-9)
    assert _rgb_close([op.color[3] for op in halos], [0.2, 0.1, 0.0], tol=1e-9)
    assert all(_rgb_close(op.color[:3], (0.44, 0.0, 0.0)) for op in halos)
    print("  ✓ full glow scenario working correctly")


def test_partial_glow_and_shimmer_boost():
    print("Testing partial glow strength and shimmer boost...")
    grid = PixelGrid.from_pixels(1, 1, [(100, 200, 50, 253)])
    params = GlowParameters(ambient=1.0, glow_intensity=1.0,
                            shimmer_intensity=1.0, glow_leak_intensity=0.0)
    t = 0.9
    core = composite(grid, params, t)[1]
    boost = 1.0 + shimmer(0, 0, t, 1.0) * 0.3
    want = (100 / 255 * 0.4 * boost, 200 / 255 * 0.4 * boost, 50 / 255 * 0.4 * boost)
    assert _rgb_close(core.color[:3], want)

    no_glow = composite(grid, params.replace(glow_intensity=0.0), t)
    assert [op.layer for op in no_glow] == [Layer.BASE, Layer.CORE], \
        "No halo rings at zero glow"
    assert _rgb_close(no_glow[1].color[:3], (0.0, 0.0, 0.0))
    print("  ✓ partial glow working correctly")


def test_bleed_layer():
    """Normal neighbours of a light source get an additive leak layer."""
    print("Testing bleed layer...")
    grid = PixelGrid.from_pixels(3, 1, [
        (255, 255, 0, 252), (10, 20, 30, 128), (10, 20, 30, 255),
    ])
    params = GlowParameters(ambient=0.5, glow_intensity=1.0,
                            shimmer_intensity=0.0, glow_leak_intensity=0.5)
    ops = composite(grid, params, 0.0)

    by_pixel = {}
    for op in ops:
        by_pixel.setdefault((op.x, op.y), []).append(op)

    mid = by_pixel[(1, 0)]
    assert [op.layer for op in mid] == [Layer.BASE, Layer.BLEED]
    bleed = mid[1]
    assert bleed.blend is BlendMode.PLUS
    assert _rgb_close(bleed.color, (10 / 255 * 0.25, 20 / 255 * 0.25, 30 / 255 * 0.25,
                                    128 / 255 * 0.5))
    assert [op.layer for op in by_pixel[(2, 0)]] == [Layer.BASE], "Not adjacent"

    no_leak = composite(grid, params.replace(glow_leak_intensity=0.0), 0.0)
    assert not any(op.layer is Layer.BLEED for op in no_leak)
    print("  ✓ bleed layer working correctly")


def test_glow_pixels_never_bleed():
    """Leak only lands on normal pixels, even when two light sources touch."""
    grid = PixelGrid.from_pixels(2, 1, [(255, 0, 0, 252), (0, 255, 0, 253)])
    params = GlowParameters(glow_leak_intensity=0.9)
    ops = composite(grid, params, 0.3)

    expected = [Layer.BASE, Layer.CORE, Layer.HALO, Layer.HALO, Layer.HALO]
    for x in (0, 1):
        layers = [op.layer for op in ops if (op.x, op.y) == (x, 0)]
        assert layers == expected, f"pixel {x}: {layers}"
    assert len(ops) == 10
    assert GlowCompositor().composite(grid, params, 0.3) == ops


def test_composite_is_deterministic_and_row_major():
    print("Testing determinism...")
    rng = np.random.RandomState(3)
    data = rng.randint(0, 256, size=(6, 5, 4)).astype(np.uint8)
    data[2, 2, 3] = 252
    data[4, 1, 3] = 253
    data[0, 0, 3] = 0
    grid = PixelGrid(data)
    params = GlowParameters()

    first = composite(grid, params, 1.234)
    second = composite(grid, params, 1.234)
    assert first == second

    order = []
    for op in first:
        if not order or order[-1] != (op.y, op.x):
            order.append((op.y, op.x))
    assert order == sorted(order), "Pixels must be emitted in row-major order"
    assert (0, 0) not in order
    print("  ✓ determinism working correctly")


def test_iter_draw_ops_can_stop_early():
    grid = PixelGrid.blank(4, 4, (50, 50, 50, 255))
    it = iter_draw_ops(grid, GlowParameters(), 0.0)
    first = next(it)
    assert all(isinstance(op, DrawOp) and (op.x, op.y) == (0, 0) for op in first)
    it.close()


def test_viewport_culling_and_scale():
    print("Testing viewport placement...")
    grid = PixelGrid.blank(4, 2, (255, 255, 255, 255))
    params = GlowParameters()

    vp = Viewport(4, 2, 100, 100)
    ops = composite(grid, params, 0.0, vp)
    assert len(ops) == 8
    assert ops[0].size == 25.0 and ops[0].origin == (0.0, 25.0)
    assert ops[-1].origin == (75.0, 50.0)

    off_canvas = vp.panned(-1000, 0)
    assert composite(grid, params, 0.0, off_canvas) == []
    print("  ✓ viewport placement working correctly")


def test_glow_compositor_cache_matches_pure_path():
    print("Testing GlowCompositor cache...")
    rng = np.random.RandomState(11)
    data = rng.randint(0, 256, size=(8, 8, 4)).astype(np.uint8)
    data[3, 3, 3] = 252
    data[6, 1, 3] = 253
    grid = PixelGrid(data)
    params = GlowParameters(shimmer_intensity=0.8)
    compositor = GlowCompositor()

    for t in (0.0, 0.5, 3.1):
        assert compositor.composite(grid, params, t) == composite(grid, params, t)

    grid.update_all_pixels_with_color(*[int(c) for c in data[0, 0, :3]], 252)
    assert compositor.composite(grid, params, 0.5) == composite(grid, params, 0.5)

    brighter = params.replace(ambient=1.2)
    assert compositor.composite(grid, brighter, 0.5) == composite(grid, brighter, 0.5)
    print("  ✓ GlowCompositor cache working correctly")


def test_glow_parameters_immutable():
    params = GlowParameters()
    try:
        params.ambient = 1.0
    except AttributeError:
        pass
    else:
        raise AssertionError("GlowParameters should be immutable")
    assert params.replace(ambient=1.0).ambient == 1.0
    assert params.ambient == 0.4
    assert params == GlowParameters(0.4, 2.2, 1.0, 0.4)


def test_canvas_blend_modes():
    print("Testing Canvas blend modes...")
    canvas = Canvas(2, 1)
    cell = (0.0, 0.0)

    canvas.paint(DrawOp(Shape.RECT, cell, 1.0, (0.4, 0.0, 0.0, 1.0),
                        BlendMode.NORMAL, Layer.BASE, 0, 0))
    assert _rgb_close(canvas.buffer[0, 0], (0.4, 0.0, 0.0))

    # Screen clamps 2.2 to 1.0 before blending
    canvas.paint(DrawOp(Shape.RECT, cell, 1.0, (2.2, 0.0, 0.0, 0.8),
                        BlendMode.SCREEN, Layer.CORE, 0, 0))
    assert _rgb_close(canvas.buffer[0, 0], (0.88, 0.0, 0.0), tol=1e-6)

    canvas.paint(DrawOp(Shape.RECT, cell, 1.0, (0.5, 0.5, 0.5, 1.0),
                        BlendMode.PLUS, Layer.BLEED, 0, 0))
    assert _rgb_close(canvas.buffer[0, 0], (1.0, 0.5, 0.5))

    assert _rgb_close(canvas.buffer[0, 1], (0.0, 0.0, 0.0)), "Neighbour cell untouched"

    # circle covers cells whose centre is inside the radius
    canvas = Canvas(5, 5)
    canvas.paint(DrawOp(Shape.CIRCLE, (2.5, 2.5), 1.2, (1.0, 1.0, 1.0, 1.0),
                        BlendMode.NORMAL, Layer.HALO, 2, 2))
    lit = {(int(x), int(y)) for y, x in zip(*np.nonzero(canvas.buffer[:, :, 0]))}
    assert lit == {(2, 2), (1, 2), (3, 2), (2, 1), (2, 3)}, lit
    print("  ✓ Canvas blend modes working correctly")


def test_render_scenario():
    rgb = render(composite(_scenario_grid(), SCENARIO_PARAMS, 0.0), 2, 1)
    assert rgb.shape == (1, 2, 3) and rgb.dtype == np.uint8
    assert rgb[0, 0, 0] > 200, "Glow core should blow out the red channel"
    assert rgb[0, 0, 1] == 0 and rgb[0, 0, 2] == 0
    assert tuple(rgb[0, 1]) == (0, 0, 0)


if __name__ == "__main__":
    print("\n=== Testing Glow Engine ===\n")

    test_classify()
    test_shimmer()
    test_shimmer_clock()
    test_isolated_glow_has_no_glowing_neighbor()
    test_corner_partial_glow_bleeds_into_three_cells()
    test_neighbor_mask_matches_scan()
    test_full_glow_scenario()
    test_partial_glow_and_shimmer_boost()
    test_bleed_layer()
    test_glow_pixels_never_bleed()
    test_composite_is_deterministic_and_row_major()
    test_iter_draw_ops_can_stop_early()
    test_viewport_culling_and_scale()
    test_glow_compositor_cache_matches_pure_path()
    test_glow_parameters_immutable()
    test_canvas_blend_modes()
    test_render_scenario()

    print("\n✓ All tests passed!\n")
