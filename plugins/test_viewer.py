#!/usr/bin/env python3
"""
Test script for the interactive viewer, run headless.

Verifies:
1. Viewer state wiring (parameters, selection, tagging, zoom)
2. Frame rendering without a display
3. Control panel sliders drive the glow parameters
4. Quit guard for unsaved changes
"""

import os
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import tempfile
import numpy as np
import pygame

from glowing_helper.config import ViewerSettings
from glowing_helper.editor import EditSession
from glowing_helper.material import MaterialClass
from glowing_helper.pixel_grid import PixelGrid
from glowing_helper.viewer import PANEL_WIDTH, Viewer


def _make_viewer(tmp):
    data = np.zeros((4, 4, 4), dtype=np.uint8)
    data[:, :, :3] = (40, 160, 220)
    data[:, :, 3] = 255
    data[0, 0] = (250, 40, 40, 255)
    session = EditSession(PixelGrid(data), source_path=os.path.join(tmp, "sprite.png"))
    settings = ViewerSettings(window_w=64, window_h=64,
                              screenshot_dir=os.path.join(tmp, "shots"))
    return Viewer(session, settings)


def test_viewer_state():
    print("Testing Viewer state...")
    with tempfile.TemporaryDirectory() as tmp:
        viewer = _make_viewer(tmp)
        assert viewer.total_w == 64 + PANEL_WIDTH
        assert viewer.viewport().pixel_size == 16.0

        assert viewer.tag_full() == 0, "Nothing selected yet"
        assert viewer.select_at(20, 36) == (1, 2)
        assert viewer.select_at(-5, 10) is None
        assert viewer.selected == (1, 2), "Miss keeps the previous selection"

        assert viewer.tag_full() == 1
        assert viewer.session.material_at(1, 2) is MaterialClass.FULL_GLOW
        viewer.same_color = True
        assert viewer.tag_partial() == 15, "Every blue pixel, the red one excluded"
        assert viewer.session.material_at(1, 2) is MaterialClass.PARTIAL_GLOW
        assert viewer.session.material_at(0, 0) is MaterialClass.NORMAL
        assert viewer.clear_tag() == 15
        assert not viewer.session.has_glow()

        viewer._make_param_callback("glow_intensity")(3.5)
        assert viewer.params.glow_intensity == 3.5
        assert viewer.params.ambient == 0.4, "Other parameters untouched"

        assert not viewer.wheel_zoom(3, (64 + 20, 30)), "Wheel over the panel"
        assert viewer.zoom == 1.0
        assert viewer.wheel_zoom(1, (32, 32))
        assert viewer.zoom > 1.0
        viewer.reset_view()

        viewer.zoom_at(2.0, (32, 32))
        assert viewer.zoom == 2.0
        assert viewer.viewport().screen_to_pixel(32, 32) == (2, 2)
        viewer.reset_view()
        assert (viewer.zoom, viewer.pan) == (1.0, (0.0, 0.0))

        saved = viewer.save()
        assert saved is not None and os.path.dirname(saved) == tmp
        assert not viewer.session.unsaved_changes
    print("  ✓ Viewer state working correctly")


def test_render_rgb_shows_glow():
    print("Testing Viewer frame render...")
    with tempfile.TemporaryDirectory() as tmp:
        viewer = _make_viewer(tmp)
        dim = viewer.render_rgb()
        assert dim.shape == (64, 64, 3) and dim.dtype == np.uint8

        viewer.selected = (0, 0)
        viewer.tag_full()
        lit = viewer.render_rgb()
        # centre of the red pixel gets the core and halo
        assert lit[8, 8, 0] > dim[8, 8, 0]
        # untouched pixel far away renders the same
        assert np.array_equal(lit[56, 56], dim[56, 56])

        viewer._make_param_callback("ambient")(0.0)
        dark = viewer.render_rgb()
        assert tuple(dark[56, 56]) == (0, 0, 0), "No ambient, no glow source nearby"
        assert dark[8, 8, 0] > 150
    print("  ✓ Viewer frame render working correctly")


def test_quit_guard():
    with tempfile.TemporaryDirectory() as tmp:
        viewer = _make_viewer(tmp)
        viewer._request_quit()
        assert not viewer.running, "Clean session quits at once"

        viewer = _make_viewer(tmp)
        viewer.selected = (3, 3)
        viewer.tag_full()
        viewer._request_quit()
        assert viewer.running, "First quit with unsaved changes only warns"
        viewer._request_quit()
        assert not viewer.running


def test_panel_and_events():
    """Build the pygame panel against the dummy video driver."""
    print("Testing control panel...")
    with tempfile.TemporaryDirectory() as tmp:
        pygame.init()
        try:
            viewer = _make_viewer(tmp)
            screen = pygame.display.set_mode((viewer.total_w, viewer.canvas_h))
            viewer.hud_font = pygame.font.Font(None, 14)
            viewer._build_panel()
            assert set(viewer.sliders) == {
                "ambient", "glow_intensity", "shimmer_intensity", "glow_leak_intensity",
            }
            assert viewer.buttons["same"].label.endswith("off  [C]")

            # click the left end of the ambient track
            slider = viewer.sliders["ambient"]
            click = pygame.event.Event(pygame.MOUSEBUTTONDOWN, {
                "pos": (viewer.canvas_w + slider.track_x, slider.track_y), "button": 1,
            })
            assert viewer.panel.handle_event(click)
            assert viewer.params.ambient == 0.0
            assert slider.value == 0.0

            viewer._handle_keydown(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_d}))
            assert viewer.params == viewer.settings.glow.to_params()
            assert slider.value == 0.4, "Sliders follow the restored defaults"

            viewer._handle_keydown(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_SPACE}))
            assert viewer.clock.paused
            viewer._handle_keydown(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_c}))
            assert viewer.same_color and viewer.buttons["same"].active
            viewer._handle_keydown(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_e}))
            assert not viewer.edit_mode

            # pan mode: drag moves the image
            viewer._handle_canvas_event(pygame.event.Event(
                pygame.MOUSEBUTTONDOWN, {"pos": (10, 10), "button": 1}))
            viewer._handle_canvas_event(pygame.event.Event(
                pygame.MOUSEMOTION, {"pos": (15, 7), "rel": (5, -3), "buttons": (1, 0, 0)}))
            assert viewer.pan == (5.0, -3.0)

            frame = viewer._render_frame()
            assert frame.get_size() == (64, 64)
            viewer._draw_hud(screen, 60.0)
            viewer.panel.draw(screen, pygame.font.Font(None, 12))

            viewer._save_screenshot()
            shots = os.listdir(os.path.join(tmp, "shots"))
            assert "latest.png" in shots and len(shots) == 2
        finally:
            pygame.quit()
    print("  ✓ control panel working correctly")


if __name__ == "__main__":
    print("\n=== Testing Glow Viewer ===\n")

    test_viewer_state()
    test_render_rgb_shows_glow()
    test_quit_guard()
    test_panel_and_events()

    print("\n✓ All tests passed!\n")
