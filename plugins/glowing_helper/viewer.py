"""
Interactive Pygame Viewer for Glow Previews

Shows the animated glow composite of one PNG next to a control panel with
the four glow sliders. Pixels can be picked and tagged as light sources
(alpha 252 / 253) and the edited image saved.

Controls:
  SPACE       Pause / resume shimmer
  E           Toggle edit / pan-zoom mode
  1           Tag selected pixel as full glow (252)
  2           Tag selected pixel as partial glow (253)
  0           Clear glow on selected pixel (alpha 255)
  C           Toggle "apply to all pixels of the same colour"
  S           Save edited PNG
  P           Save screenshot of the preview
  R           Reset zoom / pan
  D           Restore default glow sliders
  TAB         Toggle control panel
  H           Toggle HUD overlay
  Q / ESC     Quit (press twice with unsaved changes)
  Mouse L     Edit mode: select pixel. Pan mode: drag to pan
  Wheel       Zoom around the cursor
"""

import os
import time
import numpy as np
import pygame

from .compositor import GlowCompositor
from .config import SLIDER_DEFS, ViewerSettings
from .controls import ControlPanel, THEME
from .image_io import ImageSaveError
from .layout import Viewport
from .material import FULL_GLOW_ALPHA, PARTIAL_GLOW_ALPHA, MaterialClass
from .raster import Canvas
from .shimmer import ShimmerClock


PANEL_WIDTH = 300
ZOOM_STEP = 1.15

_MATERIAL_LABELS = {
    MaterialClass.NORMAL: "normal",
    MaterialClass.FULL_GLOW: "full glow",
    MaterialClass.PARTIAL_GLOW: "partial glow 40%",
}


class Viewer:
    def __init__(self, session, settings=None):
        """
        Args:
            session: EditSession with a loaded image
            settings: ViewerSettings; defaults when omitted
        """
        settings = settings or ViewerSettings()
        self.settings = settings
        self.session = session
        self.canvas_w = settings.window_w
        self.canvas_h = settings.window_h
        self.panel_visible = settings.panel_visible
        self.running = True
        self.show_hud = True
        self.fps_history = []

        self.params = settings.glow.to_params()
        self.clock = ShimmerClock()
        self.compositor = GlowCompositor()
        self.canvas = Canvas(self.canvas_w, self.canvas_h, _bg_float())

        # View state
        self.edit_mode = True
        self.zoom = 1.0
        self.pan = (0.0, 0.0)
        self._drag_from = None

        # Edit state
        self.selected = None  # (x, y)
        self.same_color = False
        self._quit_armed = False

        # Control panel (built after pygame.init in run())
        self.panel = None
        self.sliders = {}
        self.buttons = {}

    @property
    def total_w(self):
        return self.canvas_w + (PANEL_WIDTH if self.panel_visible else 0)

    @property
    def grid(self):
        return self.session.grid

    def viewport(self):
        return Viewport(self.grid.width, self.grid.height,
                        self.canvas_w, self.canvas_h,
                        zoom=self.zoom, pan=self.pan)

    # ── Parameters ──────────────────────────────────────────────────────

    def _make_param_callback(self, key):
        """Create a callback that replaces one glow parameter."""
        def callback(val):
            self.params = self.params.replace(**{key: val})
        return callback

    def reset_glow(self):
        """Restore the glow parameters the viewer was started with."""
        self.params = self.settings.glow.to_params()
        for key, slider in self.sliders.items():
            slider.set_value(getattr(self.params, key))

    # ── Editing ─────────────────────────────────────────────────────────

    def select_at(self, sx, sy):
        """Select the image pixel under canvas point (sx, sy)."""
        hit = self.viewport().screen_to_pixel(sx, sy)
        if hit is not None:
            self.selected = hit
        return hit

    def _apply(self, alpha):
        if self.selected is None:
            print("[glow] No pixel selected")
            return 0
        x, y = self.selected
        count = self.session.apply_alpha(x, y, alpha, same_color=self.same_color)
        self._quit_armed = False
        print(f"[glow] alpha {alpha} -> {count} pixel(s)")
        return count

    def tag_full(self):
        return self._apply(FULL_GLOW_ALPHA)

    def tag_partial(self):
        return self._apply(PARTIAL_GLOW_ALPHA)

    def clear_tag(self):
        return self._apply(255)

    def toggle_same_color(self):
        self.same_color = not self.same_color
        self._sync_buttons()

    def toggle_mode(self):
        self.edit_mode = not self.edit_mode
        self._drag_from = None
        self._sync_buttons()

    def reset_view(self):
        self.zoom = 1.0
        self.pan = (0.0, 0.0)

    def zoom_at(self, factor, anchor):
        vp = self.viewport().zoomed(factor, anchor=anchor)
        self.zoom, self.pan = vp.zoom, vp.pan

    def wheel_zoom(self, notches, anchor):
        """Zoom around the cursor; ignored when the cursor is over the panel."""
        if anchor[0] >= self.canvas_w:
            return False
        self.zoom_at(ZOOM_STEP ** notches, anchor)
        return True

    def save(self):
        try:
            path = self.session.save()
        except ImageSaveError as e:
            print(f"[glow] Save failed: {e}")
            return None
        print(f"[glow] Saved: {path}")
        return path

    # ── Rendering ───────────────────────────────────────────────────────

    def render_rgb(self):
        """Composite the current frame into an (H, W, 3) uint8 array."""
        ops = self.compositor.composite(self.grid, self.params, self.clock.time,
                                        self.viewport())
        self.canvas.clear()
        self.canvas.paint_all(ops)
        return self.canvas.to_uint8()

    def _render_frame(self):
        rgb = self.render_rgb()
        surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1).copy())
        if self.edit_mode and self.selected is not None:
            vp = self.viewport()
            px, py = vp.cell_origin(*self.selected)
            s = max(vp.pixel_size, 2)
            pygame.draw.rect(surface, THEME["handle_active"],
                             pygame.Rect(int(px), int(py), int(s), int(s)), 1)
        return surface

    def _selected_text(self):
        if self.selected is None:
            return "Selected: none"
        p = self.session.select(*self.selected)
        return f"({p.x}, {p.y})  RGB({p.r}, {p.g}, {p.b})  a={p.a}"

    def _material_text(self):
        if self.selected is None:
            return ""
        return "Material: " + _MATERIAL_LABELS[self.session.material_at(*self.selected)]

    def _counts_text(self):
        counts = self.session.glow_counts()
        return (f"Glow: {counts[MaterialClass.FULL_GLOW]} full, "
                f"{counts[MaterialClass.PARTIAL_GLOW]} partial")

    def _unsaved_text(self):
        return "Unsaved changes" if self.session.unsaved_changes else ""

    def _draw_hud(self, screen, fps):
        if not self.show_hud:
            return

        mode = "EDIT" if self.edit_mode else "PAN/ZOOM"
        line = (f"{mode}  |  {self.grid.width}x{self.grid.height}  |  "
                f"zoom {self.zoom:.2f}  |  t={self.clock.time:.2f}  |  FPS: {fps:.0f}")
        if self.clock.paused:
            line = "[PAUSED]  " + line

        padding = 6
        bg_surface = pygame.Surface((self.canvas_w, 24), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))

        text_surface = self.hud_font.render(line, True, (210, 215, 225))
        screen.blit(text_surface, (padding + 4, padding))

    def _build_panel(self):
        panel = ControlPanel(self.canvas_w, 0, PANEL_WIDTH, self.canvas_h)
        self.sliders = {}
        self.buttons = {}

        panel.add_section("GLOW")
        for sdef in SLIDER_DEFS:
            self.sliders[sdef["key"]] = panel.add_slider(
                sdef["label"], sdef["min"], sdef["max"],
                getattr(self.params, sdef["key"]),
                fmt=sdef["fmt"], step=sdef["step"],
                on_change=self._make_param_callback(sdef["key"]),
            )

        panel.add_button("Default glow  [D]", on_click=self.reset_glow)

        panel.add_section("EDIT")
        self.buttons["mode"] = panel.add_button("", on_click=self.toggle_mode)
        self.buttons["full"] = panel.add_button(
            f"Full glow {FULL_GLOW_ALPHA}  [1]", on_click=self.tag_full)
        self.buttons["partial"] = panel.add_button(
            f"Partial glow {PARTIAL_GLOW_ALPHA}  [2]", on_click=self.tag_partial)
        self.buttons["clear"] = panel.add_button("Clear glow  [0]", on_click=self.clear_tag)
        self.buttons["same"] = panel.add_button("", on_click=self.toggle_same_color)
        panel.add_spacer(4)
        panel.add_info(self._selected_text)
        panel.add_info(self._material_text)
        panel.add_info(self._counts_text, color_key="text_dim")
        panel.add_info(self._unsaved_text, color_key="warning")

        panel.add_section("FILE")
        panel.add_button("Save PNG  [S]", on_click=self.save)
        panel.add_button("Screenshot  [P]", on_click=self._save_screenshot)
        panel.add_button("Reset view  [R]", on_click=self.reset_view)

        self.panel = panel
        self._sync_buttons()

    def _sync_buttons(self):
        if not self.buttons:
            return
        self.buttons["mode"].label = ("Mode: edit  [E]" if self.edit_mode
                                      else "Mode: pan/zoom  [E]")
        self.buttons["same"].label = ("All same colour: on  [C]" if self.same_color
                                      else "All same colour: off  [C]")
        self.buttons["same"].active = self.same_color

    def _save_screenshot(self):
        screenshots_dir = os.path.abspath(self.settings.screenshot_dir)
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(screenshots_dir, f"glow_{timestamp}.png")
        latest_path = os.path.join(screenshots_dir, "latest.png")

        save_surface = self._render_frame()
        pygame.image.save(save_surface, path)
        pygame.image.save(save_surface, latest_path)
        print(f"[glow] Screenshot saved: {path}")

    # ── Events ──────────────────────────────────────────────────────────

    def _request_quit(self):
        if self.session.unsaved_changes and not self._quit_armed:
            print("[glow] Unsaved changes. Press S to save or Q again to quit.")
            self._quit_armed = True
            return
        self.running = False

    def _handle_canvas_event(self, event):
        if event.type == pygame.MOUSEWHEEL:
            self.wheel_zoom(event.y, pygame.mouse.get_pos())
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if event.pos[0] >= self.canvas_w:
                return
            if self.edit_mode:
                self.select_at(*event.pos)
            else:
                self._drag_from = event.pos
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self._drag_from = None
        elif event.type == pygame.MOUSEMOTION and self._drag_from is not None:
            dx = event.pos[0] - self._drag_from[0]
            dy = event.pos[1] - self._drag_from[1]
            self.pan = (self.pan[0] + dx, self.pan[1] + dy)
            self._drag_from = event.pos

    def _handle_keydown(self, event):
        key = event.key

        if key in (pygame.K_q, pygame.K_ESCAPE):
            self._request_quit()
        elif key == pygame.K_SPACE:
            self.clock.toggle_pause()
        elif key == pygame.K_e:
            self.toggle_mode()
        elif key == pygame.K_1:
            self.tag_full()
        elif key == pygame.K_2:
            self.tag_partial()
        elif key == pygame.K_0:
            self.clear_tag()
        elif key == pygame.K_c:
            self.toggle_same_color()
        elif key == pygame.K_s:
            self.save()
        elif key == pygame.K_p:
            self._save_screenshot()
        elif key == pygame.K_r:
            self.reset_view()
        elif key == pygame.K_d:
            self.reset_glow()
        elif key == pygame.K_h:
            self.show_hud = not self.show_hud
        elif key == pygame.K_TAB:
            self.panel_visible = not self.panel_visible
            pygame.display.set_mode((self.total_w, self.canvas_h))

    def run(self):
        """Main viewer loop."""
        pygame.init()

        screen = pygame.display.set_mode((self.total_w, self.canvas_h))
        title = os.path.basename(self.session.source_path or "untitled")
        pygame.display.set_caption(f"Glow Preview - {title}")
        clock = pygame.time.Clock()

        self.hud_font = pygame.font.SysFont("menlo", 13)
        self.panel_font = pygame.font.SysFont("menlo", 12)

        self._build_panel()

        last_time = time.time()

        while self.running:
            now = time.time()
            dt = min(now - last_time, 0.1)  # cap dt to avoid jumps
            last_time = now
            frame_start = now

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    if self.session.unsaved_changes:
                        print("[glow] Closing with unsaved changes")
                    self.running = False
                    continue

                if event.type == pygame.KEYDOWN:
                    self._handle_keydown(event)
                    continue

                if self.panel_visible and self.panel:
                    if self.panel.handle_event(event):
                        continue

                self._handle_canvas_event(event)

            self.clock.advance(dt)

            screen = pygame.display.get_surface()
            screen.fill(THEME["bg"])
            screen.blit(self._render_frame(), (0, 0))

            frame_time = time.time() - frame_start
            self.fps_history.append(frame_time)
            if len(self.fps_history) > 30:
                self.fps_history.pop(0)
            avg_fps = 1.0 / max(np.mean(self.fps_history), 0.001)

            self._draw_hud(screen, avg_fps)

            if self.panel_visible and self.panel:
                self.panel.x = self.canvas_w
                self.panel.height = self.canvas_h
                self.panel.draw(screen, self.panel_font)

            pygame.display.flip()
            clock.tick(self.settings.fps)

        pygame.quit()


def _bg_float():
    return tuple(c / 255.0 for c in THEME["bg"])
