"""
UI Controls for the Glow Preview Viewer

Small pygame widget set for the side panel. Every widget owns a rect in
panel-local coordinates; ControlPanel stacks them vertically and translates
window events into that space.

Sliders are the only producers of glow parameters in the viewer, so they
clamp (and optionally snap) every value they hand to on_change.
"""

import pygame


# Theme colors
THEME = {
    "bg": (14, 14, 20),
    "panel": (24, 23, 31),
    "track": (52, 50, 64),
    "track_fill": (240, 178, 64),
    "handle": (214, 210, 224),
    "handle_active": (255, 246, 220),
    "text": (184, 182, 194),
    "text_bright": (236, 234, 244),
    "text_dim": (104, 102, 116),
    "button": (42, 40, 54),
    "button_hover": (60, 57, 76),
    "button_active": (186, 124, 38),
    "divider": (44, 42, 56),
    "warning": (235, 110, 90),
}


class Widget:
    """Base for panel widgets: a rect plus optional event handling."""

    def __init__(self, x, y, width, height):
        self.rect = pygame.Rect(x, y, width, height)

    @property
    def height(self):
        return self.rect.height

    def handle_event(self, event):
        return False

    def draw(self, surface, font):
        raise NotImplementedError


class Slider(Widget):
    """Labelled horizontal slider. Values are clamped to [min_val, max_val]."""

    TRACK_INSET = 8
    GRAB_MARGIN = 12

    def __init__(self, x, y, width, label, min_val, max_val, value,
                 fmt=".2f", step=None, on_change=None):
        super().__init__(x, y, width, 38)
        self.label = label
        self.min_val = min_val
        self.max_val = max_val
        self.fmt = fmt
        self.step = step
        self.on_change = on_change
        self.dragging = False
        self.hovered = False
        self.value = self._clamp(value)

    @property
    def track_x(self):
        return self.rect.x + self.TRACK_INSET

    @property
    def track_w(self):
        return self.rect.width - 2 * self.TRACK_INSET

    @property
    def track_y(self):
        return self.rect.y + 24

    def _clamp(self, val):
        if self.step:
            val = self.min_val + round((val - self.min_val) / self.step) * self.step
        return max(self.min_val, min(self.max_val, val))

    @property
    def fraction(self):
        span = self.max_val - self.min_val
        return (self.value - self.min_val) / span if span else 0.0

    def _on_track(self, pos):
        mx, my = pos
        return (self.track_x - 4 <= mx <= self.track_x + self.track_w + 4 and
                abs(my - self.track_y) <= self.GRAB_MARGIN)

    def _emit(self, val):
        self.value = self._clamp(val)
        if self.on_change:
            self.on_change(self.value)

    def _drag_to(self, px):
        frac = min(1.0, max(0.0, (px - self.track_x) / self.track_w))
        self._emit(self.min_val + frac * (self.max_val - self.min_val))

    def nudge(self, notches):
        """Move by whole steps (1% of the range when no step is set)."""
        step = self.step or (self.max_val - self.min_val) / 100.0
        self._emit(self.value + notches * step)

    def set_value(self, val):
        """Set without firing on_change."""
        self.value = self._clamp(val)

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self._on_track(event.pos):
                self.dragging = True
                self._drag_to(event.pos[0])
                return True
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.dragging = False
        elif event.type == pygame.MOUSEMOTION:
            self.hovered = self._on_track(event.pos)
            if self.dragging:
                self._drag_to(event.pos[0])
                return True
        elif event.type == pygame.MOUSEWHEEL and self.hovered:
            self.nudge(event.y)
            return True
        return False

    def draw(self, surface, font):
        x, y = self.rect.topleft
        surface.blit(font.render(self.label, True, THEME["text"]), (x + 8, y + 3))
        val_surf = font.render(f"{self.value:{self.fmt}}", True, THEME["text_bright"])
        surface.blit(val_surf, (self.rect.right - val_surf.get_width() - 8, y + 3))

        top = self.track_y - 2
        pygame.draw.rect(surface, THEME["track"],
                         pygame.Rect(self.track_x, top, self.track_w, 4), border_radius=2)
        hx = self.track_x + self.fraction * self.track_w
        pygame.draw.rect(surface, THEME["track_fill"],
                         pygame.Rect(self.track_x, top, hx - self.track_x, 4), border_radius=2)

        hot = self.dragging or self.hovered
        pygame.draw.circle(surface, THEME["handle_active"] if hot else THEME["handle"],
                           (int(hx), self.track_y), 9 if self.dragging else 7)


class Button(Widget):
    """Push button. `active` highlights it, used for on/off toggles."""

    def __init__(self, x, y, width, height, label, on_click=None, active=False):
        super().__init__(x, y, width, height)
        self.label = label
        self.on_click = on_click
        self.active = active
        self.hovered = False

    def handle_event(self, event):
        if event.type == pygame.MOUSEMOTION:
            self.hovered = self.rect.collidepoint(event.pos)
        elif (event.type == pygame.MOUSEBUTTONDOWN and event.button == 1
              and self.rect.collidepoint(event.pos)):
            if self.on_click:
                self.on_click()
            return True
        return False

    def draw(self, surface, font):
        if self.active:
            fill = THEME["button_active"]
        else:
            fill = THEME["button_hover"] if self.hovered else THEME["button"]
        pygame.draw.rect(surface, fill, self.rect, border_radius=4)
        text = font.render(self.label, True, THEME["text_bright"])
        surface.blit(text, text.get_rect(center=self.rect.center))


class SectionHeader(Widget):
    """Divider line with a dim title."""

    def __init__(self, x, y, width, title):
        super().__init__(x, y, width, 26)
        self.title = title

    def draw(self, surface, font):
        y = self.rect.y + 8
        pygame.draw.line(surface, THEME["divider"],
                         (self.rect.x + 8, y), (self.rect.right - 8, y))
        surface.blit(font.render(self.title, True, THEME["text_dim"]),
                     (self.rect.x + 8, y + 4))


class InfoLine(Widget):
    """One line of text pulled from `source()` every frame. Empty text draws nothing."""

    def __init__(self, x, y, width, source, color_key="text"):
        super().__init__(x, y, width, 18)
        self.source = source
        self.color_key = color_key

    def draw(self, surface, font):
        text = self.source()
        if text:
            surface.blit(font.render(text, True, THEME[self.color_key]),
                         (self.rect.x + 8, self.rect.y))


class ControlPanel:
    """
    Vertical stack of widgets drawn onto its own surface at (x, y) in the
    window. Widgets are laid out top to bottom in the order they are added.
    """

    def __init__(self, x, y, width, height):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.widgets = []
        self.surface = pygame.Surface((width, height))
        self._cursor_y = 8

    def _stack(self, widget, gap=0):
        self.widgets.append(widget)
        self._cursor_y += widget.height + gap
        return widget

    def add_section(self, title):
        return self._stack(SectionHeader(0, self._cursor_y, self.width, title), gap=4)

    def add_slider(self, label, min_val, max_val, value, fmt=".2f",
                   step=None, on_change=None):
        return self._stack(Slider(0, self._cursor_y, self.width, label, min_val,
                                  max_val, value, fmt, step, on_change), gap=6)

    def add_button(self, label, width=None, on_click=None):
        return self._stack(Button(8, self._cursor_y, width or self.width - 16, 28,
                                  label, on_click), gap=8)

    def add_info(self, source, color_key="text"):
        return self._stack(InfoLine(0, self._cursor_y, self.width, source, color_key))

    def add_spacer(self, height=8):
        self._cursor_y += height

    def _localize(self, event):
        """Event in panel coordinates, or None when the pointer is outside."""
        if not hasattr(event, "pos"):
            return event
        lx, ly = event.pos[0] - self.x, event.pos[1] - self.y
        if not (0 <= lx <= self.width and 0 <= ly <= self.height):
            return None
        attrs = dict(event.__dict__)
        attrs["pos"] = (lx, ly)
        return pygame.event.Event(event.type, attrs)

    def handle_event(self, event):
        """Route an event to the widgets. True when one consumed it."""
        local = self._localize(event)
        if local is None:
            # release drags and hover that left the panel
            for widget in self.widgets:
                if isinstance(widget, Slider):
                    widget.hovered = False
                    if event.type == pygame.MOUSEBUTTONUP:
                        widget.dragging = False
            return False
        return any(widget.handle_event(local) for widget in self.widgets)

    def draw(self, target_surface, font):
        self.surface.fill(THEME["panel"])
        pygame.draw.line(self.surface, THEME["divider"], (0, 0), (0, self.height))
        for widget in self.widgets:
            widget.draw(self.surface, font)
        target_surface.blit(self.surface, (self.x, self.y))
