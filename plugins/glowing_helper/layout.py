"""
Viewport - maps image pixels onto a canvas

The image is scaled to fit the canvas, multiplied by the user zoom, centred,
then shifted by the pan offset. Every image pixel becomes a square cell of
side `pixel_size` in canvas units.
"""


class Viewport:
    """Placement of a width x height image on a canvas."""

    def __init__(self, image_w, image_h, canvas_w=None, canvas_h=None,
                 zoom=1.0, pan=(0.0, 0.0)):
        """
        Args:
            image_w, image_h: Image size in pixels
            canvas_w, canvas_h: Canvas size; None means the canvas is the
                image itself (1 unit per pixel)
            zoom: Multiplier on the fit scale
            pan: (dx, dy) offset in canvas units
        """
        self.image_w = image_w
        self.image_h = image_h
        self.canvas_w = float(image_w if canvas_w is None else canvas_w)
        self.canvas_h = float(image_h if canvas_h is None else canvas_h)
        self.zoom = zoom
        self.pan = (float(pan[0]), float(pan[1]))

    @classmethod
    def identity(cls, image_w, image_h):
        return cls(image_w, image_h)

    @property
    def fit_scale(self):
        return min(self.canvas_w / self.image_w, self.canvas_h / self.image_h)

    @property
    def pixel_size(self):
        return self.fit_scale * self.zoom

    @property
    def origin(self):
        """Canvas position of the image's top-left corner."""
        s = self.pixel_size
        ox = (self.canvas_w - self.image_w * s) / 2 + self.pan[0]
        oy = (self.canvas_h - self.image_h * s) / 2 + self.pan[1]
        return ox, oy

    def cell_origin(self, x, y):
        ox, oy = self.origin
        s = self.pixel_size
        return ox + x * s, oy + y * s

    def cell_center(self, x, y):
        cx, cy = self.cell_origin(x, y)
        half = self.pixel_size / 2
        return cx + half, cy + half

    def is_visible(self, x, y):
        """False when the cell lies entirely outside the canvas."""
        px, py = self.cell_origin(x, y)
        s = self.pixel_size
        return (px + s > 0 and px < self.canvas_w and
                py + s > 0 and py < self.canvas_h)

    def screen_to_pixel(self, sx, sy):
        """Image pixel under canvas point (sx, sy), or None outside the image."""
        ox, oy = self.origin
        s = self.pixel_size
        fx = (sx - ox) / s
        fy = (sy - oy) / s
        if fx < 0 or fy < 0:
            return None
        x, y = int(fx), int(fy)
        if x >= self.image_w or y >= self.image_h:
            return None
        return x, y

    def zoomed(self, factor, anchor=None):
        """New viewport with zoom multiplied by factor, keeping `anchor` fixed."""
        new = Viewport(self.image_w, self.image_h, self.canvas_w, self.canvas_h,
                       zoom=max(0.05, self.zoom * factor), pan=self.pan)
        if anchor is not None:
            ax, ay = anchor
            ox, oy = self.origin
            nox, noy = new.origin
            ratio = new.pixel_size / self.pixel_size
            # keep the image point under the anchor in place
            tx = ax - (ax - ox) * ratio
            ty = ay - (ay - oy) * ratio
            new.pan = (new.pan[0] + tx - nox, new.pan[1] + ty - noy)
        return new

    def panned(self, dx, dy):
        return Viewport(self.image_w, self.image_h, self.canvas_w, self.canvas_h,
                        zoom=self.zoom, pan=(self.pan[0] + dx, self.pan[1] + dy))

    def key(self):
        """Hashable summary, used as a cache key."""
        return (self.image_w, self.image_h, self.canvas_w, self.canvas_h,
                self.zoom, self.pan)
