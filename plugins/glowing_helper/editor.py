"""
Edit Session - one open image and its alpha edits

Tracks unsaved changes and funnels single-pixel and same-colour edits into
the PixelGrid. Tagging a colour as a light source is just a bulk alpha edit
to 252 or 253.
"""

import os

from .image_io import edited_filename, load_png, save_png
from .material import (
    FULL_GLOW_ALPHA, PARTIAL_GLOW_ALPHA, MaterialClass, classify, glow_mask,
)


OPAQUE_ALPHA = 255


class EditSession:
    """Owns the PixelGrid of the currently open image."""

    def __init__(self, grid=None, source_path=None):
        self.grid = grid
        self.source_path = source_path
        self.unsaved_changes = False
        self.last_saved_path = None

    @classmethod
    def open(cls, path):
        """Load an image; ImageLoadError propagates (no image loaded)."""
        return cls(load_png(path), source_path=os.fspath(path))

    def load(self, path):
        """Replace the current image with the one at path."""
        grid = load_png(path)
        self.grid = grid
        self.source_path = os.fspath(path)
        self.unsaved_changes = False
        self.last_saved_path = None

    @property
    def has_image(self):
        return self.grid is not None

    def select(self, x, y):
        """Pixel at (x, y); InvalidCoordinate when outside."""
        return self.grid.get_pixel(x, y)

    def apply_alpha(self, x, y, alpha, same_color=False):
        """Set alpha of (x, y), or of every pixel sharing its RGB.

        Returns:
            Number of pixels rewritten.
        """
        pixel = self.grid.get_pixel(x, y)
        if same_color:
            count = self.grid.update_all_pixels_with_color(
                pixel.r, pixel.g, pixel.b, alpha)
        else:
            self.grid.update_pixel_alpha(x, y, alpha)
            count = 1
        self.unsaved_changes = True
        return count

    def tag_full_glow(self, x, y, same_color=False):
        return self.apply_alpha(x, y, FULL_GLOW_ALPHA, same_color)

    def tag_partial_glow(self, x, y, same_color=False):
        return self.apply_alpha(x, y, PARTIAL_GLOW_ALPHA, same_color)

    def clear_glow(self, x, y, same_color=False):
        """Turn a light source back into an opaque ordinary pixel."""
        return self.apply_alpha(x, y, OPAQUE_ALPHA, same_color)

    def tag_color(self, rgb, alpha):
        """Bulk edit by colour value rather than by a picked pixel."""
        count = self.grid.update_all_pixels_with_color(*rgb, alpha)
        if count:
            self.unsaved_changes = True
        return count

    def material_at(self, x, y):
        return classify(self.grid.get_pixel(x, y).a)[0]

    def glow_counts(self):
        """{MaterialClass: pixel count} over opaque-or-translucent pixels."""
        alpha = self.grid.alpha
        full = int((alpha == FULL_GLOW_ALPHA).sum())
        partial = int((alpha == PARTIAL_GLOW_ALPHA).sum())
        visible = int((alpha > 0).sum())
        return {
            MaterialClass.FULL_GLOW: full,
            MaterialClass.PARTIAL_GLOW: partial,
            MaterialClass.NORMAL: visible - full - partial,
        }

    def has_glow(self):
        return bool(glow_mask(self.grid.alpha).any())

    def save(self, path=None, directory=None):
        """Write the edited image.

        Args:
            path: Explicit output path. When omitted, a timestamped
                edited_png_<millis>.png is created in `directory` (default:
                the source image's directory, else the working directory).

        Raises ImageSaveError; the grid and the unsaved flag are unchanged then.
        """
        if path is None:
            if directory is None:
                directory = (os.path.dirname(os.path.abspath(self.source_path))
                             if self.source_path else os.getcwd())
            path = os.path.join(directory, edited_filename())
        saved = save_png(self.grid, path)
        self.unsaved_changes = False
        self.last_saved_path = saved
        return saved
