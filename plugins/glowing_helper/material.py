"""
Glow Material Classification

Alpha is a dual-purpose signal. Every value is ordinary transparency except
two reserved sentinels that tag the pixel as a light source:

  252  full glow     (strength 1.0)
  253  partial glow  (strength 0.4)

A genuine 253/255 opaque pixel therefore cannot exist in a tagged image.
This pair is shared by the editor and the renderer and must not change.
"""

import enum
import numpy as np


FULL_GLOW_ALPHA = 252
PARTIAL_GLOW_ALPHA = 253

FULL_GLOW_STRENGTH = 1.0
PARTIAL_GLOW_STRENGTH = 0.4


class MaterialClass(str, enum.Enum):
    """Material of a pixel, decoded from its alpha."""
    NORMAL = "normal"
    FULL_GLOW = "full_glow"
    PARTIAL_GLOW = "partial_glow"

    @property
    def is_glow(self):
        return self is not MaterialClass.NORMAL


def classify(alpha):
    """Map one alpha value to (MaterialClass, strength).

    Strength is 0.0 for NORMAL pixels, where it does not apply.
    """
    if alpha == FULL_GLOW_ALPHA:
        return MaterialClass.FULL_GLOW, FULL_GLOW_STRENGTH
    if alpha == PARTIAL_GLOW_ALPHA:
        return MaterialClass.PARTIAL_GLOW, PARTIAL_GLOW_STRENGTH
    return MaterialClass.NORMAL, 0.0


# Strength LUT indexed by alpha: everything 0 except the two sentinels
_STRENGTH_LUT = np.zeros(256, dtype=np.float32)
_STRENGTH_LUT[FULL_GLOW_ALPHA] = FULL_GLOW_STRENGTH
_STRENGTH_LUT[PARTIAL_GLOW_ALPHA] = PARTIAL_GLOW_STRENGTH


def strength_map(alpha):
    """Per-pixel glow strength for a uint8 alpha array (0.0 = not glowing)."""
    return _STRENGTH_LUT[np.asarray(alpha, dtype=np.uint8)]


def glow_mask(alpha):
    """Boolean mask of glow-tagged pixels."""
    alpha = np.asarray(alpha)
    return (alpha == FULL_GLOW_ALPHA) | (alpha == PARTIAL_GLOW_ALPHA)
