"""
Shimmer - position/time brightness oscillation for glow cores

    position = x + y
    raw      = sin(1.5708*position + 0.7854*sin(position + 0.1*t) + 0.8*t)
    shimmer  = raw^2 * intensity

The nested sine must be evaluated exactly as written; approximations drift
visibly between neighbouring frames.

ShimmerClock is the driving clock: a phase accumulator advancing 2*pi every
SHIMMER_PERIOD_S seconds. The compositor never reads it, callers pass
clock.time explicitly.
"""

import math
import numpy as np


SHIMMER_PERIOD_S = 4.0
TWO_PI = 2.0 * math.pi


def shimmer(x, y, time, intensity):
    """Shimmer value for one pixel, in [0, intensity]."""
    position = x + y
    raw = math.sin(1.5708 * position
                   + 0.7854 * math.sin(position + 0.1 * time)
                   + 0.8 * time)
    return raw * raw * intensity


def shimmer_field(width, height, time, intensity):
    """Vectorised shimmer over a (height, width) grid. Same formula as shimmer()."""
    Y, X = np.ogrid[:height, :width]
    position = (X + Y).astype(np.float64)
    raw = np.sin(1.5708 * position
                 + 0.7854 * np.sin(position + 0.1 * time)
                 + 0.8 * time)
    return raw * raw * intensity


class ShimmerClock:
    """Phase accumulator that wraps at 2*pi every `period` seconds.

    Frame-rate independent: advance() takes the elapsed delta-time.
    """

    def __init__(self, period=SHIMMER_PERIOD_S):
        self.period = period
        self.time = 0.0
        self.paused = False

    def advance(self, dt):
        """Advance by dt seconds and return the new phase."""
        if self.paused or dt <= 0:
            return self.time
        self.time = (self.time + TWO_PI * dt / self.period) % TWO_PI
        return self.time

    def toggle_pause(self):
        self.paused = not self.paused

    def reset(self):
        self.time = 0.0
