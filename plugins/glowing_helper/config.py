"""
Glow Preview Settings

Declared with pydantic so ranges live next to the defaults. These are the
producers of GlowParameters: out-of-range input is rejected (config) or
clamped (sliders) here, the compositor itself never validates.
"""

from pydantic import BaseModel, Field

from .compositor import GlowParameters


class GlowSettings(BaseModel):
    """The four live glow controls, with their slider ranges."""

    ambient: float = Field(
        default=0.4, ge=0.0, le=1.5,
        description="Brightness of ordinary (non-glow) colour",
    )
    glow_intensity: float = Field(
        default=2.2, ge=0.0, le=5.0,
        description="Glow core brightness and halo size",
    )
    shimmer_intensity: float = Field(
        default=1.0, ge=0.0, le=1.0,
        description="Depth of the time-driven glow flicker",
    )
    glow_leak_intensity: float = Field(
        default=0.4, ge=0.0, le=1.0,
        description="Light bled onto pixels next to a light source",
    )

    def to_params(self):
        return GlowParameters(
            ambient=self.ambient,
            glow_intensity=self.glow_intensity,
            shimmer_intensity=self.shimmer_intensity,
            glow_leak_intensity=self.glow_leak_intensity,
        )


class ViewerSettings(BaseModel):
    """Load-time settings of the interactive viewer."""

    window_w: int = Field(default=900, ge=64)
    window_h: int = Field(default=900, ge=64)
    panel_visible: bool = True
    screenshot_dir: str = "screenshots"
    fps: int = Field(default=60, ge=1, le=240)
    glow: GlowSettings = Field(default_factory=GlowSettings)


def _slider_def(key, label, fmt=".2f", step=None):
    field = GlowSettings.model_fields[key]
    bounds = {type(m).__name__: m for m in field.metadata}
    return {
        "key": key,
        "label": label,
        "min": bounds["Ge"].ge,
        "max": bounds["Le"].le,
        "default": field.default,
        "fmt": fmt,
        "step": step,
    }


# Slider definitions for the viewer's control panel, in display order
SLIDER_DEFS = [
    _slider_def("ambient", "Ambient"),
    _slider_def("glow_intensity", "Glow"),
    _slider_def("shimmer_intensity", "Shimmer"),
    _slider_def("glow_leak_intensity", "Glow Leak"),
]
