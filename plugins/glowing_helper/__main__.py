"""
Glowing Helper - Entry Point

Usage:
    python -m glowing_helper IMAGE [options]

Opens the interactive glow preview unless a headless option is given.

Options:
    --window WxH        Preview canvas size (default 900x900)
    --ambient X         Ambient brightness 0-1.5 (default 0.4)
    --glow X            Glow intensity 0-5 (default 2.2)
    --shimmer X         Shimmer intensity 0-1 (default 1.0)
    --leak X            Glow leak intensity 0-1 (default 0.4)
    --tag R,G,B=A       Set alpha A on every pixel of colour R,G,B
                        (252 = full glow, 253 = 40% glow). Repeatable.
    --out PATH          Save the edited PNG to PATH
    --snap PATH         Render one preview frame to PATH (no window)
    --time T            Shimmer phase for --snap (default 0)
    --scale N           Canvas pixels per image pixel for --snap (default 8)
    --info              Print glow pixel counts

Examples:
    python -m glowing_helper sprite.png
    python -m glowing_helper sprite.png --tag 255,0,0=252 --out tagged.png
    python -m glowing_helper tagged.png --snap preview.png --time 1.2 --scale 16
"""

import sys

from pydantic import ValidationError

from .compositor import composite
from .config import GlowSettings, ViewerSettings
from .editor import EditSession
from .image_io import ImageLoadError, ImageSaveError
from .layout import Viewport
from .material import MaterialClass
from .pixel_grid import InvalidAlpha
from .raster import render


def parse_tag(text):
    """'R,G,B=A' -> ((r, g, b), a)."""
    try:
        color, alpha = text.split("=")
        r, g, b = (int(c) for c in color.split(","))
        return (r, g, b), int(alpha)
    except ValueError:
        raise ValueError(f"bad --tag {text!r}, expected R,G,B=ALPHA") from None


def parse_window(text):
    """'WxH' -> (w, h)."""
    parts = text.lower().split("x")
    if len(parts) != 2:
        raise ValueError(f"bad --window {text!r}, expected WIDTHxHEIGHT")
    return int(parts[0]), int(parts[1])


def snap(session, params, path, time=0.0, scale=8):
    """Headless mode: render one frame and save it as PNG."""
    from PIL import Image

    grid = session.grid
    w, h = grid.width * scale, grid.height * scale
    viewport = Viewport(grid.width, grid.height, w, h)
    ops = composite(grid, params, time, viewport)
    Image.fromarray(render(ops, w, h)).save(path, format="PNG")
    print(f"[glow] {len(ops)} draw ops, saved: {path}")


def print_info(session):
    counts = session.glow_counts()
    grid = session.grid
    print(f"[glow] {session.source_path}: {grid.width}x{grid.height}")
    print(f"  full glow (252):    {counts[MaterialClass.FULL_GLOW]}")
    print(f"  partial glow (253): {counts[MaterialClass.PARTIAL_GLOW]}")
    print(f"  normal visible:     {counts[MaterialClass.NORMAL]}")


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)

    image_path = None
    win_w, win_h = 900, 900
    glow_kwargs = {}
    tags = []
    out_path = None
    snap_path = None
    snap_time = 0.0
    snap_scale = 8
    show_info = False

    flag_keys = {
        "--ambient": "ambient",
        "--glow": "glow_intensity",
        "--shimmer": "shimmer_intensity",
        "--leak": "glow_leak_intensity",
    }

    try:
        i = 0
        while i < len(args):
            arg = args[i]
            has_value = i + 1 < len(args)
            if arg in ("--help", "-h"):
                print(__doc__)
                return 0
            elif arg == "--window" and has_value:
                win_w, win_h = parse_window(args[i + 1])
                i += 2
            elif arg in flag_keys and has_value:
                glow_kwargs[flag_keys[arg]] = float(args[i + 1])
                i += 2
            elif arg == "--tag" and has_value:
                tags.append(parse_tag(args[i + 1]))
                i += 2
            elif arg == "--out" and has_value:
                out_path = args[i + 1]
                i += 2
            elif arg == "--snap" and has_value:
                snap_path = args[i + 1]
                i += 2
            elif arg == "--time" and has_value:
                snap_time = float(args[i + 1])
                i += 2
            elif arg == "--scale" and has_value:
                snap_scale = max(1, int(args[i + 1]))
                i += 2
            elif arg == "--info":
                show_info = True
                i += 1
            elif not arg.startswith("-") and image_path is None:
                image_path = arg
                i += 1
            else:
                print(f"Unknown argument: {arg}")
                print("Use --help to see usage")
                return 2
    except ValueError as e:
        print(f"[glow] {e}")
        return 2

    if image_path is None:
        print(__doc__)
        return 2

    try:
        glow = GlowSettings(**glow_kwargs)
        settings = ViewerSettings(window_w=win_w, window_h=win_h, glow=glow)
    except ValidationError as e:
        print(f"[glow] Invalid settings:\n{e}")
        return 2

    try:
        session = EditSession.open(image_path)
    except ImageLoadError as e:
        print(f"[glow] No image loaded: {e}")
        return 1

    for rgb, alpha in tags:
        try:
            count = session.tag_color(rgb, alpha)
        except InvalidAlpha as e:
            print(f"[glow] {e}")
            return 2
        print(f"[glow] RGB{rgb} -> alpha {alpha}: {count} pixel(s)")

    if show_info:
        print_info(session)

    if out_path is not None:
        try:
            print(f"[glow] Saved: {session.save(path=out_path)}")
        except ImageSaveError as e:
            print(f"[glow] Save failed: {e}")
            return 1

    if snap_path is not None:
        try:
            snap(session, glow.to_params(), snap_path, snap_time, snap_scale)
        except OSError as e:
            print(f"[glow] Snapshot failed: {e}")
            return 1

    if show_info or out_path is not None or snap_path is not None:
        return 0

    from .viewer import Viewer

    print("Starting Glow Preview")
    print(f"  Image: {image_path} ({session.grid.width}x{session.grid.height})")
    print(f"  Window: {win_w}x{win_h}")
    print()

    Viewer(session, settings).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
