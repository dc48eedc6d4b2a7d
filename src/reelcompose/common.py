"""reelcompose.common — shared utilities at the asset boundary.

Contains: color parsing, path variable resolution, font loading, and
memoized image/audio asset loading. Everything that touches the
filesystem lives here so the animation core never opens files.
"""

import re
from functools import lru_cache
from pathlib import Path

import numpy as np
from PIL import Image, ImageFont
from moviepy import AudioFileClip


# ── Font paths ─────────────────────────────────────────────────────
# Monospace first (terminal-style promo text), DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/JetBrainsMono-Regular.ttf",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf"),
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6:
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


def resolve_color(
    value: str, palette: dict[str, tuple[int, int, int]],
) -> tuple[int, int, int]:
    """Resolve a color reference — palette key name or inline '#RRGGBB'.

    Palette keys are tried first. If the value starts with '#' or is 6 hex
    chars, it's parsed as inline hex. Otherwise raises ValueError.
    """
    if value in palette:
        return palette[value]
    if value.startswith("#") or (
        len(value) == 6
        and all(c in "0123456789abcdefABCDEF" for c in value)
    ):
        return parse_hex_color(value)
    raise ValueError(
        f"Unknown color: '{value}'. Not in palette and not a hex value."
    )


def to_rgb(value) -> tuple[int, int, int]:
    """Accept an (R, G, B) sequence or a hex string; return an RGB tuple."""
    if isinstance(value, str):
        return parse_hex_color(value)
    r, g, b = value[:3]
    return (int(r), int(g), int(b))


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

@lru_cache(maxsize=64)
def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load the first available font from FONT_PATHS at the given size.

    Cached per size: text elements ask for the same few sizes on every frame.
    """
    for font_path in FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size)
            except OSError:
                continue
    # Last resort: Pillow default font (scalable on Pillow >= 10.1).
    return ImageFont.load_default(size=size)


# ── Asset loading ──────────────────────────────────────────────────
# Memoized per path: every frame that shows an asset asks for it again.

@lru_cache(maxsize=128)
def load_image(path: str) -> Image.Image:
    """Decode an image once and keep it as RGBA.

    Animated formats (gif) are reduced to their first frame.
    """
    with Image.open(path) as img:
        img.seek(0)
        return img.convert("RGBA")


@lru_cache(maxsize=32)
def load_audio_samples(path: str, sample_rate: int) -> np.ndarray:
    """Decode an audio file to float32 samples of shape (n, channels)."""
    clip = AudioFileClip(str(path), fps=sample_rate)
    try:
        samples = clip.to_soundarray(fps=sample_rate)
    finally:
        clip.close()
    samples = np.asarray(samples, dtype=np.float32)
    if samples.ndim == 1:
        samples = samples[:, None]
    return samples
