#!/usr/bin/env python3
"""Generate synthetic assets for the reelcompose demo manifest.

Creates examples/demo-assets/ with a logo PNG and a short two-tone WAV,
enough to render examples/promo.yaml end to end.

Usage:
    python examples/generate_demo_assets.py
    # Then render:
    reelcompose render --manifest examples/promo.yaml \
        --composition TrainerPromo --output /tmp/promo.mp4
"""

import numpy as np
from moviepy.audio.AudioClip import AudioArrayClip
from pathlib import Path
from PIL import Image, ImageDraw

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-assets"
SAMPLE_RATE = 44100


def make_logo(path: Path, size: int = 256) -> None:
    """A gold ring on a transparent background."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    pad = size // 8
    draw.ellipse((pad, pad, size - pad, size - pad), outline=(255, 171, 1, 255), width=size // 10)
    draw.ellipse((size * 3 // 8, size * 3 // 8, size * 5 // 8, size * 5 // 8), fill=(74, 222, 128, 255))
    img.save(path)


def make_theme(path: Path, seconds: float = 12.0) -> None:
    """Two detuned sines with a slow swell, stereo."""
    t = np.arange(int(seconds * SAMPLE_RATE)) / SAMPLE_RATE
    swell = 0.5 - 0.5 * np.cos(2 * np.pi * t / seconds)
    left = 0.3 * swell * np.sin(2 * np.pi * 220.0 * t)
    right = 0.3 * swell * np.sin(2 * np.pi * 221.5 * t)
    clip = AudioArrayClip(np.stack([left, right], axis=1), fps=SAMPLE_RATE)
    clip.write_audiofile(str(path), fps=SAMPLE_RATE, logger=None)


def make_click(path: Path, seconds: float = 0.08) -> None:
    """A short decaying click for typed text."""
    t = np.arange(int(seconds * SAMPLE_RATE)) / SAMPLE_RATE
    mono = 0.6 * np.exp(-t * 60) * np.sin(2 * np.pi * 1800.0 * t)
    clip = AudioArrayClip(np.stack([mono, mono], axis=1), fps=SAMPLE_RATE)
    clip.write_audiofile(str(path), fps=SAMPLE_RATE, logger=None)


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    make_logo(OUTPUT_DIR / "logo.png")
    make_theme(OUTPUT_DIR / "theme.wav")
    make_click(OUTPUT_DIR / "click.wav")
    for p in sorted(OUTPUT_DIR.iterdir()):
        print(f"  {p.name}")
    print(f"\nAssets written to {OUTPUT_DIR}/")


if __name__ == "__main__":
    main()
