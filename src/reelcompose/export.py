"""Export — still frames and mp4 files from registered compositions.

Frames are rendered on demand: moviepy asks for time t, the exporter
maps t to a frame number, evaluates the composition at that frame and
rasterizes it. Because every frame is a pure function of its number,
moviepy may request frames in any order without affecting the output.

Audio is mixed sample-accurately from the composition's tracks with
audio.mix_range() and handed to moviepy as one array clip.
"""

import math
from pathlib import Path

from PIL import Image
from moviepy import VideoClip
from moviepy.audio.AudioClip import AudioArrayClip

from .audio import mix_range
from .common import load_audio_samples
from .errors import CompositionLookupError
from .raster import rasterize
from .registry import Composition


DEFAULT_SAMPLE_RATE = 44100


def render_still(composition: Composition, frame: int, resolve_asset=None):
    """Evaluate and rasterize one frame. Returns an (h, w, 3) uint8 array."""
    return rasterize(composition.render_frame(frame), resolve_asset)


def save_still(array, output_path: str | Path) -> None:
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(array).save(str(output_path))


def still_filename(composition_id: str, frame: int) -> str:
    return f"{composition_id}-{frame:05d}.png"


def check_frame_range(composition: Composition, start: int, end: int) -> None:
    """Raise CompositionLookupError unless [start, end) is a non-empty in-range span."""
    if end <= start:
        raise CompositionLookupError(
            f"Composition '{composition.id}': empty frame range {start}:{end}"
        )
    composition.check_frame(start)
    composition.check_frame(end - 1)


# ── Video ────────────────────────────────────────────────────────


def make_video_clip(
    composition: Composition,
    start: int = 0,
    end: int | None = None,
    resolve_asset=None,
) -> VideoClip:
    """Wrap frames [start, end) of a composition as a moviepy VideoClip."""
    end = composition.duration_in_frames if end is None else end
    check_frame_range(composition, start, end)
    fps = composition.fps

    def frame_function(t):
        # Small epsilon: t = n / fps must land on frame n, not n - 1.
        frame = min(start + int(math.floor(t * fps + 1e-6)), end - 1)
        return render_still(composition, frame, resolve_asset)

    return VideoClip(frame_function=frame_function, duration=(end - start) / fps).with_fps(fps)


def make_audio_clip(
    composition: Composition,
    start: int = 0,
    end: int | None = None,
    resolve_asset=None,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    load_samples=None,
) -> AudioArrayClip | None:
    """Mix the composition's audio for [start, end). None when it has no tracks."""
    if not composition.audio:
        return None
    end = composition.duration_in_frames if end is None else end
    check_frame_range(composition, start, end)
    resolve_asset = resolve_asset or str

    if load_samples is None:
        def load_samples(src):
            return load_audio_samples(resolve_asset(src), sample_rate)

    mixed = mix_range(
        composition.audio, start, end, composition.fps, sample_rate, load_samples,
    )
    return AudioArrayClip(mixed, fps=sample_rate)


def export_video(
    composition: Composition,
    output_path: str | Path,
    start: int = 0,
    end: int | None = None,
    resolve_asset=None,
    quiet: bool = False,
) -> None:
    """Render frames [start, end) with mixed audio to an mp4."""
    clip = make_video_clip(composition, start, end, resolve_asset)
    audio = make_audio_clip(composition, start, end, resolve_asset)
    if audio is not None:
        clip = clip.with_audio(audio)

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    clip.write_videofile(
        str(output_path),
        fps=composition.fps,
        codec="libx264",
        audio=audio is not None,
        audio_codec="aac",
        preset="medium",
        ffmpeg_params=["-crf", "20", "-pix_fmt", "yuv420p"],
        logger=None if quiet else "bar",
    )
