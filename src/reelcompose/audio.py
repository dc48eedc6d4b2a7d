"""Audio layer compositor — time-boxed tracks resolved on the frame clock.

Each AudioTrack is active on [start_frame, start_frame + duration_frames),
the same window test a Sequence uses. Inside the window the playback
position into the source is trim_start_frames + (frame - start_frame),
expressed in frames. At sample level a track is read contiguously from its
own first sample, so frames whose sample counts differ never repeat or skip
source samples.

Mixing is additive: every active track's samples are scaled by its volume
and summed. No normalization is applied, so the author controls headroom
through the volumes.
"""

from dataclasses import dataclass

import numpy as np

from .errors import ConfigurationError, require_int
from .timeline import is_active, local_frame


@dataclass(frozen=True)
class AudioTrack:
    """A source clip placed on the composition timeline.

    src: opaque asset reference (resolved by the caller's loader).
    start_frame: timeline frame where the track starts playing.
    duration_frames: how long it plays.
    trim_start_frames: offset into the source audio, in frames.
    volume: linear gain in [0, 1].
    """

    src: str
    start_frame: int
    duration_frames: int
    trim_start_frames: int = 0
    volume: float = 1.0

    def __post_init__(self):
        if not isinstance(self.src, str) or not self.src:
            raise ConfigurationError(f"AudioTrack src must be a non-empty string, got {self.src!r}")
        require_int(self.start_frame, "AudioTrack start_frame")
        require_int(self.duration_frames, "AudioTrack duration_frames", minimum=1)
        require_int(self.trim_start_frames, "AudioTrack trim_start_frames")
        if (
            not isinstance(self.volume, (int, float))
            or isinstance(self.volume, bool)
            or not 0 <= self.volume <= 1
        ):
            raise ConfigurationError(
                f"AudioTrack volume must be in [0, 1], got {self.volume!r}"
            )

    @property
    def end_frame(self) -> int:
        return self.start_frame + self.duration_frames


@dataclass(frozen=True)
class ActiveAudio:
    src: str
    sample_offset: int
    volume: float


def active_audio_at(tracks, frame: int) -> list[ActiveAudio]:
    """Tracks audible at *frame*, in declaration order, with source offsets."""
    active = []
    for track in tracks:
        if is_active(frame, track.start_frame, track.duration_frames):
            offset = track.trim_start_frames + local_frame(frame, track.start_frame)
            active.append(ActiveAudio(track.src, offset, track.volume))
    return active


# ── Sample-level mixing ──────────────────────────────────────────


def frame_sample_bounds(frame: int, fps: int, sample_rate: int) -> tuple[int, int]:
    """[first, end) sample indices covered by *frame*.

    Integer arithmetic keeps consecutive frames contiguous even when
    sample_rate is not a multiple of fps.
    """
    return frame * sample_rate // fps, (frame + 1) * sample_rate // fps


def _as_channels(samples: np.ndarray, channels: int) -> np.ndarray:
    """Reshape decoded samples to (n, channels)."""
    samples = np.asarray(samples, dtype=np.float32)
    if samples.ndim == 1:
        samples = samples[:, None]
    if samples.shape[1] == channels:
        return samples
    if samples.shape[1] == 1:
        return np.repeat(samples, channels, axis=1)
    # Downmix, then spread back out to the requested layout.
    mono = samples.mean(axis=1, keepdims=True)
    return np.repeat(mono, channels, axis=1)


def mix_samples(
    tracks,
    frame: int,
    fps: int,
    sample_rate: int,
    load_samples,
    channels: int = 2,
) -> np.ndarray:
    """Mix one frame's worth of audio from every track active at *frame*.

    Args:
        tracks: AudioTracks of the composition.
        frame: Timeline frame to mix.
        fps: Composition frame rate.
        sample_rate: Output sample rate in Hz.
        load_samples: Callable src -> decoded samples at sample_rate,
            shape (n,) or (n, channels). Expected to be memoized.
        channels: Output channel count.

    Returns:
        float32 array of shape (samples_in_frame, channels).
    """
    first, end = frame_sample_bounds(frame, fps, sample_rate)
    length = end - first
    mixed = np.zeros((length, channels), dtype=np.float32)

    for track in tracks:
        if not is_active(frame, track.start_frame, track.duration_frames):
            continue
        # Map output samples onto the source from the track's own start, so
        # consecutive frames read contiguous source samples.
        track_first, _ = frame_sample_bounds(track.start_frame, fps, sample_rate)
        trim, _ = frame_sample_bounds(track.trim_start_frames, fps, sample_rate)
        start = first - track_first + trim
        source = np.asarray(load_samples(track.src))
        chunk = _as_channels(source[start:start + length], channels)
        # Sources that run out before the window ends contribute silence.
        mixed[:len(chunk)] += chunk * track.volume

    return mixed


def mix_range(
    tracks,
    start_frame: int,
    end_frame: int,
    fps: int,
    sample_rate: int,
    load_samples,
    channels: int = 2,
) -> np.ndarray:
    """Mix frames [start_frame, end_frame) into one contiguous waveform."""
    if end_frame <= start_frame:
        return np.zeros((0, channels), dtype=np.float32)
    return np.concatenate([
        mix_samples(tracks, frame, fps, sample_rate, load_samples, channels)
        for frame in range(start_frame, end_frame)
    ])
