"""Tests for the audio layer compositor."""

import numpy as np
import pytest

from reelcompose.audio import (
    ActiveAudio,
    AudioTrack,
    active_audio_at,
    frame_sample_bounds,
    mix_range,
    mix_samples,
)
from reelcompose.errors import ConfigurationError


class TestAudioTrack:
    def test_end_frame(self):
        assert AudioTrack("a.mp3", 620, 200).end_frame == 820

    @pytest.mark.parametrize("kwargs,match", [
        ({"volume": 1.5}, "volume"),
        ({"volume": -0.1}, "volume"),
        ({"duration_frames": 0}, "duration_frames"),
        ({"start_frame": -1}, "start_frame"),
        ({"trim_start_frames": -3}, "trim_start_frames"),
        ({"src": ""}, "src"),
    ])
    def test_invalid(self, kwargs, match):
        fields = {"src": "a.mp3", "start_frame": 0, "duration_frames": 10}
        fields.update(kwargs)
        with pytest.raises(ConfigurationError, match=match):
            AudioTrack(**fields)


class TestActiveAudioAt:
    def test_window_membership(self):
        tracks = [AudioTrack("rules.mp3", 620, 200, volume=0.9)]
        assert active_audio_at(tracks, 619) == []
        assert active_audio_at(tracks, 620) == [ActiveAudio("rules.mp3", 0, 0.9)]
        assert active_audio_at(tracks, 819) == [ActiveAudio("rules.mp3", 199, 0.9)]
        assert active_audio_at(tracks, 820) == []

    def test_trim_offsets_source_position(self):
        theme = AudioTrack("theme.mp3", 0, 1400, trim_start_frames=600, volume=0.15)
        (active,) = active_audio_at([theme], 10)
        assert active.sample_offset == 610

    def test_overlapping_tracks_keep_declaration_order(self):
        tracks = [
            AudioTrack("voice.mp3", 620, 200),
            AudioTrack("theme.mp3", 0, 1400, trim_start_frames=600),
        ]
        assert [a.src for a in active_audio_at(tracks, 700)] == ["voice.mp3", "theme.mp3"]


class TestFrameSampleBounds:
    def test_divisible(self):
        assert frame_sample_bounds(0, 30, 44100) == (0, 1470)
        assert frame_sample_bounds(2, 30, 44100) == (2940, 4410)

    def test_non_divisible_is_contiguous(self):
        bounds = [frame_sample_bounds(f, 30, 100) for f in range(6)]
        assert bounds[0] == (0, 3)
        for (_, end), (start, _) in zip(bounds, bounds[1:]):
            assert end == start
        assert bounds[-1][1] == 20


def _loader(sources):
    return lambda src: sources[src]


class TestMixSamples:
    # 300 Hz at 30 fps = 10 samples per frame.
    SR, FPS = 300, 30

    def test_additive_mix_with_volume(self):
        sources = {
            "ones": np.ones(100, dtype=np.float32),
            "ramp": np.arange(100, dtype=np.float32),
        }
        tracks = [
            AudioTrack("ones", 0, 10, volume=0.5),
            AudioTrack("ramp", 0, 10, volume=1.0),
        ]
        mixed = mix_samples(tracks, 1, self.FPS, self.SR, _loader(sources), channels=1)
        assert mixed.shape == (10, 1)
        np.testing.assert_allclose(mixed[:, 0], 0.5 + np.arange(10, 20))

    def test_trim_and_start_offset(self):
        sources = {"ramp": np.arange(1000, dtype=np.float32)}
        tracks = [AudioTrack("ramp", 5, 20, trim_start_frames=3)]
        # Frame 7 -> source position 3 + 2 = 5 frames -> sample 50.
        mixed = mix_samples(tracks, 7, self.FPS, self.SR, _loader(sources), channels=1)
        np.testing.assert_allclose(mixed[:, 0], np.arange(50, 60))

    def test_inactive_frame_is_silent(self):
        sources = {"ones": np.ones(1000, dtype=np.float32)}
        tracks = [AudioTrack("ones", 5, 5)]
        mixed = mix_samples(tracks, 10, self.FPS, self.SR, _loader(sources))
        assert mixed.shape == (10, 2)
        assert not mixed.any()

    def test_short_source_zero_padded(self):
        sources = {"short": np.ones(15, dtype=np.float32)}
        tracks = [AudioTrack("short", 0, 10)]
        mixed = mix_samples(tracks, 1, self.FPS, self.SR, _loader(sources), channels=1)
        np.testing.assert_allclose(mixed[:, 0], [1] * 5 + [0] * 5)

    def test_mono_spread_to_stereo(self):
        sources = {"mono": np.full(100, 0.25, dtype=np.float32)}
        mixed = mix_samples([AudioTrack("mono", 0, 10)], 0, self.FPS, self.SR, _loader(sources))
        np.testing.assert_allclose(mixed, np.full((10, 2), 0.25))

    def test_mix_order_does_not_matter(self):
        sources = {
            "a": np.linspace(0, 1, 200, dtype=np.float32),
            "b": np.linspace(1, 0, 200, dtype=np.float32),
        }
        a = AudioTrack("a", 0, 20, volume=0.3)
        b = AudioTrack("b", 2, 10, volume=0.7)
        forward = mix_samples([a, b], 5, self.FPS, self.SR, _loader(sources))
        backward = mix_samples([b, a], 5, self.FPS, self.SR, _loader(sources))
        np.testing.assert_allclose(forward, backward)


class TestMixRange:
    def test_length_matches_frame_span(self):
        sources = {"ones": np.ones(10_000, dtype=np.float32)}
        tracks = [AudioTrack("ones", 0, 100)]
        mixed = mix_range(tracks, 3, 13, 30, 100, _loader(sources))
        start, _ = frame_sample_bounds(3, 30, 100)
        _, end = frame_sample_bounds(12, 30, 100)
        assert mixed.shape == (end - start, 2)

    def test_empty_range(self):
        assert mix_range([], 5, 5, 30, 300, _loader({})).shape == (0, 2)

    def test_contiguous_source_at_uneven_rate(self):
        # 44100 Hz is not a multiple of 24 fps, so frames hold 1837 or 1838 samples.
        ramp = np.arange(20_000, dtype=np.float32)
        tracks = [AudioTrack("ramp", start_frame=1, duration_frames=4)]
        mixed = mix_range(tracks, 0, 6, 24, 44100, _loader({"ramp": ramp}), channels=1)
        track_first, _ = frame_sample_bounds(1, 24, 44100)
        track_end, _ = frame_sample_bounds(5, 24, 44100)
        played = mixed[track_first:track_end, 0]
        assert played[0] == 0
        np.testing.assert_array_equal(np.diff(played), 1)
        assert not mixed[:track_first].any()
        assert not mixed[track_end:].any()

    def test_trimmed_track_stays_contiguous(self):
        ramp = np.arange(50_000, dtype=np.float32)
        tracks = [AudioTrack("ramp", start_frame=3, duration_frames=7, trim_start_frames=5)]
        mixed = mix_range(tracks, 3, 10, 24, 44100, _loader({"ramp": ramp}), channels=1)
        trim, _ = frame_sample_bounds(5, 24, 44100)
        assert mixed[0, 0] == trim
        np.testing.assert_array_equal(np.diff(mixed[:, 0]), 1)
