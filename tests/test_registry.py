"""Tests for the composition registry and its render entry points."""

import pytest

from reelcompose.audio import ActiveAudio, AudioTrack
from reelcompose.errors import CompositionLookupError, ConfigurationError
from reelcompose.registry import Composition, CompositionRegistry
from reelcompose.scene import Element, Group
from reelcompose.timeline import Sequence


def _root():
    return Group([
        Sequence(0, 50, Element("text", {"text": "first"})),
        Sequence(20, 50, Element("text", {"text": "second"})),
    ])


def _registry():
    registry = CompositionRegistry()
    registry.register(
        "KirovPreview", _root(), duration_in_frames=840, fps=30, width=1080, height=1080,
        audio=[AudioTrack("theme.mp3", 0, 840, trim_start_frames=600, volume=0.15)],
    )
    return registry


class TestRegister:
    def test_register_and_get(self):
        registry = _registry()
        comp = registry.get("KirovPreview")
        assert isinstance(comp, Composition)
        assert comp.fps == 30
        assert comp.duration_seconds == pytest.approx(28.0)
        assert "KirovPreview" in registry
        assert len(registry) == 1

    def test_ids_in_registration_order(self):
        registry = _registry()
        registry.register("A", _root(), 10, 30, 100, 100)
        registry.register("B", _root(), 10, 30, 100, 100)
        assert registry.ids() == ["KirovPreview", "A", "B"]
        assert [c.id for c in registry] == ["KirovPreview", "A", "B"]

    def test_duplicate_id_rejected(self):
        registry = _registry()
        with pytest.raises(ConfigurationError, match="already registered"):
            registry.register("KirovPreview", _root(), 100, 30, 1080, 1080)
        # The original registration is untouched.
        assert registry.get("KirovPreview").duration_in_frames == 840

    @pytest.mark.parametrize("bad_id", [["Promo"], {"id": "Promo"}, "", 7])
    def test_malformed_id_rejected(self, bad_id):
        registry = _registry()
        with pytest.raises(ConfigurationError, match="non-empty string"):
            registry.register(bad_id, _root(), 10, 30, 100, 100)
        assert len(registry) == 1

    @pytest.mark.parametrize("field,value", [
        ("duration_in_frames", 0),
        ("fps", 0),
        ("fps", -30),
        ("width", 0),
        ("height", -1),
        ("fps", 29.97),
    ])
    def test_non_positive_metadata_rejected(self, field, value):
        kwargs = {"duration_in_frames": 100, "fps": 30, "width": 100, "height": 100}
        kwargs[field] = value
        with pytest.raises(ConfigurationError, match=field):
            CompositionRegistry().register("X", _root(), **kwargs)

    def test_bad_root_rejected(self):
        with pytest.raises(ConfigurationError, match="root"):
            CompositionRegistry().register("X", "root", 10, 30, 10, 10)

    def test_bad_audio_rejected(self):
        with pytest.raises(ConfigurationError, match="AudioTrack"):
            CompositionRegistry().register("X", _root(), 10, 30, 10, 10, audio=["a.mp3"])

    def test_empty_id_rejected(self):
        with pytest.raises(ConfigurationError, match="id"):
            CompositionRegistry().register("", _root(), 10, 30, 10, 10)


class TestLookup:
    def test_unknown_id(self):
        with pytest.raises(CompositionLookupError, match="Unknown composition 'Nope'"):
            _registry().get("Nope")

    def test_lookup_error_is_lookup_error(self):
        with pytest.raises(LookupError):
            _registry().render_frame("Nope", 0)


class TestRenderFrame:
    def test_last_frame_renders(self):
        node = _registry().render_frame("KirovPreview", 839)
        assert node.kind == "composition"
        assert node.props["width"] == 1080
        assert node.props["frame"] == 839

    def test_frame_at_duration_fails(self):
        with pytest.raises(CompositionLookupError, match="out of range"):
            _registry().render_frame("KirovPreview", 840)

    def test_negative_frame_fails(self):
        with pytest.raises(CompositionLookupError):
            _registry().render_frame("KirovPreview", -1)

    def test_non_integer_frame_fails(self):
        with pytest.raises(CompositionLookupError, match="integer"):
            _registry().render_frame("KirovPreview", 1.5)

    def test_overlap_paint_order(self):
        node = _registry().render_frame("KirovPreview", 30)
        (group,) = node.children
        assert [c.props["text"] for c in group.children] == ["first", "second"]


class TestActiveAudio:
    def test_resolves_tracks(self):
        assert _registry().active_audio_at("KirovPreview", 0) == [
            ActiveAudio("theme.mp3", 600, 0.15),
        ]

    def test_out_of_range(self):
        with pytest.raises(CompositionLookupError):
            _registry().active_audio_at("KirovPreview", 840)
