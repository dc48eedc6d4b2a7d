"""Shared test fixtures for reelcompose tests."""

import subprocess
import tempfile

import imageio_ffmpeg
import pytest
import yaml
from PIL import Image

from reelcompose.registry import Composition
from reelcompose.scene import Element, Group
from reelcompose.timeline import Sequence

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def write_manifest(content: dict) -> str:
    """Write a manifest dict to a temp YAML file, return path."""
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    yaml.dump(content, f, sort_keys=False, allow_unicode=True)
    f.close()
    return f.name


def box(color, x=0, y=0, width=10, height=10, **props):
    return Element("box", {"x": x, "y": y, "width": width, "height": height,
                           "color": color, **props})


@pytest.fixture
def tone_wav(tmp_path):
    """Create a 2-second 440Hz mono tone (44.1kHz) using ffmpeg."""
    out = tmp_path / "tone.wav"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "sine=frequency=440:sample_rate=44100:duration=2",
            "-ac", "1",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def red_png(tmp_path):
    """A 20x10 solid red PNG."""
    out = tmp_path / "red.png"
    Image.new("RGB", (20, 10), (255, 0, 0)).save(out)
    return out


@pytest.fixture
def small_composition():
    """64x64, 10 frames: a red box for frames 0-4, a blue box for frames 3-9."""
    root = Group([
        Sequence(0, 5, box((255, 0, 0), 8, 8, 24, 24)),
        Sequence(3, 7, box((0, 0, 255), 16, 16, 24, 24)),
    ])
    return Composition("Small", root, duration_in_frames=10, fps=10, width=64, height=64)


@pytest.fixture
def stills_manifest(tmp_path):
    """Manifest with one small composition, written next to its own folder."""
    content = {
        "colors": {"accent": "#4caf50"},
        "compositions": [
            {
                "id": "Stills",
                "fps": 10,
                "duration_in_frames": 20,
                "width": 48,
                "height": 48,
                "background": "#000000",
                "root": {
                    "type": "group",
                    "children": [
                        {
                            "type": "element",
                            "kind": "box",
                            "x": 4, "y": 4, "width": 40, "height": 40,
                            "color": "accent",
                            "opacity": {"spring": {"damping": 12, "delay": 2}},
                        },
                    ],
                },
            },
        ],
    }
    path = tmp_path / "stills.yaml"
    with open(path, "w") as f:
        yaml.dump(content, f, sort_keys=False)
    return path
