"""Composition registry — named root animations with fixed metadata.

A Composition pairs a root render unit with its frame rate, duration,
output size and audio tracks. The registry is append-only: ids are
unique and a registered composition is never replaced.

The registry is also the render entry point. render_frame() and
active_audio_at() bounds-check the frame against the composition's
duration before evaluating anything.
"""

from dataclasses import dataclass

from .audio import ActiveAudio, AudioTrack, active_audio_at
from .errors import (
    CompositionLookupError,
    ConfigurationError,
    require_int,
)
from .scene import Node, evaluate, validate_unit


DEFAULT_BACKGROUND = (0, 0, 0)


@dataclass(frozen=True)
class Composition:
    id: str
    root: object
    duration_in_frames: int
    fps: int
    width: int
    height: int
    audio: tuple = ()
    background: tuple = DEFAULT_BACKGROUND

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise ConfigurationError(f"Composition id must be a non-empty string, got {self.id!r}")
        prefix = f"Composition '{self.id}'"
        require_int(self.duration_in_frames, f"{prefix} duration_in_frames", minimum=1)
        require_int(self.fps, f"{prefix} fps", minimum=1)
        require_int(self.width, f"{prefix} width", minimum=1)
        require_int(self.height, f"{prefix} height", minimum=1)
        validate_unit(self.root)

        audio = tuple(self.audio)
        for i, track in enumerate(audio):
            if not isinstance(track, AudioTrack):
                raise ConfigurationError(
                    f"{prefix}: audio {i} must be an AudioTrack, got {type(track).__name__}"
                )
        object.__setattr__(self, "audio", audio)
        object.__setattr__(self, "background", tuple(self.background))

    @property
    def duration_seconds(self) -> float:
        return self.duration_in_frames / self.fps

    def check_frame(self, frame: int) -> None:
        """Raise CompositionLookupError unless 0 <= frame < duration_in_frames."""
        if isinstance(frame, bool) or not isinstance(frame, int):
            raise CompositionLookupError(
                f"Composition '{self.id}': frame must be an integer, got {frame!r}"
            )
        if not 0 <= frame < self.duration_in_frames:
            raise CompositionLookupError(
                f"Composition '{self.id}': frame {frame} out of range "
                f"(0-{self.duration_in_frames - 1})"
            )

    def render_frame(self, frame: int) -> Node:
        """Evaluate the whole tree at *frame* into a composition Node."""
        self.check_frame(frame)
        props = {
            "width": self.width,
            "height": self.height,
            "background": self.background,
            "frame": frame,
            "fps": self.fps,
        }
        return Node("composition", props, evaluate(self.root, frame, self.fps))

    def active_audio_at(self, frame: int) -> list[ActiveAudio]:
        self.check_frame(frame)
        return active_audio_at(self.audio, frame)


class CompositionRegistry:
    """Append-only catalog of compositions, keyed by id."""

    def __init__(self):
        self._compositions: dict[str, Composition] = {}

    def register(
        self,
        id: str,
        root,
        duration_in_frames: int,
        fps: int,
        width: int,
        height: int,
        audio=(),
        background=DEFAULT_BACKGROUND,
    ) -> Composition:
        """Validate and add a composition.

        Raises:
            ConfigurationError: Duplicate id, non-positive duration/fps/size,
                or a malformed render tree / audio list.
        """
        if not isinstance(id, str) or not id:
            raise ConfigurationError(f"Composition id must be a non-empty string, got {id!r}")
        if id in self._compositions:
            raise ConfigurationError(f"Composition '{id}' is already registered")
        composition = Composition(
            id=id,
            root=root,
            duration_in_frames=duration_in_frames,
            fps=fps,
            width=width,
            height=height,
            audio=audio,
            background=background,
        )
        self._compositions[id] = composition
        return composition

    def get(self, id: str) -> Composition:
        try:
            return self._compositions[id]
        except KeyError:
            raise CompositionLookupError(
                f"Unknown composition '{id}'. Registered: {self.ids()}"
            ) from None

    def ids(self) -> list[str]:
        """Registered ids, in registration order."""
        return list(self._compositions)

    def __contains__(self, id) -> bool:
        return id in self._compositions

    def __len__(self) -> int:
        return len(self._compositions)

    def __iter__(self):
        return iter(self._compositions.values())

    def render_frame(self, composition_id: str, frame: int) -> Node:
        return self.get(composition_id).render_frame(frame)

    def active_audio_at(self, composition_id: str, frame: int) -> list[ActiveAudio]:
        return self.get(composition_id).active_audio_at(frame)
