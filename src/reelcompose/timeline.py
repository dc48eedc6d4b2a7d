"""Frame clock and sequencing — global frames resolved into local frames.

A Sequence places a child unit on its parent's frame axis inside the
active window [offset, offset + duration). Inside the window the child
sees local frame = parent frame - offset, so it always starts counting
at 0. Outside the window the child is absent from the frame entirely.

Sequences nest: each level subtracts its own offset from the frame its
parent hands it. Overlapping siblings are legal and evaluated
independently, in declaration order.
"""

from dataclasses import dataclass

from .errors import ConfigurationError, require_int


def local_frame(frame: int, offset: int) -> int:
    """Frame number as seen by a child placed at *offset*."""
    return frame - offset


def is_active(frame: int, offset: int, duration: int) -> bool:
    """True iff *frame* falls inside the window [offset, offset + duration)."""
    return 0 <= frame - offset < duration


@dataclass(frozen=True)
class Sequence:
    """Time window wrapping a child render unit.

    offset: first parent frame on which the child is active.
    duration: number of frames the child stays active.
    child: the wrapped render unit.
    name: optional label, carried into the rendered node.
    """

    offset: int
    duration: int
    child: object
    name: str | None = None

    def __post_init__(self):
        require_int(self.offset, "Sequence offset")
        require_int(self.duration, "Sequence duration", minimum=1)

    @property
    def end(self) -> int:
        """First parent frame after the window."""
        return self.offset + self.duration

    def contains(self, frame: int) -> bool:
        return is_active(frame, self.offset, self.duration)

    def local(self, frame: int) -> int | None:
        """Child-local frame, or None when *frame* is outside the window."""
        if not self.contains(frame):
            return None
        return local_frame(frame, self.offset)


def series(items, start: int = 0) -> tuple[Sequence, ...]:
    """Lay units back-to-back on a timeline.

    Each item is (unit, duration) or (unit, duration, overlap). A running
    cursor starts at *start*; every unit is placed at the cursor, then the
    cursor advances by its duration minus the overlap, so a positive
    overlap pulls the next unit in while this one is still showing.

    Args:
        items: Iterable of (unit, duration[, overlap]) tuples.
        start: Frame at which the first unit begins.

    Returns:
        Tuple of Sequences in declaration order.

    Raises:
        ConfigurationError: Bad durations or an overlap >= duration.
    """
    require_int(start, "series start")
    sequences = []
    cursor = start

    for i, item in enumerate(items):
        if len(item) == 2:
            unit, duration = item
            overlap = 0
        elif len(item) == 3:
            unit, duration, overlap = item
        else:
            raise ConfigurationError(
                f"series item {i}: expected (unit, duration[, overlap]), "
                f"got {len(item)} values"
            )
        require_int(duration, f"series item {i} duration", minimum=1)
        require_int(overlap, f"series item {i} overlap")
        if overlap >= duration:
            raise ConfigurationError(
                f"series item {i}: overlap ({overlap}) must be shorter than "
                f"duration ({duration})"
            )

        sequences.append(Sequence(cursor, duration, unit))
        cursor += duration - overlap

    return tuple(sequences)
