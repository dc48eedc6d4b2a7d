"""Declarative scene graph — render units evaluated as pure functions of frame.

A render unit is one of a closed set of variants:

  - Element: a leaf visual ("box", "text", "image", "typed_text").
  - Group: an ordered composite; later children paint over earlier ones.
  - Sequence: a time window around a child (see timeline.py).

evaluate(unit, frame) walks the tree and returns plain Node values with
every animated prop resolved at that frame. Nothing is carried between
frames: evaluating frame 500 costs the same whether or not frames 0-499
were evaluated first, and frames may be computed in any order.

Animated props are small value objects with a resolve(frame, fps) method:

  SpringValue  spring progress mapped onto an output range
  Tween        InterpolationMapping applied to the local frame
  Oscillate    sin(frame * rate) mapped onto an output range (pulses, glows)
  Product      product of two props (spring scale * slow zoom)
"""

import math
from dataclasses import dataclass, field

from .errors import ConfigurationError, require_int, require_positive
from .interpolation import InterpolationMapping, SpringConfig, interpolate, spring
from .timeline import Sequence


ELEMENT_KINDS = {"box", "text", "image", "typed_text"}

# Props an element kind cannot render without.
REQUIRED_PROPS = {
    "box": (),
    "text": ("text",),
    "image": ("src",),
    "typed_text": ("text",),
}

DEFAULT_TYPING_SPEED = 1.5


# ── Animated props ───────────────────────────────────────────────


@dataclass(frozen=True)
class SpringValue:
    config: SpringConfig = SpringConfig()
    output_range: tuple = (0.0, 1.0)

    def resolve(self, frame: int, fps: int) -> float:
        progress = spring(frame, self.config, fps=fps)
        return interpolate(progress, (0.0, 1.0), self.output_range)


@dataclass(frozen=True)
class Tween:
    mapping: InterpolationMapping

    def resolve(self, frame: int, fps: int) -> float:
        return self.mapping(frame)


@dataclass(frozen=True)
class Oscillate:
    """Sine pulse: sin(frame * rate) mapped from [-1, 1] onto output_range."""

    rate: float
    output_range: tuple = (-1.0, 1.0)

    def resolve(self, frame: int, fps: int) -> float:
        return interpolate(math.sin(frame * self.rate), (-1.0, 1.0), self.output_range)


@dataclass(frozen=True)
class Product:
    first: object
    second: object

    def resolve(self, frame: int, fps: int) -> float:
        return resolve_prop(self.first, frame, fps) * resolve_prop(self.second, frame, fps)


def resolve_prop(value, frame: int, fps: int):
    """Resolve an animated prop at *frame*; constants pass through."""
    if hasattr(value, "resolve"):
        return value.resolve(frame, fps)
    return value


def resolve_props(props: dict, frame: int, fps: int) -> dict:
    return {key: resolve_prop(value, frame, fps) for key, value in props.items()}


# ── Render units ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Element:
    """Leaf visual. Props may be constants or animated values."""

    kind: str
    props: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.kind not in ELEMENT_KINDS:
            raise ConfigurationError(
                f"Unknown element kind '{self.kind}'. Valid: {sorted(ELEMENT_KINDS)}"
            )
        props = dict(self.props)
        for name in REQUIRED_PROPS[self.kind]:
            if name not in props:
                raise ConfigurationError(
                    f"{self.kind} element: missing required prop '{name}'"
                )
        if self.kind == "typed_text":
            if not isinstance(props["text"], str):
                raise ConfigurationError(
                    f"typed_text element: 'text' must be a string, got {props['text']!r}"
                )
            require_int(props.setdefault("start_frame", 0), "typed_text start_frame")
            require_positive(
                props.setdefault("speed", DEFAULT_TYPING_SPEED), "typed_text speed",
            )
        object.__setattr__(self, "props", props)


@dataclass(frozen=True)
class Group:
    """Ordered composite. Children paint in declaration order."""

    children: tuple = ()
    props: dict = field(default_factory=dict)

    def __post_init__(self):
        children = tuple(self.children)
        for i, child in enumerate(children):
            if not isinstance(child, RENDER_UNIT_TYPES):
                raise ConfigurationError(
                    f"Group child {i}: expected Element, Group or Sequence, "
                    f"got {type(child).__name__}"
                )
        object.__setattr__(self, "children", children)
        object.__setattr__(self, "props", dict(self.props))


RENDER_UNIT_TYPES = (Element, Group, Sequence)


def validate_unit(unit, path: str = "root") -> None:
    """Check that *unit* is a well-formed render tree.

    Sequence does not know about scene types, so its child is checked here.
    """
    if not isinstance(unit, RENDER_UNIT_TYPES):
        raise ConfigurationError(
            f"{path}: expected Element, Group or Sequence, got {type(unit).__name__}"
        )
    if isinstance(unit, Group):
        for i, child in enumerate(unit.children):
            validate_unit(child, f"{path}.children[{i}]")
    elif isinstance(unit, Sequence):
        validate_unit(unit.child, f"{path}.child")


def walk(unit):
    """Yield every unit in the tree, depth-first, in declaration order."""
    yield unit
    if isinstance(unit, Group):
        for child in unit.children:
            yield from walk(child)
    elif isinstance(unit, Sequence):
        yield from walk(unit.child)


# ── Rendered output ──────────────────────────────────────────────


@dataclass(frozen=True)
class Node:
    """Resolved output of one unit at one frame — plain values only."""

    kind: str
    props: dict = field(default_factory=dict)
    children: tuple = ()


def typed_visible_chars(frame: int, start_frame: int, speed: float, length: int) -> int:
    """Number of characters revealed by a typing effect at *frame*."""
    return max(0, min(math.floor((frame - start_frame) * speed), length))


def _evaluate_element(element: Element, frame: int, fps: int) -> tuple[Node, ...]:
    props = resolve_props(element.props, frame, fps)

    if element.kind == "typed_text":
        text = props["text"]
        visible = typed_visible_chars(frame, props["start_frame"], props["speed"], len(text))
        props["full_text"] = text
        props["text"] = text[:visible]
        props["visible_chars"] = visible
        props["caret"] = visible < len(text)

    return (Node(element.kind, props),)


def _evaluate_group(group: Group, frame: int, fps: int) -> tuple[Node, ...]:
    children = []
    for child in group.children:
        children.extend(evaluate(child, frame, fps))
    return (Node("group", resolve_props(group.props, frame, fps), tuple(children)),)


def _evaluate_sequence(sequence: Sequence, frame: int, fps: int) -> tuple[Node, ...]:
    local = sequence.local(frame)
    if local is None:
        return ()
    children = evaluate(sequence.child, local, fps)
    if sequence.name is None:
        return children
    # Named sequences stay visible in the output tree for debugging/inspection.
    props = {"name": sequence.name, "local_frame": local}
    return (Node("sequence", props, children),)


_EVALUATORS = {
    Element: _evaluate_element,
    Group: _evaluate_group,
    Sequence: _evaluate_sequence,
}


def evaluate(unit, frame: int, fps: int = 30) -> tuple[Node, ...]:
    """Evaluate *unit* at *frame* (the unit's local frame).

    Returns a tuple of Nodes: one for an Element or Group, and for a
    Sequence either nothing (inactive) or its child's output.
    """
    evaluator = _EVALUATORS.get(type(unit))
    if evaluator is None:
        raise ConfigurationError(
            f"Cannot evaluate {type(unit).__name__}: not a render unit"
        )
    return evaluator(unit, frame, fps)
