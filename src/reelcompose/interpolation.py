"""Interpolation engine — frame-derived scalars mapped to output ranges.

Two families of pure functions drive every visible motion:

  - interpolate(): piecewise-linear mapping from an input domain to an
    output range, with per-side extrapolation ("clamp", "extend",
    "identity") and an optional easing applied inside each segment.
  - spring(): closed-form damped harmonic oscillator released from rest,
    settling from 0 to 1 (or from_value to to_value).

Nothing here keeps state. Identical arguments always produce identical
results, so any frame can be computed in isolation.

Usage:
    opacity = interpolate(frame, [90, 105], [1, 0],
                          extrapolate_left="clamp", extrapolate_right="clamp")
    enter = spring(frame, SpringConfig(damping=14, delay_frames=8), fps=30)
    y = interpolate(enter, [0, 1], [15, 0])
"""

import math
from bisect import bisect_right
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable

from .errors import ConfigurationError, require_int, require_positive


VALID_EXTRAPOLATIONS = {"clamp", "extend", "identity"}


# ── Easing curves ────────────────────────────────────────────────
# Applied to the normalized progress u inside one interpolation segment.


def linear(u: float) -> float:
    return u


def ease_in(u: float) -> float:
    return u * u


def ease_out(u: float) -> float:
    return 1.0 - (1.0 - u) * (1.0 - u)


def ease_in_out(u: float) -> float:
    return u * u * (3.0 - 2.0 * u)


EASINGS = {
    "linear": linear,
    "ease-in": ease_in,
    "ease-out": ease_out,
    "ease-in-out": ease_in_out,
}


# ── Linear interpolation ─────────────────────────────────────────


def _validate_mapping(input_range, output_range, extrapolate_left, extrapolate_right):
    """Fail fast on malformed domains, ranges and extrapolation modes."""
    if len(input_range) < 2:
        raise ConfigurationError(
            f"input_range needs at least 2 points, got {len(input_range)}"
        )
    if len(input_range) != len(output_range):
        raise ConfigurationError(
            f"input_range and output_range must have the same length "
            f"({len(input_range)} != {len(output_range)})"
        )
    for i in range(1, len(input_range)):
        if not input_range[i] > input_range[i - 1]:
            raise ConfigurationError(
                f"input_range must be strictly increasing, got {list(input_range)!r}"
            )
    for side, mode in (("extrapolate_left", extrapolate_left),
                       ("extrapolate_right", extrapolate_right)):
        if mode not in VALID_EXTRAPOLATIONS:
            raise ConfigurationError(
                f"Invalid {side} '{mode}'. Valid: {sorted(VALID_EXTRAPOLATIONS)}"
            )


def _interpolate(x, input_range, output_range, extrapolate_left,
                 extrapolate_right, easing):
    n = len(input_range)
    # Bracketing segment: the last segment whose start is <= x, bounded to
    # the first/last segment when x lies outside the domain.
    i = min(max(bisect_right(input_range, x) - 1, 0), n - 2)
    lo_in, hi_in = input_range[i], input_range[i + 1]
    lo_out, hi_out = output_range[i], output_range[i + 1]

    if x < lo_in:
        if extrapolate_left == "clamp":
            return lo_out
        if extrapolate_left == "identity":
            return x
    elif x > hi_in:
        if extrapolate_right == "clamp":
            return hi_out
        if extrapolate_right == "identity":
            return x

    u = (x - lo_in) / (hi_in - lo_in)
    if easing is not None:
        u = easing(u)
    # Weighted form keeps domain points exact: u=0 -> lo_out, u=1 -> hi_out.
    return lo_out * (1.0 - u) + hi_out * u


def interpolate(
    x: float,
    input_range,
    output_range,
    extrapolate_left: str = "extend",
    extrapolate_right: str = "extend",
    easing: Callable[[float], float] | None = None,
) -> float:
    """Map x from input_range onto output_range, piecewise-linearly.

    Args:
        x: Input value (usually a frame number or a spring progress).
        input_range: Strictly increasing domain points (>= 2).
        output_range: Output values, same length as input_range.
        extrapolate_left: Policy below the first domain point.
        extrapolate_right: Policy above the last domain point.
        easing: Optional curve applied to the in-segment progress.

    Returns:
        The mapped value.

    Raises:
        ConfigurationError: Malformed ranges or unknown extrapolation mode.
    """
    _validate_mapping(input_range, output_range, extrapolate_left, extrapolate_right)
    return _interpolate(
        x, input_range, output_range, extrapolate_left, extrapolate_right, easing,
    )


@dataclass(frozen=True)
class InterpolationMapping:
    """A validated interpolate() configuration that can be called with x."""

    input_range: tuple
    output_range: tuple
    extrapolate_left: str = "extend"
    extrapolate_right: str = "extend"
    easing: Callable[[float], float] | None = None

    def __post_init__(self):
        object.__setattr__(self, "input_range", tuple(self.input_range))
        object.__setattr__(self, "output_range", tuple(self.output_range))
        _validate_mapping(
            self.input_range, self.output_range,
            self.extrapolate_left, self.extrapolate_right,
        )

    def __call__(self, x: float) -> float:
        return _interpolate(
            x, self.input_range, self.output_range,
            self.extrapolate_left, self.extrapolate_right, self.easing,
        )


# ── Spring easing ────────────────────────────────────────────────


@dataclass(frozen=True)
class SpringConfig:
    """Physical parameters of a spring released from rest.

    damping: friction coefficient c. Higher = less overshoot.
    mass: m. Higher = slower settling.
    stiffness: k. Higher = faster, snappier motion.
    delay_frames: frames to hold at the start value before release.
    overshoot_clamping: never pass the target value.
    """

    damping: float = 10.0
    mass: float = 1.0
    delay_frames: int = 0
    stiffness: float = 100.0
    overshoot_clamping: bool = False

    def __post_init__(self):
        require_positive(self.damping, "damping")
        require_positive(self.mass, "mass")
        require_positive(self.stiffness, "stiffness")
        require_int(self.delay_frames, "delay_frames")

    @property
    def natural_frequency(self) -> float:
        """Undamped angular frequency omega0 = sqrt(k / m), in rad/s."""
        return math.sqrt(self.stiffness / self.mass)

    @property
    def damping_ratio(self) -> float:
        """zeta = c / (2 * sqrt(k * m)). < 1 bounces, >= 1 does not."""
        return self.damping / (2.0 * math.sqrt(self.stiffness * self.mass))


def _displacement(config: SpringConfig, seconds: float) -> float:
    """Remaining distance to equilibrium, starting at 1 with zero velocity."""
    omega0 = config.natural_frequency
    zeta = config.damping_ratio

    if math.isclose(zeta, 1.0, rel_tol=1e-9):
        return math.exp(-omega0 * seconds) * (1.0 + omega0 * seconds)

    if zeta < 1.0:
        omega_d = omega0 * math.sqrt(1.0 - zeta * zeta)
        envelope = math.exp(-zeta * omega0 * seconds)
        return envelope * (
            math.cos(omega_d * seconds)
            + (zeta * omega0 / omega_d) * math.sin(omega_d * seconds)
        )

    # Over-damped: sum of two decaying exponentials with d(0)=1, d'(0)=0.
    root = math.sqrt(zeta * zeta - 1.0)
    r1 = -omega0 / (zeta + root)
    r2 = -omega0 * (zeta + root)
    c1 = r2 / (r2 - r1)
    c2 = -r1 / (r2 - r1)
    return c1 * math.exp(r1 * seconds) + c2 * math.exp(r2 * seconds)


def _displacement_bound(config: SpringConfig, seconds: float) -> float:
    """Monotonically decreasing upper bound of |displacement| at t >= 0."""
    zeta = config.damping_ratio
    if zeta < 1.0 and not math.isclose(zeta, 1.0, rel_tol=1e-9):
        omega0 = config.natural_frequency
        omega_d = omega0 * math.sqrt(1.0 - zeta * zeta)
        amplitude = math.sqrt(1.0 + (zeta * omega0 / omega_d) ** 2)
        return amplitude * math.exp(-zeta * omega0 * seconds)
    # Critically and over-damped curves approach from one side, monotonically.
    return _displacement(config, seconds)


def _first_settled_frame(config: SpringConfig, fps: int, threshold: float) -> int:
    """First frame within threshold, for curves that approach 1 monotonically."""
    hi = 1
    while _displacement(config, hi / fps) >= threshold:
        hi *= 2
    lo = hi // 2
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if _displacement(config, mid / fps) >= threshold:
            lo = mid
        else:
            hi = mid
    return hi


@lru_cache(maxsize=256)
def measure_spring(
    config: SpringConfig, fps: int = 30, threshold: float = 0.005,
) -> int:
    """Frames (after the delay) until the spring stays within threshold of 1.

    Every frame at or beyond the returned count is within threshold of the
    target. Used to bound settle time and to stretch springs to a fixed
    duration. Memoized per (config, fps, threshold).
    """
    require_positive(fps, "fps")
    if not 0 < threshold < 1:
        raise ConfigurationError(f"threshold must be in (0, 1), got {threshold!r}")

    zeta = config.damping_ratio
    if zeta >= 1.0 or math.isclose(zeta, 1.0, rel_tol=1e-9):
        return _first_settled_frame(config, fps, threshold)

    frame = 0
    last_outside = 0
    while _displacement_bound(config, frame / fps) >= threshold:
        if abs(_displacement(config, frame / fps)) >= threshold:
            last_outside = frame
        frame += 1
    return last_outside + 1


def spring(
    frame: float,
    config: SpringConfig = SpringConfig(),
    fps: int = 30,
    from_value: float = 0.0,
    to_value: float = 1.0,
    duration_in_frames: int | None = None,
) -> float:
    """Spring progress at *frame*, settling from from_value to to_value.

    The spring holds at from_value until config.delay_frames, then is
    released from rest. Time runs in seconds (frame / fps), so the same
    config produces the same motion at any frame rate.

    Args:
        frame: Local frame of the animated unit.
        config: Physical parameters and delay.
        fps: Frames per second of the composition.
        from_value: Value before release.
        to_value: Equilibrium value.
        duration_in_frames: If set, the curve is stretched so that it
            settles in exactly this many frames.

    Returns:
        The spring value. May overshoot to_value unless
        config.overshoot_clamping is set.
    """
    require_positive(fps, "fps")
    t = frame - config.delay_frames
    if t < 0:
        return from_value

    if duration_in_frames is not None:
        require_int(duration_in_frames, "duration_in_frames", minimum=1)
        t = t * measure_spring(config, fps) / duration_in_frames

    progress = 1.0 - _displacement(config, t / fps)
    value = from_value + (to_value - from_value) * progress

    if config.overshoot_clamping:
        if to_value >= from_value:
            value = min(value, to_value)
        else:
            value = max(value, to_value)
    return value
