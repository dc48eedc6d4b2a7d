"""Error taxonomy for reelcompose.

ConfigurationError is raised eagerly while building value objects or
loading a manifest. CompositionLookupError is raised at the render entry
points (unknown id, frame outside the composition).
"""


class ConfigurationError(ValueError):
    """Invalid animation, timeline, audio or composition configuration."""


class CompositionLookupError(LookupError):
    """Unknown composition id, or a frame outside its duration."""


# ── Validation helpers ────────────────────────────────────────────


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def require_int(value, name: str, minimum: int = 0) -> int:
    """Return *value* if it is an int >= minimum, else raise ConfigurationError."""
    if not _is_int(value) or value < minimum:
        raise ConfigurationError(
            f"{name} must be an integer >= {minimum}, got {value!r}"
        )
    return value


def require_positive(value, name: str) -> float:
    """Return *value* if it is a real number > 0, else raise ConfigurationError."""
    if not _is_number(value) or not value > 0:
        raise ConfigurationError(f"{name} must be > 0, got {value!r}")
    return value
