"""Manifest loader — YAML compositions into a CompositionRegistry.

Parses YAML manifests, resolves ${path} variables, converts hex colors
to RGB tuples, builds render trees and audio tracks, and registers every
composition. All validation happens here, at load time; a manifest that
loads cleanly can render any frame in range.

Manifest schema:
  paths:
    assets: "/path/to/assets"
  colors:
    gold: "#ffab01"
  compositions:
    - id: Promo
      fps: 30
      duration_in_frames: 840
      width: 1080
      height: 1080
      background: "#0a0a0f"
      root:
        type: group
        children:
          - type: sequence
            from: 0
            duration: 106
            child:
              type: element
              kind: text
              text: "INTRODUCING"
              color: gold
              opacity: {spring: {damping: 14, delay: 8}}
      audio:
        - src: "${assets}/theme.mp3"
          start_frame: 0
          duration_frames: 840
          trim_start_frames: 600
          volume: 0.15

Unit types: element (kind + props), group (children + props), sequence
(from, duration, child, optional name), series (items of child +
duration + optional overlap, laid back-to-back).

Animated props are single-key dicts:
  {spring: {damping, mass, stiffness, delay, overshoot_clamping, output}}
  {tween: {input, output, extrapolate_left, extrapolate_right, easing}}
  {oscillate: {rate, output}}
  {product: [prop, prop]}
"""

from pathlib import Path

import yaml

from .audio import AudioTrack
from .common import resolve_color, resolve_path_vars
from .errors import ConfigurationError
from .interpolation import EASINGS, InterpolationMapping, SpringConfig
from .registry import CompositionRegistry
from .scene import Element, Group, Oscillate, Product, SpringValue, Tween, walk
from .timeline import Sequence, series


# ── Valid names ───────────────────────────────────────────────────

VALID_UNIT_TYPES = {"element", "group", "sequence", "series"}

ANIMATION_KEYS = {"spring", "tween", "oscillate", "product"}

COLOR_PROPS = {"color", "background", "caret_color"}

SPRING_FIELDS = {"damping", "mass", "stiffness", "delay", "overshoot_clamping", "output"}

REQUIRED_COMPOSITION_FIELDS = ("id", "fps", "duration_in_frames", "width", "height", "root")


# ── Manifest loading ──────────────────────────────────────────────


def load_manifest(manifest_path: str | Path) -> CompositionRegistry:
    """Load, validate, and register every composition in a manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Parse all colors.* hex strings to RGB tuples.
      3. Resolve ${path} variables in all composition string values.
      4. Build render trees (units, animated props) and audio tracks.
      5. Register compositions (duplicate ids and bad metadata rejected).

    Args:
        manifest_path: Path to the YAML manifest file.

    Returns:
        CompositionRegistry holding every composition, in manifest order.

    Raises:
        ConfigurationError: Malformed manifest, prefixed with its location.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigurationError("Manifest: top level must be a mapping")

    paths = raw.get("paths", {})

    # Colors: parse all hex strings to RGB tuples.
    colors = {}
    for key, value in raw.get("colors", {}).items():
        if isinstance(value, str):
            colors[key] = _parse_color(value, {}, f"colors.{key}")
        elif isinstance(value, list):
            colors[key] = tuple(value)
        else:
            colors[key] = value

    compositions = raw.get("compositions")
    if not isinstance(compositions, list) or not compositions:
        raise ConfigurationError("Manifest: 'compositions' must be a non-empty list")

    registry = CompositionRegistry()
    for i, entry in enumerate(compositions):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Composition {i}: must be a mapping")
        prefix = f"Composition {i} ({entry.get('id', '?')})"
        for name in REQUIRED_COMPOSITION_FIELDS:
            if name not in entry:
                raise ConfigurationError(f"{prefix}: missing required field '{name}'")

        resolved = _resolve_strings(entry, paths, prefix)
        root = _parse_unit(resolved["root"], colors, f"{prefix}, root")
        audio = [
            _parse_audio(track, f"{prefix}, audio {j}")
            for j, track in enumerate(resolved.get("audio", []))
        ]
        background = _parse_color(resolved.get("background", "#000000"), colors, prefix)

        try:
            registry.register(
                resolved["id"],
                root,
                duration_in_frames=resolved["duration_in_frames"],
                fps=resolved["fps"],
                width=resolved["width"],
                height=resolved["height"],
                audio=audio,
                background=background,
            )
        except ConfigurationError as e:
            raise ConfigurationError(f"{prefix}: {e}") from None

    return registry


def _resolve_strings(obj, paths: dict, prefix: str):
    """Recursively resolve ${var} in all string values."""
    if isinstance(obj, str):
        try:
            return resolve_path_vars(obj, paths)
        except ValueError as e:
            raise ConfigurationError(f"{prefix}: {e}") from None
    elif isinstance(obj, dict):
        return {k: _resolve_strings(v, paths, prefix) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_resolve_strings(item, paths, prefix) for item in obj]
    return obj


def _parse_color(value, colors: dict, prefix: str) -> tuple[int, int, int]:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    if not isinstance(value, str):
        raise ConfigurationError(f"{prefix}: color must be a string, got {value!r}")
    try:
        return resolve_color(value, colors)
    except ValueError as e:
        raise ConfigurationError(f"{prefix}: {e}") from None


# ── Render units ──────────────────────────────────────────────────


def _parse_unit(obj, colors: dict, prefix: str):
    """Build an Element, Group or Sequence from a unit dict."""
    if not isinstance(obj, dict):
        raise ConfigurationError(f"{prefix}: unit must be a mapping")
    unit_type = obj.get("type")
    if unit_type not in VALID_UNIT_TYPES:
        raise ConfigurationError(
            f"{prefix}: unknown unit type '{unit_type}'. "
            f"Valid: {sorted(VALID_UNIT_TYPES)}"
        )

    try:
        if unit_type == "element":
            return _parse_element(obj, colors, prefix)
        if unit_type == "group":
            return _parse_group(obj, colors, prefix)
        if unit_type == "sequence":
            return _parse_sequence(obj, colors, prefix)
        return _parse_series(obj, colors, prefix)
    except ConfigurationError as e:
        # Nested errors already carry their own location.
        if str(e).startswith(prefix):
            raise
        raise ConfigurationError(f"{prefix}: {e}") from None


def _parse_props(obj: dict, reserved: set, colors: dict, prefix: str) -> dict:
    return {
        key: _parse_prop(key, value, colors, f"{prefix}.{key}")
        for key, value in obj.items()
        if key not in reserved
    }


def _parse_element(obj: dict, colors: dict, prefix: str) -> Element:
    if "kind" not in obj:
        raise ConfigurationError(f"{prefix}: element missing required field 'kind'")
    props = _parse_props(obj, {"type", "kind"}, colors, prefix)
    return Element(obj["kind"], props)


def _parse_group(obj: dict, colors: dict, prefix: str) -> Group:
    children = obj.get("children", [])
    if not isinstance(children, list):
        raise ConfigurationError(f"{prefix}: 'children' must be a list")
    units = [
        _parse_unit(child, colors, f"{prefix}.children[{i}]")
        for i, child in enumerate(children)
    ]
    props = _parse_props(obj, {"type", "children"}, colors, prefix)
    return Group(units, props)


def _parse_sequence(obj: dict, colors: dict, prefix: str) -> Sequence:
    for name in ("duration", "child"):
        if name not in obj:
            raise ConfigurationError(f"{prefix}: sequence missing required field '{name}'")
    child = _parse_unit(obj["child"], colors, f"{prefix}.child")
    return Sequence(obj.get("from", 0), obj["duration"], child, name=obj.get("name"))


def _parse_series(obj: dict, colors: dict, prefix: str) -> Group:
    items = obj.get("items")
    if not isinstance(items, list) or not items:
        raise ConfigurationError(f"{prefix}: series needs a non-empty 'items' list")
    entries = []
    for i, item in enumerate(items):
        item_prefix = f"{prefix}.items[{i}]"
        if not isinstance(item, dict) or "child" not in item or "duration" not in item:
            raise ConfigurationError(f"{item_prefix}: needs 'child' and 'duration'")
        child = _parse_unit(item["child"], colors, f"{item_prefix}.child")
        entries.append((child, item["duration"], item.get("overlap", 0)))
    return Group(series(entries, start=obj.get("start", 0)))


# ── Props ─────────────────────────────────────────────────────────


def _parse_prop(key: str, value, colors: dict, prefix: str):
    """Constant, color reference, or single-key animation dict."""
    if isinstance(value, dict):
        try:
            return _parse_animation(value, prefix)
        except ConfigurationError as e:
            if str(e).startswith(prefix):
                raise
            raise ConfigurationError(f"{prefix}: {e}") from None
    if key in COLOR_PROPS and isinstance(value, str):
        return _parse_color(value, colors, prefix)
    if key in COLOR_PROPS and isinstance(value, list):
        return tuple(value)
    return value


def _parse_animation(value: dict, prefix: str):
    keys = set(value) & ANIMATION_KEYS
    if len(value) != 1 or not keys:
        raise ConfigurationError(
            f"{prefix}: animated prop must have exactly one of "
            f"{sorted(ANIMATION_KEYS)}, got {sorted(value)}"
        )
    (name, spec), = value.items()

    if name == "product":
        if not isinstance(spec, list) or len(spec) != 2:
            raise ConfigurationError(f"{prefix}: product needs a list of 2 props")
        return Product(
            _parse_prop("", spec[0], {}, f"{prefix}.product[0]"),
            _parse_prop("", spec[1], {}, f"{prefix}.product[1]"),
        )

    spec = spec or {}
    if not isinstance(spec, dict):
        raise ConfigurationError(f"{prefix}: {name} settings must be a mapping")

    if name == "spring":
        unknown = set(spec) - SPRING_FIELDS
        if unknown:
            raise ConfigurationError(
                f"{prefix}: unknown spring field(s) {sorted(unknown)}. "
                f"Valid: {sorted(SPRING_FIELDS)}"
            )
        config = SpringConfig(
            damping=spec.get("damping", 10.0),
            mass=spec.get("mass", 1.0),
            delay_frames=spec.get("delay", 0),
            stiffness=spec.get("stiffness", 100.0),
            overshoot_clamping=spec.get("overshoot_clamping", False),
        )
        return SpringValue(config, tuple(spec.get("output", (0.0, 1.0))))

    if name == "tween":
        for field_name in ("input", "output"):
            if field_name not in spec:
                raise ConfigurationError(f"{prefix}: tween missing '{field_name}'")
        easing_name = spec.get("easing", "linear")
        if easing_name not in EASINGS:
            raise ConfigurationError(
                f"{prefix}: unknown easing '{easing_name}'. Valid: {sorted(EASINGS)}"
            )
        mapping = InterpolationMapping(
            spec["input"],
            spec["output"],
            extrapolate_left=spec.get("extrapolate_left", "extend"),
            extrapolate_right=spec.get("extrapolate_right", "extend"),
            easing=EASINGS[easing_name],
        )
        return Tween(mapping)

    if "rate" not in spec:
        raise ConfigurationError(f"{prefix}: oscillate missing 'rate'")
    return Oscillate(spec["rate"], tuple(spec.get("output", (-1.0, 1.0))))


# ── Audio ─────────────────────────────────────────────────────────


def _parse_audio(track, prefix: str) -> AudioTrack:
    if not isinstance(track, dict):
        raise ConfigurationError(f"{prefix}: audio track must be a mapping")
    for name in ("src", "start_frame", "duration_frames"):
        if name not in track:
            raise ConfigurationError(f"{prefix}: missing required field '{name}'")
    try:
        return AudioTrack(
            src=track["src"],
            start_frame=track["start_frame"],
            duration_frames=track["duration_frames"],
            trim_start_frames=track.get("trim_start_frames", 0),
            volume=track.get("volume", 1.0),
        )
    except ConfigurationError as e:
        raise ConfigurationError(f"{prefix}: {e}") from None


# ── Asset validation ──────────────────────────────────────────────


def asset_paths(registry: CompositionRegistry) -> list[str]:
    """Every image and audio asset referenced by the registry, deduplicated."""
    seen = []
    for composition in registry:
        for unit in walk(composition.root):
            if isinstance(unit, Element) and unit.kind == "image":
                src = unit.props["src"]
                if src not in seen:
                    seen.append(src)
        for track in composition.audio:
            if track.src not in seen:
                seen.append(track.src)
    return seen


def asset_resolver(asset_root: str | Path | None):
    """Map asset refs to paths: relative refs are joined onto *asset_root*."""
    if asset_root is None:
        return str

    def resolve(src: str) -> str:
        return str(Path(asset_root) / src)

    return resolve


def validate_assets(registry: CompositionRegistry, resolve_asset=None) -> None:
    """Check that every referenced asset exists on disk.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    resolve_asset = resolve_asset or str
    missing = [
        p for p in map(resolve_asset, asset_paths(registry)) if not Path(p).exists()
    ]

    if missing:
        msg = f"Missing {len(missing)} asset file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)
