"""CLI for rendering a composition to mp4.

Reads a YAML manifest, validates all asset paths, renders the requested
composition frame by frame, mixes its audio, and exports as mp4.

Usage:
    # Render a whole composition
    python -m reelcompose.cli \
        --manifest promo.yaml --composition TrainerPromo --output /tmp/promo.mp4

    # Render a frame range (fast iteration on one act)
    python -m reelcompose.cli \
        --manifest promo.yaml --composition TrainerPromo --output /tmp/act2.mp4 \
        --frames 105:221

    # Validate only (no rendering)
    python -m reelcompose.cli --manifest promo.yaml --validate
"""

import argparse
import time
from pathlib import Path

from .export import export_video
from .manifest import asset_resolver, load_manifest, validate_assets


def parse_frame_range(text: str) -> tuple[int, int | None]:
    """Parse 'A:B' (end exclusive), 'A:' or ':B' into (start, end)."""
    if ":" not in text:
        raise ValueError(f"Frame range must look like START:END, got '{text}'")
    start_text, end_text = text.split(":", 1)
    start = int(start_text) if start_text else 0
    end = int(end_text) if end_text else None
    return start, end


def default_asset_root(manifest_path: str, asset_root: str | None) -> str:
    """Relative asset refs resolve against --asset-root, else the manifest's folder."""
    if asset_root:
        return asset_root
    return str(Path(manifest_path).resolve().parent)


def validate(manifest_path: str, asset_root: str | None = None) -> None:
    """Load a manifest, check its assets, and print a summary."""
    registry = load_manifest(manifest_path)
    resolve_asset = asset_resolver(default_asset_root(manifest_path, asset_root))
    validate_assets(registry, resolve_asset)
    print(f"Manifest valid: {len(registry)} composition(s)")
    for composition in registry:
        print(
            f"  {composition.id}: {composition.duration_in_frames} frames "
            f"@ {composition.fps}fps ({composition.duration_seconds:.1f}s), "
            f"{composition.width}x{composition.height}, "
            f"{len(composition.audio)} audio track(s)"
        )
    print("All assets verified.")


def render(
    manifest_path: str,
    composition_id: str,
    output_path: str,
    frames: tuple[int, int | None] | None = None,
    asset_root: str | None = None,
    quiet: bool = False,
) -> None:
    """Load manifest, validate assets, render one composition to mp4."""
    registry = load_manifest(manifest_path)
    resolve_asset = asset_resolver(default_asset_root(manifest_path, asset_root))
    validate_assets(registry, resolve_asset)

    composition = registry.get(composition_id)
    start, end = frames or (0, None)
    end = composition.duration_in_frames if end is None else end

    print(
        f"Rendering {composition.id}: frames {start}-{end - 1} "
        f"({(end - start) / composition.fps:.1f}s)"
    )
    print(f"Resolution: {composition.width}x{composition.height}, {composition.fps}fps")
    print(f"Writing to: {output_path}")
    t0 = time.monotonic()
    export_video(
        composition, output_path, start=start, end=end,
        resolve_asset=resolve_asset, quiet=quiet,
    )
    print(f"\nDone: {output_path} ({time.monotonic() - t0:.1f}s wall)")


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render a composition from a YAML manifest to mp4.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML manifest file",
    )
    parser.add_argument(
        "--composition",
        help="Composition id to render",
    )
    parser.add_argument(
        "--output",
        help="Output mp4 path",
    )
    parser.add_argument(
        "--frames", default=None,
        help="Frame range START:END (end exclusive) to render",
    )
    parser.add_argument(
        "--asset-root", default=None,
        help="Directory for relative asset refs (default: manifest folder)",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress the moviepy progress bar",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only: check assets, don't render",
    )
    args = parser.parse_args(args)

    if args.validate:
        validate(args.manifest, args.asset_root)
        return

    if not args.composition or not args.output:
        parser.error("--composition and --output are required (unless using --validate)")

    frames = None
    if args.frames:
        try:
            frames = parse_frame_range(args.frames)
        except ValueError as e:
            parser.error(str(e))

    render(
        args.manifest, args.composition, args.output,
        frames=frames,
        asset_root=args.asset_root,
        quiet=args.quiet,
    )


if __name__ == "__main__":
    main()
