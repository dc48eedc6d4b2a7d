"""CLI for rendering still frames to PNG.

Every frame is independent, so stills can be rendered in parallel worker
processes in any order and the files come out identical to a sequential
run.

Usage:
    # A few frames of one composition
    python -m reelcompose.still_cli \
        --manifest promo.yaml --composition TrainerPromo \
        --frame 0 --frame 110 --frame 839 --output /tmp/stills/

    # Every 30th frame, 4 workers
    python -m reelcompose.still_cli \
        --manifest promo.yaml --composition TrainerPromo \
        --every 30 --output /tmp/stills/ --workers 4
"""

import argparse
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from functools import lru_cache
from pathlib import Path

from .cli import default_asset_root
from .export import render_still, save_still, still_filename
from .manifest import asset_resolver, load_manifest, validate_assets


@lru_cache(maxsize=4)
def _cached_registry(manifest_path: str):
    """One manifest load per worker process, reused across its frames."""
    return load_manifest(manifest_path)


def _render_still_one(args):
    """Worker function for parallel rendering.

    Takes a single tuple so it works with ProcessPoolExecutor.submit().
    Each worker loads the manifest itself; only plain values cross the
    process boundary.
    """
    manifest_path, composition_id, frame, output_path, asset_root = args
    composition = _cached_registry(manifest_path).get(composition_id)
    array = render_still(composition, frame, asset_resolver(asset_root))
    save_still(array, output_path)
    return frame, output_path


def render_stills(
    manifest_path: str,
    composition_id: str,
    frames: list[int],
    output_dir: str,
    workers: int = 1,
    asset_root: str | None = None,
) -> list[str]:
    """Render the given frames of a composition to PNGs in output_dir.

    Args:
        manifest_path: Path to YAML manifest.
        composition_id: Composition to render.
        frames: Frame numbers; each must be inside the composition.
        output_dir: Directory for <id>-<frame>.png files.
        workers: 1 = sequential, >1 = parallel via ProcessPoolExecutor.
        asset_root: Directory for relative asset refs.

    Returns:
        Output paths, in the order of *frames*.
    """
    manifest_path = str(Path(manifest_path).resolve())
    registry = _cached_registry(manifest_path)
    asset_root = default_asset_root(manifest_path, asset_root)
    validate_assets(registry, asset_resolver(asset_root))

    composition = registry.get(composition_id)
    # Fail before spawning workers if any frame is out of range.
    for frame in frames:
        composition.check_frame(frame)

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    work = [
        (manifest_path, composition_id, frame,
         str(out_dir / still_filename(composition_id, frame)), asset_root)
        for frame in frames
    ]

    effective_workers = min(workers, len(work))
    t_start = time.monotonic()

    if effective_workers <= 1:
        print(f"Rendering {len(work)} frame(s) of {composition_id} to {out_dir}/\n")
        for item in work:
            frame, path = _render_still_one(item)
            print(f"  DONE   frame {frame} → {path}", flush=True)
    else:
        print(
            f"Rendering {len(work)} frame(s) of {composition_id} to {out_dir}/ "
            f"({effective_workers} workers)\n"
        )
        with ProcessPoolExecutor(max_workers=effective_workers) as pool:
            futures = {pool.submit(_render_still_one, item): item[2] for item in work}
            for future in as_completed(futures):
                frame, path = future.result()  # propagate exceptions
                print(f"  DONE   frame {frame} → {path}", flush=True)

    total_wall = time.monotonic() - t_start
    print(f"\nDone: {len(work)} frame(s) in {total_wall:.1f}s")
    return [item[3] for item in work]


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render still frames of a composition to PNG.",
    )
    parser.add_argument("--manifest", required=True, help="Path to YAML manifest file")
    parser.add_argument("--composition", required=True, help="Composition id")
    parser.add_argument("--output", required=True, help="Output directory")
    parser.add_argument(
        "--frame", type=int, action="append", default=[],
        help="Frame number to render (repeatable)",
    )
    parser.add_argument(
        "--every", type=int, default=None,
        help="Render every Nth frame of the composition",
    )
    parser.add_argument(
        "--workers", type=int, default=1,
        help="Number of parallel workers (default: 1)",
    )
    parser.add_argument(
        "--asset-root", default=None,
        help="Directory for relative asset refs (default: manifest folder)",
    )
    args = parser.parse_args(args)

    if not args.frame and args.every is None:
        parser.error("give at least one --frame, or --every N")
    if args.every is not None and args.every <= 0:
        parser.error("--every must be > 0")

    frames = list(args.frame)
    if args.every is not None:
        composition = _cached_registry(str(Path(args.manifest).resolve())).get(args.composition)
        frames.extend(range(0, composition.duration_in_frames, args.every))

    render_stills(
        args.manifest, args.composition, frames, args.output,
        workers=args.workers, asset_root=args.asset_root,
    )


if __name__ == "__main__":
    main()
