"""Subcommand dispatcher for reelcompose.

Usage:
    reelcompose validate --manifest ...
    reelcompose render   --manifest ... --composition ... --output out.mp4
    reelcompose still    --manifest ... --composition ... --frame 0 --output stills/
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="reelcompose",
        description="Frame-indexed animated composition: validate, render, stills.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("validate", help="Validate a manifest and its assets")
    subparsers.add_parser("render", help="Render a composition to mp4")
    subparsers.add_parser("still", help="Render still frames to PNG")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        # No subcommand given at all: show help and exit with error.
        parser.print_help()
        sys.exit(1)

    if parsed.command == "validate":
        from .cli import main as render_main
        render_main(["--validate", *remaining])
    elif parsed.command == "render":
        from .cli import main as render_main
        render_main(remaining)
    elif parsed.command == "still":
        from .still_cli import main as still_main
        still_main(remaining)


if __name__ == "__main__":
    main()
