"""
plinthctl CLI - Plinth platform control.

Pacman-style interface for driving component lifecycle operations.

Usage:
    plinthctl --init                 Write a default config file
    plinthctl -S                     Start: scan origins and reconcile
    plinthctl -A <code>...           Activate components
    plinthctl -D <code>...           Disable components
    plinthctl -R <code>...           Remove components
"""

import argparse
import logging
import sys
from pathlib import Path

from plinth.config import DEFAULT_CONFIG_FILE
from plinth.errors import PlinthError


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="plinthctl",
        description="Plinth platform control - component lifecycle operations",
        add_help=False,
    )

    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("--init", action="store_true", help="Write default config")
    ops.add_argument("-S", "--start", action="store_true", help="Scan and reconcile")
    ops.add_argument("-A", "--activate", action="store_true", help="Activate components")
    ops.add_argument("-D", "--disable", action="store_true", help="Disable components")
    ops.add_argument("-R", "--remove", action="store_true", help="Remove components")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_FILE,
        help="Platform config file",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    parser.add_argument("targets", nargs="*", help="Component codes")

    return parser


def print_help():
    """Print help message."""
    help_text = """
plinthctl - Plinth platform control

Usage:
    plinthctl --init                 Write a default config file
    plinthctl -S                     Start: scan origins and reconcile
    plinthctl -A <code>...           Activate components
    plinthctl -D <code>...           Disable components
    plinthctl -R <code>...           Remove components

Options:
    -c, --config <file>              Platform config (default: config/plinth.toml)
    -v, --verbose                    Verbose output
    -h, --help                       Show this help
"""
    print(help_text.strip())


def main(argv: list[str] | None = None) -> int:
    """Main entry point for plinthctl CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.help or not (
            args.init or args.start or args.activate or args.disable or args.remove
        ):
            print_help()
            return 0

        if args.init:
            from plinthctl.commands.lifecycle import init_command

            return init_command(args)

        if args.start:
            from plinthctl.commands.lifecycle import start_command

            return start_command(args)

        from plinthctl.commands.lifecycle import component_command

        if args.activate:
            return component_command(args, "activate")
        if args.disable:
            return component_command(args, "disable")
        return component_command(args, "remove")

    except PlinthError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        # listener hooks run in-process and may raise anything
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
