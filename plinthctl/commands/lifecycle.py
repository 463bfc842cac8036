"""
plinthctl lifecycle commands (--init, -S, -A, -D, -R).

Each command builds a Platform from the config file and runs one operation.
"""

import sys
from typing import Any

from plinth.config import generate_default_config, load_platform_config
from plinth.platform import Platform


def _build_platform(args: Any) -> Platform:
    return Platform(load_platform_config(args.config))


def init_command(args: Any) -> int:
    """
    Write a commented default config file.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args.config.exists():
        print(f"Error: {args.config} already exists", file=sys.stderr)
        return 1

    args.config.parent.mkdir(parents=True, exist_ok=True)
    args.config.write_text(generate_default_config(), encoding="utf-8")
    print(f"Wrote {args.config}")
    return 0


def start_command(args: Any) -> int:
    """Scan all origins and reconcile component state."""
    platform = _build_platform(args)
    platform.start()

    if args.verbose:
        print(f"Platform {platform.version}: {len(platform.components)} component(s)")
    return 0


def component_command(args: Any, operation: str) -> int:
    """
    Run ``activate``, ``disable`` or ``remove`` for every target code.

    The platform is started first so that the registry is populated.

    Returns:
        0 if every target succeeded, 1 otherwise
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print(f"Usage: plinthctl -{operation[0].upper()} <code>...", file=sys.stderr)
        return 1

    platform = _build_platform(args)
    platform.start()

    fail_count = 0
    for code in args.targets:
        if operation == "remove":
            result = platform.remove(code)
            ok = result is not None and result.ok
            if result is not None and not result.ok:
                for error in result.errors:
                    print(f"{code}: {error}", file=sys.stderr)
        else:
            ok = getattr(platform, operation)(code)

        if not ok:
            print(f"Failed to {operation} {code}", file=sys.stderr)
            fail_count += 1

    if args.verbose:
        print(f"{operation}: {len(args.targets) - fail_count} ok, {fail_count} failed")

    return 0 if fail_count == 0 else 1
