"""Start a Compute application, request some paths, and stop it."""

import argparse
import dataclasses
import sys
from pathlib import Path

import httpx

from .application import ComputeApplication
from .config import StartOptions
from .errors import ComputeApplicationError


def build_options(args: argparse.Namespace) -> StartOptions:
    """Merge --config with explicit command-line options."""
    options = StartOptions.load(Path(args.config)) if args.config else StartOptions()

    overrides = {}
    if args.addr is not None:
        overrides["addr"] = args.addr
    if args.app_root is not None:
        overrides["app_root"] = args.app_root
    if args.start_command is not None:
        overrides["start_command"] = args.start_command
    if args.start_timeout_msecs is not None:
        overrides["start_timeout_msecs"] = args.start_timeout_msecs
    if args.log_dir is not None:
        overrides["log_dir"] = args.log_dir

    return dataclasses.replace(options, **overrides)


def run(options: StartOptions, paths: list[str], app: ComputeApplication | None = None) -> int:
    """Start the app, GET each path, shut down. Returns the exit status."""
    app = app or ComputeApplication()

    try:
        app.start(options)
    except (ComputeApplicationError, httpx.InvalidURL) as e:
        print(f"✗ start: {e}", file=sys.stderr)
        return 2

    all_ok = True
    with app:
        print(f"✓ started ({app.mode.value}) at {app.origin}")
        for path in paths:
            try:
                resp = app.fetch(path)
            except (ComputeApplicationError, httpx.HTTPError) as e:
                print(f"✗ GET {path}: {e}")
                all_ok = False
                continue

            if resp.status_code < 400:
                symbol = "✓"
            else:
                symbol = "✗"
                all_ok = False
            print(f"{symbol} GET {path}: {resp.status_code} {resp.reason_phrase}")

    return 0 if all_ok else 1


def main():
    parser = argparse.ArgumentParser(
        prog="compute-testing",
        description="Start a Compute application, request paths from it, then stop it"
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=["/"],
        help="Paths to GET once the application is ready (default: /)"
    )
    parser.add_argument("--addr", help="Origin of the application (default: http://127.0.0.1:7676/)")
    parser.add_argument("--app-root", help="Application directory, or a file in it (path or file:// URL)")
    parser.add_argument("--start-command", help="Shell command that starts the application")
    parser.add_argument(
        "--start-timeout-msecs",
        type=int,
        help="Milliseconds to wait for the application to become ready"
    )
    parser.add_argument("--log-dir", help="Directory to write service.stdout.log / service.stderr.log to")
    parser.add_argument("--config", "-c", help="YAML file with start options")

    args = parser.parse_args()

    try:
        options = build_options(args)
    except (TypeError, ValueError) as e:
        parser.error(str(e))

    sys.exit(run(options, args.paths))


if __name__ == "__main__":
    main()
