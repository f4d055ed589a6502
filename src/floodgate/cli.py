from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from floodgate import __version__
from floodgate.config import (
    DEFAULT_CAPACITY,
    DEFAULT_PERIOD_SECONDS,
    WindowConfig,
    find_project_root,
    load_config,
)
from floodgate.errors import FloodgateConfigError
from floodgate.jumping_window import JumpingWindow

EXIT_OK = 0
EXIT_CONFIG_OR_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="floodgate")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    sim_p = subparsers.add_parser(
        "simulate", help="Replay triggers at the given timestamps against one window."
    )
    sim_p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root containing floodgate.toml.",
    )
    sim_p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to floodgate.toml (defaults to <root>/floodgate.toml).",
    )
    sim_p.add_argument("--capacity", type=int, default=None, help="Triggers per window.")
    sim_p.add_argument("--period", type=float, default=None, help="Window length in seconds.")
    sim_p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print one JSON document instead of a line per trigger.",
    )
    sim_p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sim_p.add_argument(
        "timestamps",
        type=float,
        nargs="+",
        metavar="T",
        help="Trigger times in seconds; the window starts at 0.",
    )

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _resolve_window_config(args: argparse.Namespace) -> WindowConfig:
    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None

    if root is None and config_path is None:
        try:
            root = find_project_root(Path.cwd())
        except FloodgateConfigError:
            # No project file; fall back to built-in defaults.
            base = WindowConfig(capacity=DEFAULT_CAPACITY, period_seconds=DEFAULT_PERIOD_SECONDS)
        else:
            base = load_config(root=root).window
    else:
        base = load_config(root=root, config_path=config_path).window

    return WindowConfig(
        capacity=base.capacity if args.capacity is None else args.capacity,
        period_seconds=base.period_seconds if args.period is None else args.period,
    )


def simulate(window: JumpingWindow, timestamps: list[float]) -> list[dict[str, object]]:
    """Trigger `window` once at each timestamp and record the outcome."""

    results: list[dict[str, object]] = []
    for t in timestamps:
        wait = window.trigger(t)
        results.append(
            {
                "t": t,
                "allowed": wait is None,
                "wait": wait,
                "tokens": window.tokens(t),
            }
        )
    return results


def cmd_simulate(args: argparse.Namespace) -> int:
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        cfg = _resolve_window_config(args)
        window = JumpingWindow(cfg.capacity, cfg.period_seconds, now=0.0)
    except (FloodgateConfigError, ValueError) as e:
        _eprint(f"error: {e}")
        return EXIT_CONFIG_OR_USAGE

    results = simulate(window, list(args.timestamps))

    if args.json_output:
        doc = {
            "capacity": cfg.capacity,
            "period_seconds": cfg.period_seconds,
            "results": results,
        }
        print(json.dumps(doc, indent=2))
        return EXIT_OK

    for r in results:
        if r["allowed"]:
            print(f"t={r['t']:g} ok tokens={r['tokens']}")
        else:
            print(f"t={r['t']:g} wait={r['wait']:g}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_OR_USAGE

    if args.command == "simulate":
        return cmd_simulate(args)

    return EXIT_CONFIG_OR_USAGE


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
