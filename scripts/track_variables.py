#!/usr/bin/env python3
"""Track controller variables from the command line.

Connects to a KUKAVARPROXY server, restores the tracked-names file,
adds any names given on the command line, and prints every change the
poll loop observes.  On exit the tracked names are saved back.

Usage
-----
::

    python scripts/track_variables.py 192.168.1.10 --add '$OV_PRO' --add '$POS_ACT'

Options::

    --port PORT          Proxy port (default: 7000 or CROSSCOM_PORT)
    --interval SECONDS   Poll interval (default: 0.25)
    --file FILE          Tracked-names file (default: variables.txt)
    --add NAME           Track NAME in addition to the file (repeatable)
    --duration SECONDS   Stop after this long (default: run until Ctrl+C)
    --no-save            Do not write the names file on exit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pycrosscom import (  # noqa: E402
    CrossComClient,
    CrossComConfig,
    CrossComError,
    ListChange,
    Variable,
    VariableAlreadyTrackedError,
    VariableTracker,
)

_LOG = logging.getLogger("track_variables")


def _print_change(change: ListChange, index: int, variable: Variable) -> None:
    marker = "+" if change is ListChange.INSERTED else " "
    stamp = variable.updated_at.strftime("%H:%M:%S.%f")[:-3]
    print(f"{marker} [{index:>3}] #{variable.id:<5} {stamp} {variable.name} = {variable.value}")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Poll KUKA controller variables and print their values.")
    parser.add_argument("host", nargs="?", help="Controller host (default: CROSSCOM_HOST)")
    parser.add_argument("--port", type=int, help="Proxy port")
    parser.add_argument("--interval", type=float, help="Poll interval in seconds")
    parser.add_argument("--file", type=Path, help="Tracked-names file")
    parser.add_argument("--add", action="append", default=[], metavar="NAME", help="Variable to track")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--no-save", action="store_true", help="Do not save the names file on exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    overrides: dict[str, Any] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.interval is not None:
        overrides["poll_interval"] = args.interval
    if args.file is not None:
        overrides["var_list_path"] = args.file
    config = CrossComConfig.from_env(**overrides)

    async with CrossComClient(config) as client:
        tracker = VariableTracker(
            client,
            poll_interval=config.poll_interval,
            var_list_path=config.var_list_path,
        )
        tracker.subscribe(_print_change)

        if config.var_list_path.exists():
            try:
                await tracker.restore()
            except VariableAlreadyTrackedError as exc:
                _LOG.warning("%s", exc)
        for name in args.add:
            try:
                await tracker.add_variable(name)
            except VariableAlreadyTrackedError as exc:
                _LOG.warning("%s", exc)

        async with tracker:
            try:
                if args.duration is not None:
                    await asyncio.sleep(args.duration)
                else:
                    await asyncio.Event().wait()
            finally:
                if not args.no_save:
                    tracker.save()


def main() -> None:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass
    except CrossComError as exc:
        _LOG.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
