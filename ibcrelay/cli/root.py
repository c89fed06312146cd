"""The ``yrly`` command line."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path as FsPath

from ibcrelay.chainconfig import Codec
from ibcrelay.cli import configcmd, pathscmd, txcmd
from ibcrelay.config import Config, Context, Module

DEFAULT_HOME = str(FsPath.home() / ".yui-relayer")


def build_parser(ctx: Context) -> argparse.ArgumentParser:
    """Return the argument parser with every command of the relayer and its modules."""
    parser = argparse.ArgumentParser(
        prog="yrly",
        description="This application relays data between configured IBC enabled chains",
    )
    parser.add_argument("--home", default=DEFAULT_HOME, help="set home directory")
    parser.add_argument("-d", "--debug", action="store_true", help="debug output")
    subparsers = parser.add_subparsers(dest="command")
    configcmd.register(subparsers, ctx)
    txcmd.register(subparsers, ctx)
    pathscmd.register(subparsers, ctx)
    for module in ctx.modules:
        module.add_commands(subparsers, ctx)
    return parser


def execute(modules: Iterable[Module] = (), argv: Sequence[str] | None = None) -> None:
    """Run the command line with the given modules plugged in."""
    modules = list(modules)
    codec = Codec()
    for module in modules:
        module.register_interfaces(codec)
    ctx = Context(modules=modules, codec=codec, config=Config())
    parser = build_parser(ctx)
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return
    init_home = args.home
    configcmd.init_config(ctx, init_home, args.debug)
    func(args)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the relayer; return the exit status."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        execute([], argv)
    except Exception as exc:  # noqa: BLE001 - any failure ends the command with status 1
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())