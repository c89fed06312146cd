"""Commands managing the relay paths of the configuration."""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Callable
from pathlib import Path as FsPath
from typing import Any

from ibcrelay.cli.configcmd import overwrite_config
from ibcrelay.config import Config, Context
from ibcrelay.path import Path
from ibcrelay.pathend import PathEnd
from ibcrelay.strategy import StrategyCfg

_PROMPTS = (
    ("client-id", "client_id", PathEnd.validate_client),
    ("connection-id", "connection_id", PathEnd.validate_connection),
    ("channel-id", "channel_id", PathEnd.validate_channel),
    ("port-id", "port_id", PathEnd.validate_port),
    ("version", "version", PathEnd.validate_version),
)


def read_stdin() -> str:
    """Read one line from standard input, without surrounding whitespace."""
    line = sys.stdin.readline()
    if not line.endswith("\n"):
        raise EOFError("unexpected end of input")
    return line.strip()


def paths_list(ctx: Context, as_json: bool = False, as_yaml: bool = False) -> str:
    """Return the configured paths as JSON, as YAML, or as a status report of each."""
    if as_json and as_yaml:
        raise ValueError("can't pass both --json and --yaml, must pick one")
    paths = ctx.config.paths
    if as_yaml:
        return paths.to_yaml()
    if as_json:
        return json.dumps(paths.to_dict(), separators=(",", ":"), ensure_ascii=False)
    reports = []
    for name, path in paths.items():
        chains, src, dst = ctx.config.chains_from_path(name)
        reports.append(path.query_path_status(chains[src], chains[dst]).print_string(name))
    return "\n".join(reports)


def file_input_path_add(config: Config, file: str | os.PathLike, name: str) -> Path:
    """Add the path described by a JSON file under ``name``."""
    source = FsPath(file)
    if not source.exists():
        raise FileNotFoundError(f"no such file: {source}")
    data = json.loads(source.read_bytes())
    if not isinstance(data, dict):
        raise ValueError(f"path file {source} must hold a JSON object")
    path = Path.from_dict(data)
    config.paths.add(name, path)
    return path


def user_input_path_add(
    config: Config,
    src: str,
    dst: str,
    name: str,
    read_line: Callable[[], str] = read_stdin,
) -> Path:
    """Ask for the identifiers of both ends, validating each, and add the path."""
    path = Path(
        src=PathEnd(chain_id=src, order="ORDERED"),
        dst=PathEnd(chain_id=dst, order="ORDERED"),
        strategy=StrategyCfg(type="naive"),
    )
    for side, chain_id, end in (("src", src, path.src), ("dst", dst, path.dst)):
        for label, attr, validate in _PROMPTS:
            print(f"enter {side}({chain_id}) {label}...")
            setattr(end, attr, read_line())
            validate(end)
    config.paths.add(name, path)
    return path


def register(subparsers: Any, ctx: Context) -> None:
    """Add the ``paths`` command."""
    paths_parser = subparsers.add_parser(
        "paths",
        aliases=["pth"],
        help="manage path configurations",
        description=(
            'A path represents the "full path" or "link" for communication between two chains. '
            "This includes the client, connection, and channel ids from both the source and "
            "destination chains as well as the strategy to use when relaying"
        ),
    )
    paths_parser.set_defaults(func=lambda args: paths_parser.print_help())
    sub = paths_parser.add_subparsers()

    list_parser = sub.add_parser("list", aliases=["l"], help="print out configured paths")
    list_parser.add_argument("-j", "--json", action="store_true", help="returns the response in json format")
    list_parser.add_argument("-y", "--yaml", action="store_true", help="output using yaml")
    list_parser.set_defaults(func=lambda args: print(paths_list(ctx, args.json, args.yaml)))

    add_parser = sub.add_parser("add", aliases=["a"], help="add a path to the list of paths")
    add_parser.add_argument("src_chain_id")
    add_parser.add_argument("dst_chain_id")
    add_parser.add_argument("path_name")
    add_parser.add_argument("-f", "--file", default="", help="fetch json data from specified file")

    def run_add(args: Any) -> None:
        try:
            ctx.config.get_chains(args.src_chain_id)
        except ValueError as exc:
            raise ValueError(
                f"chains need to be configured before paths to them can be added: {exc}"
            ) from exc
        if args.file:
            file_input_path_add(ctx.config, args.file, args.path_name)
        else:
            user_input_path_add(ctx.config, args.src_chain_id, args.dst_chain_id, args.path_name)
        overwrite_config(ctx, args.home, args.debug)

    add_parser.set_defaults(func=run_add)