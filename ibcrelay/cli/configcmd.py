"""Commands managing the configuration file, chain configurations and modules."""

from __future__ import annotations

import json
import os
from pathlib import Path as FsPath
from typing import Any

from ibcrelay.chainconfig import ChainProverConfig
from ibcrelay.config import Context, default_config, init_chains, marshal_json, unmarshal_json


def _config_path(home: str | os.PathLike) -> FsPath:
    return FsPath(home) / "config" / "config.yaml"


def config_init(home: str | os.PathLike) -> FsPath:
    """Create the home directory with a default configuration file; return its path."""
    home_dir = FsPath(home)
    cfg_dir = home_dir / "config"
    cfg_path = cfg_dir / "config.yaml"
    if cfg_path.exists():
        raise FileExistsError(f"config already exists: {cfg_path}")
    if not cfg_dir.exists():
        if not home_dir.exists():
            home_dir.mkdir()
        cfg_dir.mkdir()
    cfg_path.write_text(marshal_json(default_config()), encoding="utf-8")
    return cfg_path


def config_show(ctx: Context, home: str | os.PathLike) -> str:
    """Return the JSON text of the current configuration."""
    cfg_path = _config_path(home)
    if not cfg_path.exists():
        if not FsPath(home).exists():
            raise FileNotFoundError(f"home path does not exist: {home}")
        raise FileNotFoundError(f"config does not exist: {cfg_path}")
    return marshal_json(ctx.config)


def init_config(ctx: Context, home: str | os.PathLike, debug: bool) -> None:
    """Load the configuration file, if there is one, into the context and initialise its chains."""
    cfg_path = _config_path(home)
    if not cfg_path.is_file():
        return
    try:
        data = cfg_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Error reading file: {exc}") from exc
    try:
        unmarshal_json(ctx.codec, data, ctx.config)
    except Exception as exc:
        raise RuntimeError(f"Error unmarshalling config: {exc}") from exc
    try:
        init_chains(ctx, str(home), debug)
    except Exception as exc:
        raise RuntimeError(f"Error parsing chain config: {exc}") from exc


def files_add(ctx: Context, directory: str | os.PathLike) -> list[str]:
    """Add every chain configuration file in ``directory``; return the IDs added."""
    directory = os.path.normpath(os.fspath(directory))
    added = []
    for entry in sorted(os.scandir(directory), key=lambda e: e.name):
        pth = f"{directory}/{entry.name}"
        if entry.is_dir():
            print(f"directory at {pth}, skipping...")
            continue
        try:
            raw = FsPath(pth).read_bytes()
        except OSError:
            print(f"failed to read file {pth}, skipping...")
            continue
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("not an object")
        except ValueError:
            print(f"failed to unmarshal file {pth}, skipping...")
            continue
        chain_config = ChainProverConfig.from_dict(data)
        chain_config.init(ctx.codec)
        try:
            ctx.config.add_chain(ctx.codec, chain_config)
        except ValueError as exc:
            print(f"{pth}: {exc}")
            continue
        chain = chain_config.build()
        chain_id = chain.chain_id()
        print(f"added {chain_id}...")
        added.append(chain_id)
    return added


def overwrite_config(ctx: Context, home: str | os.PathLike, debug: bool) -> None:
    """Write the context's configuration over an existing configuration file."""
    cfg_path = _config_path(home)
    if not cfg_path.exists():
        raise FileNotFoundError(f"config does not exist: {cfg_path}")
    init_chains(ctx, str(home), debug)
    cfg_path.write_text(marshal_json(ctx.config), encoding="utf-8")
    os.chmod(cfg_path, 0o600)


def show_modules(ctx: Context) -> list[str]:
    """Print the names of the modules, sorted, and return them."""
    names = sorted(module.name for module in ctx.modules)
    for name in names:
        print(name)
    return names


def _help(parser: Any):
    def run(args: Any) -> None:
        parser.print_help()

    return run


def register(subparsers: Any, ctx: Context) -> None:
    """Add the ``config``, ``chains`` and ``modules`` commands."""
    config_parser = subparsers.add_parser(
        "config", aliases=["cfg"], help="manage configuration file"
    )
    config_parser.set_defaults(func=_help(config_parser))
    config_sub = config_parser.add_subparsers()

    show = config_sub.add_parser(
        "show", aliases=["s", "list", "l"], help="Prints current configuration"
    )
    show.set_defaults(func=lambda args: print(config_show(ctx, args.home)))

    init = config_sub.add_parser(
        "init", aliases=["i"], help="Creates a default home directory at path defined by --home"
    )
    init.set_defaults(func=lambda args: config_init(args.home))

    chains_parser = subparsers.add_parser("chains", help="manage chain configurations")
    chains_parser.set_defaults(func=_help(chains_parser))
    chains_sub = chains_parser.add_subparsers()
    add_dir = chains_sub.add_parser(
        "add-dir",
        help="Add new chains to the configuration file from a directory full of chain configuration",
    )
    add_dir.add_argument("dir")

    def run_add_dir(args: Any) -> None:
        files_add(ctx, args.dir)
        overwrite_config(ctx, args.home, args.debug)

    add_dir.set_defaults(func=run_add_dir)

    modules_parser = subparsers.add_parser("modules", help="show an info about Relayer Module")
    modules_parser.set_defaults(func=_help(modules_parser))
    modules_sub = modules_parser.add_subparsers()
    show_mods = modules_sub.add_parser(
        "show", help="Shows a list of modules included in the relayer"
    )
    show_mods.set_defaults(func=lambda args: show_modules(ctx))