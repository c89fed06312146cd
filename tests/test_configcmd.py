import argparse
import json
from dataclasses import dataclass

import pytest

from ibcrelay.chainconfig import ChainProverConfig, Codec
from ibcrelay.cli.configcmd import (
    config_init,
    config_show,
    files_add,
    init_config,
    overwrite_config,
    register,
    show_modules,
)
from ibcrelay.config import Context, Module, default_config, marshal_json


class FakeChain:
    def __init__(self, cid):
        self.cid = cid
        self.inits = 0

    def chain_id(self):
        return self.cid

    def init(self, home, timeout, codec, debug):
        self.inits += 1


class FakeProver:
    def init(self, home, timeout, codec, debug):
        pass


@dataclass
class FakeChainConfig:
    chain_id: str = ""

    def build(self):
        return FakeChain(self.chain_id)


@dataclass
class FakeProverConfig:
    kind: str = "mock"

    def build(self, chain):
        return FakeProver()


class NamedModule(Module):
    def __init__(self, name):
        self.name = name

    def register_interfaces(self, codec):
        pass


@pytest.fixture
def ctx():
    codec = Codec()
    codec.register("/test.ChainConfig", FakeChainConfig)
    codec.register("/test.ProverConfig", FakeProverConfig)
    return Context(codec=codec)


def write_chain_file(ctx, path, cid):
    cfg = ChainProverConfig.from_configs(ctx.codec, FakeChainConfig(cid), FakeProverConfig())
    path.write_text(json.dumps(cfg.to_dict()))


def test_config_init_writes_default(tmp_path):
    home = tmp_path / "home"
    cfg_path = config_init(home)
    assert cfg_path == home / "config" / "config.yaml"
    assert cfg_path.read_text() == marshal_json(default_config())


def test_config_init_twice_fails(tmp_path):
    config_init(tmp_path / "home")
    with pytest.raises(FileExistsError, match="config already exists"):
        config_init(tmp_path / "home")


def test_config_show_errors(ctx, tmp_path):
    with pytest.raises(FileNotFoundError, match="home path does not exist"):
        config_show(ctx, tmp_path / "missing")
    with pytest.raises(FileNotFoundError, match="config does not exist"):
        config_show(ctx, tmp_path)


def test_config_show_returns_json(ctx, tmp_path):
    config_init(tmp_path)
    assert json.loads(config_show(ctx, tmp_path)) == json.loads(marshal_json(ctx.config))


def test_files_add_skips_bad_entries(ctx, tmp_path, capsys):
    chains_dir = tmp_path / "chains"
    chains_dir.mkdir()
    (chains_dir / "sub").mkdir()
    (chains_dir / "broken.json").write_text("{not json")
    write_chain_file(ctx, chains_dir / "a.json", "a")
    write_chain_file(ctx, chains_dir / "b.json", "a")
    assert files_add(ctx, chains_dir) == ["a"]
    out = capsys.readouterr().out
    assert "failed to unmarshal file" in out
    assert "directory at" in out
    assert "chain with ID a already exists in config" in out
    assert ctx.config.get_chain("a").chain_id() == "a"


def test_overwrite_then_init_config_round_trip(ctx, tmp_path):
    config_init(tmp_path)
    chains_dir = tmp_path / "chains"
    chains_dir.mkdir()
    write_chain_file(ctx, chains_dir / "x.json", "x")
    files_add(ctx, chains_dir)
    overwrite_config(ctx, tmp_path, False)

    fresh = Context(codec=ctx.codec)
    init_config(fresh, tmp_path, False)
    chain = fresh.config.get_chain("x")
    assert chain.chain.inits == 1
    assert len(fresh.config.chains) == 1


def test_init_config_without_file_leaves_config(ctx, tmp_path):
    init_config(ctx, tmp_path, False)
    assert ctx.config.chains == []


def test_init_config_bad_file(ctx, tmp_path):
    config_init(tmp_path)
    (tmp_path / "config" / "config.yaml").write_text("[]")
    with pytest.raises(RuntimeError, match="Error unmarshalling config"):
        init_config(ctx, tmp_path, False)


def test_show_modules_sorted(ctx, capsys):
    ctx.modules = [NamedModule("tendermint"), NamedModule("mock")]
    assert show_modules(ctx) == ["mock", "tendermint"]
    assert capsys.readouterr().out == "mock\ntendermint\n"


def test_register_config_init_command(ctx, tmp_path):
    parser = argparse.ArgumentParser()
    parser.add_argument("--home")
    parser.add_argument("--debug", action="store_true")
    register(parser.add_subparsers(), ctx)
    args = parser.parse_args(["--home", str(tmp_path), "cfg", "i"])
    args.func(args)
    written = (tmp_path / "config" / "config.yaml").read_text()
    assert json.loads(written)["global"]["timeout"] == "10s"