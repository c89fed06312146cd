"""The relayer configuration: global settings, chains and paths."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Any

from ibcrelay.chain import ProvableChain
from ibcrelay.chainconfig import ChainProverConfig, Codec
from ibcrelay.path import Path, Paths

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": Decimal("0.000000001"),
    "us": Decimal("0.000001"),
    "µs": Decimal("0.000001"),
    "μs": Decimal("0.000001"),
    "ms": Decimal("0.001"),
    "s": Decimal(1),
    "m": Decimal(60),
    "h": Decimal(3600),
}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``10s``, ``1m30s`` or ``300ms``."""
    rest = text
    sign = 1
    if rest[:1] in ("+", "-") and rest:
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f'time: invalid duration "{text}"')
    total = Decimal(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise ValueError(f'time: invalid duration "{text}"')
        total += Decimal(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=float(sign * total))


class Chains(list):
    """Built chains, looked up by chain ID."""

    def get(self, chain_id: str) -> ProvableChain:
        """Return the chain with ``chain_id``; raise if it is not configured."""
        for chain in self:
            if chain.chain_id() == chain_id:
                return chain
        raise ValueError(f"chain with ID {chain_id} is not configured")

    def gets(self, *chain_ids: str) -> dict[str, ProvableChain]:
        """Return a mapping of each chain ID to its chain."""
        return {chain_id: self.get(chain_id) for chain_id in chain_ids}


@dataclass
class GlobalConfig:
    """Settings that apply to every chain."""

    timeout: str = "10s"
    light_cache_size: int = 20


@dataclass
class Config:
    """Global settings, chain configurations and paths, with the built chains."""

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    chains: list[ChainProverConfig] = field(default_factory=list)
    paths: Paths = field(default_factory=Paths)
    _chains: Chains = field(default_factory=Chains, init=False, repr=False, compare=False)

    def get_chain(self, chain_id: str) -> ProvableChain:
        return self._chains.get(chain_id)

    def get_chains(self, *args: str) -> dict[str, ProvableChain]:
        return self._chains.gets(*args)

    def add_chain(self, codec: Codec, chain_config: ChainProverConfig) -> None:
        """Build a chain from its configuration and add both; raise on a duplicate ID."""
        chain = chain_config.build()
        chain_id = chain.chain_id()
        if any(existing.chain_id() == chain_id for existing in self._chains):
            raise ValueError(f"chain with ID {chain_id} already exists in config")
        self.chains.append(chain_config)
        self._chains.append(chain)

    def add_path(self, name: str, path: Path) -> None:
        self.paths.add(name, path)

    def delete_chain(self, chain_id: str) -> Config:
        """Remove the chain with ``chain_id`` and its configuration."""
        kept = [
            (chain, cfg)
            for chain, cfg in zip(self._chains, self.chains)
            if chain.chain_id() != chain_id
        ]
        self._chains = Chains(chain for chain, _ in kept)
        self.chains = [cfg for _, cfg in kept]
        return self

    def chains_from_path(self, path_name: str) -> tuple[dict[str, ProvableChain], str, str]:
        """Return the chains of a path, set up with its ends, and the source and destination IDs."""
        pth = self.paths.get(path_name)
        src, dst = pth.src.chain_id, pth.dst.chain_id
        chains = self._chains.gets(src, dst)
        chains[src].set_relay_info(pth.src, chains[dst], pth.dst)
        chains[dst].set_relay_info(pth.dst, chains[src], pth.src)
        return chains, src, dst


def default_config() -> Config:
    """Return a configuration with default global settings and nothing else."""
    return Config()


def init_chains(ctx: Context, home_path: str, debug: bool) -> None:
    """Initialise every built chain of the context's configuration."""
    try:
        timeout = parse_duration(ctx.config.global_config.timeout)
    except ValueError as exc:
        raise ValueError(f"did you remember to run 'rly config init' error:{exc}") from exc
    for chain in ctx.config._chains:
        try:
            chain.init(home_path, timeout, ctx.codec, debug)
        except Exception as exc:
            raise ValueError(f"did you remember to run 'rly config init' error:{exc}") from exc


def marshal_json(config: Config) -> str:
    """Return the JSON text of a configuration."""
    data = {
        "global": {
            "timeout": config.global_config.timeout,
            "light-cache-size": config.global_config.light_cache_size,
        },
        "chains": [chain.to_dict() for chain in config.chains],
        "paths": config.paths.to_dict(),
    }
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def unmarshal_json(codec: Codec, data: str | bytes, config: Config) -> None:
    """Read JSON text into ``config`` and build each of its chains."""
    obj = json.loads(data)
    if not isinstance(obj, dict):
        raise ValueError("configuration must be a JSON object")
    if "global" in obj and obj["global"] is not None:
        glob = obj["global"]
        config.global_config = GlobalConfig(
            timeout=str(glob.get("timeout", config.global_config.timeout)),
            light_cache_size=int(glob.get("light-cache-size", config.global_config.light_cache_size)),
        )
    if "chains" in obj:
        config.chains = [ChainProverConfig.from_dict(item) for item in obj["chains"] or []]
    if "paths" in obj:
        config.paths = Paths.from_dict(obj["paths"])
    for chain_config in config.chains:
        chain_config.init(codec)
        config._chains.append(chain_config.build())


class Module(ABC):
    """A pluggable part of the relayer, such as a chain or prover implementation."""

    name: str = ""

    @abstractmethod
    def register_interfaces(self, codec: Codec) -> None:
        """Register the module's configuration types with the codec."""

    def add_commands(self, subparsers: Any, ctx: Context) -> None:
        """Add the module's own commands; a module has none unless it overrides this."""
        return None


@dataclass
class Context:
    """What the commands share: the modules, the codec and the configuration."""

    modules: list[Module] = field(default_factory=list)
    codec: Codec = field(default_factory=Codec)
    config: Config = field(default_factory=Config)