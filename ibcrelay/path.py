"""Relay paths between two chains, and collections of named paths."""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable, Iterator, Mapping, MutableMapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, TypeVar

import yaml

from ibcrelay.headers import query_channel_pair, query_client_state_pair, query_connection_pair
from ibcrelay.ibc import Order, State
from ibcrelay.pathend import PathEnd
from ibcrelay.strategy import NaiveStrategy, Strategy, StrategyCfg

CHECK = "✔"
X_ICON = "✘"

_ID_LENGTH = 10

A = TypeVar("A")
B = TypeVar("B")


def _both(first: Callable[[], A], second: Callable[[], B]) -> tuple[A, B]:
    with ThreadPoolExecutor(max_workers=2) as pool:
        first_future = pool.submit(first)
        second_future = pool.submit(second)
        return first_future.result(), second_future.result()


def rand_lower_case_letter_string(length: int) -> str:
    """Return a random string of ``length`` lowercase ASCII letters."""
    return "".join(secrets.choice(string.ascii_lowercase) for _ in range(length))


def _checkmark(status: bool) -> str:
    return CHECK if status else X_ICON


@dataclass
class Path:
    """A pair of chains and the identifiers needed to relay between them."""

    src: PathEnd = field(default_factory=PathEnd)
    dst: PathEnd = field(default_factory=PathEnd)
    strategy: StrategyCfg | None = None

    def gen_src_client_id(self) -> None:
        self.src.client_id = rand_lower_case_letter_string(_ID_LENGTH)

    def gen_dst_client_id(self) -> None:
        self.dst.client_id = rand_lower_case_letter_string(_ID_LENGTH)

    def gen_src_conn_id(self) -> None:
        self.src.connection_id = rand_lower_case_letter_string(_ID_LENGTH)

    def gen_dst_conn_id(self) -> None:
        self.dst.connection_id = rand_lower_case_letter_string(_ID_LENGTH)

    def gen_src_chan_id(self) -> None:
        self.src.channel_id = rand_lower_case_letter_string(_ID_LENGTH)

    def gen_dst_chan_id(self) -> None:
        self.dst.channel_id = rand_lower_case_letter_string(_ID_LENGTH)

    def ordered(self) -> bool:
        """Return whether the path relays over an ordered channel."""
        return self.src.get_order() == Order.ORDERED

    def validate(self) -> None:
        """Raise if either end, the version, the strategy or the ordering is invalid."""
        self.src.validate()
        if not self.src.version:
            raise ValueError("source must specify a version")
        self.dst.validate()
        self.get_strategy()
        if self.src.order != self.dst.order:
            raise ValueError(
                "both sides must have same order ('ORDERED' or 'UNORDERED'), "
                f"got src({self.src.order}) and dst({self.dst.order})"
            )

    def get_strategy(self) -> Strategy:
        """Return the relaying strategy the path names."""
        kind = self.strategy.type if self.strategy is not None else ""
        naive = NaiveStrategy()
        if kind == naive.get_type():
            return naive
        raise ValueError(f"invalid strategy: {kind}")

    def end(self, chain_id: str) -> PathEnd:
        """Return the end on ``chain_id``, or an empty end if neither matches."""
        if self.dst.chain_id == chain_id:
            return self.dst
        if self.src.chain_id == chain_id:
            return self.src
        return PathEnd()

    def __str__(self) -> str:
        return f"[ ] {self.src} ->\n {self.dst}"

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration mapping of the path."""
        return {
            "src": self.src.to_dict(),
            "dst": self.dst.to_dict(),
            "strategy": {"type": self.strategy.type} if self.strategy is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Path:
        """Build a path from a configuration mapping."""
        strategy_data = data.get("strategy")
        strategy = (
            StrategyCfg(type=str(strategy_data.get("type", "") or ""))
            if strategy_data is not None
            else None
        )
        return cls(
            src=PathEnd.from_dict(data.get("src") or {}),
            dst=PathEnd.from_dict(data.get("dst") or {}),
            strategy=strategy,
        )

    def to_yaml(self) -> str:
        """Return the YAML text of the path."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    def query_path_status(self, src: Any, dst: Any) -> PathWithStatus:
        """Check how far the chains, clients, connection and channel of the path are set up."""
        out = PathWithStatus(path=self, status=PathStatus())
        # Every failed query only ends the check; the status so far is the answer.
        try:
            src_height, dst_height = _both(src.get_latest_height, dst.get_latest_height)
        except Exception:  # noqa: BLE001
            return out
        out.status.chains = True

        try:
            src_cs, dst_cs = query_client_state_pair(src, dst, src_height, dst_height)
        except Exception:  # noqa: BLE001
            return out
        if src_cs is None or dst_cs is None:
            return out
        out.status.clients = True

        try:
            src_conn, dst_conn = query_connection_pair(src, dst, src_height, dst_height)
        except Exception:  # noqa: BLE001
            return out
        if src_conn.connection.state != State.OPEN or dst_conn.connection.state != State.OPEN:
            return out
        out.status.connection = True

        try:
            src_chan, dst_chan = query_channel_pair(src, dst, src_height, dst_height)
        except Exception:  # noqa: BLE001
            return out
        if src_chan.channel.state != State.OPEN or dst_chan.channel.state != State.OPEN:
            return out
        out.status.channel = True
        return out


class Paths(MutableMapping[str, Path]):
    """Named relay paths."""

    def __init__(self, paths: Mapping[str, Path] | None = None) -> None:
        self._paths: dict[str, Path] = dict(paths or {})

    def __getitem__(self, name: str) -> Path:
        return self._paths[name]

    def __setitem__(self, name: str, path: Path) -> None:
        self._paths[name] = path

    def __delitem__(self, name: str) -> None:
        del self._paths[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __repr__(self) -> str:
        return f"Paths({self._paths!r})"

    def get(self, name: str) -> Path:  # type: ignore[override]
        """Return the path called ``name``; raise if there is none."""
        try:
            return self._paths[name]
        except KeyError:
            raise ValueError(f"path with name {name} does not exist") from None

    def add(self, name: str, path: Path) -> None:
        """Add a valid path under a name not yet in use."""
        path.validate()
        if name in self._paths:
            raise ValueError(f"path with name {name} already exists")
        self._paths[name] = path

    def add_force(self, name: str, path: Path) -> None:
        """Add a valid path, replacing any path of the same name."""
        path.validate()
        if name in self._paths:
            print(f"overwriting path {name} with new path...")
        self._paths[name] = path

    def paths_from_chains(self, src: str, dst: str) -> Paths:
        """Return the paths that connect the chains ``src`` and ``dst``."""
        found = Paths(
            {
                name: path
                for name, path in self._paths.items()
                if src in (path.src.chain_id, path.dst.chain_id)
                and dst in (path.src.chain_id, path.dst.chain_id)
            }
        )
        if not found:
            raise ValueError(f"failed to find path in config between chains {src} and {dst}")
        return found

    def to_dict(self) -> dict[str, Any]:
        return {name: path.to_dict() for name, path in self._paths.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Paths:
        return cls({name: Path.from_dict(item) for name, item in (data or {}).items()})

    def to_yaml(self) -> str:
        """Return the YAML text of all paths."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)


@dataclass
class PathStatus:
    """Which parts of a path are set up."""

    chains: bool = False
    clients: bool = False
    connection: bool = False
    channel: bool = False


@dataclass
class PathWithStatus:
    """A path together with its status."""

    path: Path
    status: PathStatus = field(default_factory=PathStatus)

    def print_string(self, name: str) -> str:
        """Return a human-readable report of the path and its status."""
        pth = self.path
        strategy = pth.strategy.type if pth.strategy is not None else ""
        return (
            f'Path "{name}" strategy({strategy}):\n'
            f"  SRC({pth.src.chain_id})\n"
            f"    ClientID:     {pth.src.client_id}\n"
            f"    ConnectionID: {pth.src.connection_id}\n"
            f"    ChannelID:    {pth.src.channel_id}\n"
            f"    PortID:       {pth.src.port_id}\n"
            f"  DST({pth.dst.chain_id})\n"
            f"    ClientID:     {pth.dst.client_id}\n"
            f"    ConnectionID: {pth.dst.connection_id}\n"
            f"    ChannelID:    {pth.dst.channel_id}\n"
            f"    PortID:       {pth.dst.port_id}\n"
            f"  STATUS:\n"
            f"    Chains:       {_checkmark(self.status.chains)}\n"
            f"    Clients:      {_checkmark(self.status.clients)}\n"
            f"    Connection:   {_checkmark(self.status.connection)}\n"
            f"    Channel:      {_checkmark(self.status.channel)}"
        )


def gen_path(
    src_chain_id: str,
    dst_chain_id: str,
    src_port_id: str,
    dst_port_id: str,
    order: str,
    version: str,
) -> Path:
    """Return a path with random client, connection and channel identifiers."""

    def end(chain_id: str, port_id: str) -> PathEnd:
        return PathEnd(
            chain_id=chain_id,
            client_id=rand_lower_case_letter_string(_ID_LENGTH),
            connection_id=rand_lower_case_letter_string(_ID_LENGTH),
            channel_id=rand_lower_case_letter_string(_ID_LENGTH),
            port_id=port_id,
            order=order,
            version=version,
        )

    return Path(
        src=end(src_chain_id, src_port_id),
        dst=end(dst_chain_id, dst_port_id),
        strategy=StrategyCfg(type="naive"),
    )