"""Commands that create IBC transactions, and the relay service command."""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Any

from ibcrelay.channel import create_channel
from ibcrelay.client import create_clients, update_clients
from ibcrelay.config import Context, parse_duration
from ibcrelay.connection import create_connection
from ibcrelay.headers import SyncHeaders
from ibcrelay.relaymsgs import RelayMsgs
from ibcrelay.service import start_service
from ibcrelay.strategy import RelaySequences, Strategy, StrategyCfg, get_strategy

DEFAULT_TIMEOUT = "1s"
DEFAULT_RELAY_INTERVAL = "3s"


def get_timeout(value: str) -> timedelta:
    """Parse a timeout such as ``1s``."""
    return parse_duration(value)


def _as_duration(value: str | float | timedelta) -> float | timedelta:
    return get_timeout(value) if isinstance(value, str) else value


def _chains_with_keys(ctx: Context, path_name: str) -> tuple[Any, Any]:
    chains, src, dst = ctx.config.chains_from_path(path_name)
    return chains[src], chains[dst]


def _ensure_keys(src: Any, dst: Any) -> None:
    src.get_address()
    dst.get_address()


def _path_strategy(ctx: Context, path_name: str) -> Strategy:
    path = ctx.config.paths.get(path_name)
    return get_strategy(path.strategy if path.strategy is not None else StrategyCfg())


def run_create_clients(ctx: Context, path_name: str) -> RelayMsgs:
    """Create a client on each end of a path."""
    src, dst = _chains_with_keys(ctx, path_name)
    _ensure_keys(src, dst)
    return create_clients(src, dst)


def run_update_clients(ctx: Context, path_name: str) -> RelayMsgs:
    """Update the clients on both ends of a path."""
    src, dst = _chains_with_keys(ctx, path_name)
    _ensure_keys(src, dst)
    return update_clients(src, dst)


def run_create_connection(ctx: Context, path_name: str, timeout: str | float | timedelta = DEFAULT_TIMEOUT) -> None:
    """Create or repair the connection of a path."""
    src, dst = _chains_with_keys(ctx, path_name)
    to = _as_duration(timeout)
    _ensure_keys(src, dst)
    create_connection(src, dst, to)


def run_create_channel(ctx: Context, path_name: str, timeout: str | float | timedelta = DEFAULT_TIMEOUT) -> None:
    """Create or repair the unordered channel of a path."""
    src, dst = _chains_with_keys(ctx, path_name)
    to = _as_duration(timeout)
    _ensure_keys(src, dst)
    create_channel(src, dst, False, to)


def run_relay(ctx: Context, path_name: str) -> RelaySequences:
    """Relay every pending packet of a path in both directions; return the sequences found."""
    chains, src, dst = ctx.config.chains_from_path(path_name)
    strategy = _path_strategy(ctx, path_name)
    sh = SyncHeaders(chains[src], chains[dst])
    strategy.setup_relay(chains[src], chains[dst])
    sp = strategy.unrelayed_sequences(chains[src], chains[dst], sh)
    strategy.relay_packets(chains[src], chains[dst], sp, sh)
    return sp


def run_relay_acknowledgements(ctx: Context, path_name: str) -> RelaySequences:
    """Relay every pending acknowledgement of a path in both directions; return the sequences found."""
    chains, src, dst = ctx.config.chains_from_path(path_name)
    strategy = _path_strategy(ctx, path_name)
    sh = SyncHeaders(chains[src], chains[dst])
    # src: acked on src, not processed on dst; dst: the other way round
    sp = strategy.unrelayed_acknowledgements(chains[src], chains[dst], sh)
    strategy.relay_acknowledgements(chains[src], chains[dst], sp, sh)
    return sp


def run_service(
    ctx: Context,
    path_name: str,
    relay_interval: str | float | timedelta = DEFAULT_RELAY_INTERVAL,
    stop_event: threading.Event | None = None,
) -> None:
    """Relay over a path every ``relay_interval`` until ``stop_event`` is set."""
    chains, src, dst = ctx.config.chains_from_path(path_name)
    strategy = _path_strategy(ctx, path_name)
    strategy.setup_relay(chains[src], chains[dst])
    start_service(strategy, chains[src], chains[dst], _as_duration(relay_interval), stop_event)


def register(subparsers: Any, ctx: Context) -> None:
    """Add the ``tx`` and ``service`` commands."""
    tx = subparsers.add_parser(
        "tx",
        help="IBC Transaction Commands",
        description="Commands to create IBC transactions on configured chains.",
    )
    tx.set_defaults(func=lambda args: tx.print_help())
    sub = tx.add_subparsers()

    relay = sub.add_parser(
        "relay",
        help="relay any packets that remain to be relayed on a given path, in both directions",
    )
    relay.add_argument("path_name")
    relay.set_defaults(func=lambda args: run_relay(ctx, args.path_name))

    acks = sub.add_parser(
        "relay-acknowledgements",
        aliases=["acks"],
        help="relay any acknowledgements that remain to be relayed on a given path, in both directions",
    )
    acks.add_argument("path_name")
    acks.set_defaults(func=lambda args: run_relay_acknowledgements(ctx, args.path_name))

    clients = sub.add_parser(
        "clients", help="create a clients between two configured chains with a configured path"
    )
    clients.add_argument("path_name")
    clients.set_defaults(func=lambda args: run_create_clients(ctx, args.path_name))

    update = sub.add_parser(
        "update-clients",
        help="update the clients between two configured chains with a configured path",
    )
    update.add_argument("path_name")
    update.set_defaults(func=lambda args: run_update_clients(ctx, args.path_name))

    connection = sub.add_parser(
        "connection", help="create a connection between two configured chains with a configured path"
    )
    connection.add_argument("path_name")
    connection.add_argument(
        "-o", "--timeout", type=get_timeout, default=DEFAULT_TIMEOUT, help="timeout between relayer runs"
    )
    connection.set_defaults(func=lambda args: run_create_connection(ctx, args.path_name, args.timeout))

    channel = sub.add_parser(
        "channel", help="create a channel between two configured chains with a configured path"
    )
    channel.add_argument("path_name")
    channel.add_argument(
        "-o", "--timeout", type=get_timeout, default=DEFAULT_TIMEOUT, help="timeout between relayer runs"
    )
    channel.set_defaults(func=lambda args: run_create_channel(ctx, args.path_name, args.timeout))

    service = subparsers.add_parser(
        "service", help="Relay Service Commands", description="Commands to manage the relay service"
    )
    service.set_defaults(func=lambda args: service.print_help())
    service_sub = service.add_subparsers()
    start = service_sub.add_parser("start", help="start relaying over a path")
    start.add_argument("path_name")
    start.add_argument(
        "--relay-interval",
        type=get_timeout,
        default=DEFAULT_RELAY_INTERVAL,
        help="time interval to perform relays",
    )
    start.set_defaults(func=lambda args: run_service(ctx, args.path_name, args.relay_interval))