"""Creating and updating light clients, and sending token transfers."""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any

from ibcrelay.headers import SyncHeaders, updates_with_headers
from ibcrelay.relaymsgs import RelayMsgs

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_HEIGHT_OFFSET = 1000


def _nanoseconds(offset: float | timedelta) -> int:
    if isinstance(offset, timedelta):
        return (offset.days * 86_400 + offset.seconds) * 1_000_000_000 + offset.microseconds * 1_000
    return int(offset * 1_000_000_000)


def create_clients(src: Any, dst: Any) -> RelayMsgs:
    """Create on each chain a client tracking the other, and return the messages sent."""
    clients = RelayMsgs()
    src_header, dst_header = updates_with_headers(src, dst)
    src_addr = src.get_address()
    dst_addr = dst.get_address()

    clients.src.append(dst.create_msg_create_client(src.path().client_id, dst_header, src_addr))
    clients.dst.append(src.create_msg_create_client(dst.path().client_id, src_header, dst_addr))

    if clients.ready():
        clients.send(src, dst)
        if clients.success():
            logger.info(
                "★ Clients created: [%s]client(%s) and [%s]client(%s)",
                src.chain_id(),
                src.path().client_id,
                dst.chain_id(),
                dst.path().client_id,
            )
    return clients


def update_clients(src: Any, dst: Any) -> RelayMsgs:
    """Update the clients on both chains to the latest headers, and return the messages sent."""
    clients = RelayMsgs()
    sh = SyncHeaders(src, dst)
    src_header, dst_header = sh.get_headers(src, dst)
    if dst_header is not None:
        clients.src.append(src.path().update_client(dst_header, src.get_address()))
    if src_header is not None:
        clients.dst.append(dst.path().update_client(src_header, dst.get_address()))

    if clients.ready():
        clients.send(src, dst)
        if clients.success():
            logger.info(
                "★ Clients updated: [%s]client(%s) and [%s]client(%s)",
                src.chain_id(),
                src.path().client_id,
                dst.chain_id(),
                dst.path().client_id,
            )
    return clients


def send_transfer_msg(
    src: Any,
    dst: Any,
    amount: Any,
    dst_addr: Any,
    timeout_height_offset: int = 0,
    timeout_time_offset: float | timedelta = 0,
) -> None:
    """Send a token transfer from ``src`` to ``dst_addr`` on ``dst``.

    The timeout is a height offset, a time offset, or by default 1000 blocks
    past the destination's latest header; both offsets may not be given.
    """
    header = dst.query_latest_header()
    dst_addr_string = str(dst_addr)
    time_offset_ns = _nanoseconds(timeout_time_offset)

    if timeout_height_offset > 0 and time_offset_ns > 0:
        raise ValueError("cant set both timeout height and time offset")
    if timeout_height_offset > 0:
        timeout_height = header.get_height().revision_height + timeout_height_offset
        timeout_timestamp = 0
    elif time_offset_ns > 0:
        timeout_height = 0
        timeout_timestamp = time.time_ns() + time_offset_ns
    else:
        timeout_height = header.get_height().revision_height + _DEFAULT_TIMEOUT_HEIGHT_OFFSET
        timeout_timestamp = 0

    src_addr = src.get_address()
    txs = RelayMsgs(
        src=[
            src.path().msg_transfer(
                dst.path(), amount, dst_addr_string, src_addr, timeout_height, timeout_timestamp
            )
        ]
    )
    txs.send(src, dst)
    if not txs.success():
        raise RuntimeError("failed to send transfer message")