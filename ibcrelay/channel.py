"""Driving the channel handshake between two chains."""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any

from ibcrelay.connection import validate_paths
from ibcrelay.headers import SyncHeaders, query_channel_pair
from ibcrelay.ibc import Order, State
from ibcrelay.relaymsgs import RelayMsgs
from ibcrelay.retry import retry

logger = logging.getLogger(__name__)

_FAILURE_BACKOFF = 5.0
_MAX_FAILURES = 2


def _seconds(interval: float | timedelta) -> float:
    return interval.total_seconds() if isinstance(interval, timedelta) else float(interval)


def create_channel(src: Any, dst: Any, ordered: bool, timeout: float | timedelta) -> None:
    """Run channel handshake steps every ``timeout`` until the channel is open.

    Raises after three failed submissions in a row.
    """
    order = Order.ORDERED if ordered else Order.UNORDERED
    interval = _seconds(timeout)
    failures = 0
    while True:
        steps = _create_channel_step(src, dst, order)
        if not steps.ready():
            return
        steps.send(src, dst)

        if steps.success() and steps.last:
            logger.info(
                "★ Channel created: [%s]chan{%s}port{%s} -> [%s]chan{%s}port{%s}",
                src.chain_id(),
                src.path().channel_id,
                src.path().port_id,
                dst.chain_id(),
                dst.path().channel_id,
                dst.path().port_id,
            )
            return
        if steps.success():
            failures = 0
        else:
            failures += 1
            logger.info("retrying transaction...")
            time.sleep(_FAILURE_BACKOFF)
            if failures > _MAX_FAILURES:
                raise RuntimeError(
                    f"! Channel failed: [{src.chain_id()}]chan{{{src.path().client_id}}}"
                    f"port{{{src.path().channel_id}}} -> [{dst.chain_id()}]"
                    f"chan{{{dst.path().client_id}}}port{{{dst.path().channel_id}}}"
                )
        time.sleep(interval)


def _log_channel_states(src: Any, dst: Any, src_chan: Any, dst_chan: Any) -> None:
    logger.info(
        "- [%s]@{%d}chan(%s)-{%s} : [%s]@{%d}chan(%s)-{%s}",
        src.chain_id(),
        src_chan.proof_height.revision_height,
        src.path().channel_id,
        src_chan.channel.state.name,
        dst.chain_id(),
        dst_chan.proof_height.revision_height,
        dst.path().channel_id,
        dst_chan.channel.state.name,
    )


def _create_channel_step(src: Any, dst: Any, ordering: Order) -> RelayMsgs:
    out = RelayMsgs()
    validate_paths(src, dst)
    sh = SyncHeaders(src, dst)

    src_update_header, dst_update_header = retry(
        lambda: sh.get_headers(src, dst),
        on_retry=lambda n, err: sh.updates(src, dst),
    )

    src_chan, dst_chan = query_channel_pair(
        src,
        dst,
        sh.get_provable_height(src.chain_id()),
        sh.get_provable_height(dst.chain_id()),
    )
    src_state = src_chan.channel.state
    dst_state = dst_chan.channel.state

    def to_src(msg: Any, addr: Any) -> None:
        if dst_update_header is not None:
            out.src.append(src.path().update_client(dst_update_header, addr))
        out.src.append(msg)

    def to_dst(msg: Any, addr: Any) -> None:
        if src_update_header is not None:
            out.dst.append(dst.path().update_client(src_update_header, addr))
        out.dst.append(msg)

    states = (src_state, dst_state)
    if states == (State.UNINITIALIZED, State.UNINITIALIZED):
        # handshake not started: open-init on src
        _log_channel_states(src, dst, src_chan, dst_chan)
        addr = src.get_address()
        out.src.append(src.path().chan_init(dst.path(), addr))
    elif states == (State.UNINITIALIZED, State.INIT):
        _log_channel_states(src, dst, src_chan, dst_chan)
        addr = src.get_address()
        to_src(src.path().chan_try(dst.path(), dst_chan, addr), addr)
    elif states == (State.INIT, State.UNINITIALIZED):
        _log_channel_states(dst, src, dst_chan, src_chan)
        addr = dst.get_address()
        to_dst(dst.path().chan_try(src.path(), src_chan, addr), addr)
    elif states == (State.TRYOPEN, State.INIT):
        _log_channel_states(dst, src, dst_chan, src_chan)
        addr = dst.get_address()
        to_dst(dst.path().chan_ack(src.path(), src_chan, addr), addr)
    elif states == (State.INIT, State.TRYOPEN):
        _log_channel_states(src, dst, src_chan, dst_chan)
        addr = src.get_address()
        to_src(src.path().chan_ack(dst.path(), dst_chan, addr), addr)
    elif states == (State.TRYOPEN, State.OPEN):
        _log_channel_states(src, dst, src_chan, dst_chan)
        addr = src.get_address()
        to_src(src.path().chan_confirm(dst_chan, addr), addr)
        out.last = True
    elif states == (State.OPEN, State.TRYOPEN):
        _log_channel_states(dst, src, dst_chan, src_chan)
        addr = dst.get_address()
        to_dst(dst.path().chan_confirm(src_chan, addr), addr)
        out.last = True
    else:
        raise RuntimeError(f"not implemeneted error: {src_state.name} <=> {dst_state.name}")
    return out