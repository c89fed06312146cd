"""Driving the connection handshake between two chains."""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any

from ibcrelay.headers import (
    SyncHeaders,
    query_client_consensus_state_pair,
    query_client_state_pair,
    query_connection_pair,
)
from ibcrelay.ibc import State
from ibcrelay.relaymsgs import RelayMsgs
from ibcrelay.retry import retry

logger = logging.getLogger(__name__)

_FAILURE_BACKOFF = 5.0
_MAX_FAILURES = 2


def _seconds(interval: float | timedelta) -> float:
    return interval.total_seconds() if isinstance(interval, timedelta) else float(interval)


def validate_paths(src: Any, dst: Any) -> None:
    """Raise if the path end set on either chain is invalid."""
    for chain in (src, dst):
        try:
            chain.path().validate()
        except ValueError as exc:
            raise ValueError(f"path on chain {chain.chain_id()} failed to set: {exc}") from exc


def _describe(chain: Any) -> str:
    end = chain.path()
    return f"[{chain.chain_id()}]client{{{end.client_id}}}conn{{{end.connection_id}}}"


def create_connection(src: Any, dst: Any, timeout: float | timedelta) -> None:
    """Run connection handshake steps every ``timeout`` until the connection is open.

    Raises after three failed submissions in a row.
    """
    interval = _seconds(timeout)
    failed = 0
    while True:
        steps = _create_connection_step(src, dst)
        if not steps.ready():
            return
        steps.send(src, dst)

        if steps.success() and steps.last:
            logger.info("★ Connection created: %s -> %s", _describe(src), _describe(dst))
            return
        if steps.success():
            failed = 0
        else:
            failed += 1
            logger.info("retrying transaction...")
            time.sleep(_FAILURE_BACKOFF)
            if failed > _MAX_FAILURES:
                raise RuntimeError(f"! Connection failed: {_describe(src)} -> {_describe(dst)}")
        time.sleep(interval)


def _log_connection_states(src: Any, dst: Any, src_conn: Any, dst_conn: Any) -> None:
    logger.info(
        "- [%s]@{%d}conn(%s)-{%s} : [%s]@{%d}conn(%s)-{%s}",
        src.chain_id(),
        src_conn.proof_height.revision_height,
        src.path().connection_id,
        src_conn.connection.state.name,
        dst.chain_id(),
        dst_conn.proof_height.revision_height,
        dst.path().connection_id,
        dst_conn.connection.state.name,
    )


def _create_connection_step(src: Any, dst: Any) -> RelayMsgs:
    out = RelayMsgs()
    validate_paths(src, dst)
    sh = SyncHeaders(src, dst)

    src_update_header, dst_update_header = retry(
        lambda: sh.get_headers(src, dst),
        on_retry=lambda n, err: sh.updates(src, dst),
    )

    src_height = sh.get_provable_height(src.chain_id())
    dst_height = sh.get_provable_height(dst.chain_id())
    src_conn, dst_conn = query_connection_pair(src, dst, src_height, dst_height)
    src_state = src_conn.connection.state
    dst_state = dst_conn.connection.state

    src_cs_res = dst_cs_res = src_cons = dst_cons = None
    if not (src_state == State.UNINITIALIZED and dst_state == State.UNINITIALIZED):
        src_cs_res, dst_cs_res = query_client_state_pair(src, dst, src_height, dst_height)
        src_cons_height = src_cs_res.client_state.get_latest_height()
        dst_cons_height = dst_cs_res.client_state.get_latest_height()
        src_cons, dst_cons = query_client_consensus_state_pair(
            src, dst, src_height, dst_height, src_cons_height, dst_cons_height
        )

    def to_src(*msgs: Any) -> None:
        if dst_update_header is not None:
            out.src.append(src.path().update_client(dst_update_header, addr))
        out.src.extend(msgs)

    def to_dst(*msgs: Any) -> None:
        if src_update_header is not None:
            out.dst.append(dst.path().update_client(src_update_header, addr))
        out.dst.extend(msgs)

    states = (src_state, dst_state)
    if states == (State.UNINITIALIZED, State.UNINITIALIZED):
        # handshake not started: open-init on src
        _log_connection_states(src, dst, src_conn, dst_conn)
        addr = src.get_address()
        to_src(src.path().conn_init(dst.path(), addr))
    elif states == (State.UNINITIALIZED, State.INIT):
        _log_connection_states(src, dst, src_conn, dst_conn)
        addr = src.get_address()
        to_src(src.path().conn_try(dst.path(), dst_cs_res, dst_conn, dst_cons, addr))
    elif states == (State.INIT, State.UNINITIALIZED):
        _log_connection_states(dst, src, dst_conn, src_conn)
        addr = dst.get_address()
        to_dst(dst.path().conn_try(src.path(), src_cs_res, src_conn, src_cons, addr))
    elif states == (State.TRYOPEN, State.INIT):
        _log_connection_states(dst, src, dst_conn, src_conn)
        addr = dst.get_address()
        to_dst(dst.path().conn_ack(src.path(), src_cs_res, src_conn, src_cons, addr))
    elif states == (State.INIT, State.TRYOPEN):
        _log_connection_states(src, dst, src_conn, dst_conn)
        addr = src.get_address()
        to_src(src.path().conn_ack(dst.path(), dst_cs_res, dst_conn, dst_cons, addr))
    elif states == (State.TRYOPEN, State.OPEN):
        _log_connection_states(src, dst, src_conn, dst_conn)
        addr = src.get_address()
        to_src(src.path().conn_confirm(dst_conn, addr))
        out.last = True
    elif states == (State.OPEN, State.TRYOPEN):
        _log_connection_states(dst, src, dst_conn, src_conn)
        addr = dst.get_address()
        to_dst(dst.path().conn_confirm(src_conn, addr))
        out.last = True
    else:
        raise RuntimeError(f"not implemented error: {src_state.name} {dst_state.name}")
    return out