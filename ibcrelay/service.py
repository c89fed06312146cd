"""A service relaying packets and acknowledgements at a fixed interval."""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Any

from ibcrelay.headers import SyncHeaders
from ibcrelay.retry import RETRY_ATTEMPTS, Unrecoverable, retry

logger = logging.getLogger(__name__)


class _Stopped(Exception):
    pass


def _seconds(interval: float | timedelta) -> float:
    return interval.total_seconds() if isinstance(interval, timedelta) else float(interval)


class RelayService:
    """Repeatedly relays between two chains with a given strategy."""

    def __init__(self, strategy: Any, src: Any, dst: Any, sh: Any, interval: float | timedelta) -> None:
        self.strategy = strategy
        self.src = src
        self.dst = dst
        self.sh = sh
        self.interval = _seconds(interval)

    def start(self, stop_event: threading.Event | None = None) -> None:
        """Relay until ``stop_event`` is set; raise once a round fails on every retry."""
        stop = stop_event if stop_event is not None else threading.Event()

        def attempt() -> None:
            if stop.is_set():
                raise Unrecoverable(_Stopped())
            self.serve()

        def on_retry(n: int, err: Exception) -> None:
            logger.info(
                "- [%s][%s]try(%d/%d) relay-service: %s",
                self.src.chain_id(),
                self.dst.chain_id(),
                n + 1,
                RETRY_ATTEMPTS,
                err,
            )

        while True:
            try:
                retry(attempt, on_retry=on_retry)
            except _Stopped:
                return
            if stop.wait(self.interval):
                return

    def serve(self) -> None:
        """Perform one round: update headers, then relay packets and acknowledgements."""
        self.sh.updates(self.src, self.dst)

        packet_seqs = self.strategy.unrelayed_sequences(self.src, self.dst, self.sh)
        self.strategy.relay_packets(self.src, self.dst, packet_seqs, self.sh)

        ack_seqs = self.strategy.unrelayed_acknowledgements(self.src, self.dst, self.sh)
        self.strategy.relay_acknowledgements(self.src, self.dst, ack_seqs, self.sh)


def start_service(
    strategy: Any,
    src: Any,
    dst: Any,
    relay_interval: float | timedelta,
    stop_event: threading.Event | None = None,
) -> None:
    """Start a relay service between ``src`` and ``dst``."""
    sh = SyncHeaders(src, dst)
    RelayService(strategy, src, dst, sh, relay_interval).start(stop_event)