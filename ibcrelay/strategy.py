"""Relay strategies: finding unrelayed packets and acknowledgements and relaying them."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ibcrelay.ibc import MsgAcknowledgement, MsgRecvPacket
from ibcrelay.relaymsgs import RelayMsgs
from ibcrelay.retry import RETRY_ATTEMPTS, retry

logger = logging.getLogger(__name__)

A = TypeVar("A")
B = TypeVar("B")

_QUERY_LIMIT = 1000


@dataclass
class RelaySequences:
    """Sequences still to be relayed from the source and from the destination."""

    src: list[int] = field(default_factory=list)
    dst: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[int]]:
        return {"src": list(self.src), "dst": list(self.dst)}


@dataclass
class StrategyCfg:
    """Names the relaying strategy of a path."""

    type: str = ""


class Strategy(ABC):
    """A way of relaying packets and acknowledgements between two chains."""

    @abstractmethod
    def get_type(self) -> str: ...

    @abstractmethod
    def setup_relay(self, src: Any, dst: Any) -> None: ...

    @abstractmethod
    def unrelayed_sequences(self, src: Any, dst: Any, sh: Any) -> RelaySequences: ...

    @abstractmethod
    def relay_packets(self, src: Any, dst: Any, sp: RelaySequences, sh: Any) -> None: ...

    @abstractmethod
    def unrelayed_acknowledgements(self, src: Any, dst: Any, sh: Any) -> RelaySequences: ...

    @abstractmethod
    def relay_acknowledgements(self, src: Any, dst: Any, sp: RelaySequences, sh: Any) -> None: ...


def _in_parallel(first: Callable[[], A], second: Callable[[], B]) -> tuple[A, B]:
    with ThreadPoolExecutor(max_workers=2) as pool:
        first_future = pool.submit(first)
        second_future = pool.submit(second)
        return first_future.result(), second_future.result()


def _query_sequences(
    chain: Any,
    sh: Any,
    query_name: str,
    label: str,
    items_attr: str,
    refresh: Callable[[], None] | None = None,
) -> list[int]:
    query = getattr(chain, query_name)

    def attempt() -> Any:
        res = query(0, _QUERY_LIMIT, sh.get_queryable_height(chain.chain_id()))
        if res is None:
            raise RuntimeError(
                f"No error on {label} for {chain.chain_id()}, however response is nil"
            )
        return res

    def on_retry(n: int, err: Exception) -> None:
        logger.info(
            "- [%s]@{%d} - try(%d/%d) query %s: %s",
            chain.chain_id(),
            sh.get_queryable_height(chain.chain_id()),
            n + 1,
            RETRY_ATTEMPTS,
            items_attr.replace("_", " "),
            err,
        )
        if refresh is not None:
            try:
                refresh()
            except Exception as exc:  # noqa: BLE001 - a failed refresh only delays the retry
                logger.info("failed to update headers: %s", exc)

    res = retry(attempt, on_retry=on_retry)
    return [item.sequence for item in getattr(res, items_attr)]


def _relay_packets(chain: Any, seqs: list[int], sh: Any, sender: Any) -> list[MsgRecvPacket]:
    msgs = []
    for seq in seqs:
        queryable = sh.get_queryable_height(chain.chain_id())
        try:
            packet = chain.query_packet(queryable, seq)
        except Exception as exc:
            logger.info("failed to QueryPacket: %s %s %s", queryable, seq, exc)
            raise
        provable = sh.get_provable_height(chain.chain_id())
        try:
            res = chain.query_packet_commitment_with_proof(provable, seq)
        except Exception as exc:
            logger.info("failed to QueryPacketCommitment: %s %s %s", provable, seq, exc)
            raise
        msgs.append(
            MsgRecvPacket(
                packet=packet,
                proof_commitment=res.proof,
                proof_height=res.proof_height,
                signer=str(sender),
            )
        )
    return msgs


def _relay_acks(
    receiver_chain: Any, sender_chain: Any, seqs: list[int], sh: Any, sender: Any
) -> list[MsgAcknowledgement]:
    msgs = []
    for seq in seqs:
        packet = sender_chain.query_packet(sh.get_queryable_height(sender_chain.chain_id()), seq)
        ack = receiver_chain.query_packet_acknowledgement(
            sh.get_queryable_height(receiver_chain.chain_id()), seq
        )
        res = receiver_chain.query_packet_acknowledgement_commitment_with_proof(
            sh.get_provable_height(receiver_chain.chain_id()), seq
        )
        msgs.append(
            MsgAcknowledgement(
                packet=packet,
                acknowledgement=ack,
                proof_acked=res.proof,
                proof_height=res.proof_height,
                signer=str(sender),
            )
        )
    return msgs


def _log_packets_relayed(src: Any, dst: Any, num: int) -> None:
    logger.info(
        "★ Relayed %d packets: [%s]port{%s}->[%s]port{%s}",
        num,
        dst.chain_id(),
        dst.path().port_id,
        src.chain_id(),
        src.path().port_id,
    )


@dataclass
class NaiveStrategy(Strategy):
    """Relays every pending packet and acknowledgement in both directions."""

    ordered: bool = False
    max_tx_size: int = 0
    max_msg_length: int = 0

    def get_type(self) -> str:
        return "naive"

    def setup_relay(self, src: Any, dst: Any) -> None:
        """Prepare both chains for relaying."""
        src.setup_for_relay()
        dst.setup_for_relay()

    def unrelayed_sequences(self, src: Any, dst: Any, sh: Any) -> RelaySequences:
        """Return the packets committed on each chain that the other has not received."""
        src_seqs, dst_seqs = _in_parallel(
            lambda: _query_sequences(
                src, sh, "query_packet_commitments", "QueryPacketCommitments", "packet_commitments"
            ),
            lambda: _query_sequences(
                dst, sh, "query_packet_commitments", "QueryPacketCommitments", "packet_commitments"
            ),
        )
        # packets sent by src not yet received by dst, and the other way round
        to_dst, to_src = _in_parallel(
            lambda: dst.query_unreceived_packets(sh.get_queryable_height(dst.chain_id()), src_seqs),
            lambda: src.query_unreceived_packets(sh.get_queryable_height(src.chain_id()), dst_seqs),
        )
        rs = RelaySequences()
        if to_dst is not None:
            rs.src = list(to_dst)
        if to_src is not None:
            rs.dst = list(to_src)
        return rs

    def unrelayed_acknowledgements(self, src: Any, dst: Any, sh: Any) -> RelaySequences:
        """Return the acknowledgements written on each chain not yet processed by the other."""

        def refresh() -> None:
            sh.updates(src, dst)

        src_seqs, dst_seqs = _in_parallel(
            lambda: _query_sequences(
                src,
                sh,
                "query_packet_acknowledgement_commitments",
                "QueryPacketUnrelayedAcknowledgements",
                "acknowledgements",
                refresh,
            ),
            lambda: _query_sequences(
                dst,
                sh,
                "query_packet_acknowledgement_commitments",
                "QueryPacketUnrelayedAcknowledgements",
                "acknowledgements",
                refresh,
            ),
        )
        to_dst, to_src = _in_parallel(
            lambda: dst.query_unreceived_acknowledgements(
                sh.get_queryable_height(dst.chain_id()), src_seqs
            ),
            lambda: src.query_unreceived_acknowledgements(
                sh.get_queryable_height(src.chain_id()), dst_seqs
            ),
        )
        rs = RelaySequences()
        if to_dst is not None:
            rs.src = list(to_dst)
        if to_src is not None:
            rs.dst = list(to_src)
        return rs

    def _new_msgs(self) -> RelayMsgs:
        return RelayMsgs(max_tx_size=self.max_tx_size, max_msg_length=self.max_msg_length)

    def _prepend_updates_and_send(self, msgs: RelayMsgs, src: Any, dst: Any, sh: Any) -> None:
        if msgs.dst:
            header = sh.get_header(src, dst)
            addr = dst.get_address()
            if header is not None:
                msgs.dst.insert(0, dst.path().update_client(header, addr))
        if msgs.src:
            header = sh.get_header(dst, src)
            addr = src.get_address()
            if header is not None:
                msgs.src.insert(0, src.path().update_client(header, addr))

        msgs.send(src, dst)
        if msgs.success():
            if len(msgs.dst) > 1:
                _log_packets_relayed(dst, src, len(msgs.dst) - 1)
            if len(msgs.src) > 1:
                _log_packets_relayed(src, dst, len(msgs.src) - 1)

    def relay_packets(self, src: Any, dst: Any, sp: RelaySequences, sh: Any) -> None:
        """Send receive-packet messages for the given sequences to both chains."""
        msgs = self._new_msgs()
        msgs.dst = _relay_packets(src, sp.src, sh, dst.get_address())
        msgs.src = _relay_packets(dst, sp.dst, sh, src.get_address())
        if not msgs.ready():
            logger.info(
                "- No packets to relay between [%s]port{%s} and [%s]port{%s}",
                src.chain_id(),
                src.path().port_id,
                dst.chain_id(),
                dst.path().port_id,
            )
            return
        self._prepend_updates_and_send(msgs, src, dst, sh)

    def relay_acknowledgements(self, src: Any, dst: Any, sp: RelaySequences, sh: Any) -> None:
        """Send acknowledgement messages for the given sequences to both chains."""
        msgs = self._new_msgs()
        msgs.dst = _relay_acks(src, dst, sp.src, sh, dst.get_address())
        msgs.src = _relay_acks(dst, src, sp.dst, sh, src.get_address())
        if not msgs.ready():
            logger.info(
                "- No acknowledgements to relay between [%s]port{%s} and [%s]port{%s}",
                src.chain_id(),
                src.path().port_id,
                dst.chain_id(),
                dst.path().port_id,
            )
            return
        self._prepend_updates_and_send(msgs, src, dst, sh)


def get_strategy(cfg: StrategyCfg) -> Strategy:
    """Return the strategy a configuration names."""
    if cfg.type == "naive":
        return NaiveStrategy()
    raise ValueError(f"unknown strategy type '{cfg.type}'")