"""Interfaces of chains and provers, and the chain that pairs the two."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

_MISSING = object()


class IBCQuerier(ABC):
    """Queries of IBC state on a chain."""

    @abstractmethod
    def query_client_consensus_state(self, height, dst_client_cons_height): ...

    @abstractmethod
    def query_client_state(self, height): ...

    @abstractmethod
    def query_connection(self, height): ...

    @abstractmethod
    def query_channel(self, height): ...

    @abstractmethod
    def query_packet_commitment(self, height, seq): ...

    @abstractmethod
    def query_packet_acknowledgement_commitment(self, height, seq): ...

    @abstractmethod
    def query_packet_commitments(self, offset, limit, height): ...

    @abstractmethod
    def query_unreceived_packets(self, height, seqs): ...

    @abstractmethod
    def query_packet_acknowledgement_commitments(self, offset, limit, height): ...

    @abstractmethod
    def query_unreceived_acknowledgements(self, height, seqs): ...

    @abstractmethod
    def query_packet(self, height, sequence): ...

    @abstractmethod
    def query_packet_acknowledgement(self, height, sequence): ...

    @abstractmethod
    def query_balance(self, address): ...

    @abstractmethod
    def query_denom_traces(self, offset, limit, height): ...


class IBCProvableQuerier(ABC):
    """Queries of IBC state that come with proofs."""

    @abstractmethod
    def query_client_consensus_state_with_proof(self, height, dst_client_cons_height): ...

    @abstractmethod
    def query_client_state_with_proof(self, height): ...

    @abstractmethod
    def query_connection_with_proof(self, height): ...

    @abstractmethod
    def query_channel_with_proof(self, height): ...

    @abstractmethod
    def query_packet_commitment_with_proof(self, height, seq): ...

    @abstractmethod
    def query_packet_acknowledgement_commitment_with_proof(self, height, seq): ...


class MsgEventListener(ABC):
    """Callback invoked when messages are sent to a chain."""

    @abstractmethod
    def on_sent_msg(self, msgs): ...


class Chain(IBCQuerier):
    """A chain that accepts transactions and answers state queries."""

    @abstractmethod
    def chain_id(self) -> str: ...

    @abstractmethod
    def get_latest_height(self) -> int: ...

    @abstractmethod
    def get_address(self): ...

    @abstractmethod
    def codec(self): ...

    @abstractmethod
    def set_relay_info(self, path, counterparty, counterparty_path) -> None: ...

    @abstractmethod
    def path(self): ...

    @abstractmethod
    def send_msgs(self, msgs) -> bytes: ...

    @abstractmethod
    def send(self, msgs) -> bool:
        """Send messages, log the result and report whether it succeeded."""

    @abstractmethod
    def init(self, home_path, timeout, codec, debug) -> None: ...

    @abstractmethod
    def setup_for_relay(self) -> None: ...

    @abstractmethod
    def register_msg_event_listener(self, listener: MsgEventListener) -> None: ...


class LightClient(ABC):
    """A light client tracking a chain's headers."""

    @abstractmethod
    def get_chain_id(self) -> str: ...

    @abstractmethod
    def query_header(self, height): ...

    @abstractmethod
    def query_latest_header(self): ...

    @abstractmethod
    def get_latest_light_height(self) -> int: ...

    @abstractmethod
    def create_msg_create_client(self, client_id, dst_header, signer): ...

    @abstractmethod
    def setup_header(self, dst, base_src_header): ...

    @abstractmethod
    def update_light_with_header(self):
        """Return ``(header, provable_height, queryable_height)``."""


class Prover(LightClient, IBCProvableQuerier):
    """Produces commitment proofs for a chain."""

    @abstractmethod
    def init(self, home_path, timeout, codec, debug) -> None: ...

    @abstractmethod
    def set_relay_info(self, path, counterparty, counterparty_path) -> None: ...

    @abstractmethod
    def setup_for_relay(self) -> None: ...


class ProvableChain:
    """A chain paired with its prover; attributes resolve on the chain, then the prover."""

    def __init__(self, chain: Any, prover: Any) -> None:
        self.chain = chain
        self.prover = prover

    def __getattr__(self, name: str) -> Any:
        if name in ("chain", "prover"):
            raise AttributeError(name)
        for target in (self.__dict__.get("chain"), self.__dict__.get("prover")):
            if target is None:
                continue
            value = getattr(target, name, _MISSING)
            if value is not _MISSING:
                return value
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def init(self, home_path, timeout, codec, debug) -> None:
        """Initialise the chain, then the prover."""
        self.chain.init(home_path, timeout, codec, debug)
        self.prover.init(home_path, timeout, codec, debug)

    def set_relay_info(self, path, counterparty, counterparty_path) -> None:
        """Hand the path and counterparty to the chain, then the prover."""
        self.chain.set_relay_info(path, counterparty, counterparty_path)
        self.prover.set_relay_info(path, counterparty, counterparty_path)

    def setup_for_relay(self) -> None:
        """Prepare the chain, then the prover, for relaying."""
        self.chain.setup_for_relay()
        self.prover.setup_for_relay()