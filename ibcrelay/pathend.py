"""One end of a relay path and the messages it builds."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from ibcrelay.ibc import (
    ChannelResponse,
    ClientStateResponse,
    Coin,
    ConnectionResponse,
    ConsensusStateResponse,
    FungibleTokenPacketData,
    Header,
    Height,
    IdentifierError,
    MsgChannelCloseConfirm,
    MsgChannelCloseInit,
    MsgChannelOpenAck,
    MsgChannelOpenConfirm,
    MsgChannelOpenInit,
    MsgChannelOpenTry,
    MsgConnectionOpenAck,
    MsgConnectionOpenConfirm,
    MsgConnectionOpenInit,
    MsgConnectionOpenTry,
    MsgTransfer,
    MsgUpdateClient,
    Order,
    Packet,
    parse_chain_id,
    validate_channel_identifier,
    validate_client_identifier,
    validate_connection_identifier,
    validate_port_identifier,
)

DEFAULT_CHAIN_PREFIX = b"ibc"
DEFAULT_DELAY_PERIOD = 0

_COMPATIBLE_VERSIONS = ({"identifier": "1", "features": ["ORDER_ORDERED", "ORDER_UNORDERED"]},)

_DICT_KEYS = (
    ("chain_id", "chain-id"),
    ("client_id", "client-id"),
    ("connection_id", "connection-id"),
    ("channel_id", "channel-id"),
    ("port_id", "port-id"),
    ("order", "order"),
    ("version", "version"),
)


def order_from_string(order: str) -> Order:
    """Map ``ORDERED``/``UNORDERED`` to an ``Order``; anything else is ``Order.NONE``."""
    return {"UNORDERED": Order.UNORDERED, "ORDERED": Order.ORDERED}.get(order, Order.NONE)


def _compatible_versions() -> list[dict[str, Any]]:
    return copy.deepcopy(list(_COMPATIBLE_VERSIONS))


def _client_latest_height(client_state: Any) -> Height:
    if client_state is None:
        raise ValueError("client state is missing from the response")
    return client_state.get_latest_height()


def _check_conn_try(msg: MsgConnectionOpenTry) -> None:
    validate_client_identifier(msg.client_id)
    if msg.counterparty_connection_id:
        validate_connection_identifier(msg.counterparty_connection_id)
    validate_client_identifier(msg.counterparty_client_id)
    if not msg.counterparty_prefix:
        raise ValueError("counterparty prefix cannot be empty")
    if not msg.counterparty_versions:
        raise ValueError("empty counterparty versions")
    for name in ("proof_init", "proof_client", "proof_consensus"):
        if not getattr(msg, name):
            raise ValueError(f"cannot submit an empty {name.replace('_', ' ')}")
    if msg.proof_height == Height():
        raise ValueError("proof height cannot be zero")
    if msg.consensus_height == Height():
        raise ValueError("consensus height cannot be zero")
    if not msg.signer.strip():
        raise ValueError("signer address cannot be empty")


@dataclass
class PathEnd:
    """Identifiers of one chain's side of a relay path."""

    chain_id: str = ""
    client_id: str = ""
    connection_id: str = ""
    channel_id: str = ""
    port_id: str = ""
    order: str = ""
    version: str = ""

    def get_order(self) -> Order:
        """Return the channel order, case-insensitively."""
        return order_from_string(self.order.upper())

    def validate_client(self) -> None:
        validate_client_identifier(self.client_id)

    def validate_connection(self) -> None:
        validate_connection_identifier(self.connection_id)

    def validate_channel(self) -> None:
        validate_channel_identifier(self.channel_id)

    def validate_port(self) -> None:
        validate_port_identifier(self.port_id)

    def validate_version(self) -> None:
        """Check that the version is text; its content is not constrained."""
        if not isinstance(self.version, str):
            raise TypeError(f"version must be a string, got {type(self.version).__name__}")

    def validate(self) -> None:
        """Raise if any identifier is invalid or the order is unknown."""
        self.validate_client()
        self.validate_connection()
        self.validate_channel()
        self.validate_port()
        if self.order.upper() not in ("ORDERED", "UNORDERED"):
            raise ValueError(f"channel must be either 'ORDERED' or 'UNORDERED' is '{self.order}'")

    def __str__(self) -> str:
        return (
            f"{self.chain_id}:cl({self.client_id}):co({self.connection_id})"
            f":ch({self.channel_id}):pt({self.port_id})"
        )

    def to_dict(self) -> dict[str, str]:
        """Return the configuration mapping, leaving out empty fields."""
        return {key: getattr(self, attr) for attr, key in _DICT_KEYS if getattr(self, attr)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PathEnd:
        """Build a path end from a configuration mapping."""
        return cls(**{attr: str(data.get(key, "") or "") for attr, key in _DICT_KEYS})

    def update_client(self, dst_header: Header, signer: Any) -> MsgUpdateClient:
        """Build a message updating this end's client with a counterparty header."""
        dst_header.validate_basic()
        return MsgUpdateClient(client_id=self.client_id, header=dst_header, signer=str(signer))

    def conn_init(self, dst: PathEnd, signer: Any) -> MsgConnectionOpenInit:
        return MsgConnectionOpenInit(
            client_id=self.client_id,
            counterparty_client_id=dst.client_id,
            counterparty_prefix=DEFAULT_CHAIN_PREFIX,
            version=None,
            delay_period=DEFAULT_DELAY_PERIOD,
            signer=str(signer),
        )

    def conn_try(
        self,
        dst: PathEnd,
        dst_client_state: ClientStateResponse,
        dst_conn_state: ConnectionResponse,
        dst_cons_state: ConsensusStateResponse,
        signer: Any,
    ) -> MsgConnectionOpenTry:
        client_state = dst_client_state.client_state
        msg = MsgConnectionOpenTry(
            client_id=self.client_id,
            counterparty_connection_id=dst.connection_id,
            counterparty_client_id=dst.client_id,
            client_state=client_state,
            counterparty_prefix=DEFAULT_CHAIN_PREFIX,
            counterparty_versions=_compatible_versions(),
            delay_period=DEFAULT_DELAY_PERIOD,
            proof_init=dst_conn_state.proof,
            proof_client=dst_client_state.proof,
            proof_consensus=dst_cons_state.proof,
            proof_height=dst_conn_state.proof_height,
            consensus_height=_client_latest_height(client_state),
            signer=str(signer),
        )
        try:
            _check_conn_try(msg)
        except IdentifierError:
            raise
        return msg

    def conn_ack(
        self,
        dst: PathEnd,
        dst_client_state: ClientStateResponse,
        dst_conn_state: ConnectionResponse,
        dst_cons_state: ConsensusStateResponse,
        signer: Any,
    ) -> MsgConnectionOpenAck:
        client_state = dst_client_state.client_state
        return MsgConnectionOpenAck(
            connection_id=self.connection_id,
            counterparty_connection_id=dst.connection_id,
            client_state=client_state,
            proof_try=dst_conn_state.proof,
            proof_client=dst_client_state.proof,
            proof_consensus=dst_cons_state.proof,
            proof_height=dst_cons_state.proof_height,
            consensus_height=_client_latest_height(client_state),
            version=_compatible_versions()[0],
            signer=str(signer),
        )

    def conn_confirm(self, dst_conn_state: ConnectionResponse, signer: Any) -> MsgConnectionOpenConfirm:
        return MsgConnectionOpenConfirm(
            connection_id=self.connection_id,
            proof_ack=dst_conn_state.proof,
            proof_height=dst_conn_state.proof_height,
            signer=str(signer),
        )

    def chan_init(self, dst: PathEnd, signer: Any) -> MsgChannelOpenInit:
        return MsgChannelOpenInit(
            port_id=self.port_id,
            version=self.version,
            ordering=self.get_order(),
            connection_hops=[self.connection_id],
            counterparty_port_id=dst.port_id,
            signer=str(signer),
        )

    def chan_try(self, dst: PathEnd, dst_chan_state: ChannelResponse, signer: Any) -> MsgChannelOpenTry:
        return MsgChannelOpenTry(
            port_id=self.port_id,
            version=self.version,
            ordering=dst_chan_state.channel.ordering,
            connection_hops=[self.connection_id],
            counterparty_port_id=dst.port_id,
            counterparty_channel_id=dst.channel_id,
            counterparty_version=dst_chan_state.channel.version,
            proof_init=dst_chan_state.proof,
            proof_height=dst_chan_state.proof_height,
            signer=str(signer),
        )

    def chan_ack(self, dst: PathEnd, dst_chan_state: ChannelResponse, signer: Any) -> MsgChannelOpenAck:
        return MsgChannelOpenAck(
            port_id=self.port_id,
            channel_id=self.channel_id,
            counterparty_channel_id=dst.channel_id,
            counterparty_version=dst_chan_state.channel.version,
            proof_try=dst_chan_state.proof,
            proof_height=dst_chan_state.proof_height,
            signer=str(signer),
        )

    def chan_confirm(self, dst_chan_state: ChannelResponse, signer: Any) -> MsgChannelOpenConfirm:
        return MsgChannelOpenConfirm(
            port_id=self.port_id,
            channel_id=self.channel_id,
            proof_ack=dst_chan_state.proof,
            proof_height=dst_chan_state.proof_height,
            signer=str(signer),
        )

    def chan_close_init(self, signer: Any) -> MsgChannelCloseInit:
        return MsgChannelCloseInit(port_id=self.port_id, channel_id=self.channel_id, signer=str(signer))

    def chan_close_confirm(self, dst_chan_state: ChannelResponse, signer: Any) -> MsgChannelCloseConfirm:
        return MsgChannelCloseConfirm(
            port_id=self.port_id,
            channel_id=self.channel_id,
            proof_init=dst_chan_state.proof,
            proof_height=dst_chan_state.proof_height,
            signer=str(signer),
        )

    def msg_transfer(
        self,
        dst: PathEnd,
        amount: Coin,
        dst_addr: str,
        signer: Any,
        timeout_height: int,
        timeout_timestamp: int,
    ) -> MsgTransfer:
        """Build a token transfer from this end to ``dst``."""
        return MsgTransfer(
            source_port=self.port_id,
            source_channel=self.channel_id,
            token=amount,
            sender=str(signer),
            receiver=dst_addr,
            timeout_height=Height(parse_chain_id(dst.chain_id), timeout_height),
            timeout_timestamp=timeout_timestamp,
        )

    def new_packet(
        self,
        dst: PathEnd,
        sequence: int,
        packet_data: bytes,
        timeout_height: int,
        timeout_stamp: int,
    ) -> Packet:
        """Build a packet travelling from this end to ``dst``."""
        return Packet(
            data=packet_data,
            sequence=sequence,
            source_port=self.port_id,
            source_channel=self.channel_id,
            destination_port=dst.port_id,
            destination_channel=dst.channel_id,
            timeout_height=Height(parse_chain_id(dst.chain_id), timeout_height),
            timeout_timestamp=timeout_stamp,
        )

    def xfer_packet(self, amount: Coin, sender: str, receiver: str) -> bytes:
        """Return the transfer packet payload for ``amount``."""
        return FungibleTokenPacketData(
            denom=amount.denom, amount=str(amount.amount), sender=sender, receiver=receiver
        ).get_bytes()