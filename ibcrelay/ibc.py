"""Core IBC data types: heights, orderings, states, packets, query responses and messages."""

from __future__ import annotations

import base64
import dataclasses
import json
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, ClassVar


class IdentifierError(ValueError):
    """Raised when an IBC identifier fails validation."""


@dataclass(frozen=True, order=True)
class Height:
    """A revision number paired with a block height on that revision."""

    revision_number: int = 0
    revision_height: int = 0

    def __str__(self) -> str:
        return f"{self.revision_number}-{self.revision_height}"


class Order(IntEnum):
    """Channel packet ordering."""

    NONE = 0
    UNORDERED = 1
    ORDERED = 2


class State(IntEnum):
    """Handshake state of a connection or a channel."""

    UNINITIALIZED = 0
    INIT = 1
    TRYOPEN = 2
    OPEN = 3
    CLOSED = 4


class Header(ABC):
    """A light-client header that can update a client on a counterparty chain."""

    @abstractmethod
    def get_height(self) -> Height:
        """Return the height the header belongs to."""

    @abstractmethod
    def validate_basic(self) -> None:
        """Raise if the header is malformed."""


_REVISION_FORMAT = re.compile(r"^.*[^\n-]-{1}[1-9][0-9]*$")
_VALID_ID = re.compile(r"^[a-zA-Z0-9._+\-#\[\]<>]+$")


def parse_chain_id(chain_id: str) -> int:
    """Return the revision number encoded in a chain id such as ``name-3``, or 0."""
    if not _REVISION_FORMAT.match(chain_id):
        return 0
    try:
        return int(chain_id.rsplit("-", 1)[1])
    except ValueError:
        return 0


def _validate_identifier(identifier: str, min_length: int, max_length: int) -> None:
    if not identifier.strip():
        raise IdentifierError("identifier cannot be blank")
    if "/" in identifier:
        raise IdentifierError(f"identifier {identifier} cannot contain separator '/'")
    if not min_length <= len(identifier) <= max_length:
        raise IdentifierError(
            f"identifier {identifier} has invalid length: {len(identifier)}, "
            f"must be between {min_length}-{max_length} characters"
        )
    if not _VALID_ID.match(identifier):
        raise IdentifierError(
            f"identifier {identifier} must contain only alphanumeric or the following "
            "characters: '.', '_', '+', '-', '#', '[', ']', '<', '>'"
        )


def validate_client_identifier(identifier: str) -> None:
    """Validate a client identifier (9 to 64 characters)."""
    _validate_identifier(identifier, 9, 64)


def validate_connection_identifier(identifier: str) -> None:
    """Validate a connection identifier (10 to 64 characters)."""
    _validate_identifier(identifier, 10, 64)


def validate_channel_identifier(identifier: str) -> None:
    """Validate a channel identifier (8 to 64 characters)."""
    _validate_identifier(identifier, 8, 64)


def validate_port_identifier(identifier: str) -> None:
    """Validate a port identifier (2 to 128 characters)."""
    _validate_identifier(identifier, 2, 128)


@dataclass
class Coin:
    """An amount of a single denomination."""

    denom: str
    amount: int


@dataclass
class Packet:
    """An IBC packet."""

    data: bytes
    sequence: int
    source_port: str
    source_channel: str
    destination_port: str
    destination_channel: str
    timeout_height: Height = field(default_factory=Height)
    timeout_timestamp: int = 0

    def validate_basic(self) -> None:
        """Raise if the packet is not well formed."""
        checks = (
            (validate_port_identifier, self.source_port, "invalid source port ID"),
            (validate_channel_identifier, self.source_channel, "invalid source channel ID"),
            (validate_port_identifier, self.destination_port, "invalid destination port ID"),
            (validate_channel_identifier, self.destination_channel, "invalid destination channel ID"),
        )
        for validator, identifier, context in checks:
            try:
                validator(identifier)
            except IdentifierError as exc:
                raise IdentifierError(f"{context}: {exc}") from exc
        if self.sequence == 0:
            raise ValueError("packet sequence cannot be 0")
        if self.timeout_height == Height() and self.timeout_timestamp == 0:
            raise ValueError("packet timeout height and packet timeout timestamp cannot both be 0")
        if not self.data:
            raise ValueError("packet data bytes cannot be empty")


@dataclass
class FungibleTokenPacketData:
    """Payload of a token transfer packet."""

    denom: str
    amount: str
    sender: str
    receiver: str

    def get_bytes(self) -> bytes:
        """Return the canonical, key-sorted JSON encoding of the payload."""
        return json.dumps(dataclasses.asdict(self), sort_keys=True, separators=(",", ":")).encode()


@dataclass
class Connection:
    """Connection end as stored on a chain."""

    state: State = State.UNINITIALIZED
    client_id: str = ""
    counterparty_client_id: str = ""
    counterparty_connection_id: str = ""
    delay_period: int = 0


@dataclass
class Channel:
    """Channel end as stored on a chain."""

    state: State = State.UNINITIALIZED
    ordering: Order = Order.NONE
    counterparty_port_id: str = ""
    counterparty_channel_id: str = ""
    connection_hops: list[str] = field(default_factory=list)
    version: str = ""


@dataclass
class ClientStateResponse:
    """A client state with its proof."""

    client_state: Any
    proof: bytes = b""
    proof_height: Height = field(default_factory=Height)


@dataclass
class ConsensusStateResponse:
    """A consensus state with its proof."""

    consensus_state: Any
    proof: bytes = b""
    proof_height: Height = field(default_factory=Height)


@dataclass
class ConnectionResponse:
    """A connection end with its proof."""

    connection: Connection
    proof: bytes = b""
    proof_height: Height = field(default_factory=Height)


@dataclass
class ChannelResponse:
    """A channel end with its proof."""

    channel: Channel
    proof: bytes = b""
    proof_height: Height = field(default_factory=Height)


@dataclass
class PacketCommitmentResponse:
    """A packet commitment with its proof."""

    commitment: bytes
    proof: bytes = b""
    proof_height: Height = field(default_factory=Height)


@dataclass
class PacketAcknowledgementResponse:
    """A packet acknowledgement commitment with its proof."""

    acknowledgement: bytes
    proof: bytes = b""
    proof_height: Height = field(default_factory=Height)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return _jsonable(to_dict())
    return str(value)


@dataclass
class Msg:
    """Base of all messages sent to a chain."""

    TYPE_URL: ClassVar[str] = ""

    def encode(self) -> bytes:
        """Return a deterministic byte encoding of the message."""
        payload = {"@type": self.TYPE_URL, **_jsonable(self)}
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()


@dataclass
class MsgUpdateClient(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.client.v1.MsgUpdateClient"

    client_id: str
    header: Any
    signer: str


@dataclass
class MsgCreateClient(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.client.v1.MsgCreateClient"

    client_state: Any
    consensus_state: Any
    signer: str


@dataclass
class MsgConnectionOpenInit(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.connection.v1.MsgConnectionOpenInit"

    client_id: str
    counterparty_client_id: str
    counterparty_prefix: bytes
    version: Any
    delay_period: int
    signer: str


@dataclass
class MsgConnectionOpenTry(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.connection.v1.MsgConnectionOpenTry"

    client_id: str
    counterparty_connection_id: str
    counterparty_client_id: str
    client_state: Any
    counterparty_prefix: bytes
    counterparty_versions: list[Any]
    delay_period: int
    proof_init: bytes
    proof_client: bytes
    proof_consensus: bytes
    proof_height: Height
    consensus_height: Height
    signer: str


@dataclass
class MsgConnectionOpenAck(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.connection.v1.MsgConnectionOpenAck"

    connection_id: str
    counterparty_connection_id: str
    client_state: Any
    proof_try: bytes
    proof_client: bytes
    proof_consensus: bytes
    proof_height: Height
    consensus_height: Height
    version: Any
    signer: str


@dataclass
class MsgConnectionOpenConfirm(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.connection.v1.MsgConnectionOpenConfirm"

    connection_id: str
    proof_ack: bytes
    proof_height: Height
    signer: str


@dataclass
class MsgChannelOpenInit(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.channel.v1.MsgChannelOpenInit"

    port_id: str
    version: str
    ordering: Order
    connection_hops: list[str]
    counterparty_port_id: str
    signer: str


@dataclass
class MsgChannelOpenTry(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.channel.v1.MsgChannelOpenTry"

    port_id: str
    version: str
    ordering: Order
    connection_hops: list[str]
    counterparty_port_id: str
    counterparty_channel_id: str
    counterparty_version: str
    proof_init: bytes
    proof_height: Height
    signer: str


@dataclass
class MsgChannelOpenAck(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.channel.v1.MsgChannelOpenAck"

    port_id: str
    channel_id: str
    counterparty_channel_id: str
    counterparty_version: str
    proof_try: bytes
    proof_height: Height
    signer: str


@dataclass
class MsgChannelOpenConfirm(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.channel.v1.MsgChannelOpenConfirm"

    port_id: str
    channel_id: str
    proof_ack: bytes
    proof_height: Height
    signer: str


@dataclass
class MsgChannelCloseInit(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.channel.v1.MsgChannelCloseInit"

    port_id: str
    channel_id: str
    signer: str


@dataclass
class MsgChannelCloseConfirm(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.channel.v1.MsgChannelCloseConfirm"

    port_id: str
    channel_id: str
    proof_init: bytes
    proof_height: Height
    signer: str


@dataclass
class MsgTransfer(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.applications.transfer.v1.MsgTransfer"

    source_port: str
    source_channel: str
    token: Coin
    sender: str
    receiver: str
    timeout_height: Height
    timeout_timestamp: int


@dataclass
class MsgRecvPacket(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.channel.v1.MsgRecvPacket"

    packet: Packet
    proof_commitment: bytes
    proof_height: Height
    signer: str


@dataclass
class MsgAcknowledgement(Msg):
    TYPE_URL: ClassVar[str] = "/ibc.core.channel.v1.MsgAcknowledgement"

    packet: Packet
    acknowledgement: bytes
    proof_acked: bytes
    proof_height: Height
    signer: str