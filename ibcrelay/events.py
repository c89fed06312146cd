"""Extraction of packets and acknowledgements from transaction events."""

from __future__ import annotations

import binascii
from dataclasses import dataclass, field

from ibcrelay.ibc import Height, Packet

EVENT_TYPE_SEND_PACKET = "send_packet"
EVENT_TYPE_WRITE_ACK = "write_acknowledgement"

ATTRIBUTE_KEY_DATA = "packet_data"
ATTRIBUTE_KEY_DATA_HEX = "packet_data_hex"
ATTRIBUTE_KEY_ACK = "packet_ack"
ATTRIBUTE_KEY_TIMEOUT_HEIGHT = "packet_timeout_height"
ATTRIBUTE_KEY_TIMEOUT_TIMESTAMP = "packet_timeout_timestamp"
ATTRIBUTE_KEY_SEQUENCE = "packet_sequence"
ATTRIBUTE_KEY_SRC_PORT = "packet_src_port"
ATTRIBUTE_KEY_SRC_CHANNEL = "packet_src_channel"
ATTRIBUTE_KEY_DST_PORT = "packet_dst_port"
ATTRIBUTE_KEY_DST_CHANNEL = "packet_dst_channel"


def _to_bytes(value: str | bytes) -> bytes:
    return value.encode() if isinstance(value, str) else bytes(value)


def _to_text(value: str | bytes) -> str:
    return value if isinstance(value, str) else bytes(value).decode()


@dataclass
class EventAttribute:
    """A key/value attribute of an event."""

    key: str | bytes
    value: str | bytes


@dataclass
class Event:
    """An event emitted by a transaction."""

    type: str
    attributes: list[EventAttribute] = field(default_factory=list)


@dataclass
class PacketAcknowledgement:
    """An acknowledgement written for a received packet."""

    src_port_id: str = ""
    src_channel_id: str = ""
    dst_port_id: str = ""
    dst_channel_id: str = ""
    sequence: int = 0
    data: bytes = b""


def _assert_index(actual: int, expected: int) -> None:
    if actual != expected:
        raise ValueError(f"assertion error: {actual} != {expected}")


def _parse_uint(text: str) -> int:
    if not text.isdigit():
        raise ValueError(f"invalid unsigned integer: {text!r}")
    value = int(text)
    if value >= 2**64:
        raise ValueError(f"value out of range: {text}")
    return value


def _parse_height(text: str) -> Height:
    parts = text.split("-")
    if len(parts) < 2:
        raise ValueError(f"invalid timeout height: {text!r}")
    return Height(_parse_uint(parts[0]), _parse_uint(parts[1]))


def get_packets_from_events(events: list[Event]) -> list[Packet]:
    """Return the packets described by the send-packet events, validated."""
    packets = []
    for event in events:
        if event.type != EVENT_TYPE_SEND_PACKET:
            continue
        fields: dict = {}
        for index, attr in enumerate(event.attributes):
            key = _to_text(attr.key)
            text = _to_text(attr.value)
            if key == ATTRIBUTE_KEY_DATA:
                # the data attribute starts a packet's attributes
                fields = {"data": _to_bytes(attr.value)}
                _assert_index(index, 0)
            elif key == ATTRIBUTE_KEY_DATA_HEX:
                try:
                    fields["data"] = bytes.fromhex(text)
                except (ValueError, binascii.Error) as exc:
                    raise ValueError(f"invalid hex packet data: {text!r}") from exc
                _assert_index(index, 1)
            elif key == ATTRIBUTE_KEY_TIMEOUT_HEIGHT:
                fields["timeout_height"] = _parse_height(text)
                _assert_index(index, 2)
            elif key == ATTRIBUTE_KEY_TIMEOUT_TIMESTAMP:
                fields["timeout_timestamp"] = _parse_uint(text)
                _assert_index(index, 3)
            elif key == ATTRIBUTE_KEY_SEQUENCE:
                fields["sequence"] = _parse_uint(text)
                _assert_index(index, 4)
            elif key == ATTRIBUTE_KEY_SRC_PORT:
                fields["source_port"] = text
                _assert_index(index, 5)
            elif key == ATTRIBUTE_KEY_SRC_CHANNEL:
                fields["source_channel"] = text
                _assert_index(index, 6)
            elif key == ATTRIBUTE_KEY_DST_PORT:
                fields["destination_port"] = text
                _assert_index(index, 7)
            elif key == ATTRIBUTE_KEY_DST_CHANNEL:
                fields["destination_channel"] = text
                _assert_index(index, 8)
        packet = Packet(
            data=fields.get("data", b""),
            sequence=fields.get("sequence", 0),
            source_port=fields.get("source_port", ""),
            source_channel=fields.get("source_channel", ""),
            destination_port=fields.get("destination_port", ""),
            destination_channel=fields.get("destination_channel", ""),
            timeout_height=fields.get("timeout_height", Height()),
            timeout_timestamp=fields.get("timeout_timestamp", 0),
        )
        packet.validate_basic()
        packets.append(packet)
    return packets


def find_packet_from_events_by_sequence(events: list[Event], seq: int) -> Packet | None:
    """Return the packet with sequence ``seq``, or None."""
    return next((p for p in get_packets_from_events(events) if p.sequence == seq), None)


def get_packet_acknowledgements_from_events(events: list[Event]) -> list[PacketAcknowledgement]:
    """Return the acknowledgements described by the write-acknowledgement events."""
    acks = []
    for event in events:
        if event.type != EVENT_TYPE_WRITE_ACK:
            continue
        ack = PacketAcknowledgement()
        for index, attr in enumerate(event.attributes):
            key = _to_text(attr.key)
            text = _to_text(attr.value)
            if key == ATTRIBUTE_KEY_SEQUENCE:
                ack.sequence = _parse_uint(text)
                _assert_index(index, 4)
            elif key == ATTRIBUTE_KEY_SRC_PORT:
                ack.src_port_id = text
                _assert_index(index, 5)
            elif key == ATTRIBUTE_KEY_SRC_CHANNEL:
                ack.src_channel_id = text
                _assert_index(index, 6)
            elif key == ATTRIBUTE_KEY_DST_PORT:
                ack.dst_port_id = text
                _assert_index(index, 7)
            elif key == ATTRIBUTE_KEY_DST_CHANNEL:
                ack.dst_channel_id = text
                _assert_index(index, 8)
            elif key == ATTRIBUTE_KEY_ACK:
                ack.data = _to_bytes(attr.value)
                _assert_index(index, 9)
        acks.append(ack)
    return acks


def find_packet_acknowledgement_from_events_by_sequence(
    events: list[Event], seq: int
) -> PacketAcknowledgement | None:
    """Return the acknowledgement with sequence ``seq``, or None."""
    return next((a for a in get_packet_acknowledgements_from_events(events) if a.sequence == seq), None)