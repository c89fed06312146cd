import json

import pytest

from ibcrelay.ibc import (
    Channel,
    ChannelResponse,
    ClientStateResponse,
    Coin,
    Connection,
    ConnectionResponse,
    ConsensusStateResponse,
    Header,
    Height,
    IdentifierError,
    Order,
    State,
)
from ibcrelay.pathend import PathEnd, order_from_string


class _Header(Header):
    def __init__(self, valid=True):
        self.valid = valid

    def get_height(self):
        return Height(1, 5)

    def validate_basic(self):
        if not self.valid:
            raise ValueError("bad header")


class _ClientState:
    def __init__(self, height):
        self.height = height

    def get_latest_height(self):
        return self.height


def _src():
    return PathEnd(
        chain_id="ibc0-1",
        client_id="07-tendermint-0",
        connection_id="connection-0",
        channel_id="channel-0",
        port_id="transfer",
        order="ORDERED",
        version="ics20-1",
    )


def _dst():
    return PathEnd(
        chain_id="ibc1-2",
        client_id="07-tendermint-1",
        connection_id="connection-1",
        channel_id="channel-1",
        port_id="transfer",
        order="ORDERED",
        version="ics20-1",
    )


@pytest.mark.parametrize(
    "text, expected",
    [("ORDERED", Order.ORDERED), ("UNORDERED", Order.UNORDERED), ("ordered", Order.NONE), ("", Order.NONE)],
)
def test_order_from_string(text, expected):
    assert order_from_string(text) is expected


def test_get_order_is_case_insensitive():
    assert PathEnd(order="unordered").get_order() is Order.UNORDERED
    assert PathEnd(order="Ordered").get_order() is Order.ORDERED


def test_validate_rejects_unknown_order():
    end = _src()
    end.validate()
    end.order = "sideways"
    with pytest.raises(ValueError, match="'sideways'"):
        end.validate()


def test_validate_rejects_bad_identifiers():
    end = _src()
    end.connection_id = "conn"
    with pytest.raises(IdentifierError):
        end.validate()
    with pytest.raises(IdentifierError):
        PathEnd(order="ORDERED").validate()


def test_individual_validators():
    end = _src()
    end.client_id = "short"
    with pytest.raises(IdentifierError):
        end.validate_client()
    end.port_id = "p"
    with pytest.raises(IdentifierError):
        end.validate_port()


def test_str_format():
    assert str(_src()) == "ibc0-1:cl(07-tendermint-0):co(connection-0):ch(channel-0):pt(transfer)"


def test_to_dict_omits_empty_fields():
    assert PathEnd(chain_id="a", port_id="transfer").to_dict() == {"chain-id": "a", "port-id": "transfer"}


def test_dict_round_trip():
    end = _src()
    assert PathEnd.from_dict(end.to_dict()) == end
    assert PathEnd.from_dict(json.loads(json.dumps(end.to_dict()))) == end


def test_update_client_validates_header():
    header = _Header()
    msg = _src().update_client(header, "relayer")
    assert (msg.client_id, msg.header, msg.signer) == ("07-tendermint-0", header, "relayer")
    with pytest.raises(ValueError, match="bad header"):
        _src().update_client(_Header(valid=False), "relayer")


def test_conn_init_uses_counterparty_client():
    msg = _src().conn_init(_dst(), "relayer")
    assert msg.client_id == "07-tendermint-0"
    assert msg.counterparty_client_id == "07-tendermint-1"
    assert msg.counterparty_prefix == b"ibc"
    assert msg.delay_period == 0
    assert msg.version is None


def _conn_responses(proof_height=Height(0, 7)):
    cs = ClientStateResponse(_ClientState(Height(0, 6)), proof=b"client", proof_height=Height(0, 7))
    conn = ConnectionResponse(Connection(state=State.INIT), proof=b"conn", proof_height=proof_height)
    cons = ConsensusStateResponse(object(), proof=b"cons", proof_height=Height(0, 8))
    return cs, conn, cons


def test_conn_try_collects_proofs():
    cs, conn, cons = _conn_responses()
    msg = _src().conn_try(_dst(), cs, conn, cons, "relayer")
    assert (msg.proof_init, msg.proof_client, msg.proof_consensus) == (b"conn", b"client", b"cons")
    assert msg.proof_height == Height(0, 7)
    assert msg.consensus_height == Height(0, 6)
    assert msg.counterparty_connection_id == "connection-1"
    assert msg.counterparty_versions[0]["identifier"] == "1"


def test_conn_try_rejects_invalid_message():
    cs, conn, cons = _conn_responses(proof_height=Height())
    with pytest.raises(ValueError, match="proof height"):
        _src().conn_try(_dst(), cs, conn, cons, "relayer")
    cs, conn, cons = _conn_responses()
    conn.proof = b""
    with pytest.raises(ValueError):
        _src().conn_try(_dst(), cs, conn, cons, "relayer")


def test_conn_ack_uses_consensus_proof_height():
    cs, conn, cons = _conn_responses()
    msg = _src().conn_ack(_dst(), cs, conn, cons, "relayer")
    assert msg.connection_id == "connection-0"
    assert msg.counterparty_connection_id == "connection-1"
    assert msg.proof_height == cons.proof_height
    assert msg.proof_try == b"conn"
    assert msg.version == _src().conn_try(_dst(), cs, conn, cons, "r").counterparty_versions[0]


def test_conn_confirm():
    _, conn, _ = _conn_responses()
    msg = _src().conn_confirm(conn, "relayer")
    assert (msg.connection_id, msg.proof_ack, msg.proof_height) == ("connection-0", b"conn", Height(0, 7))


def test_channel_handshake_messages():
    src, dst = _src(), _dst()
    chan = ChannelResponse(
        Channel(state=State.INIT, ordering=Order.UNORDERED, version="ics20-1"),
        proof=b"chan",
        proof_height=Height(2, 3),
    )
    init = src.chan_init(dst, "relayer")
    assert (init.ordering, init.connection_hops, init.counterparty_port_id) == (
        Order.ORDERED,
        ["connection-0"],
        "transfer",
    )
    try_msg = src.chan_try(dst, chan, "relayer")
    assert try_msg.ordering is Order.UNORDERED
    assert try_msg.counterparty_channel_id == "channel-1"
    assert try_msg.proof_init == b"chan"
    ack = src.chan_ack(dst, chan, "relayer")
    assert (ack.channel_id, ack.counterparty_channel_id, ack.proof_try) == ("channel-0", "channel-1", b"chan")
    confirm = src.chan_confirm(chan, "relayer")
    assert (confirm.proof_ack, confirm.proof_height) == (b"chan", Height(2, 3))
    close = src.chan_close_init("relayer")
    assert (close.port_id, close.channel_id) == ("transfer", "channel-0")
    close_confirm = src.chan_close_confirm(chan, "relayer")
    assert close_confirm.proof_init == b"chan"


def test_msg_transfer_takes_revision_from_destination_chain():
    msg = _src().msg_transfer(_dst(), Coin("stake", 10), "receiver", "sender", 150, 0)
    assert msg.timeout_height == Height(2, 150)
    assert (msg.sender, msg.receiver, msg.token) == ("sender", "receiver", Coin("stake", 10))


def test_new_packet_is_valid():
    packet = _src().new_packet(_dst(), 4, b"data", 100, 0)
    packet.validate_basic()
    assert packet.timeout_height == Height(2, 100)
    assert (packet.source_channel, packet.destination_channel) == ("channel-0", "channel-1")


def test_xfer_packet_bytes():
    data = _src().xfer_packet(Coin("stake", 100), "alice", "bob")
    assert data == b'{"amount":"100","denom":"stake","receiver":"bob","sender":"alice"}'