from dataclasses import dataclass
from types import SimpleNamespace
from unittest import mock

import pytest

from ibcrelay.headers import SyncHeaders
from ibcrelay.ibc import (
    Header,
    Height,
    MsgAcknowledgement,
    MsgRecvPacket,
    MsgUpdateClient,
    Packet,
    PacketAcknowledgementResponse,
    PacketCommitmentResponse,
)
from ibcrelay.pathend import PathEnd
from ibcrelay.retry import RETRY_ATTEMPTS
from ibcrelay.strategy import (
    NaiveStrategy,
    RelaySequences,
    StrategyCfg,
    get_strategy,
)


@dataclass
class FakeHeader(Header):
    height: int

    def get_height(self):
        return Height(1, self.height)

    def validate_basic(self):
        if self.height <= 0:
            raise ValueError("bad header")


class FakeChain:
    def __init__(self, chain_id, client_id, height=20):
        self._id = chain_id
        self._path = PathEnd(
            chain_id=chain_id,
            client_id=client_id,
            connection_id="connection-0",
            channel_id="channel-0",
            port_id="transfer",
            order="ORDERED",
            version="ics20-1",
        )
        self.height = height
        self.sent = []
        self.commitment_seqs = []
        self.ack_seqs = []
        self.received = set()
        self.acked = set()
        self.commitment_heights = []
        self.nil_responses = 0
        self.setup_calls = 0

    def chain_id(self):
        return self._id

    def get_chain_id(self):
        return self._id

    def path(self):
        return self._path

    def get_address(self):
        return f"addr-{self._id}"

    def update_light_with_header(self):
        return FakeHeader(self.height), self.height, self.height - 1

    def setup_header(self, dst, base):
        return base

    def setup_for_relay(self):
        self.setup_calls += 1

    def send(self, msgs):
        self.sent.append(list(msgs))
        return True

    def query_packet_commitments(self, offset, limit, height):
        self.commitment_heights.append(height)
        if self.nil_responses:
            self.nil_responses -= 1
            return None
        return SimpleNamespace(commitments=[SimpleNamespace(sequence=s) for s in self.commitment_seqs])

    def query_packet_acknowledgement_commitments(self, offset, limit, height):
        return SimpleNamespace(acknowledgements=[SimpleNamespace(sequence=s) for s in self.ack_seqs])

    def query_unreceived_packets(self, height, seqs):
        return [s for s in seqs if s not in self.received]

    def query_unreceived_acknowledgements(self, height, seqs):
        return [s for s in seqs if s not in self.acked]

    def query_packet(self, height, seq):
        return Packet(
            data=f"{self._id}:{seq}".encode(),
            sequence=seq,
            source_port="transfer",
            source_channel="channel-0",
            destination_port="transfer",
            destination_channel="channel-0",
            timeout_height=Height(0, 1000),
        )

    def query_packet_commitment_with_proof(self, height, seq):
        return PacketCommitmentResponse(commitment=b"c", proof=b"proof", proof_height=Height(0, height))

    def query_packet_acknowledgement(self, height, seq):
        return b"ack"

    def query_packet_acknowledgement_commitment_with_proof(self, height, seq):
        return PacketAcknowledgementResponse(acknowledgement=b"a", proof=b"proof", proof_height=Height(0, height))


@pytest.fixture
def pair():
    src = FakeChain("alpha-1", "07-tendermint-0", height=20)
    dst = FakeChain("beta-2", "07-tendermint-9", height=30)
    return src, dst, SyncHeaders(src, dst)


def test_get_strategy_naive():
    strategy = get_strategy(StrategyCfg(type="naive"))
    assert isinstance(strategy, NaiveStrategy)
    assert strategy.get_type() == "naive"


def test_get_strategy_unknown():
    with pytest.raises(ValueError, match="unknown strategy type 'bogus'"):
        get_strategy(StrategyCfg(type="bogus"))


def test_relay_sequences_to_dict():
    assert RelaySequences(src=[1, 2], dst=[3]).to_dict() == {"src": [1, 2], "dst": [3]}


def test_setup_relay_calls_both(pair):
    src, dst, _ = pair
    NaiveStrategy().setup_relay(src, dst)
    assert (src.setup_calls, dst.setup_calls) == (1, 1)


def test_unrelayed_sequences(pair):
    src, dst, sh = pair
    src.commitment_seqs = [1, 2, 3]
    dst.received = {1}
    dst.commitment_seqs = [5]
    rs = NaiveStrategy().unrelayed_sequences(src, dst, sh)
    assert rs.src == [2, 3]
    assert rs.dst == [5]
    assert src.commitment_heights == [sh.get_queryable_height("alpha-1")]
    assert dst.commitment_heights == [sh.get_queryable_height("beta-2")]


def test_unrelayed_sequences_retries_nil_response(pair):
    src, dst, sh = pair
    src.commitment_seqs = [4]
    src.nil_responses = 1
    with mock.patch("time.sleep"):
        rs = NaiveStrategy().unrelayed_sequences(src, dst, sh)
    assert rs.src == [4]
    assert len(src.commitment_heights) == 2


def test_unrelayed_sequences_gives_up(pair):
    src, dst, sh = pair
    src.nil_responses = RETRY_ATTEMPTS
    with mock.patch("time.sleep"), pytest.raises(RuntimeError, match="response is nil"):
        NaiveStrategy().unrelayed_sequences(src, dst, sh)
    assert len(src.commitment_heights) == RETRY_ATTEMPTS


def test_unrelayed_acknowledgements(pair):
    src, dst, sh = pair
    src.ack_seqs = [7, 8]
    dst.acked = {8}
    dst.ack_seqs = [9]
    src.acked = {9}
    rs = NaiveStrategy().unrelayed_acknowledgements(src, dst, sh)
    assert rs.to_dict() == {"src": [7], "dst": []}


def test_relay_packets_sends_update_and_recv(pair):
    src, dst, sh = pair
    NaiveStrategy().relay_packets(src, dst, RelaySequences(src=[2, 3], dst=[]), sh)
    assert src.sent == []
    [batch] = dst.sent
    update, *recvs = batch
    assert isinstance(update, MsgUpdateClient)
    assert update.client_id == dst.path().client_id
    assert update.header == FakeHeader(src.height)
    assert all(isinstance(m, MsgRecvPacket) for m in recvs)
    assert [m.packet.sequence for m in recvs] == [2, 3]
    assert {m.signer for m in batch} == {dst.get_address()}
    assert recvs[0].proof_height == Height(0, sh.get_provable_height("alpha-1"))


def test_relay_packets_nothing_to_relay(pair):
    src, dst, sh = pair
    NaiveStrategy().relay_packets(src, dst, RelaySequences(), sh)
    assert src.sent == [] and dst.sent == []


def test_relay_packets_respects_max_msg_length(pair):
    src, dst, sh = pair
    NaiveStrategy(max_msg_length=2).relay_packets(src, dst, RelaySequences(src=[1, 2, 3]), sh)
    assert all(len(batch) <= 2 for batch in dst.sent)
    assert sum(len(batch) for batch in dst.sent) == 1 + 3


def test_relay_acknowledgements(pair):
    src, dst, sh = pair
    NaiveStrategy().relay_acknowledgements(src, dst, RelaySequences(src=[4], dst=[]), sh)
    [batch] = dst.sent
    assert isinstance(batch[0], MsgUpdateClient)
    ack = batch[1]
    assert isinstance(ack, MsgAcknowledgement)
    assert ack.acknowledgement == b"ack"
    assert ack.packet.data == b"beta-2:4"
    assert ack.signer == dst.get_address()
    assert src.sent == []