from dataclasses import dataclass
from types import SimpleNamespace

import pytest

from ibcrelay.channel import create_channel
from ibcrelay.ibc import State


@dataclass
class FakeMsg:
    kind: str

    def encode(self):
        return self.kind.encode()


class FakeEnd:
    def __init__(self, chain_id, valid=True):
        self.chain_id = chain_id
        self.client_id = "07-tendermint-0"
        self.connection_id = "connection-0"
        self.channel_id = "channel-0"
        self.port_id = "transfer"
        self.valid = valid

    def validate(self):
        if not self.valid:
            raise ValueError("bad identifier")

    def update_client(self, header, signer):
        return FakeMsg("update")

    def chan_init(self, dst, signer):
        return FakeMsg("init")

    def chan_try(self, dst, dst_chan, signer):
        return FakeMsg("try")

    def chan_ack(self, dst, dst_chan, signer):
        return FakeMsg("ack")

    def chan_confirm(self, dst_chan, signer):
        return FakeMsg("confirm")


class FakeChain:
    def __init__(self, cid, state, transitions=None, succeed=True, valid=True):
        self.cid = cid
        self.state = state
        self.transitions = transitions or {}
        self.succeed = succeed
        self.end = FakeEnd(cid, valid)
        self.sent = []

    def chain_id(self):
        return self.cid

    def get_chain_id(self):
        return self.cid

    def path(self):
        return self.end

    def get_address(self):
        return f"addr-{self.cid}"

    def update_light_with_header(self):
        return f"header-{self.cid}", 5, 6

    def setup_header(self, dst, base):
        return base

    def query_channel_with_proof(self, height):
        return SimpleNamespace(
            channel=SimpleNamespace(state=self.state),
            proof_height=SimpleNamespace(revision_height=height),
        )

    def send(self, msgs):
        self.sent.append([m.kind for m in msgs])
        if self.succeed:
            for m in msgs:
                if m.kind in self.transitions:
                    self.state = self.transitions[m.kind]
        return self.succeed


def test_full_handshake_sends_each_step_in_order():
    src = FakeChain("a", State.UNINITIALIZED, {"init": State.INIT, "ack": State.OPEN})
    dst = FakeChain("b", State.UNINITIALIZED, {"try": State.TRYOPEN, "confirm": State.OPEN})
    create_channel(src, dst, False, 0)
    assert src.sent == [["init"], ["update", "ack"]]
    assert dst.sent == [["update", "try"], ["update", "confirm"]]
    assert src.state == State.OPEN and dst.state == State.OPEN


def test_confirm_on_src_is_last_step():
    src = FakeChain("a", State.TRYOPEN)
    dst = FakeChain("b", State.OPEN)
    create_channel(src, dst, True, 0)
    assert src.sent == [["update", "confirm"]]
    assert dst.sent == []


def test_unexpected_states_raise():
    src = FakeChain("a", State.OPEN)
    dst = FakeChain("b", State.OPEN)
    with pytest.raises(RuntimeError, match="not implemeneted"):
        create_channel(src, dst, False, 0)


def test_invalid_path_raises():
    src = FakeChain("a", State.UNINITIALIZED, valid=False)
    dst = FakeChain("b", State.UNINITIALIZED)
    with pytest.raises(ValueError, match="path on chain a failed to set"):
        create_channel(src, dst, False, 0)


def test_three_failures_raise(monkeypatch):
    monkeypatch.setattr("ibcrelay.channel.time.sleep", lambda seconds: None)
    src = FakeChain("a", State.UNINITIALIZED, succeed=False)
    dst = FakeChain("b", State.UNINITIALIZED)
    with pytest.raises(RuntimeError, match="! Channel failed"):
        create_channel(src, dst, False, 0)
    assert src.sent == [["init"]] * 3