from ibcrelay.ibc import MsgChannelCloseInit
from ibcrelay.relaymsgs import RelayMsgs


class RecordingChain:
    def __init__(self, results=None):
        self.batches = []
        self._results = list(results or [])

    def send(self, msgs):
        self.batches.append(list(msgs))
        return self._results.pop(0) if self._results else True


def _msgs(count):
    return [MsgChannelCloseInit(port_id="transfer", channel_id=f"channel-{i}", signer="relayer") for i in range(count)]


def test_ready_reflects_contents():
    assert not RelayMsgs().ready()
    assert RelayMsgs(src=_msgs(1)).ready()
    assert RelayMsgs(dst=_msgs(1)).ready()


def test_is_max_tx_zero_means_unlimited():
    msgs = RelayMsgs()
    assert not msgs.is_max_tx(1000, 10**9)
    limited = RelayMsgs(max_msg_length=2, max_tx_size=100)
    assert not limited.is_max_tx(2, 100)
    assert limited.is_max_tx(3, 100)
    assert limited.is_max_tx(2, 101)


def test_send_without_limits_uses_one_batch_per_chain():
    src_msgs, dst_msgs = _msgs(3), _msgs(2)
    relay = RelayMsgs(src=src_msgs, dst=dst_msgs)
    src, dst = RecordingChain(), RecordingChain()
    relay.send(src, dst)
    assert relay.success()
    assert src.batches == [src_msgs]
    assert dst.batches == [dst_msgs]


def test_send_splits_by_message_count():
    msgs = _msgs(5)
    relay = RelayMsgs(src=msgs, max_msg_length=2)
    src, dst = RecordingChain(), RecordingChain()
    relay.send(src, dst)
    assert src.batches == [msgs[0:2], msgs[2:4], msgs[4:]]
    assert dst.batches == []
    assert relay.success()


def test_send_splits_by_size():
    msgs = _msgs(3)
    size = len(msgs[0].encode())
    relay = RelayMsgs(dst=msgs, max_tx_size=2 * size)
    src, dst = RecordingChain(), RecordingChain()
    relay.send(src, dst)
    assert dst.batches == [msgs[0:2], msgs[2:]]
    assert [m for batch in dst.batches for m in batch] == msgs


def test_failed_batch_marks_failure_and_skips_later_full_batches():
    msgs = _msgs(3)
    relay = RelayMsgs(src=msgs, max_msg_length=1)
    src = RecordingChain(results=[False])
    relay.send(src, RecordingChain())
    assert not relay.success()
    assert src.batches == [[msgs[0]], [msgs[2]]]


def test_failed_leftover_marks_failure():
    relay = RelayMsgs(dst=_msgs(1))
    relay.send(RecordingChain(), RecordingChain(results=[False]))
    assert relay.success() is False