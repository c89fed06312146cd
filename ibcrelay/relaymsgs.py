"""Messages to send to both ends of a path after a relay round."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RelayMsgs:
    """Messages for the source and destination chains.

    ``max_tx_size`` and ``max_msg_length`` bound each submitted batch; a
    value of zero means no limit.
    """

    src: list[Any] = field(default_factory=list)
    dst: list[Any] = field(default_factory=list)
    max_tx_size: int = 0
    max_msg_length: int = 0
    last: bool = False
    succeeded: bool = False

    def ready(self) -> bool:
        """Return whether there is anything to relay."""
        return bool(self.src or self.dst)

    def success(self) -> bool:
        """Return whether the last ``send`` succeeded."""
        return self.succeeded

    def is_max_tx(self, msg_len: int, tx_size: int) -> bool:
        """Return whether a batch of this count and size exceeds a limit."""
        return (self.max_msg_length != 0 and msg_len > self.max_msg_length) or (
            self.max_tx_size != 0 and tx_size > self.max_tx_size
        )

    def send(self, src: Any, dst: Any) -> None:
        """Send the source messages to ``src`` and the destination messages to ``dst`` in batches."""
        self.succeeded = True
        self._submit(src, self.src)
        self._submit(dst, self.dst)

    def _submit(self, chain: Any, msgs: list[Any]) -> None:
        batch: list[Any] = []
        msg_len = tx_size = 0
        for msg in msgs:
            size = len(msg.encode())
            msg_len += 1
            tx_size += size
            if self.is_max_tx(msg_len, tx_size):
                self.succeeded = self.succeeded and chain.send(batch)
                msg_len, tx_size = 1, size
                batch = []
            batch.append(msg)
        if batch and not chain.send(batch):
            self.succeeded = False