"""Keeping track of the latest light-client headers, and paired queries of two chains."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

A = TypeVar("A")
B = TypeVar("B")


def _both(first: Callable[[], A], second: Callable[[], B]) -> tuple[A, B]:
    """Run two calls concurrently and return both results, raising the first error."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        first_future = pool.submit(first)
        second_future = pool.submit(second)
        return first_future.result(), second_future.result()


class SyncHeaders:
    """The latest headers and heights of two chains, kept reasonably up to date."""

    def __init__(self, src: Any, dst: Any) -> None:
        self._headers: dict[str, Any] = {src.get_chain_id(): None, dst.get_chain_id(): None}
        self._provable_heights: dict[str, int] = {src.get_chain_id(): 0, dst.get_chain_id(): 0}
        self._queryable_heights: dict[str, int] = {src.get_chain_id(): 0, dst.get_chain_id(): 0}
        self.updates(src, dst)

    def get_provable_height(self, chain_id: str) -> int:
        """Return the latest provable height of a chain, or 0 if unknown."""
        return self._provable_heights.get(chain_id, 0)

    def get_queryable_height(self, chain_id: str) -> int:
        """Return the latest queryable height of a chain, or 0 if unknown."""
        return self._queryable_heights.get(chain_id, 0)

    def get_header(self, src: Any, dst: Any) -> Any:
        """Return a header of ``src`` set up for updating the client on ``dst``."""
        return src.setup_header(dst, self._headers.get(src.get_chain_id()))

    def get_headers(self, src: Any, dst: Any) -> tuple[Any, Any]:
        """Return the headers of both chains, each set up for the other."""
        src_header = self.get_header(src, dst)
        dst_header = self.get_header(dst, src)
        return src_header, dst_header

    def updates(self, src: Any, dst: Any) -> None:
        """Refresh the light clients of both chains and record their headers and heights."""
        src_header, src_provable, src_queryable = src.update_light_with_header()
        dst_header, dst_provable, dst_queryable = dst.update_light_with_header()

        self._headers[src.get_chain_id()] = src_header
        self._headers[dst.get_chain_id()] = dst_header

        self._provable_heights[src.get_chain_id()] = src_provable
        self._provable_heights[dst.get_chain_id()] = dst_provable

        self._queryable_heights[src.get_chain_id()] = src_queryable
        self._queryable_heights[dst.get_chain_id()] = dst_queryable


def updates_with_headers(src: Any, dst: Any) -> tuple[Any, Any]:
    """Query the latest header of both chains concurrently."""
    return _both(src.query_latest_header, dst.query_latest_header)


def query_client_state_pair(src: Any, dst: Any, src_height: int, dst_height: int) -> tuple[Any, Any]:
    """Query both client states with proofs."""
    return _both(
        lambda: src.query_client_state_with_proof(src_height),
        lambda: dst.query_client_state_with_proof(dst_height),
    )


def query_connection_pair(src: Any, dst: Any, src_height: int, dst_height: int) -> tuple[Any, Any]:
    """Query both connection ends with proofs."""
    return _both(
        lambda: src.query_connection_with_proof(src_height),
        lambda: dst.query_connection_with_proof(dst_height),
    )


def query_channel_pair(src: Any, dst: Any, src_height: int, dst_height: int) -> tuple[Any, Any]:
    """Query both channel ends with proofs."""
    return _both(
        lambda: src.query_channel_with_proof(src_height),
        lambda: dst.query_channel_with_proof(dst_height),
    )


def query_client_consensus_state_pair(
    src: Any,
    dst: Any,
    src_height: int,
    dst_height: int,
    src_client_cons_height: Any,
    dst_client_cons_height: Any,
) -> tuple[Any, Any]:
    """Query both clients' consensus states with proofs."""
    return _both(
        lambda: src.query_client_consensus_state_with_proof(src_height, src_client_cons_height),
        lambda: dst.query_client_consensus_state_with_proof(dst_height, dst_client_cons_height),
    )