"""
ledger_node/p2p/sync.py
--------------------------------------------------
Chain reconciliation between peers.

Handling of an incoming chain snapshot ``R`` (sorted by index):

- tip of ``R`` not ahead of ours      -> nothing to do
- tip links onto our tail             -> append it
- ``R`` is a lone non-linking tip     -> broadcast QUERY_ALL, hoping some
                                         peer sends a chain we can adopt
- otherwise                           -> try to replace our chain with ``R``

A successful append or replace is announced by the store's change listener
(see ``LedgerNode``), which broadcasts our new tip. Equal-length forks are
never swapped; whichever chain a node saw first stays.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..app_state.chain import ChainStore
from ..core.block import Block
from .messages import Message, QueryAll, QueryLatest, ResponseChain, response_chain

log = logging.getLogger(__name__)

Broadcast = Callable[[Message], None]


# ---------------------------------------------------------------------------
# Message constructors
# ---------------------------------------------------------------------------


def query_latest_msg() -> QueryLatest:
    return QueryLatest()


def query_all_msg() -> QueryAll:
    return QueryAll()


def response_all_msg(store: ChainStore) -> ResponseChain:
    return response_chain(store.snapshot())


def response_latest_msg(store: ChainStore) -> ResponseChain:
    return response_chain([store.tail()])


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class SyncProtocol:
    def __init__(self, store: ChainStore, broadcast: Broadcast) -> None:
        self.store = store
        self.broadcast = broadcast

    def handle(self, message: Message) -> Optional[Message]:
        """Process one peer message; returns the reply for the sender, if any."""
        if isinstance(message, QueryLatest):
            return response_latest_msg(self.store)
        if isinstance(message, QueryAll):
            return response_all_msg(self.store)
        if isinstance(message, ResponseChain):
            self.handle_chain_response(message.blocks)
            return None
        raise TypeError(f"not a peer message: {message!r}")

    def handle_chain_response(self, blocks: Sequence[Block]) -> None:
        if not blocks:
            log.warning("ignoring empty chain response")
            return

        received = sorted(blocks, key=lambda b: b.index)
        latest_received = received[-1]
        latest_held = self.store.tail()

        if latest_received.index <= latest_held.index:
            log.debug(
                "received chain is not longer than local chain (peer %s, local %s)",
                latest_received.index,
                latest_held.index,
            )
            return

        log.info(
            "chain possibly behind: local tip %s, peer tip %s",
            latest_held.index,
            latest_received.index,
        )
        if latest_held.hash == latest_received.previous_hash:
            log.info("appending received block %s to local chain", latest_received.index)
            self.store.append(latest_received)
        elif len(received) == 1:
            log.info("peer tip does not link to local tail; querying full chains")
            self.broadcast(query_all_msg())
        else:
            log.info("received chain is longer than local chain; attempting replace")
            self.store.replace(received)
