"""
ledger_node.node
----------------
Wires the chain store, the peer links and the sync protocol into one node.

Each successful store mutation (local mining, spliced block, adopted chain)
broadcasts the new tip to every live peer exactly once.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .app_state.chain import ChainStore
from .config import NodeSettings
from .core.block import Block, next_block
from .core.validation import validate_successor
from .p2p.links import PeerLinks
from .p2p.sync import SyncProtocol, response_latest_msg

log = logging.getLogger(__name__)


class LedgerNode:
    def __init__(self, settings: Optional[NodeSettings] = None) -> None:
        self.settings = settings or NodeSettings()
        self.store = ChainStore()
        self.links = PeerLinks(max_size=self.settings.max_message_bytes)
        self.sync = SyncProtocol(self.store, self.links.broadcast)
        self.links.on_message = self.sync.handle
        self.store.subscribe(self._announce_tip)

    def _announce_tip(self) -> None:
        self.links.broadcast(response_latest_msg(self.store))

    async def start(self) -> None:
        await self.links.listen(self.settings.p2p_host, self.settings.p2p_port)
        self.add_peers(self.settings.peers)

    async def stop(self) -> None:
        await self.links.close()

    def mine(self, data: str) -> Block:
        """Build the next block over ``data`` and append it; raises ``InvalidBlock`` on rejection."""
        candidate = next_block(self.store.tail(), data)
        if not self.store.append(candidate):
            validate_successor(candidate, self.store.tail())
        return candidate

    def add_peer(self, address: str) -> None:
        """Dial ``address`` in the background."""
        self.add_peers([address])

    def add_peers(self, addresses: Iterable[str]) -> None:
        self.links.connect_to_peers(addresses)
