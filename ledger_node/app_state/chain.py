#!/usr/bin/env python3
"""
ledger_node.app_state.chain
---------------------------
Authoritative in-memory chain for one node.

Features:
- Starts from the shared genesis block
- Single-block append guarded by successor validation
- Wholesale replacement by a strictly longer valid chain
- "chain changed" listeners (used to broadcast the new tip)

Nothing is persisted; a restarted node resyncs from its peers.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Sequence, Tuple

from ledger_node.core.block import Block, genesis_block
from ledger_node.core.validation import successor_fault, validate_chain
from ledger_node.errors import ChainNotLonger, InvalidChain

log = logging.getLogger(__name__)

ChainListener = Callable[[], None]


class ChainStore:
    def __init__(self) -> None:
        self._blocks: List[Block] = [genesis_block()]
        self._listeners: List[ChainListener] = []

    def __len__(self) -> int:
        return len(self._blocks)

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------
    def tail(self) -> Block:
        return self._blocks[-1]

    def snapshot(self) -> Tuple[Block, ...]:
        """Read-only copy of the chain, safe to serialize after further mutation."""
        return tuple(self._blocks)

    # ---------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------
    def append(self, candidate: Block) -> bool:
        fault = successor_fault(candidate, self.tail())
        if fault is not None:
            log.info("rejected block %s: %s", candidate.index, fault.value)
            return False
        self._blocks.append(candidate)
        log.info("block added: index=%s hash=%s", candidate.index, candidate.hash)
        self._notify()
        return True

    def replace(self, candidate_chain: Sequence[Block]) -> bool:
        try:
            self.check_replacement(candidate_chain)
        except (ChainNotLonger, InvalidChain) as exc:
            log.info("received chain rejected: %s", exc)
            return False
        self._blocks = list(candidate_chain)
        log.info("replaced local chain with received chain (%s blocks)", len(self._blocks))
        self._notify()
        return True

    def check_replacement(self, candidate_chain: Sequence[Block]) -> None:
        """Raise unless `candidate_chain` is valid and strictly longer than ours."""
        if len(candidate_chain) <= len(self._blocks):
            raise ChainNotLonger(len(candidate_chain), len(self._blocks))
        validate_chain(candidate_chain)

    # ---------------------------------------------------------
    # Notifications
    # ---------------------------------------------------------
    def subscribe(self, listener: ChainListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                log.exception("chain listener failed")
