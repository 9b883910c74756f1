"""
ledger_node.core.validation
---------------------------
Pure legality checks for single blocks and whole chains.

The boolean helpers never raise; the ``validate_*`` variants raise
``InvalidBlock`` / ``InvalidChain`` for callers that want the reason.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..errors import BlockFault, InvalidBlock, InvalidChain
from .block import Block, genesis_block, hash_of

log = logging.getLogger(__name__)


def successor_fault(candidate: Block, predecessor: Block) -> Optional[BlockFault]:
    """Return the first failed check of ``candidate`` against ``predecessor``, if any."""
    if predecessor.index + 1 != candidate.index:
        return BlockFault.INDEX_GAP
    if predecessor.hash != candidate.previous_hash:
        return BlockFault.HASH_LINK_BROKEN
    if hash_of(candidate) != candidate.hash:
        return BlockFault.HASH_MISMATCH
    return None


def is_valid_successor(candidate: Block, predecessor: Block) -> bool:
    fault = successor_fault(candidate, predecessor)
    if fault is not None:
        log.debug("block %s rejected after %s: %s", candidate.index, predecessor.index, fault.value)
        return False
    return True


def validate_successor(candidate: Block, predecessor: Block) -> None:
    fault = successor_fault(candidate, predecessor)
    if fault is not None:
        raise InvalidBlock(fault, index=candidate.index)


def validate_chain(blocks: Sequence[Block]) -> None:
    if not blocks:
        raise InvalidChain("chain is empty")
    if blocks[0] != genesis_block():
        raise InvalidChain("chain does not start with the genesis block", position=0)
    for position in range(1, len(blocks)):
        fault = successor_fault(blocks[position], blocks[position - 1])
        if fault is not None:
            raise InvalidChain(
                f"block at position {position} is invalid: {fault.value}",
                position=position,
                fault=fault,
            )


def is_valid_chain(blocks: Sequence[Block]) -> bool:
    try:
        validate_chain(blocks)
    except InvalidChain as exc:
        log.debug("chain rejected: %s", exc)
        return False
    return True
