from ledger_node.core.block import Block, compute_hash, genesis_block, hash_of, next_block
from ledger_node.core.validation import (
    is_valid_chain,
    is_valid_successor,
    successor_fault,
    validate_chain,
    validate_successor,
)

__all__ = [
    "Block",
    "compute_hash",
    "genesis_block",
    "hash_of",
    "next_block",
    "is_valid_chain",
    "is_valid_successor",
    "successor_fault",
    "validate_chain",
    "validate_successor",
]
