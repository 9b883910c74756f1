"""
ledger_node.errors
------------------
Error taxonomy for the ledger core.

None of these are fatal: validation failures surface as a ``False`` result or
a no-op, peer failures drop the peer, malformed frames are logged and skipped.
The exception types exist for callers that prefer to raise (the HTTP layer,
``validate_chain``) and for log messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class BlockFault(str, Enum):
    INDEX_GAP = "IndexGap"
    HASH_LINK_BROKEN = "HashLinkBroken"
    HASH_MISMATCH = "HashMismatch"


class LedgerError(Exception):
    pass


class InvalidBlock(LedgerError):
    def __init__(self, fault: BlockFault, index: Optional[int] = None) -> None:
        self.fault = fault
        self.index = index
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"invalid block{where}: {fault.value}")


class InvalidChain(LedgerError):
    """Bad genesis, empty input, or a contained ``InvalidBlock``."""

    def __init__(self, reason: str, position: Optional[int] = None, fault: Optional[BlockFault] = None) -> None:
        self.reason = reason
        self.position = position
        self.fault = fault
        super().__init__(reason)


class ChainNotLonger(LedgerError):
    def __init__(self, received: int, held: int) -> None:
        self.received = received
        self.held = held
        super().__init__(f"received chain length {received} is not longer than {held}")


class PeerUnreachable(LedgerError):
    def __init__(self, address: str, reason: str = "") -> None:
        self.address = address
        super().__init__(f"peer {address} unreachable{': ' + reason if reason else ''}")


class MalformedMessage(LedgerError, ValueError):
    pass
