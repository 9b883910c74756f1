"""
ledger_node.core.block
----------------------
Block record, hash function and the genesis constant.

Hash preimage is the plain concatenation
``str(index) + previous_hash + str(timestamp) + data`` hashed with SHA-256 and
rendered as lowercase hex. Every node in the network computes it the same way,
so do not change the field order or the string formatting.
"""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import MalformedMessage

GENESIS_INDEX = 0
GENESIS_PREVIOUS_HASH = "0"
GENESIS_TIMESTAMP = 1465154705
GENESIS_DATA = "my genesis block!!"
GENESIS_HASH = "816534932c2b7154836da6afc367695e6337db8a921823784c14378abed4f7d7"


@dataclass(frozen=True)
class Block:
    index: int
    previous_hash: str
    timestamp: int
    data: str
    hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "previousHash": self.previous_hash,
            "timestamp": self.timestamp,
            "data": self.data,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "Block":
        """Build a block from its wire form, rejecting anything mistyped."""
        if not isinstance(raw, dict):
            raise MalformedMessage("block must be a JSON object")
        try:
            index = raw["index"]
            previous_hash = raw["previousHash"]
            timestamp = raw["timestamp"]
            data = raw["data"]
            digest = raw["hash"]
        except KeyError as exc:
            raise MalformedMessage(f"block is missing field {exc.args[0]!r}") from exc

        # bool is an int subclass; a block index of `true` is not meaningful
        if not isinstance(index, int) or isinstance(index, bool) or index < 0:
            raise MalformedMessage("block index must be a non-negative integer")
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            raise MalformedMessage("block timestamp must be an integer")
        for name, value in (("previousHash", previous_hash), ("data", data), ("hash", digest)):
            if not isinstance(value, str):
                raise MalformedMessage(f"block {name} must be a string")
            # JSON "\ud800" escapes decode to lone surrogates, which cannot be hashed
            try:
                value.encode("utf-8")
            except UnicodeEncodeError as exc:
                raise MalformedMessage(f"block {name} is not valid UTF-8 text") from exc

        return cls(
            index=index,
            previous_hash=previous_hash,
            timestamp=timestamp,
            data=data,
            hash=digest,
        )


def compute_hash(index: int, previous_hash: str, timestamp: int, data: str) -> str:
    preimage = f"{index}{previous_hash}{timestamp}{data}"
    return hashlib.sha256(preimage.encode("utf-8")).hexdigest()


def hash_of(block: Block) -> str:
    """Recompute the digest of ``block`` from its content fields."""
    return compute_hash(block.index, block.previous_hash, block.timestamp, block.data)


def genesis_block() -> Block:
    return Block(
        index=GENESIS_INDEX,
        previous_hash=GENESIS_PREVIOUS_HASH,
        timestamp=GENESIS_TIMESTAMP,
        data=GENESIS_DATA,
        hash=GENESIS_HASH,
    )


def next_block(tail: Block, data: str, timestamp: Optional[int] = None) -> Block:
    """Candidate successor of ``tail``; the caller decides whether to append it."""
    index = tail.index + 1
    if timestamp is None:
        ts = int(time.time())
    elif isinstance(timestamp, int) and not isinstance(timestamp, bool):
        ts = timestamp
    else:
        raise TypeError(f"timestamp must be integer seconds, got {timestamp!r}")
    return Block(
        index=index,
        previous_hash=tail.hash,
        timestamp=ts,
        data=data,
        hash=compute_hash(index, tail.hash, ts, data),
    )
