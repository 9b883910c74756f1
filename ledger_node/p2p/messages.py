"""
ledger_node/p2p/messages.py
--------------------------------
Peer wire format.

Every frame is a JSON object ``{"type": <int>, "data": <str>}``:

    0  QUERY_LATEST         ask for the peer's tip
    1  QUERY_ALL            ask for the peer's full chain
    2  RESPONSE_BLOCKCHAIN  carries a chain snapshot in ``data``

``data`` is the JSON *text* of a block array, as the rest of the network
sends it. A plain JSON array is accepted on input as well.

Decoded frames become one of ``QueryLatest``, ``QueryAll`` or
``ResponseChain``; a single-block announcement and a full dump share the
``ResponseChain`` shape and differ only in length.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ValidationError

from ..core.block import Block
from ..errors import MalformedMessage


class MessageType(IntEnum):
    QUERY_LATEST = 0
    QUERY_ALL = 1
    RESPONSE_BLOCKCHAIN = 2


class Envelope(BaseModel):
    type: int
    data: Optional[Union[str, List[Dict[str, Any]]]] = None


@dataclass(frozen=True)
class QueryLatest:
    pass


@dataclass(frozen=True)
class QueryAll:
    pass


@dataclass(frozen=True)
class ResponseChain:
    blocks: Tuple[Block, ...]


Message = Union[QueryLatest, QueryAll, ResponseChain]


def response_chain(blocks: Sequence[Block]) -> ResponseChain:
    return ResponseChain(blocks=tuple(blocks))


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_message(message: Message) -> str:
    if isinstance(message, QueryLatest):
        env = Envelope(type=int(MessageType.QUERY_LATEST))
    elif isinstance(message, QueryAll):
        env = Envelope(type=int(MessageType.QUERY_ALL))
    elif isinstance(message, ResponseChain):
        env = Envelope(
            type=int(MessageType.RESPONSE_BLOCKCHAIN),
            data=json.dumps([b.to_dict() for b in message.blocks]),
        )
    else:
        raise TypeError(f"not a peer message: {message!r}")
    return env.model_dump_json(exclude_none=True)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode_blocks(data: Union[str, List[Dict[str, Any]], None]) -> Tuple[Block, ...]:
    if data is None:
        raise MalformedMessage("chain response without data")
    if isinstance(data, str):
        try:
            raw = json.loads(data)
        except (ValueError, RecursionError) as exc:
            # RecursionError: nesting deeper than the decoder can follow
            raise MalformedMessage(f"chain response data is not JSON: {exc}") from exc
    else:
        raw = data
    if not isinstance(raw, list):
        raise MalformedMessage("chain response data must be an array of blocks")
    return tuple(Block.from_dict(item) for item in raw)


def decode_message(raw: Union[str, bytes]) -> Message:
    try:
        env = Envelope.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedMessage(f"undecodable frame: {exc.error_count()} error(s)") from exc

    if env.type == MessageType.QUERY_LATEST:
        return QueryLatest()
    if env.type == MessageType.QUERY_ALL:
        return QueryAll()
    if env.type == MessageType.RESPONSE_BLOCKCHAIN:
        return ResponseChain(blocks=_decode_blocks(env.data))
    raise MalformedMessage(f"unknown message type {env.type}")
