#!/usr/bin/env python3
"""
Chain API
------------------------------------
Read the local chain and submit new data.

GET  /blocks     full chain, genesis first
POST /mineBlock  build, append and broadcast a block over the given data
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ledger_node.core.block import Block
from ledger_node.errors import InvalidBlock
from ledger_node.node import LedgerNode

from .deps import get_node

router = APIRouter(tags=["chain"])
logger = logging.getLogger(__name__)


class BlockModel(BaseModel):
    """Public representation of a block (wire field names)."""
    index: int
    previousHash: str
    timestamp: int
    data: str
    hash: str

    @classmethod
    def from_block(cls, block: Block) -> "BlockModel":
        return cls(**block.to_dict())


class MineRequest(BaseModel):
    data: str = Field(..., description="Opaque payload stored in the new block")


@router.get("/blocks")
async def get_blocks(node: LedgerNode = Depends(get_node)) -> List[BlockModel]:
    return [BlockModel.from_block(b) for b in node.store.snapshot()]


@router.post("/mineBlock")
async def mine_block(body: MineRequest, node: LedgerNode = Depends(get_node)) -> BlockModel:
    try:
        block = node.mine(body.data)
    except InvalidBlock as exc:
        raise HTTPException(409, f"block rejected: {exc.fault.value}")
    logger.info("mined block %s", block.index)
    return BlockModel.from_block(block)
