from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ledger_node.node import LedgerNode

from .deps import get_node

router = APIRouter(tags=["p2p"])


class PeerRequest(BaseModel):
    peer: str


@router.get("/peers")
async def list_peers(node: LedgerNode = Depends(get_node)) -> List[str]:
    return node.links.peers()


@router.post("/addPeer", status_code=202)
async def add_peer(body: PeerRequest, node: LedgerNode = Depends(get_node)) -> Dict[str, Any]:
    """
    Dial a peer in the background. The response does not wait for the
    connection; an unreachable peer only shows up in the logs.
    """
    peer = body.peer.strip()
    if not peer:
        raise HTTPException(400, "peer address must not be empty")
    node.add_peer(peer)
    return {"ok": True, "peer": peer}
