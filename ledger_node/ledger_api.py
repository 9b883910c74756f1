from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ledger_node.api import chain, peers
from ledger_node.config import NodeSettings, load_config
from ledger_node.node import LedgerNode

log = logging.getLogger(__name__)


def create_app(node: Optional[LedgerNode] = None) -> FastAPI:
    """
    Build the HTTP app around ``node`` (or one configured from
    ledger_config.yaml / env). Also usable directly:

        uvicorn --factory ledger_node.ledger_api:create_app
    """
    if node is None:
        node = LedgerNode(NodeSettings.from_config(load_config()))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Peer server shares uvicorn's event loop with the HTTP handlers
        await node.start()
        try:
            yield
        finally:
            await node.stop()

    app = FastAPI(title="Ledger Node API", lifespan=lifespan)
    app.state.node = node

    # CORS: tighten in prod if needed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(chain.router)
    app.include_router(peers.router)

    @app.get("/health")
    async def health():
        return {"ok": True, "height": node.store.tail().index, "peers": len(node.links)}

    return app
