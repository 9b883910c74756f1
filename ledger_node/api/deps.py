from fastapi import Request

from ledger_node.node import LedgerNode


def get_node(request: Request) -> LedgerNode:
    """The node owned by the running app (set by ``create_app``)."""
    return request.app.state.node
