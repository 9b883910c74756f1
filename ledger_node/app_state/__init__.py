# ledger_node/app_state/__init__.py
"""
Ledger app_state package
Holds the node-local chain state.
"""

from ledger_node.app_state.chain import ChainStore

__all__ = ["ChainStore"]
