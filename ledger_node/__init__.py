"""
Ledger Node package initializer

Keep this module lightweight. Do not import the web or network stack here,
so the chain model and validators can be used on their own.
"""

__all__ = []
