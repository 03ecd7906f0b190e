"""
Demo Bank

A teaching banking API with an in-memory store, Decimal balances,
favorite recipients and a ceiling on large transfers.
"""

__version__ = "1.0.0"
