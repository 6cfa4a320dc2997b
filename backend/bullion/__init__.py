"""Bullion ledger: precious-metal lot accounting."""
