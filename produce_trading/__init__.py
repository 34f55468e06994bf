"""Produce trading platform: branch ledger for procurement, cash sales and credit sales."""

__version__ = "1.0.0"
