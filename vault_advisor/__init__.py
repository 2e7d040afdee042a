"""Vault Advisor: risk-tiered vault recommendations from raw ledger snapshots."""

__version__ = "0.1.0"
