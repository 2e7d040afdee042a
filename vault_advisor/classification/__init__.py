"""Deterministic risk-tier classification (see tiering)."""
