"""Compounded return projections (see calculator)."""
