"""
CLI reporting helpers.

Modules
-------
formatters : ASCII tables for tiers, recommendations, and projections.
export     : JSON shaping and file export.
"""
