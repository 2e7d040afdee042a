"""
JSON export helpers for CLI output.

``*_to_dict`` functions shape results into the wire layout an embedding API
returns; ``export_to_json`` writes any dict / list to disk.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from vault_advisor.classification.tiering import Classification
from vault_advisor.models.projection import ProjectionPoint, ProjectionSummary
from vault_advisor.models.recommendation import RecommendationResult
from vault_advisor.models.vault import SkippedRecord
from vault_advisor.taxonomy.risk_taxonomy import TIER_ORDER


def recommendation_result_to_dict(result: RecommendationResult) -> dict[str, Any]:
    """``{recommendation, alternatives, assumptions}`` with JSON-safe values."""
    return result.model_dump(mode="json")


def classification_to_dict(
    classification: Classification,
    skipped:        Sequence[SkippedRecord] = (),
) -> dict[str, Any]:
    tiers = {}
    for tier in TIER_ORDER:
        bucket = classification.bucket(tier)
        tiers[tier.value] = {
            "vault_ids":   list(bucket.vault_ids),
            "assumed_apy": bucket.assumed_apy,
            "score_min":   bucket.score_min,
            "score_max":   bucket.score_max,
        }
    return {
        "tiers":   tiers,
        "scores":  dict(sorted(classification.scores.items())),
        "skipped": [s.model_dump(mode="json") for s in skipped],
    }


def projection_to_dict(
    points:  Sequence[ProjectionPoint],
    summary: ProjectionSummary | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"projections": [p.model_dump(mode="json") for p in points]}
    if summary is not None:
        payload["assumptions"] = summary.assumptions.model_dump(mode="json")
        payload["summary"] = summary.model_dump(mode="json", exclude={"assumptions"})
    return payload


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file.

    Args:
        data: Dict or list to serialise.
        path: Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path
