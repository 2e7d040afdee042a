"""
Advisor pipeline: raw vault records → tiers → recommendations → projections.

Stage order
-----------
1. parse_vault_records()   raw dicts      → ParseResult (snapshots + skips)
2. extract_features()      snapshots      → FeatureVector list
3. classify()              feature batch  → Classification
4. recommend()             + profile      → ranked Recommendation list
5. project()               top pick APY   → ProjectionPoint list

Every stage is a pure function; this module only wires them together with
the sections of ``AppConfig`` each one needs and logs stage boundaries.
Nothing is cached between calls, so concurrent requests need no locking.

Usage::

    config = load_config()
    profile = parse_profile({"risk_tolerance": "Balanced",
                             "time_horizon_months": 12,
                             "investment_amount": "100"})
    outcome = recommend_and_project(raw_records, profile, config)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from vault_advisor.classification.tiering import Classification, classify
from vault_advisor.config import AppConfig
from vault_advisor.features.extractor import extract_features
from vault_advisor.ingestion.parser import ParseResult, parse_vault_records
from vault_advisor.models.features import FeatureVector
from vault_advisor.models.profile import UserRiskProfile
from vault_advisor.models.projection import ProjectionPoint, ProjectionSummary
from vault_advisor.models.recommendation import RecommendationResult
from vault_advisor.projection.calculator import project, summarize_projection
from vault_advisor.recommendations.ranker import build_recommendation_result, recommend
from vault_advisor.utils.units import to_base_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultAnalysis:
    """Parsed, featurized, and classified vault batch.

    Attributes:
        parse_result:   Parser output, including skipped records.
        features:       One feature vector per valid snapshot.
        classification: Tier assignment for ``features``.
    """

    parse_result:   ParseResult
    features:       tuple[FeatureVector, ...]
    classification: Classification


@dataclass(frozen=True)
class RecommendAndProjectResult:
    """Recommendation for a profile plus projections of the top pick.

    Attributes:
        result:                Recommendation envelope.
        investment_base_units: Profile investment amount in smallest units.
        projections:           Top pick's projected balances.
        summary:               Roll-up of the longest projected horizon.
    """

    result:                RecommendationResult
    investment_base_units: int
    projections:           tuple[ProjectionPoint, ...]
    summary:               ProjectionSummary


def analyze_vaults(raw_records: Sequence[Any], config: AppConfig) -> VaultAnalysis:
    """Run parse → extract → classify over a raw batch."""
    logger.info(
        "Vault analysis starting | raw_records=%d", len(raw_records),
        extra={"raw_records": len(raw_records)},
    )

    parsed = parse_vault_records(raw_records)
    features = extract_features(parsed.snapshots, config.features)
    classification = classify(features, config.tiers, config.scoring)

    logger.info(
        "Vault analysis completed | valid=%d | skipped=%d",
        len(parsed.snapshots), len(parsed.skipped),
        extra={"valid": len(parsed.snapshots), "skipped": len(parsed.skipped)},
    )
    return VaultAnalysis(
        parse_result=parsed,
        features=tuple(features),
        classification=classification,
    )


def run_recommendation(
    raw_records: Sequence[Any],
    profile:     UserRiskProfile,
    config:      AppConfig,
    top_n:       Optional[int] = None,
) -> tuple[VaultAnalysis, RecommendationResult]:
    """Analyze a raw batch and rank vaults for ``profile``.

    Raises:
        ComputationError:  On an out-of-range feature.
        NoCandidatesError: If no vault is recommendable.
        ValidationError:   On an invalid ``top_n``.
    """
    analysis = analyze_vaults(raw_records, config)
    recommendations = recommend(
        analysis.features,
        analysis.classification,
        profile,
        top_n=top_n if top_n is not None else config.ranking.top_n,
        scoring=config.scoring,
        assets=config.assets,
    )
    result = build_recommendation_result(
        recommendations, analysis.classification, profile, config.scoring
    )
    return analysis, result


def recommend_and_project(
    raw_records: Sequence[Any],
    profile:     UserRiskProfile,
    config:      AppConfig,
    top_n:       Optional[int] = None,
) -> RecommendAndProjectResult:
    """Recommend a vault and project the investment at its assumed APY.

    Horizons are the configured defaults plus the profile's own horizon.
    """
    _, result = run_recommendation(raw_records, profile, config, top_n=top_n)
    top = result.recommendation

    horizons = sorted(set(config.projection.default_horizons) | {profile.time_horizon_months})
    points = project(
        profile.investment_amount,
        top.estimated_apy,
        horizons,
        compounding=config.projection.compounding,
        max_apy_percent=config.projection.max_apy_percent,
    )
    return RecommendAndProjectResult(
        result=result,
        investment_base_units=to_base_units(
            profile.investment_amount, config.features.base_unit_decimals
        ),
        projections=tuple(points),
        summary=summarize_projection(
            points, profile.investment_amount, config.projection.compounding
        ),
    )
