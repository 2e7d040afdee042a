"""
Tests for vault_advisor/recommendations/ranker.py.

What we test
------------
select_candidates():
  - Returns the requested tier's priceable vaults when there are any.
  - Zero-supply (unpriceable) and unclassified vaults are never candidates.
  - Fallback order: toward Conservative first, then toward Aggressive.
  - NoCandidatesError when no tier has a priceable vault.

recommend():
  - Reference batch: Conservative profile gets the two Conservative vaults.
  - Fallback: requested tier unpriceable -> neighbor tier, flagged in
    fallback_tier and rationale, APY of the tier actually used.
  - Sorted by score desc, then TVL desc, then vault id asc.
  - top_n clamps to the candidate count; top_n < 1 is a ValidationError.
  - Removing a vault outside the top-N leaves the top-N unchanged.
  - High liquidity needs promote vaults with idle capital.
  - Asset symbols come from AssetsConfig; unknown assets get "TOKEN".

build_recommendation_result():
  - Top pick plus alternatives; assumptions mention the APY source.
  - Empty input raises NoCandidatesError.
"""

from __future__ import annotations

import pytest
from factories import (
    USDC,
    USDT,
    VAULT_IDLE,
    VAULT_PARTIAL,
    VAULT_SMALL,
    VAULT_USDC,
    make_features,
    make_profile,
)

from vault_advisor.classification.tiering import Classification, TierBucket, classify
from vault_advisor.config import AssetsConfig, TierPolicyConfig
from vault_advisor.errors import NoCandidatesError, ValidationError
from vault_advisor.features.extractor import extract_features
from vault_advisor.ingestion.parser import parse_vault_records
from vault_advisor.recommendations.ranker import (
    ScoredVault,
    build_recommendation_result,
    recommend,
    select_candidates,
)
from vault_advisor.recommendations.scorer import ScoreComponents
from vault_advisor.taxonomy.risk_taxonomy import TIER_ORDER, LiquidityNeeds, RiskTier


def _reference(records):
    features = extract_features(parse_vault_records(records).snapshots)
    return features, classify(features)


def _classified(tier_of: dict[str, RiskTier]) -> Classification:
    """Hand-built classification with the default tier APYs."""
    policy = TierPolicyConfig()
    buckets = {
        tier: TierBucket(
            tier=tier,
            vault_ids=tuple(sorted(v for v, t in tier_of.items() if t == tier)),
            assumed_apy=policy.for_tier(tier).apy,
            description=policy.for_tier(tier).description,
            score_min=None,
            score_max=None,
        )
        for tier in TIER_ORDER
    }
    return Classification(
        assignments=dict(tier_of), tiers=buckets, scores={v: 0.0 for v in tier_of}
    )


# ── Candidate selection ───────────────────────────────────────────────────────

class TestSelectCandidates:
    def test_requested_tier(self, reference_records):
        features, classification = _reference(reference_records)
        tier, candidates = select_candidates(features, classification, RiskTier.BALANCED)
        assert tier == RiskTier.BALANCED
        assert {fv.vault_id for fv in candidates} == {VAULT_USDC, VAULT_SMALL}

    def test_unpriceable_excluded(self):
        features = [
            make_features("A", price_per_share=None),
            make_features("B"),
        ]
        classification = _classified({"A": RiskTier.BALANCED, "B": RiskTier.BALANCED})
        _, candidates = select_candidates(features, classification, RiskTier.BALANCED)
        assert [fv.vault_id for fv in candidates] == ["B"]

    def test_unclassified_excluded(self):
        features = [make_features("A"), make_features("STRAY")]
        classification = _classified({"A": RiskTier.BALANCED})
        _, candidates = select_candidates(features, classification, RiskTier.BALANCED)
        assert [fv.vault_id for fv in candidates] == ["A"]

    def test_balanced_falls_back_to_conservative_first(self):
        features = [
            make_features("C"),
            make_features("B", price_per_share=None),
            make_features("A"),
        ]
        classification = _classified({
            "C": RiskTier.CONSERVATIVE, "B": RiskTier.BALANCED, "A": RiskTier.AGGRESSIVE,
        })
        tier, _ = select_candidates(features, classification, RiskTier.BALANCED)
        assert tier == RiskTier.CONSERVATIVE

    def test_aggressive_falls_back_to_balanced(self):
        features = [make_features("C"), make_features("B"), make_features("A", price_per_share=None)]
        classification = _classified({
            "C": RiskTier.CONSERVATIVE, "B": RiskTier.BALANCED, "A": RiskTier.AGGRESSIVE,
        })
        tier, _ = select_candidates(features, classification, RiskTier.AGGRESSIVE)
        assert tier == RiskTier.BALANCED

    def test_conservative_reaches_aggressive(self):
        features = [
            make_features("C", price_per_share=None),
            make_features("B", price_per_share=None),
            make_features("A"),
        ]
        classification = _classified({
            "C": RiskTier.CONSERVATIVE, "B": RiskTier.BALANCED, "A": RiskTier.AGGRESSIVE,
        })
        tier, candidates = select_candidates(features, classification, RiskTier.CONSERVATIVE)
        assert tier == RiskTier.AGGRESSIVE
        assert [fv.vault_id for fv in candidates] == ["A"]

    def test_nothing_priceable(self):
        features = [make_features("A", price_per_share=None)]
        classification = _classified({"A": RiskTier.CONSERVATIVE})
        with pytest.raises(NoCandidatesError) as exc_info:
            select_candidates(features, classification, RiskTier.BALANCED)
        assert exc_info.value.requested_tier == "Balanced"
        assert exc_info.value.universe_size == 1

    def test_empty_universe(self):
        with pytest.raises(NoCandidatesError):
            select_candidates([], classify([]), RiskTier.CONSERVATIVE)


# ── Ranking ───────────────────────────────────────────────────────────────────

class TestRecommendReference:
    def test_conservative_profile(self, reference_records):
        features, classification = _reference(reference_records)
        recs = recommend(features, classification, make_profile(RiskTier.CONSERVATIVE))
        assert [r.vault_id for r in recs] == [VAULT_PARTIAL, VAULT_IDLE]
        assert all(r.risk_level == RiskTier.CONSERVATIVE for r in recs)
        assert all(r.estimated_apy == 6.0 for r in recs)
        assert all(not r.fallback_used for r in recs)

    def test_fallback_when_tier_unpriceable(self, reference_records):
        for record in reference_records:
            if record["vault"] in (VAULT_IDLE, VAULT_PARTIAL):
                record["totalSupplyBefore"] = "0"
        features, classification = _reference(reference_records)
        # Zero supply does not change the tiers.
        assert classification.tier_of(VAULT_IDLE) == RiskTier.CONSERVATIVE

        recs = recommend(features, classification, make_profile(RiskTier.CONSERVATIVE))
        top = recs[0]
        assert top.vault_id == VAULT_USDC
        assert top.risk_level == RiskTier.BALANCED
        assert top.fallback_tier == RiskTier.CONSERVATIVE
        assert top.estimated_apy == 12.0
        assert "Fallback to the Balanced tier" in top.rationale
        assert VAULT_IDLE not in [r.vault_id for r in recs]

    def test_asset_symbols(self, reference_records):
        features, classification = _reference(reference_records)
        assets = AssetsConfig(symbols={USDT: "USDT"})
        recs = recommend(
            features, classification, make_profile(RiskTier.BALANCED), assets=assets
        )
        by_id = {r.vault_id: r for r in recs}
        assert by_id[VAULT_SMALL].asset_symbol == "USDT"
        assert by_id[VAULT_USDC].asset_symbol == "TOKEN"


class TestRecommendOrdering:
    def _batch(self):
        features = [
            make_features("S", tvl=10.0),
            make_features("L", tvl=100_000.0),
            make_features("M", tvl=1_000.0),
        ]
        return features, _classified({fv.vault_id: RiskTier.BALANCED for fv in features})

    def test_score_descending(self):
        features, classification = self._batch()
        recs = recommend(features, classification, make_profile())
        assert [r.vault_id for r in recs] == ["L", "M", "S"]
        assert recs[0].score >= recs[1].score >= recs[2].score

    def test_equal_scores_break_by_vault_id(self):
        features = [make_features(vid, tvl=50.0) for vid in ("Z", "B", "K")]
        classification = _classified({fv.vault_id: RiskTier.BALANCED for fv in features})
        recs = recommend(features, classification, make_profile())
        assert [r.vault_id for r in recs] == ["B", "K", "Z"]

    def test_sort_key_prefers_tvl_on_equal_score(self):
        components = ScoreComponents(1.0, 0.0, 0.0, False)
        small = ScoredVault(make_features("A", tvl=1.0), RiskTier.BALANCED, components, 1.0)
        large = ScoredVault(make_features("B", tvl=9.0), RiskTier.BALANCED, components, 1.0)
        assert sorted([small, large], key=lambda sv: sv.sort_key)[0] is large

    def test_top_n_limits(self):
        features, classification = self._batch()
        recs = recommend(features, classification, make_profile(), top_n=2)
        assert [r.vault_id for r in recs] == ["L", "M"]

    def test_top_n_clamped(self):
        features, classification = self._batch()
        assert len(recommend(features, classification, make_profile(), top_n=50)) == 3

    @pytest.mark.parametrize("top_n", [0, -1])
    def test_invalid_top_n(self, top_n):
        features, classification = self._batch()
        with pytest.raises(ValidationError, match="top_n"):
            recommend(features, classification, make_profile(), top_n=top_n)

    def test_removing_non_top_vault_is_stable(self):
        features, classification = self._batch()
        before = recommend(features, classification, make_profile(), top_n=2)
        trimmed = [fv for fv in features if fv.vault_id != "S"]
        after = recommend(trimmed, classification, make_profile(), top_n=2)
        assert before == after

    def test_repeatable(self):
        features, classification = self._batch()
        profile = make_profile()
        assert recommend(features, classification, profile) == recommend(
            list(reversed(features)), classification, profile
        )

    def test_high_liquidity_promotes_idle_vault(self):
        features = [
            make_features("IDLE", tvl=100.0, idle=0.5),
            make_features("BUSY", tvl=200.0, idle=0.0, utilization=1.0),
        ]
        classification = _classified({"IDLE": RiskTier.BALANCED, "BUSY": RiskTier.BALANCED})
        medium = recommend(features, classification, make_profile())
        high = recommend(
            features, classification, make_profile(liquidity=LiquidityNeeds.HIGH)
        )
        assert medium[0].vault_id == "BUSY"
        assert high[0].vault_id == "IDLE"

    def test_score_rounded(self):
        features, classification = self._batch()
        for rec in recommend(features, classification, make_profile()):
            assert rec.score == round(rec.score, 4)


# ── Result envelope ───────────────────────────────────────────────────────────

class TestBuildRecommendationResult:
    def test_top_and_alternatives(self, reference_records):
        features, classification = _reference(reference_records)
        profile = make_profile(RiskTier.BALANCED)
        recs = recommend(features, classification, profile)
        result = build_recommendation_result(recs, classification, profile)
        assert result.recommendation == recs[0]
        assert list(result.alternatives) == recs[1:]
        assert "balanced risk tier policy" in result.assumptions.apy_source
        assert "5 vault(s)" in result.assumptions.risk_assessment

    def test_fallback_noted_in_assumptions(self):
        features = [make_features("C"), make_features("B", price_per_share=None)]
        classification = _classified({"C": RiskTier.CONSERVATIVE, "B": RiskTier.BALANCED})
        profile = make_profile(RiskTier.BALANCED)
        recs = recommend(features, classification, profile)
        result = build_recommendation_result(recs, classification, profile)
        assert "fallback" in result.assumptions.apy_source

    def test_empty_raises(self):
        with pytest.raises(NoCandidatesError):
            build_recommendation_result([], classify([]), make_profile())

    def test_unknown_asset_uses_default_symbol(self):
        features = [make_features("X", asset_id=USDC)]
        classification = _classified({"X": RiskTier.BALANCED})
        recs = recommend(features, classification, make_profile())
        assert recs[0].asset_symbol == "TOKEN"
