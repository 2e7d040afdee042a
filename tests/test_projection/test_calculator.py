"""
Tests for vault_advisor/projection/calculator.py.

What we test
------------
project():
  - 0% APY returns the principal at every horizon.
  - 12 months at X% APY grows by exactly X% (monthly compounding).
  - Balances increase with horizon, and strictly with APY, for positive APY.
  - Horizons are returned in the given order.
  - Quarterly / annual compounding credit only completed periods.
  - Monthly contributions are deposited at month end and compound afterwards.
  - Invalid principal, APY, contribution, horizons, compounding -> ValidationError.

summarize_projection():
  - Rolls up the longest horizon; effective APY equals the input APY when
    there are no contributions.
  - Carries an assumptions block describing the compounding used.

reference_scenarios():
  - One projection per tier at that tier's policy APY.
"""

from __future__ import annotations

import math
from decimal import Decimal

import pytest

from vault_advisor.config import TierPolicy, TierPolicyConfig
from vault_advisor.errors import ValidationError
from vault_advisor.projection.calculator import (
    describe_assumptions,
    periodic_rate,
    project,
    reference_scenarios,
    summarize_projection,
)
from vault_advisor.taxonomy.risk_taxonomy import TIER_ORDER, RiskTier


def _balances(*args, **kwargs) -> list[float]:
    return [pt.balance for pt in project(*args, **kwargs)]


# ── Core formula ──────────────────────────────────────────────────────────────

class TestProject:
    def test_zero_apy_is_identity(self):
        for pt in project(500, 0, [6, 12, 18, 24]):
            assert pt.balance == pytest.approx(500.0)
            assert pt.total_returns == pytest.approx(0.0)

    def test_one_year_matches_apy(self):
        (pt,) = project(1000, 12, [12])
        assert pt.balance == pytest.approx(1120.0)
        assert pt.total_returns == pytest.approx(120.0)
        assert pt.total_contributions == pytest.approx(1000.0)

    def test_reference_horizons(self):
        balances = _balances(1000, 12, [6, 12, 18, 24])
        assert balances == pytest.approx([
            1000 * math.sqrt(1.12),
            1120.0,
            1000 * 1.12 ** 1.5,
            1254.4,
        ])

    def test_monotonic_in_horizon(self):
        balances = _balances(100, 7.5, [6, 12, 18, 24])
        assert balances == sorted(balances)
        assert len(set(balances)) == 4

    def test_eight_percent_reference_horizons(self):
        balances = _balances(1000, 8, [6, 12, 18, 24])
        assert all(b > 1000 for b in balances)
        assert all(a < b for a, b in zip(balances, balances[1:]))
        assert balances[1] == pytest.approx(1080.0)

    @pytest.mark.parametrize("months", [6, 12, 18, 24])
    def test_strictly_increasing_in_apy(self, months):
        balances = [project(1000, apy, [months])[0].balance for apy in (0.5, 2, 8, 12, 20, 150)]
        assert all(a < b for a, b in zip(balances, balances[1:]))

    def test_horizon_order_preserved(self):
        months = [pt.months for pt in project(100, 5, [24, 6, 12])]
        assert months == [24, 6, 12]

    def test_decimal_principal(self):
        (pt,) = project(Decimal("250.5"), 0, [12])
        assert pt.balance == pytest.approx(250.5)

    def test_periodic_rate(self):
        assert (1 + periodic_rate(12.0, 12)) ** 12 == pytest.approx(1.12)
        assert periodic_rate(0.0) == 0.0


class TestCompounding:
    def test_quarterly_matches_monthly_on_quarter_boundaries(self):
        monthly = _balances(1000, 8, [6, 12])
        quarterly = _balances(1000, 8, [6, 12], compounding="quarterly")
        assert quarterly == pytest.approx(monthly)

    def test_quarterly_ignores_partial_quarter(self):
        (pt,) = project(1000, 8, [4], compounding="quarterly")
        (three,) = project(1000, 8, [3], compounding="quarterly")
        assert pt.balance == pytest.approx(three.balance)

    def test_annual_partial_year_unchanged(self):
        (pt,) = project(1000, 10, [6], compounding="annually")
        assert pt.balance == pytest.approx(1000.0)

    def test_annual_full_years(self):
        balances = _balances(1000, 10, [12, 18, 24], compounding="annually")
        assert balances == pytest.approx([1100.0, 1100.0, 1210.0])

    def test_compounding_case_insensitive(self):
        assert _balances(1000, 10, [12], compounding="Annually") == pytest.approx([1100.0])


class TestContributions:
    def test_zero_apy_contributions_add_linearly(self):
        (pt,) = project(1000, 0, [12], monthly_contribution=50)
        assert pt.balance == pytest.approx(1600.0)
        assert pt.total_contributions == pytest.approx(1600.0)
        assert pt.total_returns == pytest.approx(0.0)

    def test_end_of_month_deposit(self):
        growth = 1 + periodic_rate(12.0)
        (pt,) = project(1000, 12, [2], monthly_contribution=100)
        assert pt.balance == pytest.approx(1000 * growth**2 + 100 * growth + 100)

    def test_contributions_earn_returns(self):
        (with_c,) = project(1000, 10, [24], monthly_contribution=100)
        assert with_c.total_contributions == pytest.approx(3400.0)
        assert with_c.total_returns > project(1000, 10, [24])[0].total_returns


class TestValidation:
    @pytest.mark.parametrize("principal", [0, -10, float("nan"), float("inf"), True, "100"])
    def test_bad_principal(self, principal):
        with pytest.raises(ValidationError, match="principal"):
            project(principal, 5, [12])

    @pytest.mark.parametrize("apy", [-0.01, 1000.5, float("nan")])
    def test_bad_apy(self, apy):
        with pytest.raises(ValidationError, match="apy_percent"):
            project(100, apy, [12])

    def test_apy_at_cap_allowed(self):
        assert project(100, 1000, [12])[0].balance == pytest.approx(1100.0)

    def test_custom_apy_cap(self):
        with pytest.raises(ValidationError):
            project(100, 60, [12], max_apy_percent=50)

    @pytest.mark.parametrize("horizons", [[], [0], [-6], [True], [6.0]])
    def test_bad_horizons(self, horizons):
        with pytest.raises(ValidationError, match="horizons_months"):
            project(100, 5, horizons)

    def test_negative_contribution(self):
        with pytest.raises(ValidationError, match="monthly_contribution"):
            project(100, 5, [12], monthly_contribution=-1)

    def test_unknown_compounding(self):
        with pytest.raises(ValidationError, match="compounding"):
            project(100, 5, [12], compounding="weekly")


# ── Summary ───────────────────────────────────────────────────────────────────

class TestSummarizeProjection:
    def test_effective_apy_equals_input(self):
        points = project(1000, 8, [6, 24, 12])
        summary = summarize_projection(points, 1000)
        assert summary.effective_apy == pytest.approx(8.0)
        assert summary.final_balance == pytest.approx(1000 * 1.08**2)
        assert summary.total_invested == pytest.approx(1000.0)

    def test_contributions_included(self):
        points = project(1000, 0, [12], monthly_contribution=10)
        summary = summarize_projection(points, 1000)
        assert summary.total_invested == pytest.approx(1120.0)
        assert summary.total_returns == pytest.approx(0.0)

    def test_no_points(self):
        summary = summarize_projection([], 500)
        assert summary.final_balance == 500.0
        assert summary.effective_apy == 0.0

    def test_bad_principal(self):
        with pytest.raises(ValidationError):
            summarize_projection([], 0)

    def test_assumptions_follow_compounding(self):
        points = project(1000, 8, [12], compounding="quarterly")
        summary = summarize_projection(points, 1000, compounding="quarterly")
        assert summary.assumptions.compounding.startswith("Quarterly compounding")
        assert "gross of protocol fees" in summary.assumptions.fees
        assert summarize_projection([], 1).assumptions == describe_assumptions("monthly")

    def test_unknown_compounding_in_summary(self):
        with pytest.raises(ValidationError, match="compounding"):
            summarize_projection([], 1000, compounding="weekly")


# ── Reference scenarios ───────────────────────────────────────────────────────

class TestReferenceScenarios:
    def test_one_entry_per_tier(self):
        scenarios = reference_scenarios()
        assert list(scenarios) == list(TIER_ORDER)
        assert [pt.months for pt in scenarios[RiskTier.BALANCED]] == [6, 12, 18, 24]

    def test_tier_apys(self):
        scenarios = reference_scenarios(principal=1000, horizons_months=[12])
        assert scenarios[RiskTier.CONSERVATIVE][0].balance == pytest.approx(1060.0)
        assert scenarios[RiskTier.BALANCED][0].balance == pytest.approx(1120.0)
        assert scenarios[RiskTier.AGGRESSIVE][0].balance == pytest.approx(1200.0)

    def test_custom_policy(self):
        policy = TierPolicyConfig(aggressive=TierPolicy(apy=50.0))
        scenarios = reference_scenarios(policy, 100, [12])
        assert scenarios[RiskTier.AGGRESSIVE][0].balance == pytest.approx(150.0)
