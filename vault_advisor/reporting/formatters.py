"""
ASCII terminal formatters for CLI commands.

All formatters accept in-memory result objects and return plain multi-line
strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).
"""

from __future__ import annotations

from collections.abc import Sequence

from vault_advisor.classification.tiering import Classification
from vault_advisor.models.features import FeatureVector
from vault_advisor.models.projection import ProjectionPoint, ProjectionSummary
from vault_advisor.models.recommendation import Recommendation, RecommendationResult
from vault_advisor.models.vault import SkippedRecord
from vault_advisor.taxonomy.risk_taxonomy import TIER_ORDER


def _short(vault_id: str, width: int = 12) -> str:
    """Abbreviate long contract ids as ``ABCD…WXYZ``."""
    if len(vault_id) <= width:
        return vault_id
    half = (width - 1) // 2
    return f"{vault_id[:half]}…{vault_id[-half:]}"


# ── Tiers ─────────────────────────────────────────────────────────────────────


def format_tier_table(
    classification: Classification,
    features:       Sequence[FeatureVector],
) -> str:
    """One block per tier listing members with score, TVL, and HHI."""
    by_id = {fv.vault_id: fv for fv in features}
    lines: list[str] = []

    for tier in TIER_ORDER:
        bucket = classification.bucket(tier)
        if bucket.is_empty:
            lines.append(f"  {tier.value:<12} (empty)  APY {bucket.assumed_apy:.1f}%")
            continue
        lines.append(
            f"  {tier.value:<12} APY {bucket.assumed_apy:.1f}%  "
            f"score [{bucket.score_min:.3f} – {bucket.score_max:.3f}]"
        )
        lines.append(f"    {'vault':<14}{'score':>8}{'tvl':>16}{'hhi':>7}{'idle':>7}  pps")
        for vid in bucket.vault_ids:
            fv = by_id[vid]
            pps = f"{fv.price_per_share:.4f}" if fv.price_per_share is not None else "n/a"
            lines.append(
                f"    {_short(vid):<14}"
                f"{classification.scores[vid]:>8.3f}"
                f"{fv.tvl_normalized:>16,.2f}"
                f"{fv.concentration_index:>7.2f}"
                f"{fv.idle_ratio:>7.0%}  {pps}"
            )
        lines.append("")

    return "\n".join(lines).rstrip()


def format_skipped(skipped: Sequence[SkippedRecord]) -> str:
    if not skipped:
        return "  No records skipped."
    return "\n".join(
        f"  #{s.index} {s.vault_id or '<unknown>'}: [{s.kind}] {s.detail}" for s in skipped
    )


# ── Recommendations ───────────────────────────────────────────────────────────


def _format_recommendation(rank: int, rec: Recommendation) -> str:
    flag = "  [FALLBACK]" if rec.fallback_used else ""
    return (
        f"  #{rank} {rec.vault_id}{flag}\n"
        f"     {rec.risk_level.value} | {rec.asset_symbol} | TVL {rec.tvl:,.2f} | "
        f"APY {rec.estimated_apy:.1f}% | score {rec.score:.3f}\n"
        f"     {rec.rationale}"
    )


def format_recommendation_result(result: RecommendationResult) -> str:
    """Top pick, alternatives, and assumptions as indented text."""
    lines = ["Recommendation:", _format_recommendation(1, result.recommendation)]
    if result.alternatives:
        lines.append("")
        lines.append("Alternatives:")
        for rank, alt in enumerate(result.alternatives, start=2):
            lines.append(_format_recommendation(rank, alt))
    lines.append("")
    lines.append("Assumptions:")
    lines.append(f"  APY source:      {result.assumptions.apy_source}")
    lines.append(f"  Risk assessment: {result.assumptions.risk_assessment}")
    return "\n".join(lines)


# ── Projections ───────────────────────────────────────────────────────────────


def format_projection_table(
    points:  Sequence[ProjectionPoint],
    summary: ProjectionSummary | None = None,
) -> str:
    """Horizon / balance / returns table with an optional summary line."""
    lines = [f"  {'months':>6}{'balance':>16}{'invested':>16}{'returns':>14}"]
    for pt in points:
        lines.append(
            f"  {pt.months:>6}{pt.balance:>16,.2f}"
            f"{pt.total_contributions:>16,.2f}{pt.total_returns:>14,.2f}"
        )
    if summary is not None:
        lines.append(
            f"  Final {summary.final_balance:,.2f} | returns {summary.total_returns:,.2f} | "
            f"effective APY {summary.effective_apy:.2f}%"
        )
        lines.append(f"  Assumes {summary.assumptions.compounding}.")
        lines.append(f"  {summary.assumptions.apy_type}. {summary.assumptions.fees}.")
    return "\n".join(lines)
