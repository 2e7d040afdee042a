"""
Vault Advisor — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Run the pure analytics core.
  5. Report result to stdout (ASCII tables, or JSON with ``--json``).

Install and run::

    pip install -e .
    vault-advisor --help
    vault-advisor validate-config
    vault-advisor classify --snapshots data/vaults.json
    vault-advisor recommend --snapshots data/vaults.json --risk Balanced \\
        --amount 100 --horizon 12 --project
    vault-advisor project --principal 1000 --apy 8
    vault-advisor scenarios
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

app = typer.Typer(
    name="vault-advisor",
    help="Risk-tiered vault recommendations and return projections.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from vault_advisor.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from vault_advisor.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_records_or_exit(snapshots_path: str) -> list:
    """Read raw vault records, exiting with code 1 on unreadable input."""
    from vault_advisor.ingestion.snapshot import load_raw_records

    path = Path(snapshots_path)
    if not path.exists():
        typer.echo(f"[ERROR] Snapshot file not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        return load_raw_records(path)
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] JSON parse error: {exc}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _emit_json(payload: dict, output: Optional[str]) -> None:
    from vault_advisor.reporting.export import export_to_json

    if output:
        written = export_to_json(payload, Path(output))
        typer.echo(f"[OK] Wrote {written}")
    else:
        typer.echo(json.dumps(payload, indent=2, default=str))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    from vault_advisor.taxonomy.risk_taxonomy import TIER_ORDER

    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    for tier in TIER_ORDER:
        typer.echo(f"  {tier.value + ' APY:':<20}{config.tiers.for_tier(tier).apy:.1f}%")
    typer.echo(
        f"  Risk weights:       concentration={config.scoring.concentration_weight} "
        f"utilization={config.scoring.utilization_weight}"
    )
    typer.echo(f"  Base unit decimals: {config.features.base_unit_decimals}")
    typer.echo(f"  Top N:              {config.ranking.top_n}")
    typer.echo(f"  Log level:          {config.logging.level}")
    typer.echo(f"  Debug mode:         {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("classify")
def classify_vaults(
    snapshots: str = typer.Option(
        ...,
        "--snapshots",
        help="JSON file with raw vault records (list, envelope, or query response).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
    output: Optional[str] = typer.Option(None, "--output", help="Write JSON to this path."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Parse raw vault records and show their risk tiers."""
    from vault_advisor.errors import ComputationError
    from vault_advisor.pipeline.advisor import analyze_vaults
    from vault_advisor.reporting.export import classification_to_dict
    from vault_advisor.reporting.formatters import format_skipped, format_tier_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    records = _load_records_or_exit(snapshots)

    try:
        analysis = analyze_vaults(records, config)
    except ComputationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if as_json or output:
        _emit_json(
            classification_to_dict(analysis.classification, analysis.parse_result.skipped),
            output,
        )
        return

    typer.echo(f"Classified {len(analysis.classification)} vault(s) from {snapshots}")
    typer.echo("")
    typer.echo(format_tier_table(analysis.classification, analysis.features))
    typer.echo("")
    typer.echo("Skipped records:")
    typer.echo(format_skipped(analysis.parse_result.skipped))


@app.command("recommend")
def recommend_vaults(
    snapshots: str = typer.Option(..., "--snapshots", help="JSON file with raw vault records."),
    risk: str = typer.Option(..., "--risk", help="Conservative, Balanced, or Aggressive."),
    amount: str = typer.Option(..., "--amount", help="Investment amount in whole asset units."),
    horizon: int = typer.Option(12, "--horizon", help="Horizon in months: 6, 12, 18, or 24."),
    liquidity: Optional[str] = typer.Option(None, "--liquidity", help="Low, Medium, or High."),
    experience: Optional[str] = typer.Option(
        None, "--experience", help="Beginner, Intermediate, or Advanced.",
    ),
    top_n: Optional[int] = typer.Option(None, "--top-n", help="Override ranking.top_n."),
    with_projection: bool = typer.Option(
        False, "--project", help="Also project the top pick at its assumed APY.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
    output: Optional[str] = typer.Option(None, "--output", help="Write JSON to this path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Recommend vaults for an investor risk profile.

    \b
    Exit codes:
      0  success
      1  invalid input, unreadable snapshots, or computation defect
      2  no recommendable vault in any tier
    """
    from vault_advisor.errors import ComputationError, NoCandidatesError, ValidationError
    from vault_advisor.models.profile import parse_profile
    from vault_advisor.pipeline.advisor import recommend_and_project, run_recommendation
    from vault_advisor.reporting.export import projection_to_dict, recommendation_result_to_dict
    from vault_advisor.reporting.formatters import (
        format_projection_table,
        format_recommendation_result,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    records = _load_records_or_exit(snapshots)

    raw_profile: dict = {
        "risk_tolerance": risk,
        "time_horizon_months": horizon,
        "investment_amount": amount,
    }
    if liquidity:
        raw_profile["liquidity_needs"] = liquidity
    if experience:
        raw_profile["experience_level"] = experience

    try:
        profile = parse_profile(
            raw_profile,
            default_liquidity=config.ranking.default_liquidity_needs,
            default_experience=config.ranking.default_experience_level,
        )
        if with_projection:
            outcome = recommend_and_project(records, profile, config, top_n=top_n)
            result = outcome.result
        else:
            outcome = None
            _, result = run_recommendation(records, profile, config, top_n=top_n)
    except (ValidationError, ComputationError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except NoCandidatesError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=2)

    if as_json or output:
        payload = recommendation_result_to_dict(result)
        if outcome is not None:
            payload["investment_base_units"] = str(outcome.investment_base_units)
            payload["projection"] = projection_to_dict(outcome.projections, outcome.summary)
        _emit_json(payload, output)
        return

    typer.echo(format_recommendation_result(result))
    if outcome is not None:
        typer.echo("")
        typer.echo(
            f"Projection of {profile.investment_amount} {result.recommendation.asset_symbol} "
            f"at {result.recommendation.estimated_apy:.1f}% APY:"
        )
        typer.echo(format_projection_table(outcome.projections, outcome.summary))


@app.command("project")
def project_returns(
    principal: float = typer.Option(..., "--principal", help="Initial deposit (> 0)."),
    apy: float = typer.Option(..., "--apy", help="Annual yield in percent (>= 0)."),
    horizon: Optional[List[int]] = typer.Option(
        None,
        "--horizon",
        help="Horizon in months. Repeatable; defaults to projection.default_horizons.",
    ),
    contribution: float = typer.Option(0.0, "--contribution", help="Monthly contribution."),
    compounding: Optional[str] = typer.Option(
        None, "--compounding", help="monthly, quarterly, or annually.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Project compounded balances for a principal at a given APY."""
    from vault_advisor.errors import ValidationError
    from vault_advisor.projection.calculator import project, summarize_projection
    from vault_advisor.reporting.export import projection_to_dict
    from vault_advisor.reporting.formatters import format_projection_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        points = project(
            principal,
            apy,
            horizon or config.projection.default_horizons,
            monthly_contribution=contribution,
            compounding=compounding or config.projection.compounding,
            max_apy_percent=config.projection.max_apy_percent,
        )
        summary = summarize_projection(
            points, principal, compounding or config.projection.compounding
        )
    except ValidationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(projection_to_dict(points, summary), indent=2))
        return

    typer.echo(f"Projection of {principal:,.2f} at {apy:.2f}% APY:")
    typer.echo(format_projection_table(points, summary))


@app.command("scenarios")
def scenarios(
    principal: Optional[float] = typer.Option(
        None, "--principal", help="Sample principal (default: projection.sample_principal).",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Show reference projections at every tier's configured APY."""
    from vault_advisor.errors import ValidationError
    from vault_advisor.projection.calculator import reference_scenarios
    from vault_advisor.reporting.formatters import format_projection_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    sample = principal if principal is not None else config.projection.sample_principal

    try:
        by_tier = reference_scenarios(config.tiers, sample, config.projection.default_horizons)
    except ValidationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    for tier, points in by_tier.items():
        policy = config.tiers.for_tier(tier)
        typer.echo(f"{tier.value} — {policy.apy:.1f}% APY ({policy.description})")
        typer.echo(format_projection_table(points))
        typer.echo("")


if __name__ == "__main__":
    app()
