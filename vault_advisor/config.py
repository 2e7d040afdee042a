"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``VAULT_ADVISOR_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Tier APY estimates and every scoring weight live here so they can be tuned
without touching code.  Library functions receive the relevant section
(``ScoringConfig``, ``TierPolicyConfig``, ...) rather than reading files or
env vars themselves.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from vault_advisor.taxonomy.risk_taxonomy import (
    VALID_HORIZON_MONTHS,
    ExperienceLevel,
    LiquidityNeeds,
    RiskTier,
)

# ── Sub-config models ─────────────────────────────────────────────────────────


class FeatureConfig(BaseModel):
    """Feature extraction parameters."""

    model_config = ConfigDict(frozen=True)

    base_unit_decimals: int = 7   # smallest unit → whole asset (Stellar: 10^7)

    @field_validator("base_unit_decimals")
    @classmethod
    def validate_decimals(cls, v: int) -> int:
        if not 0 <= v <= 36:
            raise ValueError(f"base_unit_decimals must be in [0, 36], got {v}.")
        return v

    @property
    def base_unit_scale(self) -> int:
        return 10 ** self.base_unit_decimals


class TierPolicy(BaseModel):
    """Published APY estimate and description for one risk tier."""

    model_config = ConfigDict(frozen=True)

    apy: float
    description: str = ""

    @field_validator("apy")
    @classmethod
    def validate_apy(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Tier APY must be non-negative, got {v}.")
        return v


class TierPolicyConfig(BaseModel):
    """Fixed tier → assumed APY table.

    There is no yield oracle: these values are policy estimates, not
    measurements.  Keys in TOML are the lower-cased tier names.
    """

    model_config = ConfigDict(frozen=True)

    conservative: TierPolicy = TierPolicy(
        apy=6.0,
        description="Diversified strategies with idle capital buffers",
    )
    balanced: TierPolicy = TierPolicy(
        apy=12.0,
        description="Moderate concentration and utilization",
    )
    aggressive: TierPolicy = TierPolicy(
        apy=20.0,
        description="Concentrated, fully deployed capital",
    )

    def for_tier(self, tier: RiskTier) -> TierPolicy:
        return getattr(self, tier.value.lower())


class ScoringConfig(BaseModel):
    """Weights for the composite risk score and the recommendation score.

    Risk score:
        concentration_weight * concentration_index
        + utilization_weight * utilization_ratio

    Recommendation score:
        tvl_weight * log10(1 + tvl_normalized)
        + apy_weight * apy / 100
        + liquidity_bonus_weight * (1 if liquidity fit else 0)
    """

    model_config = ConfigDict(frozen=True)

    concentration_weight: float = 0.6
    utilization_weight: float = 0.4
    tvl_weight: float = 1.0
    apy_weight: float = 2.0
    liquidity_bonus_weight: float = 0.5
    liquidity_idle_threshold: float = 0.10

    @field_validator(
        "concentration_weight", "utilization_weight", "tvl_weight",
        "apy_weight", "liquidity_bonus_weight",
    )
    @classmethod
    def validate_weight_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Scoring weights must be non-negative, got {v}.")
        return v

    @field_validator("liquidity_idle_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"liquidity_idle_threshold must be in [0, 1], got {v}.")
        return v

    @model_validator(mode="after")
    def validate_risk_weights_sum(self) -> "ScoringConfig":
        total = self.concentration_weight + self.utilization_weight
        if abs(total - 1.0) > 1e-9:
            raise ValueError(
                "concentration_weight + utilization_weight must equal 1.0 "
                f"(got {total})."
            )
        return self


class RankingConfig(BaseModel):
    """Recommendation request defaults."""

    model_config = ConfigDict(frozen=True)

    top_n: int = 3
    default_liquidity_needs: LiquidityNeeds = LiquidityNeeds.MEDIUM
    default_experience_level: ExperienceLevel = ExperienceLevel.INTERMEDIATE

    @field_validator("top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"top_n must be >= 1, got {v}.")
        return v


class ProjectionConfig(BaseModel):
    """Projection calculator defaults."""

    model_config = ConfigDict(frozen=True)

    default_horizons: list[int] = sorted(VALID_HORIZON_MONTHS)
    max_apy_percent: float = 1000.0
    compounding: str = "monthly"
    sample_principal: float = 1000.0

    @field_validator("compounding")
    @classmethod
    def validate_compounding(cls, v: str) -> str:
        valid = {"monthly", "quarterly", "annually"}
        if v.lower() not in valid:
            raise ValueError(f"compounding must be one of {sorted(valid)}, got '{v}'.")
        return v.lower()

    @field_validator("default_horizons")
    @classmethod
    def validate_horizons(cls, v: list[int]) -> list[int]:
        if not v or any(m <= 0 for m in v):
            raise ValueError("default_horizons must be a non-empty list of positive months.")
        return v


class AssetsConfig(BaseModel):
    """Display symbols for known underlying asset identifiers."""

    model_config = ConfigDict(frozen=True)

    symbols: dict[str, str] = {}
    unknown_symbol: str = "TOKEN"

    def symbol_for(self, asset_id: str) -> str:
        return self.symbols.get(asset_id, self.unknown_symbol)


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth."""

    model_config = ConfigDict(frozen=True)

    features: FeatureConfig = FeatureConfig()
    tiers: TierPolicyConfig = TierPolicyConfig()
    scoring: ScoringConfig = ScoringConfig()
    ranking: RankingConfig = RankingConfig()
    projection: ProjectionConfig = ProjectionConfig()
    assets: AssetsConfig = AssetsConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply VAULT_ADVISOR_* env vars to the raw config dict.

    Supported overrides:
      VAULT_ADVISOR_LOG_LEVEL           → raw["logging"]["level"]
      VAULT_ADVISOR_TOP_N               → raw["ranking"]["top_n"]
      VAULT_ADVISOR_BASE_UNIT_DECIMALS  → raw["features"]["base_unit_decimals"]
      VAULT_ADVISOR_DEBUG               → raw["debug"]
    """
    if log_level := os.environ.get("VAULT_ADVISOR_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if top_n := os.environ.get("VAULT_ADVISOR_TOP_N"):
        raw.setdefault("ranking", {})["top_n"] = int(top_n)

    if decimals := os.environ.get("VAULT_ADVISOR_BASE_UNIT_DECIMALS"):
        raw.setdefault("features", {})["base_unit_decimals"] = int(decimals)

    if debug := os.environ.get("VAULT_ADVISOR_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        features=FeatureConfig(**raw.get("features", {})),
        tiers=TierPolicyConfig(**raw.get("tiers", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        ranking=RankingConfig(**raw.get("ranking", {})),
        projection=ProjectionConfig(**raw.get("projection", {})),
        assets=AssetsConfig(**raw.get("assets", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
