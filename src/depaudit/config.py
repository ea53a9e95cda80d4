"""Configuration for audit behavior and scoring heuristics."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from depaudit.errors import ConfigError

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 0.01


class ScoringWeights(BaseModel):
    """Weights for the health score components (must sum to 1.0)."""

    recency: float = 0.30
    maintenance: float = 0.25
    community: float = 0.20
    stability: float = 0.15
    security: float = 0.10

    @property
    def total(self) -> float:
        return self.recency + self.maintenance + self.community + self.stability + self.security

    def validate_sum(self) -> None:
        """Raise ConfigError unless every weight is non-negative and they sum to ~1.0."""
        for name, value in self.model_dump().items():
            if value < 0:
                raise ConfigError(f"Scoring weight '{name}' must be non-negative, got {value}")
        if abs(self.total - 1.0) > WEIGHT_TOLERANCE:
            raise ConfigError(f"Scoring weights must sum to 1.0, got {self.total:.3f}")

    def normalized(self) -> ScoringWeights:
        """Return a copy scaled so the weights sum to exactly 1.0."""
        total = self.total
        if total <= 0:
            return self.model_copy()
        return ScoringWeights(**{name: value / total for name, value in self.model_dump().items()})


class StalenessThresholds(BaseModel):
    """Day-count boundaries used by the recency score."""

    stale_days: int = Field(default=365, ge=0)
    risky_days: int = Field(default=730, ge=0)
    min_maintainers: int = Field(default=1, ge=0)


class LicensePolicy(BaseModel):
    """License allow/deny lists and warning switches."""

    allowed_licenses: set[str] = Field(default_factory=set)  # empty = allow all
    forbidden_licenses: set[str] = Field(default_factory=set)
    warn_on_copyleft: bool = True
    warn_on_unknown: bool = True


class FootprintThresholds(BaseModel):
    """Optional limits that trigger footprint warnings."""

    max_transitive_deps: int | None = Field(default=100, ge=0)
    max_footprint_risk: float | None = Field(default=0.8, ge=0, le=1)


class NetworkConfig(BaseModel):
    """Network settings shared by every fetcher."""

    timeout: float = Field(default=30.0, gt=0)  # seconds per request
    max_retries: int = Field(default=3, ge=0)
    request_delay: float = Field(default=0.1, ge=0)  # seconds; also the backoff base
    max_rate_limit_wait: float = Field(default=60.0, ge=0)
    concurrency: int = Field(default=8, ge=1)
    enable_scorecard: bool = False
    user_agent: str = "depaudit/0.1.0"
    github_token: str | None = Field(default_factory=lambda: os.environ.get("GITHUB_TOKEN"))
    gitlab_token: str | None = Field(default_factory=lambda: os.environ.get("GITLAB_TOKEN"))


class AuditConfig(BaseModel):
    """Top-level configuration for an audit run."""

    scoring_weights: ScoringWeights = Field(default_factory=ScoringWeights)
    staleness_thresholds: StalenessThresholds = Field(default_factory=StalenessThresholds)
    license_policy: LicensePolicy = Field(default_factory=LicensePolicy)
    footprint_thresholds: FootprintThresholds = Field(default_factory=FootprintThresholds)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    ignored_dependencies: set[str] = Field(default_factory=set)

    def validate_config(self) -> None:
        """Check cross-field constraints that pydantic cannot express.

        Raises:
            ConfigError: If the weights or thresholds are inconsistent.
        """
        self.scoring_weights.validate_sum()
        thresholds = self.staleness_thresholds
        if thresholds.risky_days < thresholds.stale_days:
            raise ConfigError(
                f"risky_days ({thresholds.risky_days}) must not be lower than "
                f"stale_days ({thresholds.stale_days})"
            )


def load_config(path: Path) -> AuditConfig:
    """Load an AuditConfig from a TOML file.

    Sections mirror the AuditConfig fields, e.g. ``[scoring_weights]`` or
    ``[network]``; ``ignored_dependencies`` is a top-level array. Tokens not
    set in the file fall back to the environment.

    Args:
        path: Path to the TOML file.

    Returns:
        Validated AuditConfig.

    Raises:
        ConfigError: If the file is missing, malformed, or invalid.
    """
    try:
        data = tomllib.loads(path.read_text())
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    try:
        config = AuditConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    config.validate_config()
    logger.debug("Loaded configuration from %s", path)
    return config
