"""Tests for configuration models and TOML loading (config.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from depaudit.config import AuditConfig, NetworkConfig, ScoringWeights, load_config
from depaudit.errors import ConfigError


class TestScoringWeights:
    def test_defaults_sum_to_one(self):
        weights = ScoringWeights()
        assert weights.total == pytest.approx(1.0)
        weights.validate_sum()

    def test_within_tolerance(self):
        ScoringWeights(recency=0.305).validate_sum()

    def test_bad_sum_rejected(self):
        with pytest.raises(ConfigError, match="sum to 1.0"):
            ScoringWeights(recency=0.9).validate_sum()

    def test_negative_weight_rejected(self):
        weights = ScoringWeights(recency=0.5, maintenance=-0.05)
        with pytest.raises(ConfigError, match="non-negative"):
            weights.validate_sum()

    def test_normalized(self):
        normalized = ScoringWeights(
            recency=2, maintenance=1, community=1, stability=0, security=0
        ).normalized()
        assert normalized.total == pytest.approx(1.0)
        assert normalized.recency == pytest.approx(0.5)


class TestAuditConfig:
    def test_defaults_are_valid(self):
        AuditConfig().validate_config()

    def test_risky_before_stale_rejected(self):
        config = AuditConfig.model_validate(
            {"staleness_thresholds": {"stale_days": 400, "risky_days": 200}}
        )
        with pytest.raises(ConfigError, match="risky_days"):
            config.validate_config()

    def test_tokens_from_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GITHUB_TOKEN", "gh-secret")
        monkeypatch.setenv("GITLAB_TOKEN", "gl-secret")

        network = NetworkConfig()

        assert network.github_token == "gh-secret"
        assert network.gitlab_token == "gl-secret"

    def test_no_tokens(self):
        network = NetworkConfig()
        assert network.github_token is None
        assert network.gitlab_token is None


class TestLoadConfig:
    def test_loads_toml(self, tmp_path: Path):
        path = tmp_path / "depaudit.toml"
        path.write_text(
            """
ignored_dependencies = ["windows-sys"]

[scoring_weights]
recency = 0.4
maintenance = 0.2
community = 0.2
stability = 0.1
security = 0.1

[license_policy]
forbidden_licenses = ["AGPL-3.0"]
warn_on_copyleft = false

[network]
max_retries = 5
enable_scorecard = true
"""
        )

        config = load_config(path)

        assert config.scoring_weights.recency == 0.4
        assert config.license_policy.forbidden_licenses == {"AGPL-3.0"}
        assert config.license_policy.warn_on_copyleft is False
        assert config.network.max_retries == 5
        assert config.network.enable_scorecard is True
        assert config.ignored_dependencies == {"windows-sys"}
        # Untouched sections keep their defaults
        assert config.staleness_thresholds.stale_days == 365

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "bad.toml"
        path.write_text("[network\nmax_retries = ")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path):
        path = tmp_path / "bad.toml"
        path.write_text("[network]\nmax_retries = -1\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_weights_validated(self, tmp_path: Path):
        path = tmp_path / "weights.toml"
        path.write_text("[scoring_weights]\nrecency = 0.9\n")
        with pytest.raises(ConfigError, match="sum to 1.0"):
            load_config(path)
