"""Score calculator for dependency health metrics."""

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from depaudit.config import AuditConfig
from depaudit.models.schemas import (
    ComponentScores,
    DependencyMetrics,
    GitHubMetadata,
    GitLabMetadata,
    HealthStatus,
    RegistryMetadata,
    RepositoryMetrics,
)

NEUTRAL_SCORE = 50.0

# Yanked releases are capped regardless of component scores
YANKED_SCALE = 0.1
YANKED_CEILING = 10.0


@dataclass(frozen=True)
class RepositorySignals:
    """Host-independent view of repository activity."""

    is_archived: bool
    open_issues: int
    last_activity: datetime | None
    stars: int
    contributors: int | None = None
    has_security_policy: bool | None = None


@dataclass(frozen=True)
class ScoreResult:
    """Output of the composite scorer."""

    health_score: int
    scores: ComponentScores
    metrics: DependencyMetrics


class Scorer:
    """Calculates health scores from whichever metadata is available.

    Components (default weights, configurable):
    - Recency: 30%
    - Maintenance: 25%
    - Community: 20%
    - Stability: 15%
    - Security: 10%

    Every component is defined for every combination of present and absent
    sources, so the weighted sum is always well-defined.
    """

    def __init__(self, config: AuditConfig | None = None) -> None:
        self.config = config or AuditConfig()
        self.weights = self.config.scoring_weights.normalized()

    def score(
        self,
        registry: RegistryMetadata | None = None,
        github: GitHubMetadata | None = None,
        gitlab: GitLabMetadata | None = None,
        scorecard: float | None = None,
        now: datetime | None = None,
    ) -> ScoreResult:
        """Calculate all score components and the overall health score.

        Args:
            registry: crates.io metadata.
            github: GitHub repository metadata.
            gitlab: GitLab project metadata.
            scorecard: OpenSSF Scorecard score (0-10).
            now: Reference time. Defaults to the current UTC time.

        Returns:
            ScoreResult with the 0-100 health score, components and metrics.
        """
        now = now or datetime.now(timezone.utc)
        repo = repository_signals(github, gitlab)
        is_yanked = registry is not None and registry.is_yanked

        scores = ComponentScores(
            recency=self._calculate_recency_score(registry, repo, now),
            maintenance=self._calculate_maintenance_score(repo, now),
            community=self._calculate_community_score(registry, repo),
            stability=self._calculate_stability_score(registry),
            security=self._calculate_security_score(repo, scorecard, is_yanked),
        )

        weights = self.weights
        overall = (
            scores.recency * weights.recency
            + scores.maintenance * weights.maintenance
            + scores.community * weights.community
            + scores.stability * weights.stability
            + scores.security * weights.security
        )

        if is_yanked:
            overall = min(overall * YANKED_SCALE, YANKED_CEILING)

        # Round half up, then clamp
        health_score = int(min(100, max(0, math.floor(overall + 0.5))))

        metrics = self._build_metrics(registry, repo, scores, scorecard, now)
        return ScoreResult(health_score=health_score, scores=scores, metrics=metrics)

    def _calculate_recency_score(
        self,
        registry: RegistryMetadata | None,
        repo: RepositorySignals | None,
        now: datetime,
    ) -> float:
        """Score based on days since the most authoritative last activity.

        Repository push/activity dates win over the registry publish date.
        No data at all scores 0.
        """
        last_update = last_activity(registry, repo)
        if last_update is None:
            return 0.0

        days_old = days_since(last_update, now)
        thresholds = self.config.staleness_thresholds

        if days_old <= 30:
            return 100.0
        elif days_old <= 90:
            return 90.0
        elif days_old <= 180:
            return 80.0
        elif days_old <= thresholds.stale_days:
            return 60.0
        elif days_old <= thresholds.risky_days:
            return 30.0
        else:
            return 10.0

    def _calculate_maintenance_score(
        self,
        repo: RepositorySignals | None,
        now: datetime,
    ) -> float:
        """Score maintenance activity from repository data.

        Archived repositories score 0 regardless of any other signal.
        """
        if repo is None:
            return NEUTRAL_SCORE
        if repo.is_archived:
            return 0.0

        score = NEUTRAL_SCORE

        if repo.open_issues < 10:
            score += 25
        elif repo.open_issues < 50:
            score += 10
        elif repo.open_issues > 200:
            score -= 10

        if repo.last_activity is not None:
            days_since_push = days_since(repo.last_activity, now)
            if days_since_push <= 30:
                score += 25
            elif days_since_push <= 90:
                score += 15
            elif days_since_push > 365:
                score -= 20

        return clamp(score)

    def _calculate_community_score(
        self,
        registry: RegistryMetadata | None,
        repo: RepositorySignals | None,
    ) -> float:
        """Score community size from maintainers, stars and contributors."""
        score = 0.0

        if registry is not None:
            authors = registry.maintainer_count
            if authors is None:
                authors = len(registry.authors)
            if authors == 0:
                score += 0
            elif authors == 1:
                score += 30
            elif authors <= 5:
                score += 50
            elif authors <= 10:
                score += 70
            else:
                score += 80

        if repo is not None:
            if repo.stars <= 10:
                score += 0
            elif repo.stars <= 50:
                score += 10
            elif repo.stars <= 200:
                score += 20
            elif repo.stars <= 1000:
                score += 30
            else:
                score += 40

            if repo.contributors is not None:
                if repo.contributors <= 1:
                    score += 0
                elif repo.contributors <= 5:
                    score += 10
                elif repo.contributors <= 20:
                    score += 20
                else:
                    score += 30

        return clamp(score)

    def _calculate_stability_score(self, registry: RegistryMetadata | None) -> float:
        """Score version history, with a bonus for heavily downloaded crates."""
        if registry is None:
            return NEUTRAL_SCORE

        version_count = registry.version_count or 0
        if version_count <= 1:
            score = 20.0
        elif version_count <= 5:
            score = 40.0
        elif version_count <= 10:
            score = 60.0
        elif version_count <= 30:
            score = 80.0
        else:
            score = 100.0

        downloads = registry.downloads or 0
        if downloads > 1_000_000:
            score += 10
        elif downloads > 100_000:
            score += 5

        return clamp(score)

    def _calculate_security_score(
        self,
        repo: RepositorySignals | None,
        scorecard: float | None,
        is_yanked: bool,
    ) -> float:
        """Score security posture.

        A yanked release scores 0. Otherwise the Scorecard result (x10) is
        used when available, falling back to a baseline adjusted by whether
        the repository declares a security policy.
        """
        if is_yanked:
            return 0.0
        if scorecard is not None:
            return clamp(scorecard * 10)

        score = NEUTRAL_SCORE
        if repo is not None and repo.has_security_policy is True:
            score += 20
        elif repo is not None and repo.has_security_policy is False:
            score -= 10
        return clamp(score)

    def _build_metrics(
        self,
        registry: RegistryMetadata | None,
        repo: RepositorySignals | None,
        scores: ComponentScores,
        scorecard: float | None,
        now: datetime,
    ) -> DependencyMetrics:
        """Build the detailed metrics attached to a dependency result."""
        last_update = last_activity(registry, repo)

        repository = None
        if repo is not None:
            repository = RepositoryMetrics(
                open_issues=repo.open_issues,
                contributor_count=repo.contributors,
                days_since_last_commit=(
                    days_since(repo.last_activity, now) if repo.last_activity else None
                ),
                stars=repo.stars,
                is_archived=repo.is_archived,
            )

        maintainer_count = None
        if registry is not None:
            maintainer_count = (
                registry.maintainer_count
                if registry.maintainer_count is not None
                else len(registry.authors)
            )

        return DependencyMetrics(
            days_since_last_update=days_since(last_update, now) if last_update else None,
            version_count=registry.version_count if registry else None,
            maintainer_count=maintainer_count,
            repository=repository,
            scorecard=scorecard,
            scores=scores,
        )


def determine_status(score: int) -> HealthStatus:
    """Map a health score to its status tier."""
    if score >= 80:
        return HealthStatus.HEALTHY
    elif score >= 60:
        return HealthStatus.WARNING
    elif score >= 40:
        return HealthStatus.STALE
    else:
        return HealthStatus.RISKY


def repository_signals(
    github: GitHubMetadata | None,
    gitlab: GitLabMetadata | None,
) -> RepositorySignals | None:
    """Normalize host metadata, preferring GitHub when both are present."""
    if github is not None:
        return RepositorySignals(
            is_archived=github.is_archived,
            open_issues=github.open_issues,
            last_activity=github.pushed_at,
            stars=github.stars,
            contributors=github.contributors_count,
            has_security_policy=github.has_security_policy,
        )
    if gitlab is not None:
        return RepositorySignals(
            is_archived=gitlab.is_archived,
            open_issues=gitlab.open_issues,
            last_activity=gitlab.last_activity_at,
            stars=gitlab.stars,
        )
    return None


def last_activity(
    registry: RegistryMetadata | None,
    repo: RepositorySignals | None,
) -> datetime | None:
    """Most authoritative last-activity timestamp available."""
    if repo is not None and repo.last_activity is not None:
        return repo.last_activity
    if registry is not None:
        return registry.updated_at
    return None


def days_since(timestamp: datetime, now: datetime) -> int:
    """Whole days between ``timestamp`` and ``now``; future dates count as 0."""
    return max(0, (now - timestamp).days)


def clamp(score: float) -> float:
    return max(0.0, min(100.0, score))
