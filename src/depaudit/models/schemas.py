"""Pydantic models for dependency graphs, fetched metadata and audit results."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, Enum):
    """Where a resolved package comes from."""

    REGISTRY = "registry"
    GIT = "git"
    PATH = "path"
    UNKNOWN = "unknown"


class HealthStatus(str, Enum):
    """Coarse health tier derived from the composite score."""

    HEALTHY = "healthy"  # Actively maintained, good community support
    WARNING = "warning"  # Some concerns but generally okay
    STALE = "stale"  # Not updated recently, limited activity
    RISKY = "risky"  # Deprecated, unmaintained, or high risk


class LicenseRisk(str, Enum):
    """License risk tier."""

    PERMISSIVE = "permissive"
    COPYLEFT = "copyleft"
    PROPRIETARY = "proprietary"
    UNKNOWN = "unknown"


# --- Dependency Graph Models ---


class DependencySource(BaseModel):
    """Declared source of a package."""

    model_config = ConfigDict(frozen=True)

    kind: SourceKind = SourceKind.UNKNOWN
    url: str | None = None  # Git sources
    path: str | None = None  # Path sources

    @classmethod
    def registry(cls) -> "DependencySource":
        return cls(kind=SourceKind.REGISTRY)

    @classmethod
    def git(cls, url: str) -> "DependencySource":
        return cls(kind=SourceKind.GIT, url=url)

    @classmethod
    def local(cls, path: str) -> "DependencySource":
        return cls(kind=SourceKind.PATH, path=path)


class PackageNode(BaseModel):
    """A single resolved package in the dependency graph.

    Edges reference other nodes by their stable ``id`` so shared
    subgraphs are represented once.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    version: str
    is_direct: bool = False
    source: DependencySource = Field(default_factory=DependencySource)
    features: list[str] | None = None  # None when package details are missing
    build_dependencies: int | None = None
    dependencies: list[str] = Field(default_factory=list)


class PackageGraph(BaseModel):
    """Resolved dependency graph for a project."""

    project_name: str
    project_path: str = "."
    root_ids: list[str] = Field(default_factory=list)
    nodes: dict[str, PackageNode] = Field(default_factory=dict)

    def get(self, package_id: str) -> PackageNode | None:
        return self.nodes.get(package_id)

    def dependencies_of(self, package_id: str) -> list[str]:
        node = self.nodes.get(package_id)
        return list(node.dependencies) if node else []

    def packages(self) -> list[PackageNode]:
        """Return all non-root packages ordered by name, then version."""
        roots = set(self.root_ids)
        return sorted(
            (node for node in self.nodes.values() if node.id not in roots),
            key=lambda node: (node.name, node.version),
        )


# --- Source Metadata Models ---


class RegistryMetadata(BaseModel):
    """Package metadata from the crates.io registry."""

    name: str
    version: str
    description: str | None = None
    license: str | None = None
    repository: str | None = None
    homepage: str | None = None
    downloads: int | None = None
    recent_downloads: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version_count: int | None = None
    authors: list[str] = Field(default_factory=list)
    maintainer_count: int | None = None
    is_yanked: bool = False


class GitHubMetadata(BaseModel):
    """Repository activity signals from GitHub."""

    name: str
    full_name: str
    description: str | None = None
    license: str | None = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    is_archived: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None
    contributors_count: int | None = None
    has_security_policy: bool | None = None


class GitLabMetadata(BaseModel):
    """Project activity signals from GitLab."""

    name: str
    path_with_namespace: str
    description: str | None = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    is_archived: bool = False
    created_at: datetime | None = None
    last_activity_at: datetime | None = None


class ScorecardCheck(BaseModel):
    """Single OpenSSF Scorecard check."""

    name: str
    score: int
    reason: str = ""


class ScorecardData(BaseModel):
    """OpenSSF Scorecard result for a repository."""

    score: float = Field(ge=0, le=10)
    date: str | None = None
    checks: list[ScorecardCheck] = Field(default_factory=list)


# --- Scoring Models ---


class ComponentScores(BaseModel):
    """Individual component scores on a 0-100 scale."""

    recency: float = Field(default=50.0, ge=0, le=100)
    maintenance: float = Field(default=50.0, ge=0, le=100)
    community: float = Field(default=50.0, ge=0, le=100)
    stability: float = Field(default=50.0, ge=0, le=100)
    security: float = Field(default=50.0, ge=0, le=100)


class RepositoryMetrics(BaseModel):
    """Repository-level metrics from whichever host answered."""

    open_issues: int | None = None
    contributor_count: int | None = None
    days_since_last_commit: int | None = None
    stars: int | None = None
    is_archived: bool | None = None


class DependencyMetrics(BaseModel):
    """Detailed metrics used for health scoring."""

    days_since_last_update: int | None = None
    version_count: int | None = None
    maintainer_count: int | None = None
    repository: RepositoryMetrics | None = None
    scorecard: float | None = None
    scores: ComponentScores = Field(default_factory=ComponentScores)


# --- Audit Result Models ---


class DependencyHealth(BaseModel):
    """Health assessment for a single dependency."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    is_direct: bool = False
    health_score: int = Field(ge=0, le=100)
    status: HealthStatus
    license: str | None = None
    license_risk: LicenseRisk = LicenseRisk.UNKNOWN
    footprint_risk: float | None = Field(default=None, ge=0, le=1)
    source: DependencySource = Field(default_factory=DependencySource)
    metrics: DependencyMetrics | None = None
    warnings: list[str] = Field(default_factory=list)
    is_yanked: bool = False


class AuditSummary(BaseModel):
    """Summary statistics for an audit report."""

    total_dependencies: int = 0
    healthy: int = 0
    warning: int = 0
    stale: int = 0
    risky: int = 0
    average_health_score: float = 0.0
    license_issues: int = 0
    high_footprint_count: int = 0


class AuditReport(BaseModel):
    """Complete audit report for a project."""

    project_name: str
    project_path: str = "."
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    dependencies: list[DependencyHealth] = Field(default_factory=list)
    summary: AuditSummary = Field(default_factory=AuditSummary)

    def compute_summary(self) -> AuditSummary:
        """Compute summary statistics from the dependency results."""
        summary = AuditSummary(total_dependencies=len(self.dependencies))
        total_score = 0

        for dep in self.dependencies:
            if dep.status == HealthStatus.HEALTHY:
                summary.healthy += 1
            elif dep.status == HealthStatus.WARNING:
                summary.warning += 1
            elif dep.status == HealthStatus.STALE:
                summary.stale += 1
            else:
                summary.risky += 1

            total_score += dep.health_score

            if dep.license_risk != LicenseRisk.PERMISSIVE:
                summary.license_issues += 1

            if dep.footprint_risk is not None and dep.footprint_risk > 0.7:
                summary.high_footprint_count += 1

        if summary.total_dependencies:
            summary.average_health_score = total_score / summary.total_dependencies

        self.summary = summary
        return summary
