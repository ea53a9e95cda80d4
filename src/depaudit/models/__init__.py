"""Data models and schemas."""

from depaudit.models.schemas import (
    AuditReport,
    AuditSummary,
    ComponentScores,
    DependencyHealth,
    DependencySource,
    HealthStatus,
    LicenseRisk,
    PackageGraph,
    PackageNode,
    SourceKind,
)

__all__ = [
    "AuditReport",
    "AuditSummary",
    "ComponentScores",
    "DependencyHealth",
    "DependencySource",
    "HealthStatus",
    "LicenseRisk",
    "PackageGraph",
    "PackageNode",
    "SourceKind",
]
