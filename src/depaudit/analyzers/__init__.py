"""Analyzers for fetching, scoring and classifying dependencies."""

from depaudit.analyzers.github import GitHubFetcher
from depaudit.analyzers.gitlab import GitLabFetcher
from depaudit.analyzers.pipeline import AuditPipeline, audit_project
from depaudit.analyzers.scorecard import ScorecardFetcher
from depaudit.analyzers.scorer import Scorer, determine_status

__all__ = [
    "AuditPipeline",
    "GitHubFetcher",
    "GitLabFetcher",
    "ScorecardFetcher",
    "Scorer",
    "audit_project",
    "determine_status",
]
