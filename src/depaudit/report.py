"""JSON and Markdown rendering of audit reports."""

from depaudit.models.schemas import AuditReport


def render_json(report: AuditReport) -> str:
    """Serialize a report as pretty-printed JSON."""
    return report.model_dump_json(indent=2)


def render_markdown(report: AuditReport) -> str:
    """Render a report as a Markdown document.

    Sections: summary counts, a table of every dependency, then the
    warnings of each dependency that has any.
    """
    summary = report.summary
    lines = [
        f"# Dependency Audit Report: {report.project_name}",
        "",
        f"**Generated:** {report.timestamp.isoformat()}",
        "",
        "## Summary",
        "",
        f"- Total dependencies: {summary.total_dependencies}",
        f"- Healthy: {summary.healthy}",
        f"- Warning: {summary.warning}",
        f"- Stale: {summary.stale}",
        f"- Risky: {summary.risky}",
        f"- Average health score: {summary.average_health_score:.1f}",
        f"- License issues: {summary.license_issues}",
        f"- High footprint count: {summary.high_footprint_count}",
        "",
        "## Dependencies",
        "",
        "| Name | Version | Status | Score | License | Footprint |",
        "|------|---------|--------|-------|---------|-----------|",
    ]

    for dep in report.dependencies:
        footprint = f"{dep.footprint_risk:.2f}" if dep.footprint_risk is not None else "-"
        lines.append(
            f"| {dep.name} | {dep.version} | {dep.status.value} | {dep.health_score} "
            f"| {dep.license or 'Unknown'} | {footprint} |"
        )

    flagged = [dep for dep in report.dependencies if dep.warnings]
    if flagged:
        lines.extend(["", "## Warnings"])
        for dep in flagged:
            lines.extend(["", f"### {dep.name} {dep.version}", ""])
            lines.extend(f"- {warning}" for warning in dep.warnings)

    return "\n".join(lines) + "\n"
