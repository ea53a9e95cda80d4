"""Footprint (bloat) risk estimation over the dependency graph."""

from depaudit.config import FootprintThresholds
from depaudit.models.schemas import PackageGraph

# Factor weights (total 1.0)
TRANSITIVE_WEIGHT = 0.4
FEATURE_WEIGHT = 0.3
BUILD_DEP_WEIGHT = 0.3


def estimate_footprint(
    package_id: str,
    graph: PackageGraph,
    thresholds: FootprintThresholds,
) -> tuple[float, list[str]]:
    """Estimate the footprint risk of a package.

    Score is 0.0 (small footprint) to 1.0 (large footprint). The feature and
    build-dependency terms are left out when the graph has no detail data
    for the package.

    Args:
        package_id: Stable identifier of the package in the graph.
        graph: Resolved dependency graph.
        thresholds: Optional limits that trigger warnings.

    Returns:
        Tuple of (footprint score, warnings).
    """
    warnings: list[str] = []

    transitive_count = count_transitive_deps(package_id, graph)
    score = dep_count_score(transitive_count) * TRANSITIVE_WEIGHT

    node = graph.get(package_id)
    if node is not None:
        if node.features is not None:
            score += feature_score(len(node.features)) * FEATURE_WEIGHT
        if node.build_dependencies is not None:
            score += build_dep_score(node.build_dependencies) * BUILD_DEP_WEIGHT

    score = min(1.0, max(0.0, score))

    max_transitive = thresholds.max_transitive_deps
    if max_transitive is not None and transitive_count > max_transitive:
        warnings.append(
            f"High number of transitive dependencies: {transitive_count} "
            f"(threshold: {max_transitive})"
        )

    max_footprint = thresholds.max_footprint_risk
    if max_footprint is not None and score > max_footprint:
        warnings.append(f"High footprint risk: {score:.2f} (threshold: {max_footprint:.2f})")

    return score, warnings


def count_transitive_deps(package_id: str, graph: PackageGraph) -> int:
    """Count every package reachable from ``package_id``, excluding itself."""
    if graph.get(package_id) is None:
        return 0

    visited: set[str] = set()
    to_visit = [package_id]

    while to_visit:
        current = to_visit.pop()
        if current in visited:
            continue
        visited.add(current)
        to_visit.extend(dep for dep in graph.dependencies_of(current) if dep not in visited)

    return len(visited) - 1


def dep_count_score(count: int) -> float:
    """Bucket a transitive dependency count."""
    if count <= 5:
        return 0.1
    elif count <= 10:
        return 0.2
    elif count <= 20:
        return 0.4
    elif count <= 50:
        return 0.6
    elif count <= 100:
        return 0.8
    else:
        return 1.0


def feature_score(count: int) -> float:
    """Bucket a declared feature count; no features contributes nothing."""
    if count == 0:
        return 0.0
    elif count <= 3:
        return 0.1
    elif count <= 8:
        return 0.3
    elif count <= 15:
        return 0.5
    elif count <= 30:
        return 0.7
    else:
        return 1.0


def build_dep_score(count: int) -> float:
    """Bucket a build-time dependency count."""
    if count == 0:
        return 0.0
    elif count <= 2:
        return 0.3
    elif count <= 5:
        return 0.6
    else:
        return 1.0
