"""End-to-end audit pipeline for a resolved dependency graph."""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

import httpx

from depaudit.adapters.base import BaseFetcher, detect_host
from depaudit.adapters.cargo import CargoResolver
from depaudit.adapters.crates_io import CratesIoAdapter
from depaudit.analyzers.footprint import estimate_footprint
from depaudit.analyzers.github import GitHubFetcher
from depaudit.analyzers.gitlab import GitLabFetcher
from depaudit.analyzers.license import classify_license
from depaudit.analyzers.scorecard import ScorecardFetcher
from depaudit.analyzers.scorer import Scorer, determine_status
from depaudit.config import AuditConfig
from depaudit.errors import AuditError
from depaudit.models.schemas import (
    AuditReport,
    DependencyHealth,
    PackageGraph,
    PackageNode,
    SourceKind,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[DependencyHealth], None]


class AuditPipeline:
    """Orchestrates the audit of every package in a dependency graph.

    Per package:
    1. Fetch registry metadata (registry sources only)
    2. Fetch host metadata for the declared repository (GitHub or GitLab)
    3. Fetch the OpenSSF Scorecard (if enabled)
    4. Calculate scores, classify the license and estimate the footprint

    Packages are processed by a fixed pool of workers pulling from a queue.
    A fetch failure becomes a warning on that package; it never aborts the run.
    """

    def __init__(
        self,
        config: AuditConfig | None = None,
        client: httpx.AsyncClient | None = None,
        *,
        registry: BaseFetcher | None = None,
        github: BaseFetcher | None = None,
        gitlab: BaseFetcher | None = None,
        scorecard: BaseFetcher | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Audit configuration. Defaults to AuditConfig().
            client: Optional shared httpx client for every fetcher.
            registry: Registry fetcher override.
            github: GitHub fetcher override.
            gitlab: GitLab fetcher override.
            scorecard: Scorecard fetcher override. Used even when
                ``network.enable_scorecard`` is off.
        """
        self.config = config or AuditConfig()
        self.registry = registry
        self.github = github
        self.gitlab = gitlab
        self.scorecard = scorecard
        self.scorer = Scorer(self.config)
        self._http_client = client
        self._owns_client = False

    async def __aenter__(self) -> "AuditPipeline":
        """Set up shared HTTP client."""
        if self._http_client is None:
            network = self.config.network
            self._http_client = httpx.AsyncClient(
                timeout=network.timeout,
                headers={"User-Agent": network.user_agent},
            )
            self._owns_client = True
        self._setup_fetchers()
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._owns_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_client = False

    def _setup_fetchers(self) -> None:
        """Create default fetchers for any that were not supplied."""
        network = self.config.network
        if self.registry is None:
            self.registry = CratesIoAdapter(network, self._http_client)
        if self.github is None:
            self.github = GitHubFetcher(network, self._http_client)
        if self.gitlab is None:
            self.gitlab = GitLabFetcher(network, self._http_client)
        if self.scorecard is None and network.enable_scorecard:
            self.scorecard = ScorecardFetcher(network, self._http_client)

    async def run(
        self,
        graph: PackageGraph,
        progress_callback: ProgressCallback | None = None,
    ) -> AuditReport:
        """Audit every non-ignored package in the graph.

        Args:
            graph: Resolved dependency graph.
            progress_callback: Called with each result as it completes.

        Returns:
            AuditReport with one entry per non-ignored package, sorted by
            name and version, and a computed summary.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        self.config.validate_config()
        self._setup_fetchers()

        ignored = self.config.ignored_dependencies
        packages = [node for node in graph.packages() if node.name not in ignored]
        skipped = len(graph.packages()) - len(packages)
        if skipped:
            logger.debug("Ignoring %d dependencies", skipped)

        logger.info("Auditing %d dependencies of %s", len(packages), graph.project_name)

        queue: asyncio.Queue[PackageNode] = asyncio.Queue()
        for node in packages:
            queue.put_nowait(node)

        results: dict[str, DependencyHealth] = {}
        worker_count = min(self.config.network.concurrency, len(packages))
        workers = [
            asyncio.create_task(self._worker(queue, graph, results, progress_callback))
            for _ in range(worker_count)
        ]

        await queue.join()
        await asyncio.gather(*workers)

        report = AuditReport(
            project_name=graph.project_name,
            project_path=graph.project_path,
            dependencies=sorted(results.values(), key=lambda d: (d.name, d.version)),
        )
        summary = report.compute_summary()

        logger.info(
            "Audit complete: %d/%d healthy, %d warning, %d stale, %d risky",
            summary.healthy,
            summary.total_dependencies,
            summary.warning,
            summary.stale,
            summary.risky,
        )
        return report

    async def _worker(
        self,
        queue: asyncio.Queue[PackageNode],
        graph: PackageGraph,
        results: dict[str, DependencyHealth],
        progress_callback: ProgressCallback | None,
    ) -> None:
        """Process queued packages until the queue is drained."""
        delay = self.config.network.request_delay

        while True:
            try:
                node = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            try:
                try:
                    health = await self._process_package(node, graph)
                except Exception as e:
                    logger.exception("Failed to process dependency %s %s", node.name, node.version)
                    health = self._fallback_result(node, e)

                results[node.id] = health
                if progress_callback:
                    try:
                        progress_callback(health)
                    except Exception:
                        logger.exception("Progress callback failed for %s", node.name)
            finally:
                queue.task_done()

            # Pace dispatches to stay under third-party rate limits
            if delay and not queue.empty():
                await asyncio.sleep(delay)

    async def _process_package(self, node: PackageNode, graph: PackageGraph) -> DependencyHealth:
        """Fetch, score and classify a single package."""
        logger.debug("Processing dependency: %s v%s", node.name, node.version)
        warnings: list[str] = []

        # Stage 1: Registry metadata
        registry = None
        if node.source.kind == SourceKind.REGISTRY:
            registry = await self._fetch(self.registry, warnings, node.name, node.version)

        # Stage 2: Host metadata, chosen by the repository URL's domain
        repo_url = registry.repository if registry else None
        host = detect_host(repo_url)
        github = gitlab = None
        if host == "github":
            github = await self._fetch(self.github, warnings, repo_url)
        elif host == "gitlab":
            gitlab = await self._fetch(self.gitlab, warnings, repo_url)

        # Stage 3: Scorecard
        scorecard_score = None
        if host is not None and self.scorecard is not None:
            scorecard = await self._fetch(self.scorecard, warnings, repo_url)
            scorecard_score = scorecard.score if scorecard else None

        # Stage 4: Scores
        result = self.scorer.score(registry, github, gitlab, scorecard_score)

        min_maintainers = self.config.staleness_thresholds.min_maintainers
        maintainers = result.metrics.maintainer_count
        if maintainers is not None and maintainers < min_maintainers:
            warnings.append(
                f"Only {maintainers} maintainer(s) found (minimum: {min_maintainers})"
            )

        is_yanked = registry is not None and registry.is_yanked
        if is_yanked:
            warnings.append(f"Version {node.version} has been yanked")

        license = registry.license if registry else None
        license_risk, license_warnings = classify_license(license, self.config.license_policy)
        warnings.extend(license_warnings)

        footprint_risk, footprint_warnings = estimate_footprint(
            node.id, graph, self.config.footprint_thresholds
        )
        warnings.extend(footprint_warnings)

        return DependencyHealth(
            name=node.name,
            version=node.version,
            is_direct=node.is_direct,
            health_score=result.health_score,
            status=determine_status(result.health_score),
            license=license,
            license_risk=license_risk,
            footprint_risk=footprint_risk,
            source=node.source,
            metrics=result.metrics,
            warnings=warnings,
            is_yanked=is_yanked,
        )

    async def _fetch(self, fetcher: BaseFetcher, warnings: list[str], *args):
        """Run a fetcher, downgrading any audit error to a warning."""
        try:
            return await fetcher.fetch(*args)
        except AuditError as e:
            logger.warning("Failed to fetch %s metadata for %s: %s", fetcher.service, args[0], e)
            warnings.append(f"Could not fetch {fetcher.service} metadata: {e}")
            return None

    def _fallback_result(self, node: PackageNode, error: Exception) -> DependencyHealth:
        """Best-effort result for a package whose processing crashed."""
        result = self.scorer.score()
        license_risk, license_warnings = classify_license(None, self.config.license_policy)

        return DependencyHealth(
            name=node.name,
            version=node.version,
            is_direct=node.is_direct,
            health_score=result.health_score,
            status=determine_status(result.health_score),
            license_risk=license_risk,
            source=node.source,
            metrics=result.metrics,
            warnings=[f"Audit failed: {error}", *license_warnings],
        )


async def audit_project(
    project_path: Path | str,
    config: AuditConfig | None = None,
    progress_callback: ProgressCallback | None = None,
    resolver: CargoResolver | None = None,
) -> AuditReport:
    """Resolve a Cargo project and audit all of its dependencies.

    Args:
        project_path: Directory containing Cargo.toml.
        config: Audit configuration. Defaults to AuditConfig().
        progress_callback: Called with each result as it completes.
        resolver: Graph resolver. Defaults to CargoResolver().

    Raises:
        ConfigError: If the configuration is invalid.
        ParseError: If the project cannot be resolved.
    """
    config = config or AuditConfig()
    config.validate_config()

    resolver = resolver or CargoResolver()
    graph = await resolver.resolve(Path(project_path))

    async with AuditPipeline(config) as pipeline:
        return await pipeline.run(graph, progress_callback)
