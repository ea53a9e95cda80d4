"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from depaudit.config import AuditConfig, NetworkConfig
from depaudit.models.schemas import DependencySource, PackageGraph, PackageNode

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


def make_node(
    name: str,
    version: str = "1.0.0",
    deps: list[str] | None = None,
    features: list[str] | None = None,
    build_dependencies: int | None = 0,
    source: DependencySource | None = None,
    is_direct: bool = False,
) -> PackageNode:
    """Build a registry package node whose id is ``name``."""
    return PackageNode(
        id=name,
        name=name,
        version=version,
        is_direct=is_direct,
        source=source or DependencySource.registry(),
        features=features if features is not None else [],
        build_dependencies=build_dependencies,
        dependencies=deps or [],
    )


def make_graph(*nodes: PackageNode, root: str = "app") -> PackageGraph:
    """Build a graph with a root package depending on every given node."""
    root_node = PackageNode(
        id=root,
        name=root,
        version="0.1.0",
        source=DependencySource.local("/work/app"),
        dependencies=[node.id for node in nodes if node.is_direct],
    )
    return PackageGraph(
        project_name=root,
        project_path="/work/app",
        root_ids=[root],
        nodes={root: root_node, **{node.id: node for node in nodes}},
    )


@pytest.fixture(autouse=True)
def _clear_tokens(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real tokens from the environment out of request headers."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITLAB_TOKEN", raising=False)


@pytest.fixture()
def network() -> NetworkConfig:
    """Network settings with fast, bounded retries."""
    return NetworkConfig(request_delay=0.5, max_retries=2, max_rate_limit_wait=60.0)


@pytest.fixture()
def config(network: NetworkConfig) -> AuditConfig:
    """Audit configuration without pacing delays."""
    return AuditConfig(network=network.model_copy(update={"request_delay": 0.0}))


@pytest.fixture()
def mock_http_client() -> MagicMock:
    """Build a mock httpx.AsyncClient."""
    return MagicMock(spec=httpx.AsyncClient)


@pytest.fixture()
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record backoff sleeps instead of waiting."""
    recorded: list[float] = []

    async def fake_sleep(delay: float) -> None:
        recorded.append(delay)

    monkeypatch.setattr("depaudit.adapters.base.asyncio.sleep", fake_sleep)
    return recorded


def json_response(data, status_code: int = 200, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(status_code=status_code, json=data, headers=headers)


def route(mock_http_client: MagicMock, responses: dict[str, object]) -> None:
    """Answer GETs by the longest matching URL suffix.

    Values may be an httpx.Response, an exception instance, or a list of
    either consumed in order.
    """

    async def get(url, **kwargs):
        for suffix in sorted(responses, key=len, reverse=True):
            if url.endswith(suffix):
                answer = responses[suffix]
                if isinstance(answer, list):
                    answer = answer.pop(0)
                if isinstance(answer, Exception):
                    raise answer
                return answer
        return httpx.Response(status_code=404)

    mock_http_client.get = AsyncMock(side_effect=get)
