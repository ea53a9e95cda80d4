"""Tests for footprint estimation (analyzers/footprint.py)."""

from __future__ import annotations

import pytest
from conftest import make_graph, make_node

from depaudit.analyzers.footprint import (
    count_transitive_deps,
    dep_count_score,
    estimate_footprint,
    feature_score,
)
from depaudit.config import FootprintThresholds


def chain(length: int, features: int = 0, build_dependencies: int = 0):
    """Graph where ``top`` depends on a chain of ``length`` packages."""
    nodes = [
        make_node(f"dep{i}", deps=[f"dep{i + 1}"] if i + 1 < length else [])
        for i in range(length)
    ]
    top = make_node(
        "top",
        deps=["dep0"] if length else [],
        features=[f"f{i}" for i in range(features)],
        build_dependencies=build_dependencies,
        is_direct=True,
    )
    return make_graph(top, *nodes)


class TestCountTransitiveDeps:
    def test_leaf_has_none(self):
        graph = make_graph(make_node("leaf", is_direct=True))
        assert count_transitive_deps("leaf", graph) == 0

    def test_chain(self):
        assert count_transitive_deps("top", chain(4)) == 4

    def test_shared_dependency_counted_once(self):
        """Diamond-shaped graphs count the shared node once."""
        graph = make_graph(
            make_node("a", deps=["b", "c"], is_direct=True),
            make_node("b", deps=["d"]),
            make_node("c", deps=["d"]),
            make_node("d"),
        )
        assert count_transitive_deps("a", graph) == 3

    def test_cycle_terminates(self):
        graph = make_graph(
            make_node("a", deps=["b"], is_direct=True),
            make_node("b", deps=["a"]),
        )
        assert count_transitive_deps("a", graph) == 1

    def test_unknown_package(self):
        assert count_transitive_deps("missing", chain(2)) == 0


class TestEstimateFootprint:
    def test_minimal_footprint(self):
        """No deps, features or build deps is the lowest possible score."""
        graph = make_graph(make_node("leaf", is_direct=True))
        score, warnings = estimate_footprint("leaf", graph, FootprintThresholds())
        assert score == pytest.approx(0.04)
        assert warnings == []

    def test_maximal_footprint_capped(self):
        graph = chain(150, features=40, build_dependencies=10)
        score, _ = estimate_footprint("top", graph, FootprintThresholds(max_footprint_risk=None))
        assert score == pytest.approx(1.0)

    def test_missing_details_drop_terms(self):
        """A node without feature or build data only scores transitive deps."""
        node = make_node("leaf", features=None, build_dependencies=None, is_direct=True)
        graph = make_graph(node)
        score, _ = estimate_footprint("leaf", graph, FootprintThresholds())
        assert score == pytest.approx(0.04)

    def test_unknown_package(self):
        score, warnings = estimate_footprint("missing", chain(1), FootprintThresholds())
        assert score == pytest.approx(0.04)
        assert warnings == []

    @pytest.mark.parametrize("size", [0, 5, 6, 11, 21, 51, 101])
    def test_monotonic_in_transitive_count(self, size: int):
        thresholds = FootprintThresholds(max_transitive_deps=None, max_footprint_risk=None)
        smaller, _ = estimate_footprint("top", chain(size), thresholds)
        larger, _ = estimate_footprint("top", chain(size + 10), thresholds)
        assert larger >= smaller

    def test_monotonic_in_features(self):
        thresholds = FootprintThresholds()
        scores = [
            estimate_footprint("top", chain(1, features=n), thresholds)[0]
            for n in (0, 1, 4, 9, 16, 31)
        ]
        assert scores == sorted(scores)

    def test_score_in_range(self):
        for size in (0, 10, 200):
            score, _ = estimate_footprint("top", chain(size, 50, 50), FootprintThresholds())
            assert 0.0 <= score <= 1.0


class TestFootprintWarnings:
    def test_transitive_threshold(self):
        thresholds = FootprintThresholds(max_transitive_deps=3, max_footprint_risk=None)
        _, warnings = estimate_footprint("top", chain(5), thresholds)
        assert warnings == ["High number of transitive dependencies: 5 (threshold: 3)"]

    def test_footprint_threshold(self):
        thresholds = FootprintThresholds(max_transitive_deps=None, max_footprint_risk=0.5)
        score, warnings = estimate_footprint("top", chain(150, 40, 10), thresholds)
        assert warnings == [f"High footprint risk: {score:.2f} (threshold: 0.50)"]

    def test_no_thresholds_no_warnings(self):
        thresholds = FootprintThresholds(max_transitive_deps=None, max_footprint_risk=None)
        _, warnings = estimate_footprint("top", chain(150, 40, 10), thresholds)
        assert warnings == []


class TestBuckets:
    def test_dep_count_buckets(self):
        assert [dep_count_score(n) for n in (0, 5, 6, 10, 20, 50, 100, 101)] == [
            0.1, 0.1, 0.2, 0.2, 0.4, 0.6, 0.8, 1.0,
        ]

    def test_feature_buckets(self):
        assert [feature_score(n) for n in (0, 3, 8, 15, 30, 31)] == [0.0, 0.1, 0.3, 0.5, 0.7, 1.0]
