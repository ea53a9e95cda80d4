"""Resolve a Cargo project into a PackageGraph via ``cargo metadata``."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from depaudit.errors import ParseError
from depaudit.models.schemas import DependencySource, PackageGraph, PackageNode

logger = logging.getLogger(__name__)


class CargoResolver:
    """Runs ``cargo metadata`` and turns its output into a PackageGraph."""

    def __init__(self, cargo: str = "cargo", timeout: float = 300.0) -> None:
        """Initialize the resolver.

        Args:
            cargo: Cargo executable.
            timeout: Seconds to wait for ``cargo metadata``.
        """
        self.cargo = cargo
        self.timeout = timeout

    async def resolve(self, project_path: Path) -> PackageGraph:
        """Resolve the dependency graph of the project at ``project_path``.

        Raises:
            ParseError: If there is no Cargo.toml, cargo fails, or its
                output cannot be parsed.
        """
        manifest = project_path / "Cargo.toml"
        if not manifest.exists():
            raise ParseError(f"Cargo.toml not found at {manifest}")

        cmd = [
            self.cargo,
            "metadata",
            "--format-version",
            "1",
            "--all-features",
            "--manifest-path",
            str(manifest),
        ]
        logger.debug("Running %s", " ".join(cmd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ParseError(f"Could not run {self.cargo}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise ParseError(f"cargo metadata timed out after {self.timeout}s") from None

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            raise ParseError(f"cargo metadata failed: {message}")

        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid cargo metadata output: {e}") from e

        return graph_from_cargo_metadata(data, project_path)


def graph_from_cargo_metadata(data: dict, project_path: Path | str = ".") -> PackageGraph:
    """Build a PackageGraph from parsed ``cargo metadata`` JSON.

    Raises:
        ParseError: If the metadata has no resolve section or no packages.
    """
    resolve = data.get("resolve")
    if not resolve:
        raise ParseError("No dependency resolution found")

    packages = {pkg["id"]: pkg for pkg in data.get("packages", [])}
    if not packages:
        raise ParseError("No packages found in cargo metadata")

    resolve_nodes = {node["id"]: node for node in resolve.get("nodes", [])}

    if resolve.get("root"):
        root_ids = [resolve["root"]]
    else:
        root_ids = [pid for pid in data.get("workspace_members", []) if pid in packages]

    direct_ids: set[str] = set()
    for root_id in root_ids:
        direct_ids.update(_node_dependencies(resolve_nodes.get(root_id, {})))

    nodes: dict[str, PackageNode] = {}
    for package_id, node in resolve_nodes.items():
        package = packages.get(package_id)
        if package is None:
            continue
        nodes[package_id] = PackageNode(
            id=package_id,
            name=package["name"],
            version=package["version"],
            is_direct=package_id in direct_ids,
            source=determine_source(package),
            features=list((package.get("features") or {}).keys()),
            build_dependencies=sum(
                1 for dep in package.get("dependencies", []) if dep.get("kind") == "build"
            ),
            dependencies=_node_dependencies(node),
        )

    return PackageGraph(
        project_name=_project_name(data, packages, root_ids),
        project_path=str(project_path),
        root_ids=root_ids,
        nodes=nodes,
    )


def determine_source(package: dict) -> DependencySource:
    """Determine where a cargo package comes from."""
    source = package.get("source")
    if source is None:
        # Workspace members and path dependencies have no source
        manifest_path = package.get("manifest_path")
        path = str(Path(manifest_path).parent) if manifest_path else "unknown"
        return DependencySource.local(path)

    if source.startswith("registry+") or source.startswith("sparse+"):
        return DependencySource.registry()
    if source.startswith("git+"):
        return DependencySource.git(source[4:].split("?")[0].split("#")[0])
    if source.startswith("path+"):
        path = source.removeprefix("path+").removeprefix("file://")
        return DependencySource.local(path)
    return DependencySource()


def _node_dependencies(node: dict) -> list[str]:
    deps = node.get("deps")
    if deps is not None:
        return [dep["pkg"] for dep in deps]
    return list(node.get("dependencies", []))


def _project_name(data: dict, packages: dict[str, dict], root_ids: list[str]) -> str:
    if len(root_ids) == 1 and root_ids[0] in packages:
        return packages[root_ids[0]]["name"]
    workspace_root = data.get("workspace_root")
    if workspace_root:
        return Path(workspace_root).name
    return next(iter(packages.values()))["name"]
