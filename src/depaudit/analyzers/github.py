"""GitHub data fetcher for repository activity signals."""

import logging
import re

from depaudit.adapters.base import GITHUB_HOST, BaseFetcher, parse_repo_url, parse_timestamp
from depaudit.models.schemas import GitHubMetadata

logger = logging.getLogger(__name__)

SECURITY_POLICY_PATHS = ("SECURITY.md", ".github/SECURITY.md")


class GitHubFetcher(BaseFetcher):
    """Fetches repository data from the GitHub REST API.

    Uses ``network.github_token`` when set for higher rate limits.
    """

    service = "GitHub"
    BASE_URL = "https://api.github.com"

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.network.github_token:
            headers["Authorization"] = f"Bearer {self.network.github_token}"
        return headers

    async def _fetch(self, repo_url: str) -> GitHubMetadata:
        """Fetch activity signals for a GitHub repository.

        Args:
            repo_url: Repository URL in any supported spelling.

        Returns:
            GitHubMetadata for the repository.

        Raises:
            ParseError: If the URL or a timestamp cannot be parsed.
            NotFoundError: If the repository doesn't exist.
        """
        owner, repo = parse_repo_url(repo_url, GITHUB_HOST)
        logger.debug("Fetching GitHub metadata for %s/%s", owner, repo)

        repo_api = f"{self.BASE_URL}/repos/{owner}/{repo}"
        data = await self._get_json(repo_api, resource=f"{owner}/{repo}")

        license_info = data.get("license") or {}

        metadata = GitHubMetadata(
            name=data.get("name", repo),
            full_name=data.get("full_name", f"{owner}/{repo}"),
            description=data.get("description"),
            license=license_info.get("spdx_id"),
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            open_issues=data.get("open_issues_count", 0),
            is_archived=data.get("archived", False),
            created_at=parse_timestamp(data.get("created_at"), "created_at", self.service),
            updated_at=parse_timestamp(data.get("updated_at"), "updated_at", self.service),
            pushed_at=parse_timestamp(data.get("pushed_at"), "pushed_at", self.service),
        )

        # Secondary calls are best effort and never fail the primary fetch
        metadata.contributors_count = await self._fetch_contributors_count(repo_api)
        metadata.has_security_policy = await self._fetch_security_policy(repo_api)
        return metadata

    async def _fetch_contributors_count(self, repo_api: str) -> int | None:
        """Approximate the contributor count from pagination metadata.

        Requests a single contributor per page so the ``rel="last"`` page
        number equals the contributor count without paging through results.
        """
        response = await self._probe(
            f"{repo_api}/contributors", params={"per_page": 1, "anon": 1}
        )
        if response is None or not response.is_success:
            return None
        if response.status_code == 204:
            # Empty repository
            return 0

        last_page = extract_last_page(response.headers.get("link", ""))
        if last_page is not None:
            return last_page

        try:
            contributors = response.json()
        except ValueError:
            return None
        return len(contributors) if isinstance(contributors, list) else None

    async def _fetch_security_policy(self, repo_api: str) -> bool | None:
        """Check whether the repository declares a security policy.

        Returns:
            True if a SECURITY.md exists, False if every location returned
            404, None if GitHub could not tell us.
        """
        for path in SECURITY_POLICY_PATHS:
            response = await self._probe(f"{repo_api}/contents/{path}")
            if response is None:
                return None
            if response.status_code == 200:
                return True
            if response.status_code != 404:
                return None
        return False


def extract_last_page(link_header: str) -> int | None:
    """Extract the last page number from a GitHub Link header."""
    for link in link_header.split(","):
        if 'rel="last"' not in link:
            continue
        match = re.search(r"[?&]page=(\d+)", link)
        if match:
            return int(match.group(1))
    return None
