"""GitLab data fetcher for project activity signals."""

import logging
import urllib.parse

from depaudit.adapters.base import GITLAB_HOST, BaseFetcher, parse_repo_path, parse_timestamp
from depaudit.models.schemas import GitLabMetadata

logger = logging.getLogger(__name__)


class GitLabFetcher(BaseFetcher):
    """Fetches project data from the GitLab v4 API.

    Uses ``network.gitlab_token`` as PRIVATE-TOKEN when set.
    """

    service = "GitLab"
    BASE_URL = "https://gitlab.com/api/v4"

    def _headers(self) -> dict[str, str]:
        if self.network.gitlab_token:
            return {"PRIVATE-TOKEN": self.network.gitlab_token}
        return {}

    async def _fetch(self, repo_url: str) -> GitLabMetadata:
        """Fetch activity signals for a GitLab project.

        Nested groups are kept, so ``https://gitlab.com/group/sub/project``
        resolves to the project path ``group/sub/project``.

        Raises:
            ParseError: If the URL or a timestamp cannot be parsed.
            NotFoundError: If the project doesn't exist.
        """
        project_path = parse_repo_path(repo_url, GITLAB_HOST)
        logger.debug("Fetching GitLab metadata for %s", project_path)

        encoded = urllib.parse.quote(project_path, safe="")
        data = await self._get_json(f"{self.BASE_URL}/projects/{encoded}", resource=project_path)

        return GitLabMetadata(
            name=data.get("name", project_path.rsplit("/", 1)[-1]),
            path_with_namespace=data.get("path_with_namespace", project_path),
            description=data.get("description"),
            stars=data.get("star_count", 0),
            forks=data.get("forks_count", 0),
            open_issues=data.get("open_issues_count") or 0,
            is_archived=data.get("archived", False),
            created_at=parse_timestamp(data.get("created_at"), "created_at", self.service),
            last_activity_at=parse_timestamp(
                data.get("last_activity_at"), "last_activity_at", self.service
            ),
        )
