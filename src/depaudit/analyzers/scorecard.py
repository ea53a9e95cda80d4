"""OpenSSF Scorecard fetcher for the security dimension.

The Scorecard API publishes weekly security-practice scores (0-10) for
popular GitHub and GitLab repositories:
https://api.securityscorecards.dev

No authentication required.
"""

import logging

from depaudit.adapters.base import (
    GITHUB_HOST,
    GITLAB_HOST,
    BaseFetcher,
    detect_host,
    parse_repo_path,
)
from depaudit.errors import ParseError
from depaudit.models.schemas import ScorecardCheck, ScorecardData

logger = logging.getLogger(__name__)


class ScorecardFetcher(BaseFetcher):
    """Fetches OpenSSF Scorecard results for a repository."""

    service = "OpenSSF Scorecard"
    BASE_URL = "https://api.securityscorecards.dev"

    HOSTS = {
        "github": GITHUB_HOST,
        "gitlab": GITLAB_HOST,
    }

    async def _fetch(self, repo_url: str) -> ScorecardData:
        """Fetch the Scorecard result for a repository URL.

        Raises:
            ParseError: If the URL is not on a supported host or the
                payload has no score.
            NotFoundError: If the repository has no published scorecard.
        """
        host = self.HOSTS.get(detect_host(repo_url) or "")
        if host is None:
            raise ParseError(f"Scorecard only supports GitHub and GitLab: {repo_url}")

        path = parse_repo_path(repo_url, host)
        logger.debug("Fetching OpenSSF Scorecard for %s/%s", host, path)
        data = await self._get_json(f"{self.BASE_URL}/projects/{host}/{path}", resource=path)

        score = data.get("score")
        if not isinstance(score, int | float):
            raise ParseError(f"Scorecard for {path} has no score")

        checks = [
            ScorecardCheck(
                name=check.get("name", ""),
                score=check.get("score", -1),
                reason=check.get("reason") or "",
            )
            for check in data.get("checks") or []
        ]

        return ScorecardData(
            score=min(10.0, max(0.0, float(score))),
            date=data.get("date"),
            checks=checks,
        )
