"""crates.io registry fetcher."""

import logging
import urllib.parse

from depaudit.adapters.base import BaseFetcher, parse_timestamp
from depaudit.errors import ParseError
from depaudit.models.schemas import RegistryMetadata

logger = logging.getLogger(__name__)


class CratesIoAdapter(BaseFetcher):
    """Fetches package metadata from the crates.io registry.

    Data sources:
    - Crate and version list: https://crates.io/api/v1/crates/{name}
    - Owners (best effort): https://crates.io/api/v1/crates/{name}/owners
    """

    service = "crates.io"
    BASE_URL = "https://crates.io/api/v1"

    async def _fetch(self, name: str, version: str | None = None) -> RegistryMetadata:
        """Fetch registry metadata for a crate.

        Args:
            name: Crate name.
            version: Resolved version. Falls back to the newest listed
                version when not found.

        Returns:
            RegistryMetadata for the crate.

        Raises:
            NotFoundError: If the crate doesn't exist.
            ParseError: If the payload has no versions or bad timestamps.
        """
        logger.debug("Fetching crates.io metadata for %s v%s", name, version)
        encoded = urllib.parse.quote(name, safe="")
        data = await self._get_json(f"{self.BASE_URL}/crates/{encoded}", resource=name)

        crate_info = data.get("crate") or {}
        versions = data.get("versions") or []
        if not versions:
            raise ParseError(f"No versions found for crate {name}")

        version_info = next((v for v in versions if v.get("num") == version), versions[0])

        authors = [a for a in version_info.get("authors") or [] if a]
        maintainer_count = await self._fetch_owner_count(encoded)
        if maintainer_count is None and authors:
            maintainer_count = len(authors)

        return RegistryMetadata(
            name=crate_info.get("name", name),
            version=version_info.get("num", version or ""),
            description=crate_info.get("description"),
            license=version_info.get("license"),
            repository=crate_info.get("repository"),
            homepage=crate_info.get("homepage"),
            downloads=crate_info.get("downloads"),
            recent_downloads=crate_info.get("recent_downloads"),
            created_at=parse_timestamp(crate_info.get("created_at"), "created_at", self.service),
            updated_at=parse_timestamp(version_info.get("updated_at"), "updated_at", self.service),
            version_count=len(versions),
            authors=authors,
            maintainer_count=maintainer_count,
            is_yanked=bool(version_info.get("yanked", False)),
        )

    async def _fetch_owner_count(self, encoded_name: str) -> int | None:
        """Count crate owners; None if the owners endpoint is unavailable."""
        response = await self._probe(f"{self.BASE_URL}/crates/{encoded_name}/owners")
        if response is None or not response.is_success:
            return None
        try:
            users = response.json().get("users")
        except (ValueError, AttributeError):
            return None
        return len(users) if isinstance(users, list) else None
