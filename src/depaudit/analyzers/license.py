"""License risk classification against a license policy."""

from depaudit.config import LicensePolicy
from depaudit.models.schemas import LicenseRisk

PERMISSIVE_KEYWORDS = (
    "mit",
    "apache",
    "bsd",
    "isc",
    "0bsd",
    "unlicense",
    "cc0",
    "wtfpl",
    "zlib",
    "boost",
)

COPYLEFT_KEYWORDS = (
    "gpl",
    "lgpl",
    "agpl",
    "mpl",
    "eupl",
    "osl",
    "ms-pl",
    "cddl",
    "epl",
    "cc-by-sa",
)

PROPRIETARY_KEYWORDS = (
    "proprietary",
    "commercial",
    "private",
    "all rights reserved",
)


def classify_license(
    license: str | None,
    policy: LicensePolicy,
) -> tuple[LicenseRisk, list[str]]:
    """Classify a license string and collect policy warnings.

    Forbidden licenses short-circuit to PROPRIETARY. The allow-list is
    advisory: a miss adds a warning but does not change the tier.

    Args:
        license: Declared license (SPDX expression or free text), or None.
        policy: License policy to check against.

    Returns:
        Tuple of (risk tier, warnings).
    """
    warnings: list[str] = []

    if not license:
        if policy.warn_on_unknown:
            warnings.append("No license information found")
        return LicenseRisk.UNKNOWN, warnings

    for forbidden in sorted(policy.forbidden_licenses):
        if license_matches(license, forbidden):
            warnings.append(f"Uses forbidden license: {license}")
            return LicenseRisk.PROPRIETARY, warnings

    if policy.allowed_licenses and not any(
        license_matches(license, allowed) for allowed in policy.allowed_licenses
    ):
        warnings.append(f"License {license} not in allowed list")

    risk = categorize_license(license)

    if risk == LicenseRisk.COPYLEFT and policy.warn_on_copyleft:
        warnings.append(f"Copyleft license detected: {license}")
    elif risk == LicenseRisk.UNKNOWN and policy.warn_on_unknown:
        warnings.append(f"Unknown license: {license}")
    elif risk == LicenseRisk.PROPRIETARY:
        warnings.append(f"Proprietary license detected: {license}")

    return risk, warnings


def categorize_license(license: str) -> LicenseRisk:
    """Map a license string to a risk tier by keyword.

    Precedence is permissive, then copyleft, then proprietary, so a dual
    license such as "MIT OR GPL-3.0" counts as permissive.
    """
    license_lower = license.lower()

    if any(keyword in license_lower for keyword in PERMISSIVE_KEYWORDS):
        return LicenseRisk.PERMISSIVE
    if any(keyword in license_lower for keyword in COPYLEFT_KEYWORDS):
        return LicenseRisk.COPYLEFT
    if any(keyword in license_lower for keyword in PROPRIETARY_KEYWORDS):
        return LicenseRisk.PROPRIETARY
    return LicenseRisk.UNKNOWN


def license_matches(license: str, pattern: str) -> bool:
    """Case-insensitive substring match that understands SPDX OR/AND.

    Both operators are split the same way and the pattern may match any
    segment; this is not full SPDX evaluation.
    """
    license_lower = license.lower()
    pattern_lower = pattern.lower()

    for operator in (" or ", " and "):
        if operator in license_lower:
            return any(pattern_lower in part.strip() for part in license_lower.split(operator))

    return pattern_lower in license_lower
