"""Tests for license classification (analyzers/license.py)."""

from __future__ import annotations

import pytest

from depaudit.analyzers.license import categorize_license, classify_license, license_matches
from depaudit.config import LicensePolicy
from depaudit.models.schemas import LicenseRisk


@pytest.fixture()
def policy() -> LicensePolicy:
    return LicensePolicy()


class TestClassifyLicense:
    """Tier assignment for common license strings."""

    @pytest.mark.parametrize(
        ("license", "expected"),
        [
            ("MIT", LicenseRisk.PERMISSIVE),
            ("MIT OR Apache-2.0", LicenseRisk.PERMISSIVE),
            ("Apache-2.0 WITH LLVM-exception", LicenseRisk.PERMISSIVE),
            ("BSD-3-Clause", LicenseRisk.PERMISSIVE),
            ("Unlicense", LicenseRisk.PERMISSIVE),
            ("GPL-3.0", LicenseRisk.COPYLEFT),
            ("AGPL-3.0", LicenseRisk.COPYLEFT),
            ("LGPL-2.1-or-later", LicenseRisk.COPYLEFT),
            ("MPL-2.0", LicenseRisk.COPYLEFT),
            ("Proprietary", LicenseRisk.PROPRIETARY),
            ("CustomLicense", LicenseRisk.UNKNOWN),
        ],
    )
    def test_tiers(self, policy: LicensePolicy, license: str, expected: LicenseRisk):
        risk, _ = classify_license(license, policy)
        assert risk == expected

    def test_dual_license_prefers_permissive(self, policy: LicensePolicy):
        """A permissive option wins over a copyleft one."""
        risk, warnings = classify_license("MIT OR GPL-3.0", policy)
        assert risk == LicenseRisk.PERMISSIVE
        assert warnings == []

    def test_permissive_has_no_warnings(self, policy: LicensePolicy):
        assert classify_license("MIT", policy) == (LicenseRisk.PERMISSIVE, [])


class TestMissingLicense:
    """Absent licenses are UNKNOWN, never an error."""

    def test_none_is_unknown_with_warning(self, policy: LicensePolicy):
        risk, warnings = classify_license(None, policy)
        assert risk == LicenseRisk.UNKNOWN
        assert warnings == ["No license information found"]

    def test_empty_string_is_unknown(self, policy: LicensePolicy):
        risk, _ = classify_license("", policy)
        assert risk == LicenseRisk.UNKNOWN

    def test_no_warning_when_disabled(self):
        risk, warnings = classify_license(None, LicensePolicy(warn_on_unknown=False))
        assert risk == LicenseRisk.UNKNOWN
        assert warnings == []


class TestPolicyWarnings:
    """Warnings driven by the license policy."""

    def test_copyleft_warning(self, policy: LicensePolicy):
        _, warnings = classify_license("GPL-3.0", policy)
        assert warnings == ["Copyleft license detected: GPL-3.0"]

    def test_copyleft_warning_disabled(self):
        risk, warnings = classify_license("GPL-3.0", LicensePolicy(warn_on_copyleft=False))
        assert risk == LicenseRisk.COPYLEFT
        assert warnings == []

    def test_unknown_warning(self, policy: LicensePolicy):
        _, warnings = classify_license("CustomLicense", policy)
        assert warnings == ["Unknown license: CustomLicense"]

    def test_proprietary_always_warns(self):
        policy = LicensePolicy(warn_on_copyleft=False, warn_on_unknown=False)
        _, warnings = classify_license("Commercial", policy)
        assert warnings == ["Proprietary license detected: Commercial"]

    def test_forbidden_short_circuits(self):
        """A forbidden match is PROPRIETARY even for a copyleft license."""
        policy = LicensePolicy(forbidden_licenses={"GPL-3.0"})
        risk, warnings = classify_license("GPL-3.0", policy)
        assert risk == LicenseRisk.PROPRIETARY
        assert warnings == ["Uses forbidden license: GPL-3.0"]

    def test_forbidden_is_case_insensitive(self):
        policy = LicensePolicy(forbidden_licenses={"agpl"})
        risk, _ = classify_license("AGPL-3.0", policy)
        assert risk == LicenseRisk.PROPRIETARY

    def test_allow_list_miss_is_advisory(self):
        """Missing from the allow-list warns but keeps the keyword tier."""
        policy = LicensePolicy(allowed_licenses={"MIT"})
        risk, warnings = classify_license("Apache-2.0", policy)
        assert risk == LicenseRisk.PERMISSIVE
        assert warnings == ["License Apache-2.0 not in allowed list"]

    def test_allow_list_matches_any_alternative(self):
        policy = LicensePolicy(allowed_licenses={"Apache-2.0"})
        _, warnings = classify_license("MIT OR Apache-2.0", policy)
        assert warnings == []


class TestLicenseMatches:
    def test_substring(self):
        assert license_matches("GPL-3.0-only", "gpl-3.0")

    def test_or_segments(self):
        assert license_matches("MIT OR Apache-2.0", "apache")
        assert not license_matches("MIT OR Apache-2.0", "gpl")

    def test_and_segments(self):
        assert license_matches("MIT AND BSD-3-Clause", "bsd")


class TestCategorizeLicense:
    def test_every_input_maps_to_a_tier(self):
        for license in ["", "x", "MIT", "GPL", "all rights reserved", "???"]:
            assert categorize_license(license) in set(LicenseRisk)
