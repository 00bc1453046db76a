"""
Unit tests for the static platform policy index.
"""

import pytest

from takedown_assistant.models.case import PlatformRef
from takedown_assistant.services.policy_index import (
    PLATFORM_POLICIES,
    get_platform_policy,
    get_policy_for,
    get_relevant_policies,
    is_identity_verification_line,
    list_platforms,
    resolve_platform_id,
    strip_identity_requirements,
)


class TestIdentityFilter:
    @pytest.mark.parametrize(
        "line",
        [
            "Government-issued ID of the person depicted",
            "A copy of your passport or driver's license",
            "Identification document confirming the reporter's identity",
            "Proof of Residence for the person depicted",
            "photo id required",
            "Copies of two valid photo IDs",
            # Substring match: incidental "id" also drops the line
            "Video URL and timestamps where the person appears",
            "Links to each post containing the evidence",
            "The person is uniquely identifiable in the video",
        ],
    )
    def test_identity_lines_detected(self, line):
        assert is_identity_verification_line(line)

    @pytest.mark.parametrize(
        "line",
        [
            "Screenshots with visible dates",
            "Username of the account sharing the content",
            "Links to the posts or stories",
        ],
    )
    def test_lines_without_keywords_kept(self, line):
        assert not is_identity_verification_line(line)

    def test_strip_keeps_order(self):
        lines = ["Links to posts", "Passport scan", "Screenshots"]
        assert strip_identity_requirements(lines) == ["Links to posts", "Screenshots"]

    def test_strip_drops_plural_ids(self):
        lines = ["Copies of two valid photo IDs", "Screenshots"]
        assert strip_identity_requirements(lines) == ["Screenshots"]


class TestLookup:
    def test_known_platform(self):
        policy = get_platform_policy("facebook")
        assert policy is not None
        assert policy.name == "Facebook"

    def test_unknown_platform_has_no_policy(self):
        assert get_platform_policy("myspace") is None
        assert get_platform_policy("") is None

    def test_custom_platform_skips_lookup(self):
        ref = PlatformRef(id="facebook", name="Facebook", is_custom=True, custom_name="Facebook")
        assert resolve_platform_id(ref) is None
        assert get_policy_for(ref) is None

    def test_resolve_by_display_name(self):
        assert resolve_platform_id(PlatformRef(name="X (Twitter)")) == "x"
        assert resolve_platform_id(PlatformRef(name="instagram")) == "instagram"

    def test_catalogue_marks_platforms_without_policy(self):
        by_id = {p["id"]: p for p in list_platforms()}
        assert by_id["facebook"]["has_policy"] is True
        assert by_id["telegram"]["has_policy"] is False


class TestRelevantPolicies:
    def test_narrows_by_content_type(self):
        relevant = get_relevant_policies(get_platform_policy("facebook"), "intimate", "hacked")
        names = [p.policy for p in relevant.content_policies]
        assert any("non-consensual intimate imagery" in n for n in names)
        assert not any("Privacy Violations" in n for n in names)
        assert [b.title for b in relevant.legal_basis] == ["TAKE IT DOWN Act", "EU Digital Services Act"]

    def test_impersonation_policy_only_for_impersonation(self):
        policy = get_platform_policy("instagram")
        hacked = get_relevant_policies(policy, "personal", "hacked")
        impersonation = get_relevant_policies(policy, "personal", "impersonation")
        assert not any("Impersonation" in p.policy for p in hacked.content_policies)
        assert any("Impersonation" in p.policy for p in impersonation.content_policies)

    @pytest.mark.parametrize("platform_id", sorted(PLATFORM_POLICIES))
    @pytest.mark.parametrize("content_type", ["intimate", "personal", "private", "other"])
    def test_projection_never_contains_identity_lines(self, platform_id, content_type):
        relevant = get_relevant_policies(get_platform_policy(platform_id), content_type, "hacked")
        lines = (
            relevant.removal_criteria
            + relevant.evidence_requirements
            + [p.policy for p in relevant.content_policies]
        )
        assert not any(is_identity_verification_line(line) for line in lines)
        assert relevant.timeframes is not None
