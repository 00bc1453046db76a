"""
Static platform policy index.

Maps a platform id to the legal basis, content policies, removal criteria,
evidence requirements and response timeframes that apply to takedown requests
on that platform. Custom and unknown platforms have no record.

Identity-verification lines (government IDs, passports, proof of residence...)
are dropped from every projection handed to prompt assembly. A person asking
for intimate or private imagery to be removed must never be steered into
sending identity documents.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from takedown_assistant.constants import IDENTITY_VERIFICATION_KEYWORDS
from takedown_assistant.models.case import PlatformRef

logger = logging.getLogger(__name__)

_ALL_TYPES = ("intimate", "personal", "private", "other")
_ALL_CONTEXTS = ("hacked", "impersonation", "relationship", "unknown", "other")

# Plain substring match: "IDs", "valid" and "video" all count as identity lines
_IDENTITY_PATTERN = re.compile(
    "|".join(re.escape(k) for k in IDENTITY_VERIFICATION_KEYWORDS),
    re.IGNORECASE,
)


@dataclass(frozen=True)
class LegalBasis:
    title: str
    section: str
    reference: str
    content_types: tuple[str, ...] = _ALL_TYPES


@dataclass(frozen=True)
class ContentPolicy:
    policy: str
    reference: str
    content_types: tuple[str, ...] = _ALL_TYPES
    contexts: tuple[str, ...] = _ALL_CONTEXTS

    def applies_to(self, content_type: str, content_context: str) -> bool:
        type_ok = not content_type or content_type in self.content_types
        context_ok = not content_context or content_context in self.contexts
        return type_ok and context_ok


@dataclass(frozen=True)
class Timeframes:
    response: str
    removal: str


@dataclass(frozen=True)
class PlatformPolicy:
    id: str
    name: str
    legal_basis: tuple[LegalBasis, ...]
    content_policies: tuple[ContentPolicy, ...]
    removal_criteria: tuple[str, ...]
    evidence_requirements: tuple[str, ...]
    timeframes: Timeframes


@dataclass
class RelevantPolicies:
    """Projection of a PlatformPolicy onto one content type/context pair."""

    platform_name: str
    legal_basis: list[LegalBasis] = field(default_factory=list)
    content_policies: list[ContentPolicy] = field(default_factory=list)
    removal_criteria: list[str] = field(default_factory=list)
    evidence_requirements: list[str] = field(default_factory=list)
    timeframes: Timeframes | None = None


# Known platforms (id, display name). Not every platform has a policy record.
PLATFORMS: list[tuple[str, str]] = [
    ("facebook", "Facebook"),
    ("instagram", "Instagram"),
    ("x", "X (Twitter)"),
    ("tiktok", "TikTok"),
    ("reddit", "Reddit"),
    ("youtube", "YouTube"),
    ("snapchat", "Snapchat"),
    ("telegram", "Telegram"),
    ("discord", "Discord"),
]

_TAKE_IT_DOWN = LegalBasis(
    title="TAKE IT DOWN Act",
    section="Section 3 (notice and removal of nonconsensual intimate visual depictions)",
    reference="https://www.congress.gov/bill/119th-congress/senate-bill/146",
    content_types=("intimate",),
)
_DMCA = LegalBasis(
    title="Digital Millennium Copyright Act",
    section="17 U.S.C. § 512(c)",
    reference="https://www.copyright.gov/512/",
    content_types=("personal", "private", "other"),
)
_DSA = LegalBasis(
    title="EU Digital Services Act",
    section="Article 16 (notice and action mechanisms)",
    reference="https://eur-lex.europa.eu/eli/reg/2022/2065/oj",
)

_META_TIMEFRAMES = Timeframes(response="Within 48 hours", removal="Within 48 hours of a valid report")

PLATFORM_POLICIES: dict[str, PlatformPolicy] = {
    "facebook": PlatformPolicy(
        id="facebook",
        name="Facebook",
        legal_basis=(_TAKE_IT_DOWN, _DMCA, _DSA),
        content_policies=(
            ContentPolicy(
                policy="Adult Sexual Exploitation: non-consensual intimate imagery",
                reference="https://transparency.meta.com/policies/community-standards/adult-sexual-exploitation/",
                content_types=("intimate",),
            ),
            ContentPolicy(
                policy="Privacy Violations: sharing private information or imagery without consent",
                reference="https://transparency.meta.com/policies/community-standards/privacy-violations/",
                content_types=("personal", "private", "other"),
            ),
            ContentPolicy(
                policy="Account Integrity: impersonation and fake accounts",
                reference="https://transparency.meta.com/policies/community-standards/account-integrity/",
                contexts=("impersonation",),
            ),
            ContentPolicy(
                policy="Bullying and Harassment",
                reference="https://transparency.meta.com/policies/community-standards/bullying-harassment/",
                contexts=("relationship", "hacked", "unknown", "other"),
            ),
        ),
        removal_criteria=(
            "The person depicted did not consent to the content being shared",
            "The content is intimate or was shared in a private setting",
            "Government-issued ID of the person depicted matches the reported account",
        ),
        evidence_requirements=(
            "Links to each post, profile or message containing the content",
            "Screenshots showing the content and the account sharing it",
            "A copy of your passport or driver's license",
            "Description of how you know the content depicts you",
        ),
        timeframes=_META_TIMEFRAMES,
    ),
    "instagram": PlatformPolicy(
        id="instagram",
        name="Instagram",
        legal_basis=(_TAKE_IT_DOWN, _DMCA, _DSA),
        content_policies=(
            ContentPolicy(
                policy="Community Guidelines: nudity and sexual content shared without consent",
                reference="https://help.instagram.com/477434105621119",
                content_types=("intimate",),
            ),
            ContentPolicy(
                policy="Privacy: posting private images of someone without permission",
                reference="https://help.instagram.com/477434105621119",
                content_types=("personal", "private", "other"),
            ),
            ContentPolicy(
                policy="Impersonation: accounts pretending to be someone else",
                reference="https://help.instagram.com/370054663112398",
                contexts=("impersonation",),
            ),
        ),
        removal_criteria=(
            "The content was shared without the consent of the person depicted",
            "The account is impersonating the person depicted",
            "Identification document confirming the reporter's identity",
        ),
        evidence_requirements=(
            "Username of the account sharing the content",
            "Links to the posts or stories",
            "Proof of residence for the person depicted",
            "Screenshots with visible dates",
        ),
        timeframes=_META_TIMEFRAMES,
    ),
    "x": PlatformPolicy(
        id="x",
        name="X (Twitter)",
        legal_basis=(_TAKE_IT_DOWN, _DMCA, _DSA),
        content_policies=(
            ContentPolicy(
                policy="Non-consensual nudity policy",
                reference="https://help.x.com/en/rules-and-policies/intimate-media",
                content_types=("intimate",),
            ),
            ContentPolicy(
                policy="Private information and media policy",
                reference="https://help.x.com/en/rules-and-policies/personal-information",
                content_types=("personal", "private", "other"),
            ),
            ContentPolicy(
                policy="Misleading and deceptive accounts policy",
                reference="https://help.x.com/en/rules-and-policies/x-impersonation-and-deceptive-identities-policy",
                contexts=("impersonation",),
            ),
        ),
        removal_criteria=(
            "Media depicts the reporter or someone they represent without consent",
            "Media was produced or distributed without the subject's consent",
        ),
        evidence_requirements=(
            "Links to the posts containing the media",
            "Explanation of the relationship between the reporter and the media",
            "Government ID for authorized representatives",
        ),
        timeframes=Timeframes(response="Within 24 to 72 hours", removal="Within 48 hours"),
    ),
    "tiktok": PlatformPolicy(
        id="tiktok",
        name="TikTok",
        legal_basis=(_TAKE_IT_DOWN, _DMCA, _DSA),
        content_policies=(
            ContentPolicy(
                policy="Sexual exploitation and gender-based violence: non-consensual intimate imagery",
                reference="https://www.tiktok.com/community-guidelines/en/safety-civility",
                content_types=("intimate",),
            ),
            ContentPolicy(
                policy="Privacy: sharing personal information or private imagery",
                reference="https://www.tiktok.com/community-guidelines/en/privacy-security",
                content_types=("personal", "private", "other"),
            ),
            ContentPolicy(
                policy="Impersonation and fake accounts",
                reference="https://www.tiktok.com/community-guidelines/en/integrity-authenticity",
                contexts=("impersonation",),
            ),
        ),
        removal_criteria=(
            "The video or image was shared without consent",
            "The content exposes private imagery of an identifiable person",
        ),
        evidence_requirements=(
            "Video links or account usernames",
            "Approximate time the content was posted",
            "A scan of a government identification card",
        ),
        timeframes=Timeframes(response="Within 72 hours", removal="Within 48 hours of verification"),
    ),
    "reddit": PlatformPolicy(
        id="reddit",
        name="Reddit",
        legal_basis=(_TAKE_IT_DOWN, _DMCA, _DSA),
        content_policies=(
            ContentPolicy(
                policy="Rule 3: involuntary pornography and non-consensual intimate media",
                reference="https://support.reddithelp.com/hc/en-us/articles/360043513411",
                content_types=("intimate",),
            ),
            ContentPolicy(
                policy="Rule 3: do not post private or confidential information",
                reference="https://support.reddithelp.com/hc/en-us/articles/360043066452",
                content_types=("personal", "private", "other"),
            ),
            ContentPolicy(
                policy="Rule 2: impersonation of an individual",
                reference="https://support.reddithelp.com/hc/en-us/articles/360043075032",
                contexts=("impersonation",),
            ),
        ),
        removal_criteria=(
            "Content depicts the reporter in a state of nudity or sexual activity without consent",
            "Content shares private media of an identifiable person",
        ),
        evidence_requirements=(
            "Permalinks to each post or comment",
            "Subreddit name and username of the poster",
        ),
        timeframes=Timeframes(response="Within 24 hours", removal="Within 48 hours"),
    ),
    "youtube": PlatformPolicy(
        id="youtube",
        name="YouTube",
        legal_basis=(_DMCA, _DSA),
        content_policies=(
            ContentPolicy(
                policy="Privacy Guidelines: uploads that show an identifiable person without consent",
                reference="https://support.google.com/youtube/answer/7671399",
            ),
            ContentPolicy(
                policy="Impersonation policy",
                reference="https://support.google.com/youtube/answer/2801947",
                contexts=("impersonation",),
            ),
        ),
        removal_criteria=(
            "The person is uniquely identifiable in the video",
            "The upload violates the person's privacy",
        ),
        evidence_requirements=(
            "Video URL and timestamps where the person appears",
            "Description of how the person is identifiable",
        ),
        timeframes=Timeframes(response="Within 48 hours", removal="Within 48 hours of the decision"),
    ),
}


def is_identity_verification_line(text: str) -> bool:
    """True if a policy line asks for identity documents."""
    return bool(_IDENTITY_PATTERN.search(text or ""))


def strip_identity_requirements(lines: list[str]) -> list[str]:
    kept = [line for line in lines if not is_identity_verification_line(line)]
    if len(kept) != len(lines):
        logger.debug(f"Dropped {len(lines) - len(kept)} identity-verification policy lines")
    return kept


def resolve_platform_id(platform: PlatformRef | None) -> str | None:
    """Resolve a platform reference to a catalogue id, by id first and then by name."""
    if platform is None or platform.is_custom:
        return None
    if platform.id and platform.id.lower() in PLATFORM_POLICIES:
        return platform.id.lower()
    name = (platform.name or platform.id or "").strip().lower()
    for platform_id, display in PLATFORMS:
        if name in (platform_id, display.lower()):
            return platform_id
    return None


def get_platform_policy(platform_id: str | None) -> PlatformPolicy | None:
    if not platform_id:
        return None
    return PLATFORM_POLICIES.get(platform_id.lower())


def get_policy_for(platform: PlatformRef | None) -> PlatformPolicy | None:
    return get_platform_policy(resolve_platform_id(platform))


def get_relevant_policies(
    policy: PlatformPolicy, content_type: str, content_context: str
) -> RelevantPolicies:
    """Narrow a platform policy to what applies to one content type/context pair.

    Identity-verification lines are removed here so no caller can forget to.
    """
    content_policies = [
        p
        for p in policy.content_policies
        if p.applies_to(content_type, content_context)
        and not is_identity_verification_line(p.policy)
    ]
    legal_basis = [
        b
        for b in policy.legal_basis
        if (not content_type or content_type in b.content_types)
        and not is_identity_verification_line(f"{b.title} {b.section}")
    ]
    return RelevantPolicies(
        platform_name=policy.name,
        legal_basis=legal_basis,
        content_policies=content_policies,
        removal_criteria=strip_identity_requirements(list(policy.removal_criteria)),
        evidence_requirements=strip_identity_requirements(list(policy.evidence_requirements)),
        timeframes=policy.timeframes,
    )


def list_platforms() -> list[dict[str, object]]:
    return [
        {"id": platform_id, "name": name, "has_policy": platform_id in PLATFORM_POLICIES}
        for platform_id, name in PLATFORMS
    ]
