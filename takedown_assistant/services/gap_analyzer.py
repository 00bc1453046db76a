#!/usr/bin/env python3
"""
Gap analysis - decides which information categories a case still lacks.
"""

from takedown_assistant.constants import (
    IMPACT_DETAIL_THRESHOLD,
    LOCATION_URL_MARKERS,
    MINIMAL_ANSWER_THRESHOLD,
    OWNERSHIP_DETAIL_THRESHOLD,
)
from takedown_assistant.models.case import CaseFacts, GapStatus


class GapAnalyzer:
    """Computes a GapStatus from a CaseFacts snapshot. Pure, never fails."""

    def __init__(
        self,
        ownership_threshold: int = OWNERSHIP_DETAIL_THRESHOLD,
        impact_threshold: int = IMPACT_DETAIL_THRESHOLD,
        minimal_threshold: int = MINIMAL_ANSWER_THRESHOLD,
    ):
        self.ownership_threshold = ownership_threshold
        self.impact_threshold = impact_threshold
        self.minimal_threshold = minimal_threshold

    @classmethod
    def from_settings(cls, settings) -> "GapAnalyzer":
        return cls(
            ownership_threshold=settings.ownership_detail_threshold,
            impact_threshold=settings.impact_detail_threshold,
            minimal_threshold=settings.minimal_answer_threshold,
        )

    def analyze(self, facts: CaseFacts) -> GapStatus:
        return GapStatus(
            has_content_location=has_url_token(facts.image_identification),
            has_timeline=bool(facts.image_upload_date.strip() and facts.image_taken_date.strip()),
            has_ownership_evidence=len(facts.ownership_evidence) > self.ownership_threshold,
            has_impact_statement=len(facts.impact_statement) > self.impact_threshold,
            has_minimal_info=any(
                len(value or "") < self.minimal_threshold
                for value in facts.initial_answers().values()
            ),
        )


def has_url_token(text: str) -> bool:
    """True if the text carries a link-like token (scheme, www. or the literal URL)."""
    if not text:
        return False
    return any(marker in text for marker in LOCATION_URL_MARKERS)


def analyze_gaps(facts: CaseFacts) -> GapStatus:
    """Gap analysis with the default thresholds."""
    return GapAnalyzer().analyze(facts)
