"""
Unit tests for GapAnalyzer.
"""

import pytest

from takedown_assistant.models.case import INITIAL_FIELDS, CaseFacts
from takedown_assistant.services.gap_analyzer import GapAnalyzer, analyze_gaps, has_url_token


class TestContentLocation:
    @pytest.mark.parametrize(
        "location",
        [
            "https://example.com/img.jpg",
            "http://forum.example.org/thread/42",
            "posted on www.example.com under my name",
            "URL was sent to me by a friend",
        ],
    )
    def test_url_like_tokens_count_as_location(self, location):
        assert has_url_token(location)
        assert analyze_gaps(CaseFacts(image_identification=location)).has_content_location

    @pytest.mark.parametrize(
        "location",
        ["", "a photo of me at the beach", "on their profile page", "the url is on my phone"],
    )
    def test_descriptions_without_link_are_missing(self, location):
        assert not analyze_gaps(CaseFacts(image_identification=location)).has_content_location


class TestTimeline:
    def test_both_dates_required(self):
        assert analyze_gaps(
            CaseFacts(image_upload_date="2024-01-01", image_taken_date="2023-12-01")
        ).has_timeline
        assert not analyze_gaps(CaseFacts(image_upload_date="2024-01-01")).has_timeline
        assert not analyze_gaps(CaseFacts(image_taken_date="2023-12-01")).has_timeline

    def test_whitespace_dates_are_absent(self):
        assert not analyze_gaps(
            CaseFacts(image_upload_date="  ", image_taken_date="2023-12-01")
        ).has_timeline


class TestDetailThresholds:
    def test_length_must_exceed_threshold(self):
        exactly_30 = "x" * 30
        gaps = analyze_gaps(CaseFacts(ownership_evidence=exactly_30, impact_statement=exactly_30 + "y"))
        assert not gaps.has_ownership_evidence
        assert gaps.has_impact_statement

    def test_thresholds_are_configurable(self):
        analyzer = GapAnalyzer(ownership_threshold=5, impact_threshold=100)
        gaps = analyzer.analyze(
            CaseFacts(ownership_evidence="my own file", impact_statement="x" * 60)
        )
        assert gaps.has_ownership_evidence
        assert not gaps.has_impact_statement

    def test_from_settings(self, settings):
        settings = settings.model_copy(update={"impact_detail_threshold": 3})
        analyzer = GapAnalyzer.from_settings(settings)
        assert analyzer.impact_threshold == 3
        assert analyzer.ownership_threshold == 30


def test_scenario_a(scenario_a_facts):
    gaps = analyze_gaps(scenario_a_facts)

    assert gaps.has_content_location is True
    assert gaps.has_timeline is True
    assert gaps.has_ownership_evidence is True
    assert gaps.has_impact_statement is False
    assert gaps.missing() == ["impact_statement"]


def test_minimal_info_flag(scenario_a_facts):
    # Dates are shorter than the minimal-answer threshold
    assert analyze_gaps(scenario_a_facts).has_minimal_info
    rich = CaseFacts(**{name: "x" * 25 for name in INITIAL_FIELDS})
    assert not analyze_gaps(rich).has_minimal_info
