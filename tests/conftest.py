import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from takedown_assistant.config import AppSettings
from takedown_assistant.models.case import CaseFacts, PlatformRef, PromptKind, ReportingDetails

FOLLOW_UP_REPLY = json.dumps(
    [
        {
            "id": "q1",
            "question": "How has this content affected your daily life or safety?",
            "context": "A concrete impact statement helps the platform prioritise the report.",
            "reason": "essential",
        },
        {
            "id": "q2",
            "question": "Is the content shown under your name or tagged to your account?",
            "context": "Links between the post and you support the privacy violation.",
            "reason": "supporting",
        },
    ]
)

LETTER_REPLY = json.dumps(
    {
        "subject": "Request to remove non-consensual intimate image",
        "body": (
            "To the Facebook Trust and Safety team,\n\n"
            "I am writing to request the removal of an intimate image of me posted at "
            "https://example.com/img.jpg without my consent.\n\n"
            "Sincerely,\n"
        ),
        "nextSteps": ["Submit the letter through the platform's report form"],
    }
)

QUALITY_PASS_REPLY = json.dumps({"passesQualityCheck": True, "issues": []})


def fake_reply(kind: PromptKind, prompt: str) -> str:
    """Return a canned model reply for each prompt kind."""
    if kind is PromptKind.FOLLOW_UP:
        return f"Here are the questions:\n```json\n{FOLLOW_UP_REPLY}\n```"
    if kind is PromptKind.LETTER_DRAFT:
        return LETTER_REPLY
    return QUALITY_PASS_REPLY


@pytest.fixture
def ai_client():
    """
    Mocked AnthropicClient for all tests.

    `invoke` answers by prompt kind; tests override `invoke.side_effect` for
    failures or scripted sequences.
    """
    from takedown_assistant.services.anthropic_client import AnthropicClient

    mock_client = MagicMock(spec=AnthropicClient)
    mock_client.api_key = "mock_api_key"
    mock_client.is_configured = True
    mock_client.ensure_configured = MagicMock(return_value=None)
    mock_client.invoke = AsyncMock(side_effect=fake_reply)
    return mock_client


@pytest.fixture
def settings():
    return AppSettings(
        anthropic_api_key="test-key",
        rate_limit_enabled=False,
    )


@pytest.fixture
def scenario_a_facts():
    """Link given, dates complete, 40-char ownership evidence, 10-char impact statement."""
    return CaseFacts(
        platform=PlatformRef(id="facebook", name="Facebook"),
        content_type="intimate",
        content_context="relationship",
        image_identification="https://example.com/img.jpg",
        image_upload_date="2024-03-02",
        image_taken_date="2023-11-20",
        ownership_evidence="I have the original file on my own phone",
        impact_statement="I'm upset.",
    )


@pytest.fixture
def thin_facts():
    return CaseFacts(
        platform=PlatformRef(name="SomeForum", is_custom=True, custom_name="SomeForum"),
        content_type="private",
        content_context="unknown",
        image_identification="a photo of me at the beach",
        ownership_evidence="it's me",
        impact_statement="",
        reporting_details=ReportingDetails(),
    )
