"""
Takedown Letter Assistant
Helps a person assemble a takedown request letter by collecting case facts,
asking AI-generated follow-up questions, and drafting and quality-checking
the letter with a hosted language model.
"""

__version__ = "0.1.0"

from takedown_assistant.models.case import (
    CaseFacts,
    FollowUpQuestion,
    GapStatus,
    LetterDraft,
    PlatformRef,
    PromptKind,
    QualityReport,
)
from takedown_assistant.services.anthropic_client import AnthropicClient
from takedown_assistant.services.gap_analyzer import GapAnalyzer
from takedown_assistant.services.pipeline import GenerationPipeline
from takedown_assistant.utils.logging import setup_logging

__all__ = [
    'CaseFacts',
    'FollowUpQuestion',
    'GapStatus',
    'LetterDraft',
    'PlatformRef',
    'PromptKind',
    'QualityReport',
    'AnthropicClient',
    'GapAnalyzer',
    'GenerationPipeline',
    'setup_logging',
]
