#!/usr/bin/env python3
"""
Generation Pipeline - gap analysis, prompt assembly, AI call, parse/validate,
and the bounded quality-check loop for letters.

Follow-up stage:  Idle -> Generating -> Parsed -> Accepted | Failed
Letter stage:     Idle -> Generating -> Parsed -> QualityChecking
                       -> Accepted | Revising -> Accepted
                  (any step may go to Failed)

The quality check runs exactly once per letter. A failing check with an
improved letter replaces the draft and the loop stops; the improved letter is
never re-checked.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from takedown_assistant.constants import HALLUCINATION_PHRASES, MAX_LETTER_REVISIONS
from takedown_assistant.domain.errors import DomainError
from takedown_assistant.models.case import (
    CaseFacts,
    FollowUpQuestion,
    LetterDraft,
    PromptKind,
    QualityReport,
)
from takedown_assistant.prompts import (
    get_follow_up_prompt,
    get_letter_prompt,
    get_quality_check_prompt,
)
from takedown_assistant.services.anthropic_client import AnthropicClient
from takedown_assistant.services.gap_analyzer import GapAnalyzer
from takedown_assistant.services.policy_index import get_policy_for, get_relevant_policies
from takedown_assistant.services.response_parser import (
    parse_json,
    validate_follow_up_questions,
    validate_letter_draft,
    validate_quality_report,
)

_PLACEHOLDER_RE = re.compile(
    r"\[(?:insert|your|list|full name|email|name|date|add)[^\]]*\]", re.IGNORECASE
)


class PipelineState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    PARSED = "parsed"
    QUALITY_CHECKING = "quality_checking"
    REVISING = "revising"
    ACCEPTED = "accepted"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """Trace of one pipeline invocation."""

    kind: PromptKind
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    ai_calls: int = 0
    error: DomainError | None = None

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)

    def fail(self, error: DomainError) -> None:
        self.error = error
        self.advance(PipelineState.FAILED)


@dataclass
class FollowUpResult:
    questions: list[FollowUpQuestion]
    run: PipelineRun


@dataclass
class LetterResult:
    letter: LetterDraft
    draft: LetterDraft
    quality_report: QualityReport
    run: PipelineRun
    revised: bool = False
    warnings: list[str] = field(default_factory=list)


def find_placeholders(text: str) -> list[str]:
    return _PLACEHOLDER_RE.findall(text or "")


def find_forbidden_phrases(text: str) -> list[str]:
    lowered = (text or "").lower()
    return [phrase for phrase in HALLUCINATION_PHRASES if phrase.lower() in lowered]


class GenerationPipeline:
    def __init__(
        self,
        client: AnthropicClient,
        gap_analyzer: GapAnalyzer | None = None,
        max_letter_revisions: int = MAX_LETTER_REVISIONS,
    ):
        self.client = client
        self.gap_analyzer = gap_analyzer or GapAnalyzer()
        self.max_letter_revisions = min(max_letter_revisions, MAX_LETTER_REVISIONS)
        self.logger = logging.getLogger(__name__)

    def _policies_for(self, facts: CaseFacts):
        policy = get_policy_for(facts.platform)
        if policy is None:
            return None
        return get_relevant_policies(policy, facts.content_type, facts.content_context)

    async def _call(self, run: PipelineRun, kind: PromptKind, prompt: str) -> str:
        run.advance(PipelineState.GENERATING)
        run.ai_calls += 1
        return await self.client.invoke(kind, prompt)

    async def generate_follow_up_questions(self, facts: CaseFacts) -> FollowUpResult:
        """Single attempt at a follow-up question batch. Retrying is the caller's call."""
        self.client.ensure_configured()
        run = PipelineRun(kind=PromptKind.FOLLOW_UP)
        gaps = self.gap_analyzer.analyze(facts)
        self.logger.info(f"Generating follow-up questions; gaps: {gaps.missing() or 'none'}")
        prompt = get_follow_up_prompt(facts, gaps, self._policies_for(facts))
        try:
            raw = await self._call(run, PromptKind.FOLLOW_UP, prompt)
            questions = validate_follow_up_questions(parse_json(raw))
            run.advance(PipelineState.PARSED)
        except DomainError as e:
            run.fail(e)
            self.logger.error(f"Follow-up generation failed: {e}")
            raise
        run.advance(PipelineState.ACCEPTED)
        self.logger.info(f"Generated {len(questions)} follow-up questions")
        return FollowUpResult(questions=questions, run=run)

    async def check_letter_quality(self, letter: LetterDraft, facts: CaseFacts) -> QualityReport:
        """Standalone quality check of an existing letter (one AI call)."""
        self.client.ensure_configured()
        run = PipelineRun(kind=PromptKind.QUALITY_CHECK)
        try:
            return await self._quality_check(run, letter, facts)
        except DomainError as e:
            run.fail(e)
            self.logger.error(f"Letter quality check failed: {e}")
            raise

    async def _quality_check(
        self, run: PipelineRun, letter: LetterDraft, facts: CaseFacts
    ) -> QualityReport:
        prompt = get_quality_check_prompt(letter, facts)
        raw = await self._call(run, PromptKind.QUALITY_CHECK, prompt)
        report = validate_quality_report(parse_json(raw), original=letter)
        run.advance(PipelineState.PARSED)
        return report

    async def generate_letter(self, facts: CaseFacts) -> LetterResult:
        """Draft a letter, quality-check it once and apply at most one revision."""
        self.client.ensure_configured()
        run = PipelineRun(kind=PromptKind.LETTER_DRAFT)
        gaps = self.gap_analyzer.analyze(facts)
        prompt = get_letter_prompt(facts, gaps, self._policies_for(facts))
        try:
            raw = await self._call(run, PromptKind.LETTER_DRAFT, prompt)
            draft = validate_letter_draft(parse_json(raw))
            run.advance(PipelineState.PARSED)

            run.advance(PipelineState.QUALITY_CHECKING)
            report = await self._quality_check(run, draft, facts)
        except DomainError as e:
            run.fail(e)
            self.logger.error(f"Letter generation failed: {e}")
            raise

        letter = draft
        revised = False
        if report.passes_quality_check:
            self.logger.info("Letter draft passed quality check")
        elif report.improved_letter is not None and self.max_letter_revisions > 0:
            run.advance(PipelineState.REVISING)
            letter = report.improved_letter
            revised = True
            self.logger.info(
                f"Letter draft failed quality check with {len(report.issues)} issues; "
                "using reviewer's improved letter"
            )
        else:
            self.logger.warning(
                f"Letter draft failed quality check with {len(report.issues)} issues "
                "and no revision applied"
            )
        run.advance(PipelineState.ACCEPTED)

        warnings = [f"Placeholder left in letter: {p}" for p in find_placeholders(letter.body)]
        warnings += [f"Implies prior correspondence: {p}" for p in find_forbidden_phrases(letter.body)]
        for warning in warnings:
            self.logger.warning(warning)

        return LetterResult(
            letter=letter,
            draft=draft,
            quality_report=report,
            run=run,
            revised=revised,
            warnings=warnings,
        )
