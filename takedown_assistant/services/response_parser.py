"""
Lenient extraction of JSON from free-text model replies, plus per-kind shape checks.

Models wrap JSON in prose and markdown fences. `parse_json` finds the single
structurally balanced top-level JSON value in the reply and parses only that.
A reply that has no such value, or that has several competing ones, or whose
candidate does not parse, is a MalformedResponse. A value that parses but has
the wrong shape for its prompt kind is a SchemaMismatch.
"""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from takedown_assistant.domain.errors import MalformedResponse, SchemaMismatch
from takedown_assistant.models.case import (
    FollowUpQuestion,
    LetterDraft,
    QualityReport,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_CLOSERS = {"{": "}", "[": "]"}


def _snippet(text: str, limit: int = 200) -> str:
    flat = text.strip().replace("\n", " ")
    return (flat[:limit] + "...") if len(flat) > limit else flat


def find_balanced_spans(text: str) -> list[tuple[int, int]]:
    """Return (start, end) spans of every top-level balanced {...} or [...] in text.

    Brackets inside JSON strings are ignored. An opener that never closes is
    not a candidate.
    """
    spans: list[tuple[int, int]] = []
    stack: list[str] = []
    start = -1
    in_string = False
    escaped = False
    i = 0
    while i < len(text):
        ch = text[i]
        i += 1
        if not stack:
            if ch in _CLOSERS:
                stack.append(_CLOSERS[ch])
                start = i - 1
                in_string = False
                escaped = False
            continue
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if ch != stack[-1]:
                # Mismatched closer: abandon this candidate and rescan after its opener
                stack.clear()
                i = start + 1
                continue
            stack.pop()
            if not stack:
                spans.append((start, i))
    return spans


def parse_json(raw_text: str) -> Any:
    """Extract and parse the one JSON value embedded in a model reply."""
    if raw_text is None or not raw_text.strip():
        raise MalformedResponse("The AI response was empty.")

    # Already-clean JSON parses directly
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError:
        pass

    fenced = _FENCE_RE.search(raw_text)
    region = fenced.group(1) if fenced else raw_text

    spans = find_balanced_spans(region)
    if not spans:
        logger.warning(f"No balanced JSON value in AI response: {_snippet(raw_text)}")
        raise MalformedResponse(f"No JSON object found in response. Snippet: {_snippet(raw_text)}")
    if len(spans) > 1:
        logger.warning(f"{len(spans)} competing JSON values in AI response")
        raise MalformedResponse("The AI response contained more than one JSON value.")

    start, end = spans[0]
    candidate = region[start:end]
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON candidate failed to parse: {e}")
        raise MalformedResponse(f"Failed to parse AI response as JSON: {e}", cause=e) from e


def validate_follow_up_questions(data: Any) -> list[FollowUpQuestion]:
    if not isinstance(data, list):
        raise SchemaMismatch("Response is not an array")
    try:
        questions = [FollowUpQuestion.model_validate(item) for item in data]
    except ValidationError as e:
        raise SchemaMismatch(f"Invalid follow-up question: {e.errors()[0]['msg']}", cause=e) from e
    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        raise SchemaMismatch("Follow-up question ids are not unique")
    return questions


def validate_letter_draft(data: Any) -> LetterDraft:
    if not isinstance(data, dict):
        raise SchemaMismatch("Letter response is not an object")
    try:
        letter = LetterDraft.model_validate(data)
    except ValidationError as e:
        raise SchemaMismatch(f"Invalid letter draft: {e.errors()[0]['msg']}", cause=e) from e
    if not letter.body.strip():
        raise SchemaMismatch("Letter body is empty")
    return letter


def validate_quality_report(data: Any, original: LetterDraft | None = None) -> QualityReport:
    """Validate a quality-check reply.

    The reviewer may return the improved letter as plain text, or as an object
    that only carries the changed fields. Either way the missing subject and
    next steps are taken from the original draft.
    """
    if not isinstance(data, dict) or not isinstance(data.get("passesQualityCheck"), bool):
        raise SchemaMismatch("Invalid quality check result format")
    payload = dict(data)
    improved = payload.get("improvedLetter")
    if payload["passesQualityCheck"] or not improved:
        payload.pop("improvedLetter", None)
    else:
        if isinstance(improved, str):
            improved = {"body": improved}
        if isinstance(improved, dict):
            improved = dict(improved)
            if not improved.get("subject"):
                improved["subject"] = original.subject if original else ""
            if improved.get("nextSteps") is None and improved.get("next_steps") is None:
                improved["nextSteps"] = list(original.next_steps) if original else []
        payload["improvedLetter"] = improved
    try:
        return QualityReport.model_validate(payload)
    except ValidationError as e:
        raise SchemaMismatch(f"Invalid quality report: {e.errors()[0]['msg']}", cause=e) from e

