"""
API routes for the Takedown Letter Assistant.
"""

import logging

from fastapi import APIRouter, Depends, Request

from takedown_assistant.api.schemas import (
    FactsUpdateRequest,
    FollowUpAnswersRequest,
    FollowUpStageRequest,
    FollowUpStageResponse,
    LetterRequest,
    LetterResponse,
    PlatformSummary,
    QualityCheckRequest,
    SessionResponse,
)
from takedown_assistant.config import AppSettings
from takedown_assistant.domain.errors import (
    ConfigurationError,
    ConflictError,
    DomainError,
    ValidationFailed,
)
from takedown_assistant.models.case import CaseFacts, FollowUpQuestion, QualityReport
from takedown_assistant.observability.rate_limiter import ai_rate_limit
from takedown_assistant.services.case_store import (
    FOLLOW_UP_STAGE,
    LETTER_STAGE,
    CaseSession,
    CaseSnapshot,
    CaseStore,
)
from takedown_assistant.services.pipeline import GenerationPipeline, LetterResult
from takedown_assistant.services.policy_index import list_platforms

# Initialize router
router = APIRouter()

# Initialize logger
logger = logging.getLogger(__name__)


def get_settings_dep(request: Request) -> AppSettings:
    return request.app.state.settings


def get_pipeline(request: Request) -> GenerationPipeline:
    return request.app.state.pipeline


def get_case_store(request: Request) -> CaseStore:
    return request.app.state.case_store


def _letter_response(result: LetterResult) -> LetterResponse:
    return LetterResponse(
        letter=result.letter,
        quality_report=result.quality_report,
        revised=result.revised,
        ai_calls=result.run.ai_calls,
        warnings=result.warnings,
    )


def _session_response(
    session: CaseSession, settings: AppSettings, cls=SessionResponse, **extra
) -> SessionResponse:
    snapshot: CaseSnapshot = session.current
    return cls(
        session_id=session.id,
        version=snapshot.version,
        facts=snapshot.facts,
        questions=list(snapshot.questions),
        follow_up_attempts=snapshot.follow_up_attempts,
        can_retry_follow_up=snapshot.follow_up_attempts < 1 + settings.max_follow_up_retries,
        **extra,
    )


# ============================================================================
# Stateless generation endpoints
# ============================================================================


@router.post("/api/follow-up-questions", response_model=list[FollowUpQuestion])
@ai_rate_limit
async def follow_up_questions(
    request: Request,
    body: LetterRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
) -> list[FollowUpQuestion]:
    """Generate 2-3 follow-up questions that close gaps in the collected facts."""
    facts = body.to_case_facts()
    try:
        result = await pipeline.generate_follow_up_questions(facts)
    except ConfigurationError:
        raise
    except DomainError as e:
        # Follow-up questions are optional; the wizard may continue without them
        e.can_proceed = True
        raise
    return result.questions


@router.post("/api/generate-letter", response_model=LetterResponse)
@ai_rate_limit
async def generate_letter(
    request: Request,
    body: LetterRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
) -> LetterResponse:
    """Draft the takedown letter, quality-check it and apply at most one revision."""
    result = await pipeline.generate_letter(body.to_case_facts())
    return _letter_response(result)


@router.post("/api/quality-check-letter", response_model=QualityReport)
@ai_rate_limit
async def quality_check_letter(
    request: Request,
    body: QualityCheckRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
) -> QualityReport:
    """Critique an existing letter against the fixed quality criteria."""
    pipeline.client.ensure_configured()
    if not body.letter or body.form_data is None:
        raise ValidationFailed("Missing required parameters")
    facts: CaseFacts = body.form_data.to_case_facts()
    return await pipeline.check_letter_quality(body.letter_draft(), facts)


@router.get("/api/platforms", response_model=list[PlatformSummary])
async def platforms() -> list[PlatformSummary]:
    return [PlatformSummary(**p) for p in list_platforms()]


# ============================================================================
# Case sessions
# ============================================================================


@router.post("/api/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    store: CaseStore = Depends(get_case_store),
    settings: AppSettings = Depends(get_settings_dep),
) -> SessionResponse:
    return _session_response(store.create(), settings)


@router.get("/api/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    store: CaseStore = Depends(get_case_store),
    settings: AppSettings = Depends(get_settings_dep),
) -> SessionResponse:
    return _session_response(store.get(session_id), settings)


@router.delete("/api/sessions/{session_id}", status_code=204)
async def reset_session(session_id: str, store: CaseStore = Depends(get_case_store)) -> None:
    store.reset(session_id)


@router.patch("/api/sessions/{session_id}/facts", response_model=SessionResponse)
async def update_facts(
    session_id: str,
    body: FactsUpdateRequest,
    store: CaseStore = Depends(get_case_store),
    settings: AppSettings = Depends(get_settings_dep),
) -> SessionResponse:
    session = store.get(session_id)
    session.merge_facts(
        platform=body.platform_info.to_platform_ref() if body.platform_info else None,
        initial=(
            body.initial_questions.model_dump(exclude_unset=True)
            if body.initial_questions
            else None
        ),
        reporting=body.reporting_details,
    )
    return _session_response(session, settings)


@router.post(
    "/api/sessions/{session_id}/follow-up-questions", response_model=FollowUpStageResponse
)
@ai_rate_limit
async def session_follow_up_questions(
    request: Request,
    session_id: str,
    body: FollowUpStageRequest | None = None,
    store: CaseStore = Depends(get_case_store),
    pipeline: GenerationPipeline = Depends(get_pipeline),
    settings: AppSettings = Depends(get_settings_dep),
) -> FollowUpStageResponse:
    """Run the follow-up stage once against the session's current snapshot.

    An existing batch is returned as-is unless `retry` is set. After the retry
    budget is spent the caller must continue to the letter without follow-up data.
    """
    retry = bool(body and body.retry)
    session = store.get(session_id)
    snapshot = session.current
    if snapshot.questions and not retry:
        return _session_response(session, settings, FollowUpStageResponse, generated=False)
    if snapshot.follow_up_attempts >= 1 + settings.max_follow_up_retries:
        error = ConflictError(
            "Follow-up question retries are exhausted; continue to letter generation."
        )
        error.can_proceed = True
        raise error

    pipeline.client.ensure_configured()
    ticket = session.begin_stage(FOLLOW_UP_STAGE)
    try:
        try:
            result = await pipeline.generate_follow_up_questions(snapshot.facts)
        except DomainError as e:
            session.record_failed_attempt(ticket)
            e.can_proceed = True
            raise
        session.commit_questions(ticket, result.questions)
    finally:
        session.end_stage(ticket)
    logger.info(
        f"Stored {len(result.questions)} follow-up questions",
        extra={"session_id": session_id},
    )
    return _session_response(session, settings, FollowUpStageResponse, generated=True)


@router.delete("/api/sessions/{session_id}/follow-up-questions")
async def cancel_follow_up_questions(
    session_id: str, store: CaseStore = Depends(get_case_store)
) -> dict:
    """Cancel an in-flight follow-up request; its eventual result is discarded."""
    return {"cancelled": store.get(session_id).cancel_stage(FOLLOW_UP_STAGE)}


@router.post("/api/sessions/{session_id}/follow-up-answers", response_model=SessionResponse)
async def submit_follow_up_answers(
    session_id: str,
    body: FollowUpAnswersRequest,
    store: CaseStore = Depends(get_case_store),
    settings: AppSettings = Depends(get_settings_dep),
) -> SessionResponse:
    session = store.get(session_id)
    session.merge_answers(body.answers)
    return _session_response(session, settings)


@router.post("/api/sessions/{session_id}/letter", response_model=LetterResponse)
@ai_rate_limit
async def session_letter(
    request: Request,
    session_id: str,
    store: CaseStore = Depends(get_case_store),
    pipeline: GenerationPipeline = Depends(get_pipeline),
) -> LetterResponse:
    """Generate the letter from the session's current snapshot."""
    session = store.get(session_id)
    pipeline.client.ensure_configured()
    ticket = session.begin_stage(LETTER_STAGE)
    try:
        result = await pipeline.generate_letter(session.current.facts)
        session.check_ticket(ticket)
    finally:
        session.end_stage(ticket)
    return _letter_response(result)
