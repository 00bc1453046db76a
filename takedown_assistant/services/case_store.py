"""
In-memory, versioned case sessions.

Each session holds an append-only list of immutable snapshots. Every change
(merged wizard answers, a follow-up question batch, follow-up answers) produces
a new snapshot with a higher version; earlier snapshots are never edited, so a
pipeline run can always be reproduced against the exact facts it saw.

Stages that call the AI service hold a StageTicket while in flight. A ticket
can be cancelled from elsewhere (component teardown, duplicate trigger); the
cancellation is checked at commit time so a slow reply that arrives late never
reaches the session.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field, replace

from takedown_assistant.domain.errors import (
    ConflictError,
    ResourceNotFound,
    StageCancelled,
    ValidationFailed,
)
from takedown_assistant.models.case import (
    INITIAL_FIELDS,
    CaseFacts,
    FollowUpQuestion,
    PlatformRef,
    ReportingDetails,
)

logger = logging.getLogger(__name__)

FOLLOW_UP_STAGE = "follow_up"
LETTER_STAGE = "letter"


@dataclass(frozen=True)
class CaseSnapshot:
    version: int
    facts: CaseFacts
    questions: tuple[FollowUpQuestion, ...] = ()
    follow_up_attempts: int = 0


@dataclass
class StageTicket:
    stage: str
    base_version: int
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class CaseSession:
    id: str
    history: list[CaseSnapshot] = field(default_factory=list)
    in_flight: dict[str, StageTicket] = field(default_factory=dict)
    last_used: float = field(default_factory=time.monotonic)

    def __post_init__(self):
        if not self.history:
            self.history.append(CaseSnapshot(version=0, facts=CaseFacts()))

    @property
    def current(self) -> CaseSnapshot:
        return self.history[-1]

    def snapshot(self, version: int) -> CaseSnapshot:
        if not 0 <= version < len(self.history):
            raise ResourceNotFound(f"Session {self.id} has no version {version}")
        return self.history[version]

    def _advance(self, **changes) -> CaseSnapshot:
        snapshot = replace(self.current, version=self.current.version + 1, **changes)
        self.history.append(snapshot)
        self.last_used = time.monotonic()
        return snapshot

    def merge_facts(
        self,
        platform: PlatformRef | None = None,
        initial: dict[str, str] | None = None,
        reporting: ReportingDetails | None = None,
    ) -> CaseSnapshot:
        """Merge new wizard answers into a new snapshot.

        Blank values never overwrite collected ones: facts only grow.
        """
        facts = self.current.facts
        update: dict = {}
        if platform is not None:
            update["platform"] = platform
        for name, value in (initial or {}).items():
            if name not in INITIAL_FIELDS:
                raise ValidationFailed(f"Unknown case field: {name}")
            if value:
                update[name] = value
        if reporting is not None:
            existing = facts.reporting_details or ReportingDetails()
            merged = {k: v for k, v in reporting.model_dump().items() if v}
            update["reporting_details"] = existing.model_copy(update=merged)
        if not update:
            return self.current
        return self._advance(facts=facts.model_copy(update=update))

    def merge_answers(self, answers: dict[str, str]) -> CaseSnapshot:
        known = {q.id for q in self.current.questions}
        unknown = sorted(set(answers) - known)
        if unknown:
            raise ValidationFailed(f"Answers for unknown questions: {', '.join(unknown)}")
        filled = {qid: text for qid, text in answers.items() if text and text.strip()}
        if not filled:
            return self.current
        return self._advance(facts=self.current.facts.with_answers(filled))

    def begin_stage(self, stage: str) -> StageTicket:
        if stage in self.in_flight:
            raise ConflictError(f"A {stage} request is already in progress for this case.")
        ticket = StageTicket(stage=stage, base_version=self.current.version)
        self.in_flight[stage] = ticket
        self.last_used = time.monotonic()
        return ticket

    def end_stage(self, ticket: StageTicket) -> None:
        if self.in_flight.get(ticket.stage) is ticket:
            del self.in_flight[ticket.stage]

    def check_ticket(self, ticket: StageTicket) -> None:
        if ticket.cancelled:
            logger.info(f"Discarding result of cancelled {ticket.stage} stage for session {self.id}")
            raise StageCancelled()

    def cancel_stage(self, stage: str) -> bool:
        ticket = self.in_flight.pop(stage, None)
        if ticket is None:
            return False
        ticket.cancel()
        logger.info(f"Cancelled in-flight {stage} stage for session {self.id}")
        return True

    def commit_questions(
        self, ticket: StageTicket, questions: list[FollowUpQuestion]
    ) -> CaseSnapshot:
        self.check_ticket(ticket)
        if ticket.base_version != self.current.version:
            logger.info(
                f"Discarding follow-up questions for session {self.id}: generated from "
                f"version {ticket.base_version}, current is {self.current.version}"
            )
            raise ConflictError(
                "The case changed while follow-up questions were being generated; request them again."
            )
        return self._advance(
            questions=tuple(questions),
            follow_up_attempts=self.current.follow_up_attempts + 1,
        )

    def record_failed_attempt(self, ticket: StageTicket) -> CaseSnapshot:
        self.check_ticket(ticket)
        return self._advance(follow_up_attempts=self.current.follow_up_attempts + 1)


class CaseStore:
    """Process-local registry of case sessions with idle expiry."""

    def __init__(self, ttl_seconds: int = 3600):
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, CaseSession] = {}

    def create(self) -> CaseSession:
        self._expire()
        session = CaseSession(id=uuid.uuid4().hex)
        self._sessions[session.id] = session
        logger.info(f"Created case session {session.id}")
        return session

    def get(self, session_id: str) -> CaseSession:
        self._expire()
        session = self._sessions.get(session_id)
        if session is None:
            raise ResourceNotFound(f"Unknown case session: {session_id}")
        session.last_used = time.monotonic()
        return session

    def reset(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise ResourceNotFound(f"Unknown case session: {session_id}")
        for stage in list(session.in_flight):
            session.cancel_stage(stage)
        logger.info(f"Reset case session {session_id}")

    def __len__(self) -> int:
        return len(self._sessions)

    def _expire(self) -> None:
        cutoff = time.monotonic() - self.ttl_seconds
        expired = [
            sid for sid, s in self._sessions.items() if s.last_used < cutoff and not s.in_flight
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Expired {len(expired)} idle case sessions")
