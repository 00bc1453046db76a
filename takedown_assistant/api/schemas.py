"""
API request/response schemas for the Takedown Letter Assistant.

The wire format is camelCase to match the wizard front end.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from takedown_assistant.models.case import (
    CaseFacts,
    FollowUpQuestion,
    LetterDraft,
    PlatformRef,
    QualityReport,
    ReportingDetails,
)


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class InitialQuestions(_ApiModel):
    """Answers from the wizard's initial question step."""

    image_identification: str = ""
    content_type: str = ""
    content_context: str = ""
    image_upload_date: str = ""
    image_taken_date: str = ""
    ownership_evidence: str = ""
    impact_statement: str = ""


class PlatformInfo(_ApiModel):
    """Platform as sent by the wizard; accepts both the step and summary shapes."""

    id: str = ""
    platform_id: str = ""
    name: str = ""
    platform_name: str = ""
    is_custom: bool = False
    custom_name: str | None = None

    def to_platform_ref(self) -> PlatformRef:
        return PlatformRef(
            id=self.id or self.platform_id,
            name=self.name or self.platform_name,
            is_custom=self.is_custom,
            custom_name=self.custom_name,
        )


class LetterRequest(_ApiModel):
    """Everything collected so far; the body of the follow-up and letter endpoints."""

    initial_questions: InitialQuestions = Field(default_factory=InitialQuestions)
    platform_info: PlatformInfo = Field(default_factory=PlatformInfo)
    reporting_details: ReportingDetails | None = None
    follow_up: dict[str, str] = Field(default_factory=dict)

    def to_case_facts(self) -> CaseFacts:
        reporting = self.reporting_details
        if reporting is not None and reporting.is_empty():
            reporting = None
        return CaseFacts(
            platform=self.platform_info.to_platform_ref(),
            reporting_details=reporting,
            follow_up_answers=dict(self.follow_up),
            **self.initial_questions.model_dump(),
        )


class QualityCheckRequest(_ApiModel):
    """Body of the quality-check endpoint. Both fields are required (checked by the route)."""

    letter: LetterDraft | str | None = None
    form_data: LetterRequest | None = None

    def letter_draft(self) -> LetterDraft:
        if isinstance(self.letter, LetterDraft):
            return self.letter
        return LetterDraft(subject="", body=self.letter or "")


class LetterResponse(_ApiModel):
    letter: LetterDraft
    quality_report: QualityReport
    revised: bool
    ai_calls: int
    warnings: list[str] = Field(default_factory=list)


class PlatformSummary(_ApiModel):
    id: str
    name: str
    has_policy: bool


# ============================================================================
# Case session schemas
# ============================================================================


class FactsUpdateRequest(_ApiModel):
    """Partial wizard answers to merge into a session; omitted fields are left alone."""

    platform_info: PlatformInfo | None = None
    initial_questions: InitialQuestions | None = None
    reporting_details: ReportingDetails | None = None


class FollowUpStageRequest(_ApiModel):
    retry: bool = False


class FollowUpAnswersRequest(_ApiModel):
    answers: dict[str, str]


class SessionResponse(_ApiModel):
    session_id: str
    version: int
    facts: CaseFacts
    questions: list[FollowUpQuestion] = Field(default_factory=list)
    follow_up_attempts: int = 0
    can_retry_follow_up: bool = True


class FollowUpStageResponse(SessionResponse):
    generated: bool = False
