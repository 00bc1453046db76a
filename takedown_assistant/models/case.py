from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PromptKind(str, Enum):
    """The three fixed generation tasks sent to the AI service."""

    FOLLOW_UP = "follow_up"  # Gap-closing follow-up questions
    LETTER_DRAFT = "letter_draft"  # The takedown letter itself
    QUALITY_CHECK = "quality_check"  # Critique (and optional rewrite) of a draft


class QuestionReason(str, Enum):
    """Why a follow-up question is being asked."""

    ESSENTIAL = "essential"  # Missing key info
    VERIFICATION = "verification"  # Proves ownership
    SUPPORTING = "supporting"  # Strengthens the case


# Order matches the wizard's initial question step
INITIAL_FIELDS = (
    "image_identification",
    "content_type",
    "content_context",
    "image_upload_date",
    "image_taken_date",
    "ownership_evidence",
    "impact_statement",
)


class _CamelModel(BaseModel):
    # Wire format is camelCase, Python attributes are snake_case
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class PlatformRef(_CamelModel):
    """Which platform the content is on; custom platforms have no policy lookup."""

    id: str = ""
    name: str = ""
    is_custom: bool = False
    custom_name: str | None = None

    @property
    def display_name(self) -> str:
        if self.is_custom and self.custom_name:
            return self.custom_name
        return self.name


class ReportingDetails(_CamelModel):
    """What the person has already tried through the platform's own reporting tools."""

    standard_process_details: str = ""
    escalated_process_details: str = ""
    response_received: str = ""
    additional_steps_taken: str = ""

    @property
    def has_history(self) -> bool:
        return bool(self.standard_process_details or self.escalated_process_details)

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class CaseFacts(_CamelModel):
    """Immutable snapshot of everything collected for one takedown case."""

    platform: PlatformRef = Field(default_factory=PlatformRef)
    content_type: str = ""
    content_context: str = ""
    image_identification: str = ""
    image_upload_date: str = ""
    image_taken_date: str = ""
    ownership_evidence: str = ""
    impact_statement: str = ""
    reporting_details: ReportingDetails | None = None
    follow_up_answers: dict[str, str] = Field(default_factory=dict)

    def initial_answers(self) -> dict[str, str]:
        """Initial wizard answers keyed by their wire (camelCase) names."""
        return {to_camel(name): getattr(self, name) for name in INITIAL_FIELDS}

    def with_answers(self, answers: dict[str, str]) -> "CaseFacts":
        """Return a new snapshot with follow-up answers appended."""
        merged = {**self.follow_up_answers, **answers}
        return self.model_copy(update={"follow_up_answers": merged})


class FollowUpQuestion(_CamelModel):
    id: str
    question: str
    context: str = ""
    reason: QuestionReason


class LetterDraft(_CamelModel):
    subject: str
    body: str
    next_steps: list[str] = Field(default_factory=list)


class QualityIssue(_CamelModel):
    criterion: str
    issue: str
    recommendation: str = ""


class QualityReport(_CamelModel):
    passes_quality_check: bool
    issues: list[QualityIssue] = Field(default_factory=list)
    improved_letter: LetterDraft | None = None


@dataclass(frozen=True)
class GapStatus:
    """Which information categories are present in a CaseFacts snapshot.

    Derived fresh on each prompt assembly; never stored.
    """

    has_content_location: bool
    has_timeline: bool
    has_ownership_evidence: bool
    has_impact_statement: bool
    has_minimal_info: bool = False

    def missing(self) -> list[str]:
        labels = {
            "content_location": self.has_content_location,
            "timeline": self.has_timeline,
            "ownership_evidence": self.has_ownership_evidence,
            "impact_statement": self.has_impact_statement,
        }
        return [name for name, present in labels.items() if not present]
