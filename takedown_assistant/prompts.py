"""
LLM prompts for the Takedown Letter Assistant.

This module centralizes all prompts used throughout the system, making them
easier to maintain, version, and experiment with. Every builder is a pure
function of its inputs: the same CaseFacts, GapStatus and policy projection
always produce the same prompt text.
"""

import json

from takedown_assistant.constants import (
    HALLUCINATION_PHRASES,
    LETTER_SIGN_OFF,
    QUALITY_CRITERIA,
    REFERENCE_NUMBER_MARKERS,
)
from takedown_assistant.models.case import CaseFacts, GapStatus, LetterDraft
from takedown_assistant.services.policy_index import (
    RelevantPolicies,
    strip_identity_requirements,
)


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def _platform_phrase(policies: RelevantPolicies | None) -> str:
    if policies is not None:
        return f"on {policies.platform_name}"
    return "on an online platform"


def _status(present: bool, absent_label: str) -> str:
    return "PROVIDED" if present else absent_label


def get_follow_up_prompt(
    facts: CaseFacts,
    gaps: GapStatus,
    policies: RelevantPolicies | None = None,
) -> str:
    """
    Build the prompt asking the model for 2-3 gap-closing follow-up questions.

    Location and timeline are either PROVIDED or MISSING. Ownership evidence and
    the impact statement are never reported as missing, only as needing more
    detail, because a short answer still means the person has told us something.

    Args:
        facts: Current case snapshot
        gaps: Gap analysis of that snapshot
        policies: Filtered policy projection, or None for custom/unknown platforms

    Returns:
        Formatted prompt string
    """
    initial_info = "\n".join(f"{key}: {value}" for key, value in facts.initial_answers().items())

    policy_section = ""
    if policies is not None:
        policy_section = f"""
Platform-Specific Requirements:
The platform requires the following evidence for this type of content:
{_bullets(strip_identity_requirements(policies.evidence_requirements))}

Key removal criteria:
{_bullets(strip_identity_requirements(policies.removal_criteria))}
"""

    detail_note = ""
    if gaps.has_minimal_info:
        detail_note = "\nNOTE: Some initial answers are very brief. Prefer questions that draw out concrete detail.\n"

    return f"""You are an AI assistant helping to generate follow-up questions for a takedown request letter generator. The user has provided information about {facts.content_type} content being shared {_platform_phrase(policies)} in a context of {facts.content_context}.

CRITICAL: Review the information already provided before generating questions:

Content Location: {_status(gaps.has_content_location, "MISSING")}
Timeline Details: {_status(gaps.has_timeline, "MISSING")}
Ownership Evidence: {_status(gaps.has_ownership_evidence, "NEEDS MORE DETAIL")}
Impact Statement: {_status(gaps.has_impact_statement, "NEEDS MORE DETAIL")}
{detail_note}
Initial Information Provided:
{initial_info}
{policy_section}
CRITICAL RULES:
1. DO NOT ask for information that has already been provided
2. DO NOT repeat questions about URLs if content location is already given
3. DO NOT ask for timeline details if dates are already provided
4. Focus ONLY on gaps in the provided information
5. Questions should build upon existing information, not duplicate it
6. DO NOT ask for personal information like name, email, or contact details
7. DO NOT ask for ID verification, government IDs, proof of residence, or any official documentation
8. This is the ONLY opportunity to request information needed for the letter - if information is not collected here, it will not be included in the letter
9. Focus on questions that help identify SPECIFIC policy violations and community standards breaches
10. Prioritize questions that establish clear links between the content and platform policy violations

Generate 2-3 focused follow-up questions that ONLY address missing or insufficient information.

For each question, provide:
- A clear, concise question (no more than 2 sentences)
- A brief explanation of why this information helps (1 sentence)
- A category: 'essential' (missing key info), 'verification' (proves ownership), or 'supporting' (strengthens case)

Ensure the JSON is perfectly valid and can be parsed by a strict JSON parser without any errors.
Output schema:
[{{
  "id": "unique_id",
  "question": "the follow-up question",
  "context": "why this information helps",
  "reason": "category"
}}]"""


def _has_reference_numbers(answers: dict[str, str]) -> bool:
    return any(
        marker in (value or "").lower()
        for value in answers.values()
        for marker in REFERENCE_NUMBER_MARKERS
    )


def get_letter_prompt(
    facts: CaseFacts,
    gaps: GapStatus,
    policies: RelevantPolicies | None = None,
) -> str:
    """Build the prompt that drafts the takedown letter as {subject, body, nextSteps}."""
    reporting = facts.reporting_details
    lines = [
        f"Content Location: {facts.image_identification}",
        f"Upload Date: {facts.image_upload_date}",
        f"Creation Date: {facts.image_taken_date}",
        f"Ownership Evidence: {facts.ownership_evidence}",
        f"Impact Statement: {facts.impact_statement}",
    ]
    if reporting is not None and reporting.has_history:
        previous = " ".join(
            part
            for part in (reporting.standard_process_details, reporting.escalated_process_details)
            if part
        )
        lines.append(f"Previous Reports: {previous}")
        if reporting.response_received:
            lines.append(f"Platform Response Received: {reporting.response_received}")
        if reporting.additional_steps_taken:
            lines.append(f"Additional Steps Taken: {reporting.additional_steps_taken}")
    lines.extend(f"{key}: {value}" for key, value in facts.follow_up_answers.items())
    available = "\n".join(lines)

    notes = []
    if not gaps.has_content_location:
        notes.append(
            "- No specific link was provided; describe the content location exactly as the user did"
        )
    if not gaps.has_timeline:
        notes.append("- The timeline is incomplete; only mention the dates that were provided")
    if _has_reference_numbers(facts.follow_up_answers):
        notes.append("- The user's answers include a case or report reference; cite it verbatim")
    notes_section = ("\nNOTES ON AVAILABLE INFORMATION:\n" + "\n".join(notes) + "\n") if notes else ""

    policy_section = ""
    if policies is not None:
        legal_basis = _bullets(
            strip_identity_requirements(
                [f"{b.title} {b.section} (Ref: {b.reference})" for b in policies.legal_basis]
            )
        )
        applicable = _bullets(
            strip_identity_requirements(
                [f"{p.policy} (Ref: {p.reference})" for p in policies.content_policies]
            )
        )
        timeframes = ""
        if policies.timeframes is not None:
            timeframes = f"""
Timeframes:
- Initial Response: {policies.timeframes.response}
- Content Removal: {policies.timeframes.removal}
"""
        policy_section = f"""
Platform-Specific Context for {policies.platform_name}:

Legal Basis:
{legal_basis}

Applicable Policies:
{applicable}

Removal Requirements:
{_bullets(strip_identity_requirements(policies.removal_criteria))}

Evidence Requirements:
{_bullets(strip_identity_requirements(policies.evidence_requirements))}
{timeframes}"""

    avoid = "\n".join(f'- "{phrase}"' for phrase in HALLUCINATION_PHRASES)

    return f"""You are an AI assistant helping to generate a professional takedown request letter. Your role is to create a clear, factual, and compelling letter that requests the removal of {facts.content_type} content in a context of {facts.content_context}.

AVAILABLE INFORMATION:
{available}
{notes_section}{policy_section}
CRITICAL INSTRUCTIONS:
1. Use ONLY the information provided by the user - DO NOT invent or hallucinate additional details
2. DO NOT include ANY placeholders in the letter - not even for name or email
3. Instead, use generic phrases like "my name" and "my contact information" where appropriate
4. DO NOT include any internal notes, formatting instructions, or placeholder descriptions
5. DO NOT include any placeholders like [Insert X], [List Y], [Full name], or [Email address]
6. DO NOT include any placeholders for information that was not collected in the previous questions
7. DO NOT reference or suggest the need for ID verification, government IDs, proof of residence, or any official documentation
8. DO NOT mention platform policies related to ID verification or official documentation requirements
9. FOCUS on clearly identifying which specific community standards and policies have been violated
10. EMPHASIZE the exact policy breaches that apply to this specific situation
11. INCLUDE relevant links and supporting evidence provided by the user
12. AVOID including sensitive personal information not required for the letter
13. Keep the letter professional but not overly legal in tone
14. Be respectful and trauma-informed
15. State clear action requests
16. Include specific timeframes when possible
17. Keep emotional language factual
18. DO NOT claim or imply any previous correspondence with the platform beyond the reports listed above
19. At the end of the letter, include a generic closing like "{LETTER_SIGN_OFF}" followed by a new line for the user to add their name

AVOID THESE HALLUCINATION PATTERNS:
{avoid}

Letter Structure:
1. Introduction
   - Clear purpose
   - Policy violations
   - Basic content identification

2. Content Details
   - Use provided locations/URLs
   - Include timeline information
   - Reference previous reports if any

3. Evidence
   - Include provided verification details
   - Reference documentation
   - Include ownership evidence

4. Policy Violation
   - Cite specific policies
   - Detail violations
   - Include impact statement

5. Request
   - Clear actions needed
   - Expected timeline
   - Next steps

6. Contact Information
   - Generic reference to contact information
   - Response expectations

Ensure the JSON is perfectly valid and can be parsed by a strict JSON parser without any errors.
Output schema:
{{
  "subject": "Clear, specific subject line",
  "body": "The full letter content",
  "nextSteps": ["Array of recommended next steps"]
}}"""


def get_quality_check_prompt(letter: LetterDraft, facts: CaseFacts) -> str:
    """Build the prompt that critiques a drafted letter against the fixed criteria."""
    letter_json = json.dumps(letter.model_dump(by_alias=True), ensure_ascii=False)
    criteria = "\n".join(
        f"{i}. {name}: {description}" for i, (name, description) in enumerate(QUALITY_CRITERIA, 1)
    )
    platform = facts.platform.display_name or "Unspecified platform"

    return f"""You are an expert in content takedown requests and platform policy enforcement. Your task is to review a generated takedown letter and ensure it meets quality standards and follows guidelines.

ORIGINAL LETTER:
{letter_json}

CONTEXT:
- Content type: {facts.content_type}
- Content context: {facts.content_context}
- Platform: {platform}

QUALITY CHECK CRITERIA:
{criteria}

REVIEW INSTRUCTIONS:
- Identify any issues in the letter based on the criteria above
- For each issue, provide a specific recommendation for improvement
- If the letter meets all criteria, indicate that it passes the quality check
- If changes are needed, provide the complete improved letter using the same subject/body/nextSteps structure
- Only include improvedLetter if changes are needed

Output your analysis in JSON format:
{{
  "passesQualityCheck": true/false,
  "issues": [
    {{
      "criterion": "The criterion that failed",
      "issue": "Description of the issue",
      "recommendation": "Specific recommendation for improvement"
    }}
  ],
  "improvedLetter": {{
    "subject": "Clear, specific subject line",
    "body": "The complete improved letter",
    "nextSteps": ["Recommended next steps"]
  }}
}}"""

