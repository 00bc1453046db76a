"""
Business logic constants for the Takedown Letter Assistant.

This module contains constants that define the behavior and rules of the system,
as opposed to runtime configuration (which lives in config.py). Values that an
operator may want to tune are mirrored as overridable settings in config.py.
"""

# Gap detection: a free-text answer must be longer than this to count as detailed
OWNERSHIP_DETAIL_THRESHOLD = 30
IMPACT_DETAIL_THRESHOLD = 30
# Any initial answer shorter than this marks the case as thin on information
MINIMAL_ANSWER_THRESHOLD = 20

# Tokens that mark a content location as a concrete link
LOCATION_URL_MARKERS = ("http", "www.", "URL")

# Caller-driven retries of the follow-up stage before progressing without it
MAX_FOLLOW_UP_RETRIES = 3
# Corrective rewrites accepted from the quality check; the check is never re-run
MAX_LETTER_REVISIONS = 1

# Policy lines mentioning any of these are never shown to the model
IDENTITY_VERIFICATION_KEYWORDS = (
    "id",
    "identification",
    "passport",
    "license",
    "proof of residence",
    "government",
)

QUALITY_CRITERIA: list[tuple[str, str]] = [
    (
        "NO HALLUCINATION",
        "The letter must not contain any invented information not provided by the user",
    ),
    (
        "NO SENSITIVE INFORMATION",
        "The letter should not request or include unnecessary sensitive personal information",
    ),
    (
        "NO PLACEHOLDERS",
        "The letter must not contain any placeholders like [Insert X] or [Your Name]",
    ),
    (
        "POLICY FOCUS",
        "The letter should clearly identify specific policy violations and community standards breaches",
    ),
    (
        "EVIDENCE INCLUSION",
        "The letter should reference all relevant evidence provided by the user",
    ),
    (
        "CLARITY",
        "The letter should have a clear purpose, specific requests, and expected outcomes",
    ),
    (
        "PROFESSIONALISM",
        "The letter should be professional, respectful, and trauma-informed",
    ),
    (
        "ACTIONABILITY",
        "The letter should include specific actions for the platform to take",
    ),
]

# Phrases that imply correspondence that never happened
HALLUCINATION_PHRASES = (
    "As I mentioned earlier",
    "As stated in my previous correspondence",
    "As per our conversation",
    "You have requested",
    "You have asked me to",
    "As you know",
    "As we discussed",
    "In your email",
    "In your message",
    "As indicated in your report",
)

# Follow-up answers mentioning these likely carry a platform reference number
REFERENCE_NUMBER_MARKERS = ("case", "reference", "report")

LETTER_SIGN_OFF = "Sincerely,"
