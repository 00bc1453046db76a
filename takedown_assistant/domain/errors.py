class DomainError(Exception):
    """Base for domain-level errors."""

    status_code = 500
    retryable = False
    # Set when the wizard may skip the failed (optional) step and carry on
    can_proceed = False
    default_message = "An error occurred while processing your request."

    def __init__(self, message: str | None = None, cause: Exception | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.cause = cause


class ConfigurationError(DomainError):
    """Required configuration (e.g. the AI API key) is missing."""

    default_message = "Missing Anthropic API key"


class ValidationFailed(DomainError):
    status_code = 400
    default_message = "Missing required parameters"


class ResourceNotFound(DomainError):
    status_code = 404
    default_message = "The requested resource was not found."


class ConflictError(DomainError):
    status_code = 409
    default_message = "A conflict occurred while processing your request."


class StageCancelled(DomainError):
    """An in-flight stage was cancelled; its result must not reach the session."""

    status_code = 409
    default_message = "The request was cancelled before it completed."


# AI gateway failures


class AIServiceError(DomainError):
    default_message = "The AI service failed to respond."


class AuthenticationFailed(AIServiceError):
    status_code = 401
    default_message = "Authentication failed"


class RateLimited(AIServiceError):
    status_code = 429
    retryable = True
    default_message = "Rate limit exceeded"

    def __init__(
        self,
        message: str | None = None,
        cause: Exception | None = None,
        retry_after: int | None = None,
    ):
        super().__init__(message, cause)
        self.retry_after = retry_after


class EmptyResponse(AIServiceError):
    default_message = "Invalid response from Anthropic API"


class TransportFailure(AIServiceError):
    retryable = True
    default_message = "Could not reach the AI service."


# Generation (parse/validate) failures


class GenerationError(DomainError):
    default_message = "Failed to parse Anthropic response as JSON"


class MalformedResponse(GenerationError):
    pass


class SchemaMismatch(GenerationError):
    default_message = "The AI response did not have the expected structure."
