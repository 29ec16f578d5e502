"""
Error taxonomy for the LearnLab backend.
Every error carries a stable machine-readable code and the HTTP status it maps to.
"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from learnlab.models import LearningGuide, RateLimitInfo


class LearnLabError(Exception):
    """Base class for errors that map onto an HTTP response."""

    error_code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, fallback: Optional["LearningGuide"] = None):
        super().__init__(message)
        self.message = message
        # Guide returned alongside the error so clients never hit a dead end
        self.fallback = fallback


class ValidationError(LearnLabError, ValueError):
    error_code = "VALIDATION_ERROR"
    status_code = 400


class RateLimitExceeded(LearnLabError):
    error_code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    def __init__(self, message: str, retry_after: int, rate_state: Optional["RateLimitInfo"] = None):
        super().__init__(message)
        self.retry_after = retry_after
        self.rate_state = rate_state


class AIUnavailable(LearnLabError):
    error_code = "AI_UNAVAILABLE"
    status_code = 503


class AIGenerationError(LearnLabError):
    """The model call itself failed (network, quota, timeout, blocked output)."""

    error_code = "AI_GENERATION_FAILED"
    status_code = 502

    def __init__(self, message: str, kind: str = "provider_error"):
        super().__init__(message)
        self.kind = kind


class AIParseError(LearnLabError):
    error_code = "AI_PARSE_FAILED"
    status_code = 502


class PersistenceError(LearnLabError):
    error_code = "PERSISTENCE_ERROR"
    status_code = 500


class SlugConflictError(PersistenceError):
    error_code = "SLUG_CONFLICT"
    status_code = 409


class PersistenceDisabled(LearnLabError):
    error_code = "PERSISTENCE_DISABLED"
    status_code = 503


class InternalError(LearnLabError):
    error_code = "INTERNAL_ERROR"
    status_code = 500
