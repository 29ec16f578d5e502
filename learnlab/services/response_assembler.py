"""
Builds the JSON payloads returned by the topic endpoints.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from learnlab.errors import LearnLabError, RateLimitExceeded
from learnlab.models import (
    ErrorDetail,
    ErrorResponse,
    GuideResponse,
    LearningGuide,
    RateLimitInfo,
    ServerInfo,
    error_payload,
)


class ResponseAssembler:
    """Wraps guides and errors with rate-limit and server metadata."""

    def __init__(self, ai_enabled: bool, store_enabled: bool = False):
        self.ai_enabled = ai_enabled
        self.store_enabled = store_enabled

    def _timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def assemble(
        self,
        topic: str,
        guide: LearningGuide,
        rate_state: RateLimitInfo,
        fallback_reason: Optional[str] = None,
    ) -> GuideResponse:
        """
        Wrap a guide for a successful response.

        Args:
            topic: Validated topic as requested
            guide: AI, stored or fallback guide
            rate_state: Window state after this request was admitted
            fallback_reason: Error code that pushed the request onto fallback content

        Returns:
            GuideResponse ready for serialization
        """
        return GuideResponse(
            success=True,
            topic=topic,
            guide=guide,
            source=guide.source,
            fallback_reason=fallback_reason,
            rate_limit=rate_state,
            server=ServerInfo(
                ai_enabled=self.ai_enabled,
                store_enabled=self.store_enabled,
                timestamp=self._timestamp(),
            ),
        )

    def assemble_error(
        self,
        exc: LearnLabError,
        details: Optional[List[ErrorDetail]] = None,
    ) -> Dict[str, Any]:
        """Wrap an error, carrying the fallback guide and retry hints when present."""
        response = ErrorResponse(
            error=exc.error_code,
            message=exc.message,
            details=details,
            timestamp=self._timestamp(),
            fallback=exc.fallback,
        )

        if isinstance(exc, RateLimitExceeded):
            response.retry_after = exc.retry_after
            response.rate_limit = exc.rate_state

        return error_payload(response)
