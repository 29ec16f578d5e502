"""
Validation service for the LearnLab backend.
Implements server-side input rules for topics.
"""
import re
import logging
from typing import Optional

from learnlab.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_TOPIC_LENGTH = 200

SUSPICIOUS_PATTERNS = [
    r'<script[^>]*>',
    r'javascript:',
    r'data:text/html',
    r'vbscript:',
    r'onload\s*=',
    r'onerror\s*=',
]


class ValidationService:
    """Service for validating inputs and extracting request metadata."""

    @classmethod
    def validate_topic(cls, topic: Optional[str], field: str = "q") -> str:
        """
        Validate a free-text topic.

        Args:
            topic: User-provided topic string (may be None when the param is missing)
            field: Query parameter name, used in error messages

        Returns:
            Trimmed topic

        Raises:
            ValidationError: If the topic is missing, blank or unsafe
        """
        if topic is None:
            raise ValidationError(f"Search query is required (use ?{field}=your-topic)")

        # Remove control characters, then strip whitespace
        topic = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', topic).strip()

        if not topic:
            raise ValidationError("Search query cannot be blank")

        if len(topic) > MAX_TOPIC_LENGTH:
            raise ValidationError(f"Topic must be no more than {MAX_TOPIC_LENGTH} characters long")

        for pattern in SUSPICIOUS_PATTERNS:
            if re.search(pattern, topic, re.IGNORECASE):
                raise ValidationError("Topic contains potentially unsafe content")

        # Ensure topic has some meaningful content
        if not re.search(r'\w', topic):
            raise ValidationError("Topic must contain letters or numbers")

        return topic

    @classmethod
    def get_client_ip(cls, request) -> str:
        """
        Extract client IP address from request.

        Args:
            request: FastAPI request object

        Returns:
            Client IP address
        """
        # Check for forwarded headers first (for proxies/load balancers)
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        # Fall back to direct client IP
        return request.client.host if request.client else "unknown"


# Global validation service instance
validation_service = ValidationService()
