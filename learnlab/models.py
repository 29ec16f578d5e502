"""
Pydantic models for API request/response contracts.
LearningGuide is the canonical shape every code path must produce.
"""
from typing import Any, Dict, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field


Difficulty = Literal["beginner", "intermediate", "advanced"]

DIFFICULTIES = ("beginner", "intermediate", "advanced")

# Guide sources
SOURCE_AI = "ai"
SOURCE_DATABASE = "database"
SOURCE_CURATED = "curated"
SOURCE_TEMPLATE = "template"


# Core content models

class Task(BaseModel):
    """A single practice task attached to a topic."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200, description="Task title")
    description: str = Field(..., min_length=1, description="What the learner should do")
    difficulty: Difficulty = Field(..., description="beginner, intermediate or advanced")
    hint: Optional[str] = Field(None, description="Optional nudge towards the answer")


class LearningGuide(BaseModel):
    """Learning guide returned for every topic request."""
    title: str = Field(..., min_length=1, description="Display title")
    explanation: str = Field(..., min_length=1, description="Long-form explanation (markdown)")
    tasks: List[Task] = Field(default_factory=list, description="1-4 practice tasks")
    stream: Optional[str] = Field(None, description="Study stream, e.g. cse or science")
    category: Optional[str] = Field(None, description="Subject category")
    related_topics: Optional[List[str]] = Field(None, description="Suggested follow-up topics")
    source: str = Field(..., description="ai, database, curated or template")
    generated_at: Optional[str] = Field(None, description="ISO timestamp (AI guides only)")
    model: Optional[str] = Field(None, description="Model identifier (AI guides only)")


# Response Models (what backend sends to frontend)

class RateLimitInfo(BaseModel):
    """Snapshot of the shared rate window."""
    current: int = Field(..., description="Requests in the current window")
    limit: int = Field(..., description="Maximum requests per window")
    remaining: int = Field(..., description="Requests left in the current window")
    reset_in: int = Field(..., description="Seconds until the oldest request leaves the window")


class ServerInfo(BaseModel):
    ai_enabled: bool
    store_enabled: bool = False
    timestamp: str


class GuideResponse(BaseModel):
    """Response for topic lookup endpoints."""
    success: bool = True
    topic: str
    guide: LearningGuide
    source: str
    fallback_reason: Optional[str] = Field(None, description="Error code that triggered fallback content")
    rate_limit: RateLimitInfo
    server: ServerInfo


class TopicCreatedResponse(BaseModel):
    success: bool = True
    message: str = "Topic added successfully"
    topicId: int
    slug: str


class HealthResponse(BaseModel):
    status: str
    mode: Literal["ai", "fallback"]
    ai_configured: bool
    database: Literal["disabled", "connected", "unavailable"]
    requests_this_minute: int
    limit: int
    window_seconds: float
    timestamp: str
    version: str


# Request Models (what frontend sends to backend)

class TopicCreate(BaseModel):
    """Request body for adding a topic to the store."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200, description="Topic title")
    explanation: str = Field(..., min_length=1, description="Topic explanation")
    tasks: List[Task] = Field(default_factory=list, max_length=4, description="Up to 4 tasks")
    stream: Optional[str] = Field(None, max_length=50, description="Study stream")
    category: Optional[str] = Field(None, max_length=100, description="Subject category")


# Error Response Models

class ErrorDetail(BaseModel):
    """Individual error detail."""
    field: Optional[str] = Field(None, description="Field that caused the error")
    message: str = Field(..., description="Error message")
    code: Optional[str] = Field(None, description="Error code")


class ErrorResponse(BaseModel):
    """Standard error response format."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[List[ErrorDetail]] = Field(None, description="Detailed error information")
    timestamp: str = Field(..., description="ISO timestamp of error")
    retry_after: Optional[int] = Field(None, description="Seconds to wait before retrying")
    rate_limit: Optional[RateLimitInfo] = None
    fallback: Optional[LearningGuide] = Field(None, description="Usable guide for the requested topic")
    available: Optional[List[str]] = Field(None, description="Available routes (404 only)")


def error_payload(response: ErrorResponse) -> Dict[str, Any]:
    """Serialize an error response without empty optional fields."""
    return response.model_dump(exclude_none=True)
