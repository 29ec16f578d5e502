"""
API routes for the LearnLab backend.
Defines all endpoints with their request/response contracts.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, Query, Request
from starlette.concurrency import run_in_threadpool

from learnlab.models import GuideResponse, HealthResponse, TopicCreate, TopicCreatedResponse
from learnlab.services.learning_service import LearningService

# Set up logging
logger = logging.getLogger(__name__)

# Create router
api_router = APIRouter(prefix="/api", tags=["LearnLab API"])

AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /api",
    "GET /api/info",
    "GET /api/health",
    "GET /api/topic?q=<topic>",
    "GET /api/learn?topic=<topic>",
    "POST /api/topic",
]


def get_learning_service(request: Request) -> LearningService:
    return request.app.state.learning_service


def _context(request: Request):
    return getattr(request.state, "context", None)


@api_router.get("/topic", response_model=GuideResponse, response_model_exclude_none=True)
async def get_topic(
    request: Request,
    q: Optional[str] = Query(None, description="Topic to learn about"),
    service: LearningService = Depends(get_learning_service),
) -> GuideResponse:
    """
    Look up a learning guide.

    Serves a stored topic when the store is enabled, otherwise asks Gemini and
    falls back to built-in content on any AI failure.
    """
    return await service.learn(q, field="q", context=_context(request))


@api_router.get("/learn", response_model=GuideResponse, response_model_exclude_none=True)
async def learn_topic(
    request: Request,
    topic: Optional[str] = Query(None, description="Topic to learn about"),
    service: LearningService = Depends(get_learning_service),
) -> GuideResponse:
    """Generate a learning guide with Gemini; 503 when no API key is configured."""
    return await service.learn(topic, field="topic", require_ai=True, use_store=False, context=_context(request))


@api_router.post("/topic", response_model=TopicCreatedResponse)
async def add_topic(
    payload: TopicCreate,
    request: Request,
    service: LearningService = Depends(get_learning_service),
) -> TopicCreatedResponse:
    """Add a topic and its tasks to the store."""
    logger.info(f"Adding topic: {payload.title}")
    return await service.add_topic(payload, context=_context(request))


@api_router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check with AI mode, store status and current rate window usage."""
    app_config = request.app.state.config
    service: LearningService = request.app.state.learning_service
    rate_state = service.limiter.snapshot()

    if service.store is None:
        database = "disabled"
    else:
        database = "connected" if await run_in_threadpool(service.store.ping) else "unavailable"

    return HealthResponse(
        status="healthy",
        mode="ai" if service.gateway.configured else "fallback",
        ai_configured=service.gateway.configured,
        database=database,
        requests_this_minute=rate_state.current,
        limit=rate_state.limit,
        window_seconds=service.limiter.window_ms / 1000,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=app_config.VERSION,
    )


@api_router.get("")
@api_router.get("/info")
async def api_info(request: Request) -> Dict[str, Any]:
    """Static description of the API and its capabilities."""
    app_config = request.app.state.config
    service: LearningService = request.app.state.learning_service
    return {
        "name": "LearnLab API",
        "version": app_config.VERSION,
        "description": "Learning guides for any topic: an explanation plus practice tasks from beginner to advanced",
        "endpoints": {
            "GET /api/topic?q=<topic>": "Learning guide from the store, Gemini or built-in content (always 200 for a valid topic)",
            "GET /api/learn?topic=<topic>": "Learning guide generated by Gemini (503 when AI is not configured)",
            "POST /api/topic": "Add a topic with {title, explanation, tasks[], stream?, category?}",
            "GET /api/health": "Service status and rate limit usage",
            "GET /api/info": "This document",
        },
        "features": {
            "ai_generation": service.gateway.configured,
            "model": service.gateway.model_name if service.gateway.configured else None,
            "topic_store": service.store is not None,
            "curated_topics": list(service.fallback.curated.keys()),
        },
        "limits": {
            "max_requests": service.limiter.max_requests,
            "window_seconds": service.limiter.window_ms / 1000,
            "tasks_per_guide": "1-4",
        },
    }
