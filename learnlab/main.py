"""
FastAPI main application for the LearnLab backend.
Handles CORS, error handling, static front-end and API routing.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from learnlab.config import Config, config
from learnlab.errors import LearnLabError, PersistenceError, RateLimitExceeded
from learnlab.middleware import json_body_middleware, observability_middleware
from learnlab.models import ErrorDetail, ErrorResponse, error_payload
from learnlab.routes import AVAILABLE_ENDPOINTS, api_router
from learnlab.services.fallback_service import FallbackContentGenerator, fallback_generator
from learnlab.services.gemini_service import GeminiService
from learnlab.services.learning_service import LearningService
from learnlab.services.logging_service import logger as structured_logger
from learnlab.services.prompt_builder import PromptBuilder
from learnlab.services.rate_limiter import RateLimiter
from learnlab.services.response_assembler import ResponseAssembler
from learnlab.services.topic_store import TopicStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the store on startup and log a session summary on shutdown."""
    app_config: Config = app.state.config
    service: LearningService = app.state.learning_service

    print(f"🚀 LearnLab Backend starting up...")
    print(f"📍 Server will run on {app_config.HOST}:{app_config.PORT}")
    print(f"📚 API endpoint: http://{app_config.HOST}:{app_config.PORT}/api/topic?q=your-topic")
    print(f"🤖 AI mode: {'Gemini ' + app_config.GEMINI_MODEL if service.gateway.configured else 'fallback content only'}")
    print(f"⏱️  Rate limit: {service.limiter.max_requests} requests per {service.limiter.window_ms / 1000:g}s")

    if service.store is not None:
        try:
            await run_in_threadpool(service.store.init_schema, app_config.DB_SEED_SAMPLES)
            print(f"✅ Database initialized successfully")
        except PersistenceError as e:
            # Keep serving; lookups report PERSISTENCE_ERROR until the database is back
            print(f"❌ Database initialization failed: {e.message}")

    yield

    structured_logger.log_session_summary(
        rate_limit={
            "admitted": service.limiter.admitted_total,
            "rejected": service.limiter.rejected_total,
        },
    )
    if service.store is not None:
        service.store.dispose()
    print(f"👋 LearnLab Backend stopped")


def create_app(
    app_config: Optional[Config] = None,
    *,
    ai_model: Any = None,
    store: Optional[TopicStore] = None,
    fallback: Optional[FallbackContentGenerator] = None,
    limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build the application and its components.

    Args:
        app_config: Configuration (defaults to the environment-backed global)
        ai_model: Pre-built model object used instead of the Gemini SDK model
        store: Topic store (defaults to one built from the config when enabled)
        fallback: Fallback generator (defaults to the global instance)
        limiter: Rate limiter (defaults to one built from the config)
    """
    app_config = app_config or config
    app_config.validate()

    fallback = fallback or fallback_generator
    gateway = GeminiService(
        api_key=app_config.GEMINI_API_KEY,
        model_name=app_config.GEMINI_MODEL,
        prompt_builder=PromptBuilder(task_count=app_config.TASK_COUNT),
        fallback=fallback,
        timeout_sec=app_config.AI_TIMEOUT_SEC,
        model=ai_model,
    )
    limiter = limiter or RateLimiter(
        max_requests=app_config.RATE_LIMIT_MAX_REQUESTS,
        window_ms=app_config.RATE_LIMIT_WINDOW_MS,
    )
    if store is None and app_config.store_enabled:
        store = TopicStore(app_config.database_url)

    assembler = ResponseAssembler(ai_enabled=gateway.configured, store_enabled=store is not None)

    app = FastAPI(
        title="LearnLab Backend",
        description="Learning guides for any topic, generated by Gemini with built-in fallback content",
        version=app_config.VERSION,
        docs_url="/docs" if app_config.DEBUG else None,  # Only show docs in debug mode
        redoc_url="/redoc" if app_config.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.config = app_config
    app.state.learning_service = LearningService(
        gateway=gateway,
        fallback=fallback,
        limiter=limiter,
        assembler=assembler,
        store=store,
    )

    # Configure CORS
    allowed_origins = [origin.strip() for origin in app_config.ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Add custom middleware (the last one added runs first)
    app.middleware("http")(json_body_middleware)
    app.middleware("http")(observability_middleware)

    @app.exception_handler(LearnLabError)
    async def handle_learnlab_error(request: Request, exc: LearnLabError) -> JSONResponse:
        headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimitExceeded) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=assembler.assemble_error(exc),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            ErrorDetail(
                field=".".join(str(part) for part in error.get("loc", ()) if part != "body") or None,
                message=error.get("msg", "Invalid value"),
                code=error.get("type"),
            )
            for error in exc.errors()
        ]
        context = getattr(request.state, "context", None)
        if context:
            context.add_error("VALIDATION_ERROR", "Request body failed validation")
        return JSONResponse(
            status_code=400,
            content=error_payload(ErrorResponse(
                error="VALIDATION_ERROR",
                message="Title and explanation are required; tasks need a title, description and difficulty",
                details=details,
                timestamp=_timestamp(),
            )),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content=error_payload(ErrorResponse(
                    error="NOT_FOUND",
                    message=f"No route for {request.method} {request.url.path}",
                    timestamp=_timestamp(),
                    available=AVAILABLE_ENDPOINTS,
                )),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(ErrorResponse(
                error="HTTP_ERROR",
                message=str(exc.detail),
                timestamp=_timestamp(),
            )),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content=error_payload(ErrorResponse(
                error="INTERNAL_ERROR",
                message="Internal server error",
                timestamp=_timestamp(),
            )),
        )

    # Include API routes
    app.include_router(api_router)

    # Serve the bundled front-end
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.get("/", include_in_schema=False)
    async def index():
        return FileResponse(STATIC_DIR / "index.html")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "learnlab.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower()
    )
