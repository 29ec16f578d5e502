"""
Request pipeline for topic lookups.

validate -> rate check -> stored topic (persisted variant) -> AI -> fallback -> assemble
"""
import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from learnlab.errors import AIUnavailable, InternalError, LearnLabError, PersistenceDisabled, RateLimitExceeded
from learnlab.models import GuideResponse, TopicCreate, TopicCreatedResponse
from learnlab.services.fallback_service import FallbackContentGenerator
from learnlab.services.gemini_service import GeminiService
from learnlab.services.logging_service import RequestContext, logger as structured_logger
from learnlab.services.rate_limiter import RateLimiter
from learnlab.services.response_assembler import ResponseAssembler
from learnlab.services.topic_store import TopicStore
from learnlab.services.validation_service import validation_service

logger = logging.getLogger(__name__)


class LearningService:
    """Turns a free-text topic into a GuideResponse under every failure mode."""

    def __init__(
        self,
        gateway: GeminiService,
        fallback: FallbackContentGenerator,
        limiter: RateLimiter,
        assembler: ResponseAssembler,
        store: Optional[TopicStore] = None,
    ):
        self.gateway = gateway
        self.fallback = fallback
        self.limiter = limiter
        self.assembler = assembler
        self.store = store

    async def learn(
        self,
        raw_topic: Optional[str],
        *,
        field: str = "q",
        require_ai: bool = False,
        use_store: bool = True,
        context: Optional[RequestContext] = None,
    ) -> GuideResponse:
        """
        Produce a learning guide response for a topic.

        Args:
            raw_topic: Query parameter value as received (None if missing)
            field: Query parameter name, for error messages
            require_ai: Fail with AIUnavailable instead of falling back when no key is configured
            use_store: Look the topic up in the store before calling the model
            context: Request context for structured logging

        Raises:
            ValidationError: Missing or blank topic (no fallback attached)
            RateLimitExceeded, AIUnavailable, PersistenceError, InternalError:
                each carrying a fallback guide for the topic
        """
        try:
            topic = validation_service.validate_topic(raw_topic, field=field)
        except LearnLabError as e:
            structured_logger.log_validation_error(context, field, e.message, raw_topic)
            raise

        if context:
            context.set_topic_hash(topic)

        try:
            return await self._run(topic, require_ai=require_ai, use_store=use_store, context=context)
        except LearnLabError as e:
            if e.fallback is None:
                e.fallback = self.fallback.generate(topic)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error while building guide for topic: {topic}")
            if context:
                context.add_error("INTERNAL_ERROR", str(e))
            raise InternalError(
                "Something went wrong while building your guide. Here is a basic guide in the meantime.",
                fallback=self.fallback.generate(topic),
            ) from e

    async def _run(
        self,
        topic: str,
        *,
        require_ai: bool,
        use_store: bool,
        context: Optional[RequestContext],
    ) -> GuideResponse:
        # Unconfigured strict requests must not spend a rate slot
        if require_ai and not self.gateway.configured:
            raise AIUnavailable(
                "AI generation is not configured. Set GEMINI_API_KEY in your .env file and restart "
                "the server, or use /api/topic which always answers from fallback content."
            )

        try:
            rate_state = self.limiter.acquire()
        except RateLimitExceeded as e:
            structured_logger.log_rate_limit(
                context, self.limiter.max_requests, self.limiter.window_ms / 1000, e.retry_after
            )
            raise

        if use_store and self.store is not None:
            stored = await run_in_threadpool(self.store.fetch, topic)
            if stored is not None:
                structured_logger.log_persistence(context, "fetch", found=True)
                if context:
                    context.source = stored.source
                return self.assembler.assemble(topic, stored, rate_state)

        fallback_reason = None
        if self.gateway.configured:
            result = await self.gateway.try_generate(topic)
            structured_logger.log_ai_call(
                context,
                self.gateway.model_name,
                result.duration,
                success=result.ok,
                error_code=None if result.ok else result.error.error_code,
                error=None if result.ok else result.error.message,
            )
            if result.ok:
                if context:
                    context.source = result.guide.source
                return self.assembler.assemble(topic, result.guide, rate_state)
            fallback_reason = result.error.error_code
        else:
            fallback_reason = AIUnavailable.error_code

        guide = self.fallback.generate(topic)
        structured_logger.log_fallback(context, guide.source, fallback_reason)
        if context:
            context.source = guide.source
            context.fallback_reason = fallback_reason
        return self.assembler.assemble(topic, guide, rate_state, fallback_reason=fallback_reason)

    async def add_topic(self, topic: TopicCreate, context: Optional[RequestContext] = None) -> TopicCreatedResponse:
        """
        Persist a topic with its tasks.

        Raises:
            PersistenceDisabled: No store configured
            SlugConflictError: Title collides with an existing slug
            PersistenceError: Database failure
        """
        if self.store is None:
            raise PersistenceDisabled("Topic storage is disabled. Set DB_ENABLED=true or DATABASE_URL to enable it.")

        try:
            topic_id, slug = await run_in_threadpool(self.store.store, topic)
        except LearnLabError as e:
            structured_logger.log_persistence(context, "store", success=False,
                                              error_code=e.error_code, error=e.message)
            raise

        structured_logger.log_persistence(context, "store", topic_id=topic_id, slug=slug)
        return TopicCreatedResponse(topicId=topic_id, slug=slug)
