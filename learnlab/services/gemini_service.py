"""
Gemini AI service for generating learning guides.
Cleans and normalizes model output into the LearningGuide schema.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import google.generativeai as genai

from learnlab.errors import AIGenerationError, AIParseError, AIUnavailable, LearnLabError
from learnlab.models import LearningGuide, Task, DIFFICULTIES, SOURCE_AI
from learnlab.services.fallback_service import FallbackContentGenerator
from learnlab.services.json_extraction import parse_model_json
from learnlab.services.prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

MAX_TASKS = 4

_RATE_LIMIT_TOKENS = ("429", "too many requests", "rate limit", "resource exhausted", "resourceexhausted", "quota")
_TIMEOUT_TOKENS = ("timed out", "timeout", "deadline exceeded", "deadlineexceeded")


def classify_ai_failure(detail: str) -> str:
    """Map a provider error message onto rate_limited, timeout or provider_error."""
    text = str(detail or "").lower()
    if any(token in text for token in _RATE_LIMIT_TOKENS):
        return "rate_limited"
    if any(token in text for token in _TIMEOUT_TOKENS):
        return "timeout"
    return "provider_error"


@dataclass
class AIResult:
    """Outcome of a single AI attempt: either a guide or the error that stopped it."""
    guide: Optional[LearningGuide] = None
    error: Optional[LearnLabError] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.guide is not None


def _clean_str(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


class GeminiService:
    """Service for interacting with Google's Gemini AI model."""

    def __init__(
        self,
        api_key: str,
        model_name: str,
        prompt_builder: PromptBuilder,
        fallback: FallbackContentGenerator,
        timeout_sec: int = 30,
        model: Any = None,
    ):
        """
        Initialize Gemini service.

        Args:
            api_key: Gemini API key; empty disables the AI path
            model_name: Gemini model identifier
            prompt_builder: Template used for every request
            fallback: Generator whose output backfills missing fields
            timeout_sec: Per-request timeout passed to the SDK
            model: Pre-built model object (anything with generate_content_async)
        """
        self.model_name = model_name
        self.prompt_builder = prompt_builder
        self.fallback = fallback
        self.timeout_sec = timeout_sec

        if model is not None:
            self.model = model
        elif api_key:
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(model_name)
            logger.info(f"Gemini service initialized with model {model_name}")
        else:
            self.model = None
            logger.warning("GEMINI_API_KEY not set, learning guides will use fallback content")

    @property
    def configured(self) -> bool:
        return self.model is not None

    async def generate(self, topic: str) -> LearningGuide:
        """
        Generate a learning guide for the topic.

        Raises:
            AIUnavailable: No API key configured
            AIGenerationError: The model call failed
            AIParseError: The response was not a JSON object
        """
        if self.model is None:
            raise AIUnavailable("AI generation is not configured")

        prompt = self.prompt_builder.build(topic)

        try:
            logger.info(f"Generating learning guide for topic: {topic}")
            response = await self.model.generate_content_async(
                prompt,
                request_options={"timeout": self.timeout_sec},
            )
            # .text raises if the response was blocked or empty
            text = response.text
        except Exception as e:
            kind = classify_ai_failure(str(e))
            logger.error(f"Gemini call failed ({kind}): {e}")
            raise AIGenerationError(f"Learning guide generation failed: {e}", kind=kind) from e

        try:
            data = parse_model_json(text)
        except AIParseError:
            logger.error(f"Failed to parse model response: {text[:500]!r}")
            raise

        return self._normalize_guide(data, topic)

    async def try_generate(self, topic: str) -> AIResult:
        """Run generate() and capture any of its failures in the result."""
        start_time = time.time()
        try:
            guide = await self.generate(topic)
            error = None
        except (AIUnavailable, AIGenerationError, AIParseError) as e:
            guide = None
            error = e
        duration = time.time() - start_time
        return AIResult(guide=guide, error=error, duration=duration)

    def _normalize_guide(self, data: Dict[str, Any], topic: str) -> LearningGuide:
        """Fill gaps in a partially valid response instead of rejecting it."""
        defaults = self.fallback.generate(topic)

        title = _clean_str(data.get("title")) or defaults.title

        explanation = data.get("explanation")
        if isinstance(explanation, list):
            explanation = "\n\n".join(part.strip() for part in explanation if isinstance(part, str) and part.strip())
        explanation = _clean_str(explanation) or defaults.explanation

        tasks = self._normalize_tasks(data.get("tasks"), defaults.tasks)

        related = data.get("related_topics")
        if isinstance(related, list):
            related = [item.strip() for item in related if isinstance(item, str) and item.strip()] or None
        else:
            related = None

        return LearningGuide(
            title=title,
            explanation=explanation,
            tasks=tasks,
            stream=_clean_str(data.get("stream")) or None,
            category=_clean_str(data.get("category")) or None,
            related_topics=related or defaults.related_topics,
            source=SOURCE_AI,
            generated_at=datetime.now(timezone.utc).isoformat(),
            model=self.model_name,
        )

    def _normalize_tasks(self, raw_tasks: Any, default_tasks: List[Task]) -> List[Task]:
        if not isinstance(raw_tasks, list):
            return list(default_tasks)

        tasks: List[Task] = []
        for raw in raw_tasks:
            if len(tasks) >= MAX_TASKS:
                break
            if not isinstance(raw, dict):
                continue

            position = len(tasks)
            default = default_tasks[position % len(default_tasks)]

            difficulty = _clean_str(raw.get("difficulty")).lower()
            if difficulty not in DIFFICULTIES:
                difficulty = DIFFICULTIES[min(position, len(DIFFICULTIES) - 1)]

            tasks.append(Task(
                title=(_clean_str(raw.get("title")) or default.title)[:200],
                description=_clean_str(raw.get("description")) or default.description,
                difficulty=difficulty,
                hint=_clean_str(raw.get("hint")) or default.hint,
            ))

        return tasks or list(default_tasks)
