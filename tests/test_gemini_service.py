import json
import unittest

from learnlab.errors import AIGenerationError, AIParseError, AIUnavailable
from learnlab.services.fallback_service import FallbackContentGenerator
from learnlab.services.gemini_service import GeminiService, classify_ai_failure
from learnlab.services.prompt_builder import PromptBuilder


class _FakeResponse:
    def __init__(self, text: str) -> None:
        self.text = text


class _FakeModel:
    """Stands in for genai.GenerativeModel; records prompts and replays a fixed reply."""

    def __init__(self, text: str = "", error: Exception = None) -> None:
        self.reply = text
        self.error = error
        self.prompts = []
        self.request_options = []

    async def generate_content_async(self, prompt, request_options=None):
        self.prompts.append(prompt)
        self.request_options.append(request_options)
        if self.error is not None:
            raise self.error
        return _FakeResponse(self.reply)


class _BlockedResponse:
    @property
    def text(self):
        raise ValueError("The response was blocked by safety filters")


class _BlockedModel:
    async def generate_content_async(self, prompt, request_options=None):
        return _BlockedResponse()


def _service(model, api_key: str = "") -> GeminiService:
    return GeminiService(
        api_key=api_key,
        model_name="gemini-test",
        prompt_builder=PromptBuilder(),
        fallback=FallbackContentGenerator(),
        timeout_sec=12,
        model=model,
    )


FULL_REPLY = {
    "title": "Binary Search",
    "explanation": "Binary search halves the search space each step.",
    "tasks": [
        {"title": "Trace it", "description": "Trace a search by hand", "difficulty": "beginner", "hint": "Use 8 items"},
        {"title": "Code it", "description": "Write it iteratively", "difficulty": "intermediate", "hint": "Watch mid"},
        {"title": "Prove it", "description": "Prove O(log n)", "difficulty": "advanced", "hint": "Count halvings"},
    ],
    "related_topics": ["Sorting", "Big O"],
}


class ClassifyFailureTests(unittest.TestCase):
    def test_rate_limit_messages(self) -> None:
        self.assertEqual(classify_ai_failure("429 Resource exhausted"), "rate_limited")
        self.assertEqual(classify_ai_failure("Quota exceeded for requests"), "rate_limited")

    def test_timeout_messages(self) -> None:
        self.assertEqual(classify_ai_failure("504 Deadline Exceeded"), "timeout")
        self.assertEqual(classify_ai_failure("Read timed out"), "timeout")

    def test_other_messages(self) -> None:
        self.assertEqual(classify_ai_failure("500 Internal error"), "provider_error")
        self.assertEqual(classify_ai_failure(None), "provider_error")


class GeminiServiceTests(unittest.IsolatedAsyncioTestCase):
    async def test_generate_returns_normalized_guide(self) -> None:
        model = _FakeModel("```json\n" + json.dumps(FULL_REPLY) + "\n```")
        service = _service(model)

        guide = await service.generate("binary search")

        self.assertEqual(guide.title, "Binary Search")
        self.assertEqual(guide.source, "ai")
        self.assertEqual(guide.model, "gemini-test")
        self.assertIsNotNone(guide.generated_at)
        self.assertEqual([t.title for t in guide.tasks], ["Trace it", "Code it", "Prove it"])
        self.assertEqual(guide.related_topics, ["Sorting", "Big O"])

    async def test_prompt_and_timeout_passed_to_model(self) -> None:
        model = _FakeModel(json.dumps(FULL_REPLY))
        await _service(model).generate("binary search")

        self.assertIn('"binary search"', model.prompts[0])
        self.assertEqual(model.request_options[0], {"timeout": 12})

    async def test_missing_fields_are_backfilled(self) -> None:
        model = _FakeModel(json.dumps({"title": "  Quantum Entanglement  "}))

        guide = await _service(model).generate("quantum entanglement")

        self.assertEqual(guide.title, "Quantum Entanglement")
        self.assertIn("quantum entanglement", guide.explanation.lower())
        self.assertEqual(len(guide.tasks), 3)
        self.assertEqual(guide.source, "ai")
        self.assertIsNotNone(guide.related_topics)

    async def test_explanation_list_is_joined(self) -> None:
        model = _FakeModel(json.dumps({"title": "T", "explanation": ["First part", "  ", "Second part"]}))

        guide = await _service(model).generate("topic")

        self.assertEqual(guide.explanation, "First part\n\nSecond part")

    async def test_invalid_difficulty_uses_position(self) -> None:
        reply = dict(FULL_REPLY, tasks=[
            {"title": "One", "description": "d", "difficulty": "easy"},
            {"title": "Two", "description": "d", "difficulty": "HARD"},
            {"title": "Three", "description": "d", "difficulty": "Advanced"},
        ])
        guide = await _service(_FakeModel(json.dumps(reply))).generate("binary search")

        self.assertEqual([t.difficulty for t in guide.tasks], ["beginner", "intermediate", "advanced"])

    async def test_tasks_are_capped_at_four(self) -> None:
        tasks = [{"title": f"Task {i}", "description": "d", "difficulty": "beginner"} for i in range(7)]
        guide = await _service(_FakeModel(json.dumps(dict(FULL_REPLY, tasks=tasks)))).generate("binary search")

        self.assertEqual(len(guide.tasks), 4)
        self.assertEqual(guide.tasks[3].title, "Task 3")

    async def test_malformed_tasks_are_skipped_or_backfilled(self) -> None:
        reply = dict(FULL_REPLY, tasks=["not a task", {"difficulty": "advanced"}, {"title": "x" * 300, "description": "d"}])
        guide = await _service(_FakeModel(json.dumps(reply))).generate("binary search")

        self.assertEqual(len(guide.tasks), 2)
        self.assertEqual(guide.tasks[0].difficulty, "advanced")
        self.assertTrue(guide.tasks[0].title)
        self.assertEqual(len(guide.tasks[1].title), 200)

    async def test_non_list_tasks_fall_back_to_template_tasks(self) -> None:
        reply = dict(FULL_REPLY, tasks="do some exercises")
        guide = await _service(_FakeModel(json.dumps(reply))).generate("quantum entanglement")

        self.assertEqual(guide.tasks[0].title, "Research and define")

    async def test_unparseable_reply_raises_parse_error(self) -> None:
        with self.assertRaises(AIParseError):
            await _service(_FakeModel("Sorry, I can't do that.")).generate("binary search")

    async def test_model_exception_is_classified(self) -> None:
        model = _FakeModel(error=RuntimeError("429 Resource exhausted"))

        with self.assertRaises(AIGenerationError) as ctx:
            await _service(model).generate("binary search")

        self.assertEqual(ctx.exception.kind, "rate_limited")
        self.assertEqual(ctx.exception.error_code, "AI_GENERATION_FAILED")

    async def test_blocked_response_is_generation_error(self) -> None:
        with self.assertRaises(AIGenerationError) as ctx:
            await _service(_BlockedModel()).generate("binary search")
        self.assertEqual(ctx.exception.kind, "provider_error")

    async def test_unconfigured_service_raises_unavailable(self) -> None:
        service = _service(None, api_key="")

        self.assertFalse(service.configured)
        with self.assertRaises(AIUnavailable):
            await service.generate("binary search")

    async def test_try_generate_captures_failure(self) -> None:
        result = await _service(_FakeModel(error=TimeoutError("Request timed out"))).try_generate("binary search")

        self.assertFalse(result.ok)
        self.assertIsNone(result.guide)
        self.assertIsInstance(result.error, AIGenerationError)
        self.assertEqual(result.error.kind, "timeout")
        self.assertGreaterEqual(result.duration, 0)

    async def test_try_generate_success(self) -> None:
        result = await _service(_FakeModel(json.dumps(FULL_REPLY))).try_generate("binary search")

        self.assertTrue(result.ok)
        self.assertIsNone(result.error)
        self.assertEqual(result.guide.title, "Binary Search")


if __name__ == "__main__":
    unittest.main()
