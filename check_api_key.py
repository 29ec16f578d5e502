#!/usr/bin/env python3
"""
Check that the configured Gemini key can produce a learning guide.
Usage: python check_api_key.py [topic]
"""
import asyncio
import sys

from learnlab.config import config
from learnlab.services.fallback_service import fallback_generator
from learnlab.services.gemini_service import GeminiService
from learnlab.services.prompt_builder import PromptBuilder

PLACEHOLDER_KEYS = {"your_gemini_api_key_here", "your-api-key"}

REMEDIATION = {
    "rate_limited": [
        "You may have exceeded your API quota",
        "Wait a moment and try again",
        "Check your quota at: https://aistudio.google.com/app/apikey",
    ],
    "timeout": [
        "Check your internet connection",
        "Raise AI_TIMEOUT_SEC in .env if your network is slow",
    ],
    "provider_error": [
        "Check that your API key is correct and has not expired",
        f"Check that GEMINI_MODEL ({config.GEMINI_MODEL}) is available to your key",
        "Get a new key from: https://aistudio.google.com/app/apikey",
    ],
}


async def check_key(topic: str) -> bool:
    """Generate one guide with the configured key and report the outcome."""
    api_key = config.GEMINI_API_KEY

    if not api_key:
        print("❌ ERROR: GEMINI_API_KEY not found in environment variables")
        print("💡 Add GEMINI_API_KEY=your_actual_key to .env (the server still works without it, using fallback guides)")
        return False

    if api_key in PLACEHOLDER_KEYS:
        print("❌ ERROR: GEMINI_API_KEY is still set to a placeholder value")
        print("📝 Get your API key from: https://aistudio.google.com/app/apikey")
        return False

    print(f"✅ API Key found: {api_key[:10]}...{api_key[-4:] if len(api_key) > 14 else '***'}")
    print(f"🤖 Model: {config.GEMINI_MODEL}")
    print(f"📡 Generating a learning guide for '{topic}'...")

    service = GeminiService(
        api_key=api_key,
        model_name=config.GEMINI_MODEL,
        prompt_builder=PromptBuilder(task_count=config.TASK_COUNT),
        fallback=fallback_generator,
        timeout_sec=config.AI_TIMEOUT_SEC,
    )
    result = await service.try_generate(topic)

    if result.ok:
        guide = result.guide
        print(f"✅ Guide received in {result.duration:.1f}s: {guide.title}")
        print(f"   Explanation: {len(guide.explanation)} characters")
        for task in guide.tasks:
            print(f"   - [{task.difficulty}] {task.title}")
        return True

    error = result.error
    print(f"❌ ERROR ({error.error_code}): {error.message}")
    kind = getattr(error, "kind", None)
    if kind in REMEDIATION:
        print(f"💡 This looks like a {kind.replace('_', ' ')} issue:")
        for number, step in enumerate(REMEDIATION[kind], start=1):
            print(f"   {number}. {step}")
    elif error.error_code == "AI_PARSE_FAILED":
        print("💡 The model answered but not with a JSON guide; the server would serve fallback content instead")
    return False


if __name__ == "__main__":
    print("🧪 Gemini API Key Check")
    print("=" * 50)

    topic = " ".join(sys.argv[1:]) or "Photosynthesis"
    success = asyncio.run(check_key(topic))

    print("=" * 50)
    if success:
        print("🎉 Gemini is ready to generate learning guides.")
        sys.exit(0)
    print("Fix the issues above and run this script again.")
    sys.exit(1)
