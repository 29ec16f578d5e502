"""
Helpers for pulling a JSON object out of free-text model output.
"""
import json
import re
from typing import Any, Dict, Optional

from learnlab.errors import AIParseError

# ```json ... ``` (language tag optional) wrapping the whole response
_FENCE_PATTERN = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL)

# Greedy: first "{" through last "}"
_BRACE_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


def strip_code_fence(text: str) -> Optional[str]:
    """
    Return the body of a fenced code block that wraps the whole text.

    Args:
        text: Raw model output

    Returns:
        Inner text, or None if the text is not wrapped in a fence
    """
    match = _FENCE_PATTERN.match(text.strip())
    if not match:
        return None
    return match.group(1).strip()


def extract_brace_block(text: str) -> Optional[str]:
    """Return the span from the first '{' to the last '}', or None."""
    match = _BRACE_PATTERN.search(text)
    if not match:
        return None
    return match.group(0)


def clean_model_output(text: str) -> str:
    fenced = strip_code_fence(text)
    if fenced is not None:
        return fenced
    block = extract_brace_block(text)
    if block is not None:
        return block
    return text.strip()


def parse_model_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from model output after cleanup.

    Raises:
        AIParseError: If the cleaned text is not a JSON object
    """
    clean_text = clean_model_output(text or "")
    try:
        data = json.loads(clean_text)
    except (ValueError, RecursionError) as e:
        raise AIParseError(f"Invalid JSON response from model: {e}") from e

    if not isinstance(data, dict):
        raise AIParseError(f"Expected a JSON object, got {type(data).__name__}")

    return data
