"""
Prompt template for learning guide generation.
"""

TOPIC_PLACEHOLDER = "{{topic}}"
TASK_COUNT_PLACEHOLDER = "{{task_count}}"

LEARNING_GUIDE_TEMPLATE = """
You are an expert educator. Create a learning guide for the topic: "{{topic}}"

Title:
- Use Title Case and keep it under 8 words
- Name the subject clearly, e.g. "{{topic}}" rewritten as a proper heading

Explanation:
- Explain "{{topic}}" for a motivated beginner, building from basics to advanced ideas
- 250-450 words, organised into short sections with **bold** section headings
- Use bullet points (starting with "- ") for lists of concepts, and `code` formatting where relevant
- Include at least one concrete example or real-world application

Tasks:
- Write exactly {{task_count}} practice tasks about "{{topic}}"
- Order them from easiest to hardest; use each of "beginner", "intermediate" and "advanced" at least once
- Each task needs a short title, a specific actionable description and a one-sentence hint

Return JSON ONLY with this exact structure (no markdown fences, no extra text):
{
  "title": "Topic title",
  "explanation": "Structured explanation with **headings** and - bullet points",
  "tasks": [
    {
      "title": "Short task title",
      "description": "What the learner should do",
      "difficulty": "beginner",
      "hint": "A helpful nudge"
    }
  ],
  "related_topics": ["Related topic 1", "Related topic 2", "Related topic 3"]
}
"""


class PromptBuilder:
    """Substitutes a topic into the fixed guide template."""

    def __init__(self, task_count: int = 3, template: str = LEARNING_GUIDE_TEMPLATE):
        if task_count not in (3, 4):
            raise ValueError("task_count must be 3 or 4")
        self.task_count = task_count
        self.template = template.replace(TASK_COUNT_PLACEHOLDER, str(task_count))

    def build(self, topic: str) -> str:
        """Return the prompt with every topic placeholder replaced literally."""
        return self.template.replace(TOPIC_PLACEHOLDER, topic)
