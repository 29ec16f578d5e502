"""
Fallback content generator.
Produces a schema-valid learning guide for any topic without calling the model.
Output depends only on the topic string.
"""
import logging
from typing import Dict, Any, Optional

from learnlab.models import LearningGuide, Task, SOURCE_CURATED, SOURCE_TEMPLATE
from learnlab.services.curated_topics import CURATED_GUIDES

logger = logging.getLogger(__name__)


EXPLANATION_TEMPLATE = """**What is {topic}?**
{topic} is a subject worth understanding from the ground up. Start by pinning down a clear definition of {topic} in your own words, then check it against two or three reliable sources.

**Core Concepts**
- **Fundamentals:** the basic vocabulary and building blocks of {topic}
- **Principles:** the rules or ideas that explain how {topic} works
- **Relationships:** how {topic} connects to the subjects around it
- **Applications:** where {topic} shows up in practice

**Learning Path**
- **Phase 1, Foundations:** learn the key terms and read an introductory overview of {topic}
- **Phase 2, Understanding:** work through worked examples and explain each step of {topic} back to yourself
- **Phase 3, Practice:** solve problems or build small projects that use {topic}
- **Phase 4, Mastery:** tackle open-ended questions and teach {topic} to someone else

**Real-World Use Cases**
- Solving everyday problems where {topic} applies
- Professional and industry settings that rely on {topic}
- Research and further study that build on {topic}

**Tools and Resources**
- Textbooks and course notes that cover {topic}
- Online tutorials, lectures and documentation
- Practice problems, flashcards and study groups

**Study Tips**
- Study {topic} in short, regular sessions rather than one long cram
- Summarise each session in three sentences
- Write down questions as you go and look for answers before moving on

**Next Steps**
Once you are comfortable with the basics of {topic}, pick one application that interests you and go deeper into it."""


class FallbackContentGenerator:
    """Deterministic guide generator: curated table first, then a generic template."""

    def __init__(self, curated: Optional[Dict[str, Dict[str, Any]]] = None):
        # Insertion order is the match priority
        self.curated = curated if curated is not None else CURATED_GUIDES

    def match_curated(self, topic: str) -> Optional[str]:
        """
        Find the first curated key contained in the topic.

        Args:
            topic: Free-text topic (any casing)

        Returns:
            Matching key, or None
        """
        normalized = topic.strip().lower()
        for key in self.curated:
            if key in normalized:
                return key
        return None

    def generate(self, topic: str) -> LearningGuide:
        """Return a learning guide for the topic. Never raises for string input."""
        display_topic = topic.strip()

        key = self.match_curated(display_topic)
        if key is not None:
            logger.debug(f"Curated guide '{key}' matched topic: {display_topic}")
            # Validate a fresh copy so callers can never mutate the table
            return LearningGuide.model_validate({**self.curated[key], "source": SOURCE_CURATED})

        return self._synthesize(display_topic)

    def _synthesize(self, topic: str) -> LearningGuide:
        title = topic[:1].upper() + topic[1:] if topic else "General Study Skills"
        subject = title

        tasks = [
            Task(
                title="Research and define",
                description=f'Find 3 different definitions of "{subject}" from reliable sources and write your own one-paragraph definition',
                difficulty="beginner",
                hint=f"Compare how textbooks and educational websites describe {subject} and note what they agree on",
            ),
            Task(
                title="Build a concept map",
                description=f'Draw a concept map of "{subject}" linking its key ideas, sub-topics and real-world examples',
                difficulty="intermediate",
                hint=f"Put {subject} in the centre and add at least 8 connected ideas with labelled links",
            ),
            Task(
                title="Design a practical application",
                description=f'Design a small project, experiment or case study that applies "{subject}" to a real problem and explain your choices',
                difficulty="advanced",
                hint=f"Start from a problem you care about and ask which parts of {subject} would help solve it",
            ),
        ]

        return LearningGuide(
            title=title,
            explanation=EXPLANATION_TEMPLATE.format(topic=subject),
            tasks=tasks,
            related_topics=[
                f"{subject} fundamentals",
                f"Practical applications of {subject}",
                f"Advanced {subject}",
            ],
            source=SOURCE_TEMPLATE,
        )


# Global generator instance
fallback_generator = FallbackContentGenerator()
