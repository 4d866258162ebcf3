import logging
from dataclasses import asdict, dataclass, field
from typing import List

from neuralnote.affirmations import AffirmationSelector
from neuralnote.emotion import EmotionClassifier
from neuralnote.gpt_service import DisabledEnrichment
from neuralnote.habits import HabitMatcher
from neuralnote.lexicons import DEFAULT_LEXICONS
from neuralnote.summarizer import Summarizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reflection:
    summary: str
    emotion: str
    affirmation: str
    detected_habits: List[str] = field(default_factory=list)

    def to_dict(self):
        data = asdict(self)
        data["detectedHabits"] = data.pop("detected_habits")
        return data


class ReflectionOrchestrator:
    """
    Builds a Reflection for one journal entry.

    Holds no per-request state, so one instance serves concurrent requests.
    Each component falls back to its local strategy on its own, which means
    `reflect` does not fail because enrichment is down.
    """

    def __init__(self, lexicons=None, enrichment=None, rng=None):
        lexicons = lexicons or DEFAULT_LEXICONS
        enrichment = enrichment or DisabledEnrichment()
        self.classifier = EmotionClassifier(lexicons.emotions, enrichment)
        self.summarizer = Summarizer(enrichment)
        self.affirmations = AffirmationSelector(lexicons.affirmations, enrichment, rng)
        self.matcher = HabitMatcher(lexicons.completion_phrases)

    def reflect(self, content: str, habits=()) -> Reflection:
        """
        Args:
            content: entry text, already validated as non-empty by the caller
            habits: ordered habits (`HabitRef`, model rows or `{id, name}` dicts)
        """
        emotion = self.classifier.classify(content)
        summary = self.summarizer.summarize(content)
        affirmation = self.affirmations.select(emotion)
        detected = self.matcher.match(content, habits)

        logger.info(
            "Reflection generated",
            extra={"emotion": emotion, "detected_habits": len(detected)},
        )
        return Reflection(
            summary=summary,
            emotion=emotion,
            affirmation=affirmation,
            detected_habits=detected,
        )
