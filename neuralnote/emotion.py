import logging
import re

from neuralnote.gpt_service import CLASSIFY_EMOTION, DisabledEnrichment
from neuralnote.lexicons import DEFAULT_LEXICONS, NEUTRAL

logger = logging.getLogger(__name__)

_WORD = re.compile(r"^[a-z]{2,}$")
_EDGE_PUNCTUATION = "\"'`.,!?;:()[]{}*-_"


def clean_emotion_word(raw):
    """Reduce a model reply to one lowercase word, or None if it isn't one."""
    if not raw:
        return None
    tokens = raw.strip().split()
    if not tokens:
        return None
    word = tokens[0].strip(_EDGE_PUNCTUATION).lower()
    return word if _WORD.match(word) else None


class EmotionClassifier:
    """Labels a journal entry with one emotion. Never raises."""

    def __init__(self, lexicon=None, enrichment=None):
        self.lexicon = lexicon or DEFAULT_LEXICONS.emotions
        self.enrichment = enrichment or DisabledEnrichment()

    def scores(self, text: str) -> dict:
        """Distinct keywords found per emotion, in lexicon order."""
        lowered = (text or "").lower()
        return {
            emotion: sum(1 for keyword in keywords if keyword in lowered)
            for emotion, keywords in self.lexicon.keywords.items()
        }

    def classify_local(self, text: str) -> str:
        best, best_score = NEUTRAL, 0
        for emotion, score in self.scores(text).items():
            # strictly greater: ties stay with the earlier emotion
            if score > best_score:
                best, best_score = emotion, score
        return best

    def classify(self, text: str) -> str:
        result = self.enrichment.attempt(CLASSIFY_EMOTION, text or "")
        if result.ok:
            word = clean_emotion_word(result.value)
            if word:
                return word
            logger.info("Discarding enriched emotion %r", result.value)
        return self.classify_local(text)
