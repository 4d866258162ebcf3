import logging
import random

from neuralnote.gpt_service import GENERATE_AFFIRMATION, DisabledEnrichment
from neuralnote.lexicons import DEFAULT_LEXICONS

logger = logging.getLogger(__name__)

MIN_AFFIRMATION_LENGTH = 5
_QUOTES = "\"'“”‘’`"


def clean_affirmation(raw: str) -> str:
    lines = [line.strip() for line in (raw or "").splitlines() if line.strip()]
    if not lines:
        return ""
    return lines[0].strip(_QUOTES).strip()


class AffirmationSelector:
    """Picks a supportive line for an emotion label. Never raises."""

    def __init__(self, templates=None, enrichment=None, rng=None):
        self.templates = templates or DEFAULT_LEXICONS.affirmations
        self.enrichment = enrichment or DisabledEnrichment()
        self.rng = rng or random.Random()

    def select_local(self, emotion: str) -> str:
        return self.rng.choice(self.templates.for_emotion(emotion))

    def select(self, emotion: str) -> str:
        # Free-form labels from enrichment are passed through as the description
        description = self.templates.describe(emotion)
        result = self.enrichment.attempt(GENERATE_AFFIRMATION, description)
        if result.ok:
            affirmation = clean_affirmation(result.value)
            if len(affirmation) >= MIN_AFFIRMATION_LENGTH:
                return affirmation
            logger.info("Rejected short enriched affirmation %r", result.value)
        return self.select_local(emotion)
