"""
Read-only word lists and templates used by the reflection components.

Each table is a frozen dataclass holding tuples, so an instance can be shared
between requests and threads. Components take them as constructor arguments;
`DEFAULT_LEXICONS` bundles the stock tables.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

NEUTRAL = "neutral"


def _freeze(table):
    return MappingProxyType({key: tuple(values) for key, values in table.items()})


@dataclass(frozen=True)
class EmotionLexicon:
    """Keyword lists per emotion. Iteration order is the tie-break order."""

    keywords: Mapping[str, Tuple[str, ...]]


@dataclass(frozen=True)
class AffirmationTemplates:
    templates: Mapping[str, Tuple[str, ...]]
    # Short phrases that describe an emotion inside an enrichment prompt
    descriptions: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def for_emotion(self, emotion: str) -> Tuple[str, ...]:
        return self.templates.get(emotion) or self.templates[NEUTRAL]

    def describe(self, emotion: str) -> str:
        return self.descriptions.get(emotion, emotion)


@dataclass(frozen=True)
class CompletionPhrases:
    phrases: Tuple[str, ...]

    def present_in(self, lowered_text: str) -> bool:
        return any(phrase in lowered_text for phrase in self.phrases)


@dataclass(frozen=True)
class Lexicons:
    emotions: EmotionLexicon
    affirmations: AffirmationTemplates
    completion_phrases: CompletionPhrases


EMOTION_KEYWORDS = _freeze({
    "happy": ["happy", "joy", "excited", "grateful", "thankful", "wonderful", "amazing",
              "great", "blessed", "delighted", "cheerful", "content"],
    "sad": ["sad", "down", "depressed", "unhappy", "disappointed", "lonely", "melancholy",
            "gloomy", "heartbroken"],
    "anxious": ["anxious", "worried", "nervous", "stressed", "overwhelmed", "tense",
                "uneasy", "afraid", "fearful"],
    "angry": ["angry", "frustrated", "annoyed", "irritated", "mad", "furious", "upset"],
    "calm": ["calm", "peaceful", "relaxed", "serene", "tranquil", "at ease", "mindful"],
    "motivated": ["motivated", "inspired", "determined", "focused", "energized",
                  "productive", "ambitious"],
    "tired": ["tired", "exhausted", "drained", "fatigued", "worn out", "sleepy"],
})

AFFIRMATIONS = _freeze({
    "happy": [
        "Your positive energy is contagious. Keep embracing the joy in each moment!",
        "What a wonderful outlook! Continue nurturing this happiness.",
        "Your gratitude opens doors to even more blessings.",
    ],
    "sad": [
        "It's okay to feel this way. Every storm eventually passes, and brighter days are ahead.",
        "Be gentle with yourself. Your feelings are valid, and healing takes time.",
        "Remember, you are stronger than you know. This too shall pass.",
    ],
    "anxious": [
        "Take a deep breath. You've overcome challenges before, and you can do it again.",
        "One step at a time. Focus on what you can control in this moment.",
        "Your worries don't define you. You have the strength to navigate through this.",
    ],
    "angry": [
        "It's healthy to acknowledge your frustrations. Channel this energy into positive action.",
        "Your feelings are valid. Take time to process and find constructive outlets.",
        "Breathe through it. You have the wisdom to respond thoughtfully.",
    ],
    "calm": [
        "Your inner peace is a gift. Continue to cultivate this tranquility.",
        "In stillness, we find clarity. Your centered mindset serves you well.",
        "This balance you've found is precious. Protect and nurture it.",
    ],
    "motivated": [
        "Your drive is inspiring! Keep channeling this energy toward your goals.",
        "You're on the right track. Trust your journey and keep moving forward.",
        "This momentum will take you far. Believe in your capabilities!",
    ],
    "tired": [
        "Rest is not laziness. It's essential, so honor your body's need for recovery.",
        "You've been working hard. Give yourself permission to recharge.",
        "Tomorrow is a new day. Take the rest you deserve tonight.",
    ],
    NEUTRAL: [
        "Every day is a new opportunity for growth and discovery.",
        "You're doing better than you think. Keep going!",
        "Trust the process. Good things are coming your way.",
    ],
})

EMOTION_DESCRIPTIONS = MappingProxyType({
    "happy": "feeling happy and grateful",
    "sad": "feeling sad and needing comfort",
    "anxious": "feeling anxious and worried",
    "angry": "feeling frustrated and upset",
    "calm": "feeling calm and at peace",
    "motivated": "feeling motivated and driven",
    "tired": "feeling tired and drained",
    NEUTRAL: "reflecting on an ordinary day",
})

COMPLETION_PHRASES = (
    "did my", "completed my", "finished my", "went to", "went for",
    "practiced", "worked on", "did some", "went", "ate", "drank",
    "read", "wrote", "exercised", "ran", "walked", "meditated",
    "studied", "learned", "cooked", "cleaned", "organized",
)

DEFAULT_LEXICONS = Lexicons(
    emotions=EmotionLexicon(EMOTION_KEYWORDS),
    affirmations=AffirmationTemplates(AFFIRMATIONS, EMOTION_DESCRIPTIONS),
    completion_phrases=CompletionPhrases(COMPLETION_PHRASES),
)
