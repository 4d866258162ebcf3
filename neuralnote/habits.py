from dataclasses import dataclass
from typing import Iterable, List, Mapping

from neuralnote.lexicons import DEFAULT_LEXICONS

MIN_KEYWORD_LENGTH = 4


@dataclass(frozen=True)
class HabitRef:
    """The part of a habit the matcher needs."""

    id: str
    name: str


def as_habit_ref(habit) -> HabitRef:
    """Accept a HabitRef, a model row, or a `{id, name}` mapping."""
    if isinstance(habit, HabitRef):
        return habit
    if isinstance(habit, Mapping):
        return HabitRef(id=str(habit["id"]), name=str(habit["name"]))
    return HabitRef(id=str(habit.id), name=str(habit.name))


class HabitMatcher:
    """
    Finds which of a user's habits an entry talks about.

    A habit counts as mentioned when its full name, or any word of its name
    longer than three characters, appears in the lowercased entry. Mentioned
    habits are reported as completed.
    """

    def __init__(self, completion_phrases=None):
        self.completion_phrases = completion_phrases or DEFAULT_LEXICONS.completion_phrases

    @staticmethod
    def is_mentioned(habit: HabitRef, lowered_text: str) -> bool:
        name = habit.name.lower()
        if name in lowered_text:
            return True
        return any(
            len(word) >= MIN_KEYWORD_LENGTH and word in lowered_text
            for word in name.split(" ")
        )

    def has_completion_context(self, text: str) -> bool:
        return self.completion_phrases.present_in((text or "").lower())

    def match(self, text: str, habits: Iterable) -> List[str]:
        lowered = (text or "").lower()
        has_context = self.completion_phrases.present_in(lowered)
        detected = []
        for habit in map(as_habit_ref, habits):
            if habit.id in detected:
                continue
            mentioned = self.is_mentioned(habit, lowered)
            # TODO: decide with product whether completion phrases should be
            # required; today a mention alone marks the habit completed.
            if mentioned and (has_context or mentioned):
                detected.append(habit.id)
        return detected
