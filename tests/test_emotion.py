import pytest

from neuralnote.emotion import EmotionClassifier, clean_emotion_word
from neuralnote.gpt_service import CLASSIFY_EMOTION
from neuralnote.lexicons import EmotionLexicon

from conftest import FakeEnrichment


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Today was a wonderful day! I feel so grateful and happy.", "happy"),
        ("I feel so sad and disappointed today. Everything went wrong.", "sad"),
        ("I am feeling very anxious and worried about tomorrow.", "anxious"),
        ("I feel so calm and peaceful after meditation.", "calm"),
        ("I went to the store and bought some groceries.", "neutral"),
        ("", "neutral"),
    ],
)
def test_local_classification(text, expected):
    assert EmotionClassifier().classify(text) == expected


def test_ties_go_to_earlier_category():
    classifier = EmotionClassifier()
    assert classifier.scores("happy and sad")["happy"] == classifier.scores("happy and sad")["sad"]
    assert classifier.classify("happy and sad") == "happy"
    assert classifier.classify("I feel calm but tired") == "calm"


def test_scores_count_distinct_keywords_not_occurrences():
    scores = EmotionClassifier().scores("Sad, sad, sad. So very SAD but also lonely.")
    assert scores["sad"] == 2


def test_custom_lexicon_is_respected():
    lexicon = EmotionLexicon({"hopeful": ("hope",), "happy": ("hope", "joy")})
    assert EmotionClassifier(lexicon).classify("I hope so") == "hopeful"


def test_enriched_label_is_accepted_and_cleaned():
    enrichment = FakeEnrichment(**{CLASSIFY_EMOTION: '"Hopeful." I think'})
    classifier = EmotionClassifier(enrichment=enrichment)
    assert classifier.classify("Looking forward to the trip.") == "hopeful"
    assert enrichment.calls == [(CLASSIFY_EMOTION, "Looking forward to the trip.")]


@pytest.mark.parametrize("reply", ["123", "a", "é", "   ", "!!"])
def test_bad_enriched_label_falls_back(reply):
    enrichment = FakeEnrichment(**{CLASSIFY_EMOTION: reply})
    assert EmotionClassifier(enrichment=enrichment).classify("I am so happy") == "happy"


def test_enrichment_error_falls_back():
    enrichment = FakeEnrichment(**{CLASSIFY_EMOTION: TimeoutError("timed out")})
    assert EmotionClassifier(enrichment=enrichment).classify("I feel exhausted") == "tired"


def test_clean_emotion_word():
    assert clean_emotion_word("Content") == "content"
    assert clean_emotion_word("'grateful', mostly") == "grateful"
    assert clean_emotion_word("") is None
    assert clean_emotion_word(None) is None
    assert clean_emotion_word("x") is None
