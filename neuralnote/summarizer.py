"""
Short synopses of journal entries.

The local summary is extractive: the first one or two sentences that carry
more than ten characters. When an external model is configured its summary
is preferred, but only after the boilerplate it tends to add is stripped and
only if it does not simply echo the entry back.
"""

import logging
import re

from neuralnote.gpt_service import SUMMARIZE, DisabledEnrichment

logger = logging.getLogger(__name__)

GENERIC_SUMMARY = "A brief moment of reflection was captured today."
MIN_ENRICH_LENGTH = 30
MIN_SENTENCE_LENGTH = 10
MIN_SUMMARY_LENGTH = 10

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_WHITESPACE = re.compile(r"\s+")

# Lowercase prefixes models put in front of the actual summary
BOILERPLATE_PREFIXES = (
    "here is an objective summary of the journal entry:",
    "here is an objective summary:",
    "here is a summary of the journal entry:",
    "here's a summary of the journal entry:",
    "here is a summary:",
    "here's a summary:",
    "objective summary:",
    "summary:",
    "in summary,",
    "to summarize,",
)

_QUOTES = "\"'“”‘’`"


def summarize_local(text: str) -> str:
    sentences = [
        s.strip() for s in _SENTENCE_SPLIT.split(text or "")
        if len(s.strip()) > MIN_SENTENCE_LENGTH
    ]
    if not sentences:
        return GENERIC_SUMMARY
    if len(sentences) == 1:
        return sentences[0] + "."
    return ". ".join(sentences[:2]) + "."


def clean_summary(raw: str) -> str:
    """Strip boilerplate prefixes and quotes, collapse whitespace."""
    summary = _WHITESPACE.sub(" ", raw or "").strip()
    stripped = True
    while stripped and summary:
        stripped = False
        lowered = summary.lower()
        for prefix in BOILERPLATE_PREFIXES:
            if lowered.startswith(prefix):
                summary = summary[len(prefix):].strip()
                stripped = True
                break
        if len(summary) >= 2 and summary[0] in _QUOTES and summary[-1] in _QUOTES:
            summary = summary[1:-1].strip()
            stripped = True
    return summary


def is_echo(summary: str, text: str) -> bool:
    """True if the summary is unusable: too short, or a copy of the entry."""
    lowered_summary = summary.lower()
    lowered_text = (text or "").lower()
    return (
        len(summary) < MIN_SUMMARY_LENGTH
        or lowered_summary == lowered_text
        or lowered_text.startswith(lowered_summary)
    )


class Summarizer:
    def __init__(self, enrichment=None):
        self.enrichment = enrichment or DisabledEnrichment()

    def summarize(self, text: str) -> str:
        """Return a non-empty summary. Never raises."""
        text = text or ""
        if len(text) < MIN_ENRICH_LENGTH:
            return summarize_local(text)

        result = self.enrichment.attempt(SUMMARIZE, text)
        if result.ok:
            summary = clean_summary(result.value)
            if not is_echo(summary, text):
                return summary
            logger.info("Rejected enriched summary that echoes the entry")
        return summarize_local(text)
