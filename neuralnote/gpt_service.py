# gpt_service.py
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from neuralnote.errors import EnrichmentUnavailable

logger = logging.getLogger(__name__)

CLASSIFY_EMOTION = "classify_emotion"
SUMMARIZE = "summarize"
GENERATE_AFFIRMATION = "generate_affirmation"

SYSTEM_PROMPT = (
    "You are a warm, trauma-informed journaling companion. "
    "Be concise, kind, and practical. Never diagnose. "
    "Answer with exactly what is asked and nothing else."
)

# task -> (prompt template, max_tokens, temperature)
TASKS = {
    CLASSIFY_EMOTION: (
        "Read this journal entry and reply with a single lowercase word naming "
        "the writer's main emotion. No punctuation, no explanation.\n\n"
        "Journal entry:\n{text}",
        5,
        0.2,
    ),
    SUMMARIZE: (
        "Write an objective summary of this journal entry in one or two short "
        "sentences, in the third person. Do not copy the entry verbatim.\n\n"
        "Journal entry:\n{text}",
        80,
        0.3,
    ),
    GENERATE_AFFIRMATION: (
        "Write one supportive affirmation for someone who is {text}. "
        "Use a single sentence of at most 20 words. Reply with the sentence only.",
        40,
        0.7,
    ),
}


@dataclass(frozen=True)
class EnrichmentResult:
    """Outcome of one enrichment call: either a value or an error."""

    value: Optional[str] = None
    error: Optional[EnrichmentUnavailable] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.value)

    @classmethod
    def failure(cls, task: str, reason: str) -> "EnrichmentResult":
        return cls(error=EnrichmentUnavailable(task, reason))


class DisabledEnrichment:
    """Stand-in used when no external model is configured."""

    def attempt(self, task: str, text: str) -> EnrichmentResult:
        return EnrichmentResult.failure(task, "enrichment disabled")


class EnrichmentClient:
    """
    Calls an OpenRouter-compatible chat completions endpoint.

    Every call is made once, bounded by `settings.timeout_seconds`. Transport
    errors, timeouts, bad statuses and malformed payloads are returned as an
    error result instead of raised.
    """

    def __init__(self, settings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self._http_client = http_client

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
            # Recommended by OpenRouter for traffic attribution
            "HTTP-Referer": self.settings.public_app_url,
            "X-Title": "NeuralNote",
        }

    def _body(self, task, text):
        template, max_tokens, temperature = TASKS[task]
        return {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": template.format(text=text)},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

    def _post(self, task, text):
        body = self._body(task, text)
        if self._http_client is not None:
            return self._http_client.post(
                self.settings.api_url,
                headers=self._headers(),
                json=body,
                timeout=self.settings.timeout_seconds,
            )
        with httpx.Client(timeout=self.settings.timeout_seconds) as client:
            return client.post(self.settings.api_url, headers=self._headers(), json=body)

    def attempt(self, task: str, text: str) -> EnrichmentResult:
        if task not in TASKS:
            raise ValueError(f"Unknown enrichment task: {task}")

        try:
            resp = self._post(task, text)
            logger.debug("LLM status", extra={"task": task, "status": resp.status_code})
            resp.raise_for_status()
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except httpx.TimeoutException:
            return self._fail(task, "timed out")
        except httpx.HTTPStatusError as e:
            return self._fail(task, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            return self._fail(task, f"transport error: {e}")
        except (ValueError, KeyError, IndexError, TypeError) as e:
            return self._fail(task, f"malformed response: {e!r}")

        if not isinstance(content, str) or not content.strip():
            return self._fail(task, "empty response")
        return EnrichmentResult(value=content.strip())

    def _fail(self, task, reason):
        logger.warning("Enrichment unavailable, using local fallback", extra={"task": task, "reason": reason})
        return EnrichmentResult.failure(task, reason)


def build_enrichment(settings):
    """Pick the enrichment collaborator the settings ask for."""
    if settings.enrichment_enabled:
        return EnrichmentClient(settings)
    return DisabledEnrichment()
