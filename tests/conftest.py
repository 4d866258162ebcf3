import random
from datetime import datetime, timezone

import pytest

from neuralnote.app import create_app
from neuralnote.config import Settings
from neuralnote.gpt_service import DisabledEnrichment, EnrichmentResult
from neuralnote.models import db

FIXED_NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


class FakeEnrichment:
    """
    Scripted enrichment collaborator.

    `responses` maps a task name to either a string (returned as the model's
    reply) or an exception reason (returned as an error result).
    """

    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    def attempt(self, task, text):
        self.calls.append((task, text))
        response = self.responses.get(task)
        if response is None:
            return EnrichmentResult.failure(task, "no scripted response")
        if isinstance(response, Exception):
            return EnrichmentResult.failure(task, str(response))
        return EnrichmentResult(value=response)


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://")


@pytest.fixture
def app(settings):
    app = create_app(settings, enrichment=DisabledEnrichment(), rng=random.Random(7))
    app.config["TESTING"] = True
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
