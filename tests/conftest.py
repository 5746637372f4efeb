# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests. Nothing here touches a real
# database, mail server or clock: the store is in-memory, the
# notifier records what it was asked to send, and time is fixed.
#
# ==============================================

from datetime import datetime, timezone

import pytest

from form_intake.config import AppConfig
from form_intake.notification.notifier import Notifier
from form_intake.pipeline import SubmissionPipeline
from form_intake.storage.memory_store import InMemoryTabularStore

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingNotifier(Notifier):
    """Keeps every message instead of delivering it."""

    def __init__(self):
        self.sent = []

    def send(self, address, subject, body):
        self.sent.append({"address": address, "subject": subject, "body": body})


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def store() -> InMemoryTabularStore:
    return InMemoryTabularStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(email_address="ops@example.com", retry_delay_ms=0)


@pytest.fixture
def pipeline(config, store, notifier, clock) -> SubmissionPipeline:
    return SubmissionPipeline(config, store=store, notifier=notifier, clock=clock)


@pytest.fixture
def sample_submission() -> dict:
    """A nested submission the way a form builder posts it."""
    return {
        "form_name": "Contact",
        "name": "Ada Lovelace",
        "contact": {"email": "ada@example.com", "phone": "555-0100"},
        "rating": "4",
        "topics": ["billing", "support"],
    }
