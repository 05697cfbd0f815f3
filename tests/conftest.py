"""
Shared test fixtures.

Provides: in-memory Mongo (mongomock-motor), an authenticated TestClient,
and a fake Gemini service
"""

import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.core.exceptions import ExternalServiceError
from app.core.security import CurrentUser, get_current_user
from app.db import mongo
from app.main import app
from app.services.gemini_service import get_gemini_service

TEST_USER = CurrentUser(uid="user-123", email="renter@example.com", name="Riley")


def run(coro):
    """Runs a coroutine from a sync test."""
    return asyncio.run(coro)


class FakeGemini:
    """Records the history each call receives and returns canned output."""

    def __init__(self, replies=None, extractions=None, fail_reply=False):
        self.replies = list(replies or ["What does a typical weekday look like for you?"])
        self.extractions = list(extractions or [])
        self.fail_reply = fail_reply
        self.extract_calls = []
        self.reply_calls = []

    async def extract_characteristics(self, history):
        self.extract_calls.append([(m.role, m.content) for m in history])
        return self.extractions.pop(0) if self.extractions else {}

    async def generate_reply(self, history):
        self.reply_calls.append([(m.role, m.content) for m in history])
        if self.fail_reply:
            raise ExternalServiceError("Assistant reply failed")
        return self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]


@pytest.fixture
def db():
    mock_client = AsyncMongoMockClient()
    database = mock_client["roommatch_test"]
    mongo.use_database(database, mock_client)
    yield database
    mongo.use_database(None, None)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def gemini(client):
    fake = FakeGemini()
    app.dependency_overrides[get_gemini_service] = lambda: fake
    return fake


@pytest.fixture
def user_doc(db):
    """Reads the test user's raw document."""
    def _get():
        return run(db["users"].find_one({"user_id": TEST_USER.uid}))
    return _get
