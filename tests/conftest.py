import json
import os
import sys

import jwt
import pytest
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app
from services.db_config import db

TEST_SECRET = 'test-secret'


class FakeCompletionClient:
    """Stands in for the external completion service."""

    def __init__(self, reply='{"events": [], "reply": "ok"}'):
        self.reply = reply
        self.calls = []

    def set_reply(self, payload):
        self.reply = payload if isinstance(payload, str) else json.dumps(payload)

    def complete(self, messages):
        self.calls.append([dict(m) for m in messages])
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


def make_token(sub, secret=TEST_SECRET, **claims):
    return jwt.encode({'sub': sub, **claims}, secret, algorithm='HS256')


@pytest.fixture
def llm():
    return FakeCompletionClient()


@pytest.fixture
def app(llm):
    app = create_app(
        {
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite://',
            'SQLALCHEMY_ENGINE_OPTIONS': {
                'poolclass': StaticPool,
                'connect_args': {'check_same_thread': False},
            },
            'AUTH_JWT_SECRET': TEST_SECRET,
        },
        completion_client=llm,
    )
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    test_client = app.test_client()
    test_client.environ_base['HTTP_AUTHORIZATION'] = f"Bearer {make_token('user-1', email='ada@example.com')}"
    return test_client


@pytest.fixture
def other_client(app):
    test_client = app.test_client()
    test_client.environ_base['HTTP_AUTHORIZATION'] = f"Bearer {make_token('user-2')}"
    return test_client
