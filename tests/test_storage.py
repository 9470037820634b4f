from datetime import datetime

import pytest

from services.db_config import db
from services.storage import Storage
from services.seed import DEFAULT_TEMPLATES, seed_default_templates
from models.calendar import Event
from models.assistant_models import AiConversation
from models.user import User


@pytest.fixture
def storage(app):
    with app.app_context():
        store = Storage()
        store.upsert_user({'sub': 'owner'})
        store.upsert_user({'sub': 'stranger'})
        yield store


def _event(storage, user_id, title, start, end):
    return storage.create_event({
        'user_id': user_id,
        'title': title,
        'start_time': start,
        'end_time': end,
    })


def test_get_events_intersects_range_and_owner(storage):
    _event(storage, 'owner', 'early', datetime(2025, 10, 20, 8), datetime(2025, 10, 20, 9))
    _event(storage, 'owner', 'spanning', datetime(2025, 10, 20, 8), datetime(2025, 10, 22, 9))
    _event(storage, 'owner', 'late', datetime(2025, 10, 23, 8), datetime(2025, 10, 23, 9))
    _event(storage, 'stranger', 'foreign', datetime(2025, 10, 21, 8), datetime(2025, 10, 21, 9))

    start, end = datetime(2025, 10, 21), datetime(2025, 10, 22, 23)
    found = storage.get_events('owner', start, end)
    assert [e.title for e in found] == ['spanning']
    for event in found:
        assert event.user_id == 'owner'
        assert event.end_time >= start
        assert event.start_time <= end

    boundary = storage.get_events('owner', datetime(2025, 10, 20, 9), None)
    assert sorted(e.title for e in boundary) == ['early', 'late', 'spanning']


def test_create_event_defaults(storage):
    event = _event(storage, 'owner', 'x', datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 10))
    assert event.id
    assert event.color == 'chart-1'
    assert event.is_all_day is False
    assert event.created_at is not None and event.updated_at is not None


def test_update_event_refreshes_timestamp_and_checks_owner(storage):
    event = _event(storage, 'owner', 'x', datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 10))
    before = event.updated_at

    assert storage.update_event(event.id, 'stranger', {'title': 'stolen'}) is None
    updated = storage.update_event(event.id, 'owner', {'title': 'y', 'user_id': 'stranger'})
    assert updated.title == 'y'
    assert updated.user_id == 'owner'
    assert updated.updated_at >= before


def test_delete_event_and_delete_all(storage):
    keep = _event(storage, 'stranger', 'keep', datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 10))
    first = _event(storage, 'owner', 'a', datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 10))
    _event(storage, 'owner', 'b', datetime(2025, 1, 2, 9), datetime(2025, 1, 2, 10))

    assert storage.delete_event(first.id, 'stranger') is False
    assert storage.delete_event(first.id, 'owner') is True
    assert storage.delete_event(first.id, 'owner') is False

    assert storage.delete_all_events('owner') == 1
    assert storage.get_events('owner') == []
    assert storage.get_event(keep.id, 'stranger') is not None


def test_conversations_keep_latest_turns_oldest_first(storage):
    for i in range(6):
        storage.create_conversation({'user_id': 'owner', 'role': 'user' if i % 2 == 0 else 'assistant',
                                     'content': f'turn {i}'})
    storage.create_conversation({'user_id': 'stranger', 'role': 'user', 'content': 'elsewhere'})

    assert [t.content for t in storage.get_conversations('owner')] == [f'turn {i}' for i in range(6)]
    assert [t.content for t in storage.get_conversations('owner', limit=3)] == ['turn 3', 'turn 4', 'turn 5']

    assert storage.delete_conversations('owner') == 6
    assert storage.get_conversations('owner') == []
    assert len(storage.get_conversations('stranger')) == 1


def test_conversation_role_is_restricted(storage):
    with pytest.raises(ValueError):
        storage.create_conversation({'user_id': 'owner', 'role': 'system', 'content': 'x'})


def test_templates_only_lists_defaults(storage):
    storage.create_template({'name': 'Custom', 'description': 'd', 'prompt': 'p', 'is_default': False})
    assert seed_default_templates() == len(DEFAULT_TEMPLATES)
    assert seed_default_templates() == 0

    names = [t.name for t in storage.get_templates()]
    assert sorted(names) == sorted(t['name'] for t in DEFAULT_TEMPLATES)


def test_get_template_ignores_non_default(storage):
    custom = storage.create_template({'name': 'Custom', 'description': 'd', 'prompt': 'p', 'is_default': False})
    assert storage.get_template(custom.id) is None
    system = storage.create_template({'name': 'System', 'description': 'd', 'prompt': 'p'})
    assert storage.get_template(system.id).icon == 'Calendar'


def test_upsert_user_refreshes_claims(storage):
    user = storage.upsert_user({'sub': 'owner', 'email': 'o@example.com', 'last_name': 'Lovelace'})
    assert user.email == 'o@example.com'
    again = storage.upsert_user({'sub': 'owner', 'first_name': 'Ada'})
    assert again.email == 'o@example.com'
    assert again.first_name == 'Ada'
    assert db.session.query(User).count() == 2

    with pytest.raises(ValueError):
        storage.upsert_user({'email': 'nobody@example.com'})


def test_deleting_user_cascades(storage):
    _event(storage, 'owner', 'x', datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 10))
    storage.create_conversation({'user_id': 'owner', 'role': 'user', 'content': 'hi'})

    db.session.delete(storage.get_user('owner'))
    db.session.commit()

    assert Event.query.filter_by(user_id='owner').count() == 0
    assert AiConversation.query.filter_by(user_id='owner').count() == 0
