import pytest
from sqlalchemy.exc import OperationalError

from api.extensions import STORAGE_KEY
from conftest import make_token


def _create(client, **overrides):
    payload = {
        'title': 'Deep work',
        'startTime': '2025-10-20T09:00:00Z',
        'endTime': '2025-10-20T11:00:00Z',
        'color': 'chart-1',
    }
    payload.update(overrides)
    return client.post('/api/events', json=payload)


def test_requires_authentication(app):
    anonymous = app.test_client()
    res = anonymous.get('/api/events')
    assert res.status_code == 401
    assert res.get_json()['message'] == 'Unauthorized'


def test_rejects_token_with_wrong_signature(app):
    c = app.test_client()
    bad = make_token('user-1', secret='not-the-secret')
    res = c.get('/api/events', headers={'Authorization': f'Bearer {bad}'})
    assert res.status_code == 401


def test_token_accepted_from_cookie(app):
    c = app.test_client()
    c.set_cookie('session_token', make_token('cookie-user'))
    res = c.get('/api/auth/user')
    assert res.status_code == 200
    assert res.get_json()['id'] == 'cookie-user'


def test_current_user_is_upserted_from_claims(app):
    c = app.test_client()
    token = make_token('user-9', email='grace@example.com', first_name='Grace')
    res = c.get('/api/auth/user', headers={'Authorization': f'Bearer {token}'})
    assert res.status_code == 200
    body = res.get_json()
    assert body['id'] == 'user-9'
    assert body['email'] == 'grace@example.com'
    assert body['firstName'] == 'Grace'

    token = make_token('user-9', email='grace@example.com', first_name='G.')
    res = c.get('/api/auth/user', headers={'Authorization': f'Bearer {token}'})
    assert res.get_json()['firstName'] == 'G.'


def test_create_then_fetch_round_trip(client):
    res = _create(client, description='No meetings', color='chart-3')
    assert res.status_code == 201
    created = res.get_json()
    assert created['id']
    assert created['createdAt'] and created['updatedAt']

    fetched = client.get(f"/api/events/{created['id']}").get_json()
    assert fetched == created
    assert fetched['title'] == 'Deep work'
    assert fetched['description'] == 'No meetings'
    assert fetched['startTime'] == '2025-10-20T09:00:00Z'
    assert fetched['endTime'] == '2025-10-20T11:00:00Z'
    assert fetched['color'] == 'chart-3'
    assert fetched['isAllDay'] is False
    assert fetched['userId'] == 'user-1'


def test_color_defaults_to_first_slot(client):
    res = client.post('/api/events', json={
        'title': 'Walk',
        'startTime': '2025-10-20T18:00:00Z',
        'endTime': '2025-10-20T19:00:00Z',
    })
    assert res.status_code == 201
    assert res.get_json()['color'] == 'chart-1'


def test_end_before_start_is_accepted(client):
    res = _create(client, startTime='2025-10-20T12:00:00Z', endTime='2025-10-20T10:00:00Z')
    assert res.status_code == 201
    body = res.get_json()
    assert body['endTime'] < body['startTime']


def test_create_validation_errors(client):
    assert _create(client, title='   ').status_code == 400
    assert _create(client, color='chart-9').status_code == 400
    assert _create(client, startTime='not a date').status_code == 400
    assert _create(client, isAllDay='yes').status_code == 400
    res = client.post('/api/events', json={'title': 'x', 'startTime': '2025-10-20T09:00:00Z'})
    assert res.status_code == 400
    assert 'endTime' in res.get_json()['message']
    assert client.get('/api/events').get_json() == []


def test_epoch_milliseconds_accepted(client):
    res = _create(client, startTime=1760950800000, endTime=1760954400000)
    assert res.status_code == 201
    assert res.get_json()['startTime'] == '2025-10-20T09:00:00Z'


def test_out_of_range_timestamps_are_rejected(client):
    assert _create(client, startTime='99999999999999999999').status_code == 400
    assert _create(client, endTime=10 ** 20).status_code == 400

    body = ('{"title": "x", "startTime": Infinity, '
            '"endTime": "2025-10-20T11:00:00Z"}')
    res = client.post('/api/events', data=body, content_type='application/json')
    assert res.status_code == 400
    assert 'startTime' in res.get_json()['message']

    res = client.get('/api/events', query_string={'startDate': '99999999999999999999'})
    assert res.status_code == 400
    assert client.get('/api/events').get_json() == []


def test_user_id_in_body_is_ignored(client):
    res = _create(client, userId='someone-else')
    assert res.get_json()['userId'] == 'user-1'


def test_get_events_range_filter(client):
    _create(client, title='Monday', startTime='2025-10-20T09:00:00Z', endTime='2025-10-20T10:00:00Z')
    _create(client, title='Wednesday', startTime='2025-10-22T09:00:00Z', endTime='2025-10-22T10:00:00Z')
    _create(client, title='Friday', startTime='2025-10-24T09:00:00Z', endTime='2025-10-24T10:00:00Z')
    # Overlaps the start boundary
    _create(client, title='Overnight', startTime='2025-10-21T22:00:00Z', endTime='2025-10-22T01:00:00Z')

    res = client.get('/api/events', query_string={
        'startDate': '2025-10-22T00:00:00Z',
        'endDate': '2025-10-23T00:00:00Z',
    })
    assert res.status_code == 200
    titles = sorted(e['title'] for e in res.get_json())
    assert titles == ['Overnight', 'Wednesday']

    only_start = client.get('/api/events', query_string={'startDate': '2025-10-23T00:00:00Z'})
    assert [e['title'] for e in only_start.get_json()] == ['Friday']

    only_end = client.get('/api/events', query_string={'endDate': '2025-10-20T23:59:59Z'})
    assert [e['title'] for e in only_end.get_json()] == ['Monday']

    assert len(client.get('/api/events').get_json()) == 4


def test_get_events_invalid_range(client):
    res = client.get('/api/events', query_string={'startDate': 'yesterday-ish'})
    assert res.status_code == 400


def test_events_are_scoped_to_owner(client, other_client):
    event_id = _create(client).get_json()['id']

    assert other_client.get('/api/events').get_json() == []
    assert other_client.get(f'/api/events/{event_id}').status_code == 404
    assert other_client.patch(f'/api/events/{event_id}', json={'title': 'Mine now'}).status_code == 404
    assert other_client.delete(f'/api/events/{event_id}').status_code == 404

    remaining = client.get('/api/events').get_json()
    assert len(remaining) == 1
    assert remaining[0]['title'] == 'Deep work'


def test_patch_updates_only_given_fields(client):
    created = _create(client).get_json()
    res = client.patch(f"/api/events/{created['id']}", json={'title': 'Shallow work', 'color': 'chart-2'})
    assert res.status_code == 200
    updated = res.get_json()
    assert updated['title'] == 'Shallow work'
    assert updated['color'] == 'chart-2'
    assert updated['startTime'] == created['startTime']
    assert updated['endTime'] == created['endTime']
    assert updated['updatedAt'] is not None


def test_patch_validation_and_missing(client):
    created = _create(client).get_json()
    assert client.patch(f"/api/events/{created['id']}", json={'color': 'teal'}).status_code == 400
    assert client.patch(f"/api/events/{created['id']}", json={'title': ''}).status_code == 400
    assert client.patch('/api/events/does-not-exist', json={'title': 'x'}).status_code == 404


def test_delete_event(client):
    created = _create(client).get_json()
    res = client.delete(f"/api/events/{created['id']}")
    assert res.status_code == 200
    assert res.get_json() == {'success': True}
    assert client.get(f"/api/events/{created['id']}").status_code == 404


def test_delete_unknown_event_leaves_data_unchanged(client):
    _create(client)
    res = client.delete('/api/events/unknown-id')
    assert res.status_code == 404
    assert 'message' in res.get_json()
    assert len(client.get('/api/events').get_json()) == 1


def _flaky(monkeypatch, storage, name, failures):
    real = getattr(storage, name)
    calls = []

    def method(*args, **kwargs):
        calls.append(args)
        if len(calls) <= failures:
            raise OperationalError('SELECT 1', {}, Exception('server closed the connection'))
        return real(*args, **kwargs)

    monkeypatch.setattr(storage, name, method)
    monkeypatch.setattr('services.db_config.sleep', lambda seconds: None)
    return calls


def test_dropped_connection_is_retried(app, client, monkeypatch):
    _create(client)
    calls = _flaky(monkeypatch, app.extensions[STORAGE_KEY], 'get_events', failures=1)

    res = client.get('/api/events')
    assert res.status_code == 200
    assert [e['title'] for e in res.get_json()] == ['Deep work']
    assert len(calls) == 2


def test_create_retried_after_dropped_connection(app, client, monkeypatch):
    calls = _flaky(monkeypatch, app.extensions[STORAGE_KEY], 'create_event', failures=2)

    assert _create(client).status_code == 201
    assert len(calls) == 3
    assert len(client.get('/api/events').get_json()) == 1


def test_connection_errors_propagate_after_three_attempts(app, client, monkeypatch):
    calls = _flaky(monkeypatch, app.extensions[STORAGE_KEY], 'get_events', failures=3)

    with pytest.raises(OperationalError):
        client.get('/api/events')
    assert len(calls) == 3


def test_unknown_route_returns_json(client):
    res = client.get('/api/nothing-here')
    assert res.status_code == 404
    assert res.get_json()['message'] == 'Resource not found'
