from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from community_hub.main import app

client = TestClient(app)


def _iso(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).strftime('%Y-%m-%dT%H:%M:%SZ')


def _event(name, days, **extra):
    return {
        'eventName': name,
        'eventDate': _iso(days),
        'eventLocation': 'Online',
        'eventDescription': f'{name} description',
        **extra,
    }


def test_create_event_starts_without_attendees(admin_headers):
    r = client.post('/api/events', json=_event('Meetup', 5), headers=admin_headers)
    assert r.status_code == 201
    body = r.json()
    assert body['attendees'] == []
    assert body['paymentLink'] == '' and body['eventLink'] == ''
    assert client.get(f"/api/events/{body['id']}").json()['eventName'] == 'Meetup'


def test_create_event_requires_fields_and_admin(admin_headers, member):
    _, headers = member
    assert client.post('/api/events', json=_event('Meetup', 5), headers=headers).status_code == 403
    payload = _event('Meetup', 5)
    del payload['eventLocation']
    assert client.post('/api/events', json=payload, headers=admin_headers).status_code == 422


def test_upcoming_excludes_past_and_sorts_by_date(admin_headers):
    client.post('/api/events', json=_event('Past', -2), headers=admin_headers)
    client.post('/api/events', json=_event('Later', 20), headers=admin_headers)
    client.post('/api/events', json=_event('Sooner', 2), headers=admin_headers)

    upcoming = client.get('/api/events/upcoming')
    assert upcoming.status_code == 200
    assert [e['eventName'] for e in upcoming.json()] == ['Sooner', 'Later']
    assert len(client.get('/api/events').json()) == 3


def test_event_links(admin_headers):
    plain = client.post('/api/events', json=_event('Plain', 3), headers=admin_headers).json()
    assert client.get(f"/api/events/{plain['id']}/payment-link").json()['detail'] == 'Payment link not available for this event'
    assert client.get(f"/api/events/{plain['id']}/event-link").json()['detail'] == 'Event link not available for this event'

    linked = client.post('/api/events', json=_event('Linked', 3, paymentLink='https://pay.example/e', eventLink='https://zoom.example/e'), headers=admin_headers).json()
    assert client.get(f"/api/events/{linked['id']}/payment-link").json() == {'paymentLink': 'https://pay.example/e'}
    assert client.get(f"/api/events/{linked['id']}/event-link").json() == {'eventLink': 'https://zoom.example/e'}
    assert client.get('/api/events/999/event-link').status_code == 404


def test_attendee_add_and_remove(admin_headers, member):
    profile, headers = member
    eid = client.post('/api/events', json=_event('Meetup', 5), headers=admin_headers).json()['id']

    r = client.post(f"/api/events/{eid}/attendee/{profile['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()['attendees'] == [profile['id']]
    # set semantics
    r = client.post(f"/api/events/{eid}/attendee/{profile['id']}", headers=headers)
    assert r.json()['attendees'] == [profile['id']]
    me = client.get(f"/api/users/{profile['clerkId']}", headers=headers).json()
    assert me['registeredEvents'] == [eid]

    r = client.delete(f"/api/events/{eid}/attendee/{profile['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()['attendees'] == []
    me = client.get(f"/api/users/{profile['clerkId']}", headers=headers).json()
    assert me['registeredEvents'] == []


def test_attendee_changes_are_limited_to_self_or_admin(admin_headers, member, auth):
    profile, _ = member
    eid = client.post('/api/events', json=_event('Meetup', 5), headers=admin_headers).json()['id']
    r = client.post(f"/api/events/{eid}/attendee/{profile['id']}", headers=auth('user_someone_else'))
    assert r.status_code == 403
    r = client.post(f"/api/events/{eid}/attendee/{profile['id']}", headers=admin_headers)
    assert r.status_code == 200


def test_attendee_unknown_event_or_user(admin_headers, member):
    profile, headers = member
    assert client.post(f"/api/events/999/attendee/{profile['id']}", headers=headers).status_code == 404
    r = client.delete(f"/api/events/999/attendee/{profile['id']}", headers=headers)
    assert r.status_code == 404
    assert r.json()['detail'] == 'Event or User not found'
    eid = client.post('/api/events', json=_event('Meetup', 5), headers=admin_headers).json()['id']
    assert client.post(f'/api/events/{eid}/attendee/999', headers=admin_headers).status_code == 404


def test_update_ignores_attendees_and_delete(admin_headers, member):
    profile, headers = member
    eid = client.post('/api/events', json=_event('Meetup', 5), headers=admin_headers).json()['id']
    client.post(f"/api/events/{eid}/attendee/{profile['id']}", headers=headers)

    r = client.put(f'/api/events/{eid}', json={'eventLocation': 'Town Hall', 'attendees': []}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()['eventLocation'] == 'Town Hall'
    assert r.json()['attendees'] == [profile['id']]

    assert client.delete(f'/api/events/{eid}', headers=admin_headers).status_code == 204
    assert client.get(f'/api/events/{eid}').status_code == 404
    assert client.delete(f'/api/events/{eid}', headers=admin_headers).status_code == 404
    me = client.get(f"/api/users/{profile['clerkId']}", headers=headers).json()
    assert me['registeredEvents'] == []


def test_unknown_attendee_id_is_hidden_from_other_users(admin_headers, member, auth):
    profile, headers = member
    eid = client.post('/api/events', json=_event('Meetup', 5), headers=admin_headers).json()['id']
    missing = profile['id'] + 100
    for method in (client.post, client.delete):
        assert method(f'/api/events/{eid}/attendee/{missing}', headers=headers).status_code == 403
        assert method(f'/api/events/{eid}/attendee/{missing}', headers=auth('user_stranger')).status_code == 403
        r = method(f'/api/events/{eid}/attendee/{missing}', headers=admin_headers)
        assert r.status_code == 404
        assert r.json()['detail'] == 'Event or User not found'
