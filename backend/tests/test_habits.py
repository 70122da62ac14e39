from fastapi.testclient import TestClient
from community_hub.main import app

client = TestClient(app)


def _habit(clerk_id='user_member', **extra):
    return {'clerkId': clerk_id, 'habitName': 'Drink water', **extra}


def test_create_and_list_habits(member):
    profile, headers = member
    r = client.post('/api/habits', json=_habit(habitTarget=8), headers=headers)
    assert r.status_code == 201
    habit = r.json()
    assert habit['habitFrequency'] == 'daily'
    assert habit['habitProgress'] == 0
    assert habit['habitTarget'] == 8

    client.post('/api/habits', json=_habit(habitName='Stretch', habitFrequency='weekly'), headers=headers)
    listed = client.get(f"/api/habits/{profile['clerkId']}", headers=headers).json()
    assert [h['habitName'] for h in listed] == ['Drink water', 'Stretch']


def test_habit_validation(member, auth):
    _, headers = member
    assert client.post('/api/habits', json=_habit(habitFrequency='hourly'), headers=headers).status_code == 422
    assert client.post('/api/habits', json=_habit(habitTarget=0), headers=headers).status_code == 422
    assert client.post('/api/habits', json=_habit('user_other'), headers=headers).status_code == 403
    r = client.post('/api/habits', json=_habit('user_noprofile'), headers=auth('user_noprofile'))
    assert r.status_code == 404


def test_habit_progress(member, auth):
    _, headers = member
    hid = client.post('/api/habits', json=_habit(), headers=headers).json()['id']

    r = client.put(f'/api/habits/{hid}/progress', json={'progress': 3}, headers=headers)
    assert r.status_code == 200
    assert r.json()['habitProgress'] == 3
    assert client.put(f'/api/habits/{hid}/progress', json={'progress': -1}, headers=headers).status_code == 422
    assert client.put(f'/api/habits/{hid}/progress', json={'progress': 1}, headers=auth('user_other')).status_code == 403
    assert client.put('/api/habits/999/progress', json={'progress': 1}, headers=headers).status_code == 404


def test_delete_habit(member, admin_headers):
    profile, headers = member
    hid = client.post('/api/habits', json=_habit(), headers=headers).json()['id']
    assert client.delete(f'/api/habits/{hid}', headers=headers).status_code == 204
    assert client.delete(f'/api/habits/{hid}', headers=headers).status_code == 404
    assert client.get(f"/api/habits/{profile['clerkId']}", headers=admin_headers).json() == []
