from fastapi.testclient import TestClient
from community_hub.main import app

client = TestClient(app)


def _resource(title, category, **extra):
    return {
        'resourceTitle': title,
        'resourceCategory': category,
        'resourceLink': f'https://example.org/{title.lower()}',
        **extra,
    }


def test_resource_category_filter(admin_headers):
    client.post('/api/resources', json=_resource('Pomodoro', 'article'), headers=admin_headers)
    client.post('/api/resources', json=_resource('Timer', 'tool'), headers=admin_headers)
    client.post('/api/resources', json=_resource('Routines', 'article'), headers=admin_headers)

    everything = client.get('/api/resources').json()
    assert [r['resourceTitle'] for r in everything] == ['Pomodoro', 'Timer', 'Routines']
    articles = client.get('/api/resources', params={'category': 'article'}).json()
    assert [r['resourceTitle'] for r in articles] == ['Pomodoro', 'Routines']
    assert client.get('/api/resources', params={'category': 'video'}).json() == []
    assert client.get('/api/resources', params={'category': 'podcast'}).status_code == 422


def test_resource_validation_and_admin(admin_headers, member):
    _, headers = member
    assert client.post('/api/resources', json=_resource('Timer', 'tool'), headers=headers).status_code == 403
    assert client.post('/api/resources', json=_resource('Timer', 'podcast'), headers=admin_headers).status_code == 422
    r = client.post('/api/resources', json=_resource('Timer', 'tool'), headers=admin_headers)
    assert r.status_code == 201
    assert r.json()['resourceDescription'] == ''


def test_resource_update_and_delete(admin_headers, member):
    profile, headers = member
    rid = client.post('/api/resources', json=_resource('Timer', 'tool'), headers=admin_headers).json()['id']
    client.post(f"/api/users/{profile['clerkId']}/favoriteResource", json={'resourceId': rid}, headers=headers)

    r = client.put(f'/api/resources/{rid}', json={'resourceDescription': 'Visual countdown'}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()['resourceDescription'] == 'Visual countdown'
    assert r.json()['resourceCategory'] == 'tool'
    assert client.put('/api/resources/999', json={'resourceTitle': 'x'}, headers=admin_headers).status_code == 404

    assert client.delete(f'/api/resources/{rid}', headers=admin_headers).status_code == 204
    assert client.get(f'/api/resources/{rid}').json()['detail'] == 'Resource not found'
    me = client.get(f"/api/users/{profile['clerkId']}", headers=headers).json()
    assert me['favoriteResources'] == []


def test_expert_talks_newest_first_with_thumbnail(admin_headers):
    first = client.post('/api/expert-talks', json={'title': 'Sleep', 'youtubeLink': 'https://youtu.be/abc123XYZ_-'}, headers=admin_headers)
    assert first.status_code == 201
    assert first.json()['thumbnailUrl'] == 'https://img.youtube.com/vi/abc123XYZ_-/hqdefault.jpg'
    client.post('/api/expert-talks', json={'title': 'Focus', 'youtubeLink': ' https://www.youtube.com/watch?v=q1w2e3r4t5y '}, headers=admin_headers)
    client.post('/api/expert-talks', json={'title': 'Blog', 'youtubeLink': 'https://blog.example/post'}, headers=admin_headers)

    talks = client.get('/api/expert-talks').json()
    assert [t['title'] for t in talks] == ['Blog', 'Focus', 'Sleep']
    assert talks[0]['thumbnailUrl'] is None
    assert talks[1]['youtubeLink'] == 'https://www.youtube.com/watch?v=q1w2e3r4t5y'
    assert talks[1]['thumbnailUrl'] == 'https://img.youtube.com/vi/q1w2e3r4t5y/hqdefault.jpg'


def test_expert_talk_requires_fields_and_delete(admin_headers, member):
    _, headers = member
    for body in ({'title': 'Sleep'}, {'youtubeLink': 'https://youtu.be/x'}, {'title': '  ', 'youtubeLink': 'https://youtu.be/x'}):
        r = client.post('/api/expert-talks', json=body, headers=admin_headers)
        assert r.status_code == 400
        assert r.json()['detail'] == 'title and youtubeLink are required'
    assert client.post('/api/expert-talks', json={'title': 'Sleep', 'youtubeLink': 'https://youtu.be/x'}, headers=headers).status_code == 403

    tid = client.post('/api/expert-talks', json={'title': 'Sleep', 'youtubeLink': 'https://youtu.be/x'}, headers=admin_headers).json()['id']
    assert client.delete(f'/api/expert-talks/{tid}', headers=admin_headers).status_code == 204
    r = client.delete(f'/api/expert-talks/{tid}', headers=admin_headers)
    assert r.status_code == 404
    assert r.json()['detail'] == 'Not found'
    assert client.get('/api/expert-talks').json() == []
