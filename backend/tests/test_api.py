import re


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health_reports_redis(client):
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'healthy', 'redis': True}


def test_create_session(client):
    res = client.post('/api/sessions', json={'hostName': 'Alice'})
    assert res.status_code == 201
    data = res.get_json()
    assert re.fullmatch(r'[A-Z0-9]{6}', data['sessionCode'])
    assert data['hostName'] == 'Alice'
    assert data['participantCount'] == 1
    assert data['state'] == 'waiting'
    assert data['expiresAt'].endswith('Z')
    assert data['shareableLink'] == f"http://localhost:3000/join?code={data['sessionCode']}"


def test_create_session_requires_host_name(client):
    res = client.post('/api/sessions', json={})
    assert res.status_code == 400
    body = res.get_json()
    assert body['code'] == 'VALIDATION_ERROR'
    assert 'hostName' in body['message']


def test_create_session_rejects_blank_body(client):
    res = client.post('/api/sessions', data='not json', content_type='text/plain')
    assert res.status_code == 400


def test_get_session(client, session_code):
    res = client.get(f'/api/sessions/{session_code}')
    assert res.status_code == 200
    data = res.get_json()
    assert data['sessionCode'] == session_code
    assert data['hostName'] == 'Alice'
    assert data['state'] == 'waiting'


def test_get_session_is_case_insensitive(client, session_code):
    res = client.get(f'/api/sessions/{session_code.lower()}')
    assert res.status_code == 200
    assert res.get_json()['sessionCode'] == session_code


def test_get_unknown_session(client):
    res = client.get('/api/sessions/ZZZZZZ')
    assert res.status_code == 404
    body = res.get_json()
    assert body['code'] == 'SESSION_NOT_FOUND'
    assert body['error'] == 'Not Found'


def test_get_malformed_code_is_not_found(client):
    res = client.get('/api/sessions/abc')
    assert res.status_code == 404
    assert res.get_json()['code'] == 'SESSION_NOT_FOUND'


def test_join_over_http(client, session_code):
    res = client.post(f'/api/sessions/{session_code}/join', json={'participantName': 'Bob'})
    assert res.status_code == 200
    data = res.get_json()
    assert data['participantId'].startswith('rest-')
    assert data['sessionCode'] == session_code
    assert data['participantName'] == 'Bob'
    assert data['participantCount'] == 1


def test_join_over_http_when_full(client, session_code):
    for name in ('A', 'B', 'C', 'D'):
        res = client.post(f'/api/sessions/{session_code}/join', json={'participantName': name})
        assert res.status_code == 200
    res = client.post(f'/api/sessions/{session_code}/join', json={'participantName': 'E'})
    assert res.status_code == 403
    body = res.get_json()
    assert body['code'] == 'SESSION_FULL'
    assert body['message'] == 'Session is full (maximum 4 participants)'
    assert client.get(f'/api/sessions/{session_code}').get_json()['participantCount'] == 4


def test_join_unknown_session(client):
    res = client.post('/api/sessions/ZZZZZZ/join', json={'participantName': 'Bob'})
    assert res.status_code == 404


def test_join_requires_name(client, session_code):
    res = client.post(f'/api/sessions/{session_code}/join', json={'participantName': ''})
    assert res.status_code == 400
    assert res.get_json()['code'] == 'VALIDATION_ERROR'


def test_results_not_ready(client, session_code):
    res = client.get(f'/api/sessions/{session_code}/results')
    assert res.status_code == 404
    assert res.get_json()['code'] == 'RESULTS_NOT_READY'


def test_results_unknown_session(client):
    res = client.get('/api/sessions/ZZZZZZ/results')
    assert res.status_code == 404
    assert res.get_json()['code'] == 'SESSION_NOT_FOUND'


def test_results_after_everyone_submits(client, session_code, connect):
    alice, bob = connect(), connect()
    alice.emit('session:join', {'sessionCode': session_code, 'displayName': 'Alice'},
               namespace='/ws', callback=True)
    bob.emit('session:join', {'sessionCode': session_code, 'displayName': 'Bob'},
             namespace='/ws', callback=True)
    alice.emit('selection:submit', {'sessionCode': session_code, 'selections': ['pizza-palace', 'ramen-bar']},
               namespace='/ws', callback=True)
    bob.emit('selection:submit', {'sessionCode': session_code, 'selections': ['ramen-bar']},
             namespace='/ws', callback=True)

    res = client.get(f'/api/sessions/{session_code}/results')
    assert res.status_code == 200
    data = res.get_json()
    assert data['hasOverlap'] is True
    assert [opt['optionId'] for opt in data['overlappingOptions']] == ['ramen-bar']


def test_options_catalog(client):
    res = client.get('/api/options')
    assert res.status_code == 200
    options = res.get_json()['options']
    assert len(options) == 15
    assert all({'optionId', 'name'} <= set(opt) for opt in options)


def test_unexpected_error_is_reported_as_500(client, monkeypatch):
    from dinder.services import sessions as session_service

    def boom(code):
        raise RuntimeError('store exploded')

    monkeypatch.setattr(session_service, 'describe_session', boom)
    res = client.get('/api/sessions/ABCDEF')
    assert res.status_code == 500
    assert res.get_json()['code'] == 'INTERNAL_ERROR'
