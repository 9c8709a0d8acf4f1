import pytest

from camptrainer import app as app_module

from conftest import squat_body


def indexed(body):
    """Lay named landmarks out as the 33-point list a browser would post."""
    points = [{'x': 0.0, 'y': 0.0, 'visibility': 0.0} for _ in range(33)]
    indices = {
        'left_hip': 23, 'right_hip': 24,
        'left_knee': 25, 'right_knee': 26,
        'left_ankle': 27, 'right_ankle': 28,
    }
    for name, index in indices.items():
        landmark = getattr(body, name)
        points[index] = {'x': landmark.x, 'y': landmark.y, 'visibility': landmark.visibility}
    return points


@pytest.fixture
def client():
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client
    with app_module.session_lock:
        leftover = list(app_module.sessions.values())
        app_module.sessions.clear()
        app_module.user_sessions.clear()
    for session in leftover:
        session.dispose()


def start(client, **body):
    payload = {'exerciseType': 'squats', 'repsPerSet': 2, 'sets': 1}
    payload.update(body)
    response = client.post('/sessions', json=payload)
    assert response.status_code == 201
    return response.get_json()['session_id']


def test_health(client):
    assert client.get('/health').get_json() == {'status': 'ok'}


def test_squat_flow(client):
    session_id = start(client)

    response = client.post(f'/sessions/{session_id}/frame',
                           json={'landmarks': indexed(squat_body(90))})
    assert response.status_code == 200
    assert response.get_json()['events'][0]['kind'] == 'feedback'

    response = client.post(f'/sessions/{session_id}/frame',
                           json={'landmarks': indexed(squat_body(170))})
    data = response.get_json()
    assert [e['kind'] for e in data['events']] == ['feedback', 'rep_counted']
    assert data['status']['rep'] == 1
    assert data['status']['reps_left'] == 1


def test_named_landmarks_and_no_body(client):
    session_id = start(client)
    response = client.post(f'/sessions/{session_id}/frame', json={'landmarks': None})
    event = response.get_json()['events'][0]
    assert event['message'] == "Position yourself in camera view"

    response = client.post(f'/sessions/{session_id}/frame',
                           json={'landmarks': squat_body(90).to_dict()})
    assert response.get_json()['status']['state'] == 'Active'


def test_status_endpoint(client):
    session_id = start(client, language='mr')
    data = client.get(f'/sessions/{session_id}').get_json()
    assert data['events'] == []
    assert data['status']['exercise']['language'] == 'mr'
    assert data['status']['detection_active'] is True


def test_delete_disposes_once(client):
    session_id = start(client)
    session = app_module.sessions[session_id]
    assert client.delete(f'/sessions/{session_id}').status_code == 204
    assert session.disposed
    assert client.delete(f'/sessions/{session_id}').status_code == 404
    assert client.get(f'/sessions/{session_id}').status_code == 404


def test_new_session_replaces_trainees_previous_one(client):
    first = start(client, user_id='trainee-7')
    old = app_module.sessions[first]
    second = start(client, user_id='trainee-7')
    assert first != second
    assert old.disposed
    assert first not in app_module.sessions
    assert app_module.user_sessions['trainee-7'] == second


def test_unknown_exercise_is_rejected(client):
    response = client.post('/sessions', json={'exerciseType': 'yoga'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'UnsupportedExerciseError'


def test_bad_config_is_rejected(client):
    response = client.post('/sessions', json={'exerciseType': 'squats', 'sets': 0})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'InvalidExerciseConfig'


def test_bad_frame_payloads(client):
    session_id = start(client)
    url = f'/sessions/{session_id}/frame'
    assert client.post(url, json={}).status_code == 400
    assert client.post(url, json={'landmarks': 42}).status_code == 400
    assert client.post(url, json={'landmarks': [{'x': 1}] * 33}).status_code == 400
    assert client.post(url, json={'image': 'data:image/jpeg;base64,%%%'}).status_code == 400


def test_unknown_session(client):
    response = client.post('/sessions/nope/frame', json={'landmarks': None})
    assert response.status_code == 404


def test_session_body_must_be_an_object(client):
    response = client.post('/sessions', json=[{'exerciseType': 'squats'}])
    assert response.status_code == 400
    assert app_module.sessions == {}


def test_user_id_must_be_a_string(client):
    response = client.post('/sessions', json={'exerciseType': 'squats', 'user_id': ['a']})
    assert response.status_code == 400
    assert app_module.sessions == {}
    assert app_module.user_sessions == {}


def test_empty_body_starts_default_session(client):
    response = client.post('/sessions')
    assert response.status_code == 201
    assert response.get_json()['status']['exercise']['exercise_type'] == 'squats'
