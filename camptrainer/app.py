#The code is according to PEP 8 coding styles standards
from flask import Flask, jsonify, request
from camptrainer.config import Settings
from camptrainer.errors import CampTrainerError, PoseModelUnavailableError, SessionDisposedError
from camptrainer.landmarks import from_payload
from camptrainer.models import ExerciseConfig
from camptrainer.session import ExerciseSession
import cv2
import logging
import numpy as np
import base64
import binascii
from threading import Lock

settings = Settings.from_env()

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), force=True)
logger = logging.getLogger("CampTrainerAPI")

# Flask app initialization
app = Flask(__name__)

# Thread-safe registries of live sessions, by session id and by trainee
sessions = {}
user_sessions = {}
session_lock = Lock()

# Created on first image frame so landmark-only deployments never import MediaPipe.
# It is stateless; every session tracks poses with its own analyzer.
_frame_processor = None
_processor_lock = Lock()


def get_frame_processor():
    """Return the shared FrameProcessor, creating it on first use."""
    global _frame_processor
    with _processor_lock:
        if _frame_processor is None:
            from camptrainer.processor import FrameProcessor
            _frame_processor = FrameProcessor()
        return _frame_processor


def _get_session(session_id):
    with session_lock:
        session = sessions.get(session_id)
    if session is None:
        return None, (jsonify({'error': 'Session not found', 'session_id': session_id}), 404)
    return session, None


def _remove_session(session_id):
    """Drop a session from both registries. Caller holds session_lock."""
    session = sessions.pop(session_id, None)
    for user_id, owned in list(user_sessions.items()):
        if owned == session_id:
            del user_sessions[user_id]
    return session


def _decode_image(data_url):
    """Decode a base64 (optionally data-URL prefixed) image into a BGR frame."""
    encoded = data_url.split(',', 1)[1] if ',' in data_url else data_url
    try:
        img_bytes = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return None
    return cv2.imdecode(np.frombuffer(img_bytes, np.uint8), cv2.IMREAD_COLOR)


@app.route('/health')
def health():
    """Liveness probe."""
    return jsonify({'status': 'ok'})


@app.route('/sessions', methods=['POST'])
def create_session():
    """
    Start a camera-tracked exercise session.

    Expects:
        JSON exercise config (exerciseType, repsPerSet, sets, restTime, language).
        Optional 'user_id'; a trainee's previous session is disposed.

    Returns:
        201 with the new session id and its status.
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Expected a JSON object with the exercise config'}), 400

    user_id = data.get('user_id')
    if user_id is not None and not isinstance(user_id, str):
        return jsonify({'error': '"user_id" must be a string'}), 400

    config = ExerciseConfig.from_dict(data, default_language=settings.default_language)
    session = ExerciseSession(config)

    with session_lock:
        previous = None
        if user_id is not None and user_id in user_sessions:
            previous = _remove_session(user_sessions[user_id])
        sessions[session.session_id] = session
        if user_id is not None:
            user_sessions[user_id] = session.session_id

    if previous is not None:
        logger.info("Replacing session %s for user %s", previous.session_id, user_id)
        previous.dispose()

    return jsonify({'session_id': session.session_id, 'status': session.status()}), 201


@app.route('/sessions/<session_id>/frame', methods=['POST'])
def process_frame(session_id):
    """
    Feed one frame to a session.

    Expects:
        JSON with either 'landmarks' (33-item list or joint-name object,
        null when no body was found) or a base64-encoded 'image'.

    Returns:
        JSON containing:
        - events to show, speak or play
        - session status
        - (image frames only) annotated frame
    """
    session, error = _get_session(session_id)
    if error:
        return error

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or ('landmarks' not in data and 'image' not in data):
        return jsonify({'error': 'Expected "landmarks" or "image" in JSON body'}), 400

    try:
        if 'image' in data:
            frame = _decode_image(str(data.get('image') or ''))
            if frame is None:
                return jsonify({'error': 'Could not decode image'}), 400
            results = get_frame_processor().process_frame(frame, session)
            response = {'events': results['events'], 'status': results['status'],
                        'debug': results['debug']}
            if data.get('annotate', True):
                _, buffer = cv2.imencode('.jpg', results['annotated_frame'])
                response['image'] = base64.b64encode(buffer).decode('utf-8')
            return jsonify(response)

        body = from_payload(data.get('landmarks'))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        return jsonify({'error': 'Invalid landmarks', 'message': str(e)}), 400
    except SessionDisposedError:
        return jsonify({'error': 'Session not found', 'session_id': session_id}), 404

    try:
        events = session.feed_frame(body)
    except SessionDisposedError:
        return jsonify({'error': 'Session not found', 'session_id': session_id}), 404

    return jsonify({
        'events': [event.to_dict() for event in events],
        'status': session.status()
    })


@app.route('/sessions/<session_id>', methods=['GET'])
def session_status(session_id):
    """Report progress and hand over events produced by rest/overlay timers."""
    session, error = _get_session(session_id)
    if error:
        return error
    events = session.drain_events()
    return jsonify({
        'events': [event.to_dict() for event in events],
        'status': session.status()
    })


@app.route('/sessions/<session_id>', methods=['DELETE'])
def delete_session(session_id):
    """Dispose a session when its task completes or the trainee leaves."""
    with session_lock:
        session = _remove_session(session_id)
    if session is None:
        return jsonify({'error': 'Session not found', 'session_id': session_id}), 404
    session.dispose()
    return '', 204


@app.errorhandler(CampTrainerError)
def handle_trainer_error(e):
    """Invalid exercise configs and unsupported exercises."""
    return jsonify({
        'error': type(e).__name__,
        'message': str(e)
    }), 400


@app.errorhandler(PoseModelUnavailableError)
def handle_missing_model(e):
    """Image frames need the pose model installed on the server."""
    logger.error("%s", e)
    return jsonify({
        'error': type(e).__name__,
        'message': str(e)
    }), 503


@app.errorhandler(404)
def handle_not_found(e):
    return jsonify({'error': 'Not found', 'message': str(e)}), 404


@app.errorhandler(500)
def handle_server_error(e):
    """
    Global error handler for unhandled internal server errors (HTTP 500).
    """
    return jsonify({
        'error': 'Internal server error',
        'message': str(e)
    }), 500


def main():
    # Run server on 0.0.0.0 to allow external access (e.g., mobile testing)
    app.run(host=settings.host, port=settings.port)


# App entry point
if __name__ == '__main__':
    main()
