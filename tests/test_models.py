import pytest

from camptrainer.config import Settings
from camptrainer.errors import InvalidExerciseConfig, UnsupportedExerciseError
from camptrainer.feedback import FeedbackComposer
from camptrainer.counter import Effect, EffectKind
from camptrainer.models import ExerciseConfig, ExerciseType


@pytest.mark.parametrize('name,expected', [
    ('squats', ExerciseType.SQUATS),
    ('Squat', ExerciseType.SQUATS),
    ('jumpingJacks', ExerciseType.JUMPING_JACKS),
    ('Jumping Jacks', ExerciseType.JUMPING_JACKS),
    ('jumping_jacks', ExerciseType.JUMPING_JACKS),
    ('Push-ups', ExerciseType.PUSHUPS),
])
def test_exercise_aliases(name, expected):
    assert ExerciseType.parse(name) is expected


def test_unknown_exercise():
    with pytest.raises(UnsupportedExerciseError) as info:
        ExerciseType.parse('Running')
    assert 'mark complete manually' in str(info.value)


def test_defaults_for_bare_task():
    config = ExerciseConfig.from_dict({'exerciseType': 'squats'})
    assert config.reps_per_set == 5
    assert config.sets == 2
    assert config.rest_seconds == 5
    assert config.language == 'en'


def test_task_document_keys():
    config = ExerciseConfig.from_dict(
        {'exerciseType': 'jumpingJacks', 'reps': '10', 'sets': 3, 'restTime': 30},
        default_language='mr',
    )
    assert config.exercise_type is ExerciseType.JUMPING_JACKS
    assert config.reps_per_set == 10
    assert config.rest_seconds == 30
    assert config.language == 'mr'


def test_reps_per_set_wins_over_reps():
    config = ExerciseConfig.from_dict({'repsPerSet': 8, 'reps': 20})
    assert config.reps_per_set == 8


@pytest.mark.parametrize('data', [
    {'repsPerSet': 0},
    {'sets': 0},
    {'restTime': -1},
    {'reps': 'many'},
])
def test_invalid_numbers(data):
    with pytest.raises(InvalidExerciseConfig):
        ExerciseConfig.from_dict(data)


def test_to_dict():
    assert ExerciseConfig(exercise_type='Push-ups').to_dict() == {
        'exercise_type': 'pushups',
        'reps_per_set': 5,
        'sets': 2,
        'rest_seconds': 5,
        'language': 'en',
    }


def test_marathi_messages_fall_back_to_english():
    feedback = FeedbackComposer('mr')
    assert feedback.describe(Effect(EffectKind.SET_COMPLETED, 1)) == "सेट पूर्ण झाला"
    assert feedback.describe(Effect(EffectKind.REST_OVER, 2)) == "सेट 2 तयार"
    assert feedback.message('show_full_body') == "Show your full body in camera"
    assert feedback.speech_language() == 'hi-IN'


def test_english_messages():
    feedback = FeedbackComposer()
    assert feedback.describe(Effect(EffectKind.COUNTDOWN_TICK, 3)) == '3'
    assert feedback.remaining(2) == "2 more to go!"
    assert feedback.message('no_such_message') == ''


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv('PORT', '8080')
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    monkeypatch.delenv('HOST', raising=False)
    settings = Settings.from_env()
    assert settings.port == 8080
    assert settings.log_level == 'DEBUG'
    assert settings.host == '0.0.0.0'


def test_pose_model_path_from_env(monkeypatch):
    monkeypatch.delenv('POSE_MODEL_PATH', raising=False)
    assert Settings.from_env().pose_model_path == 'pose_landmarker_full.task'
    monkeypatch.setenv('POSE_MODEL_PATH', '/models/pose_landmarker_lite.task')
    assert Settings.from_env().pose_model_path == '/models/pose_landmarker_lite.task'
