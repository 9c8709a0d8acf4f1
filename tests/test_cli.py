import os
import subprocess
import sys
from pathlib import Path

import pytest

pytest.importorskip('mediapipe')

from camptrainer import cli  # noqa: E402
from camptrainer.errors import CameraPermissionError  # noqa: E402


def test_parse_arguments_defaults():
    args = cli.parse_arguments([])
    assert args.exercise == 'squats'
    assert (args.reps, args.sets, args.rest, args.camera) == (5, 2, 5, 0)
    assert not args.no_window


def test_camera_failure_exits_with_error(monkeypatch, caplog):
    class DeniedCamera:
        def __init__(self, index):
            self.released = False

        def open(self):
            raise CameraPermissionError('Camera permission denied.')

        def release(self):
            self.released = True

    monkeypatch.setattr(cli, 'CameraSource', DeniedCamera)
    args = cli.parse_arguments(['--no-window'])
    assert cli.run(args) == 1
    assert 'Check browser camera permissions' in caplog.text


def test_unknown_exercise_exits_before_touching_camera(monkeypatch):
    def no_camera(index):
        raise AssertionError('camera should not be opened')

    monkeypatch.setattr(cli, 'CameraSource', no_camera)
    assert cli.run(cli.parse_arguments(['--exercise', 'burpees'])) == 2


def test_log_level_from_environment_applies_to_cli():
    script = (
        "import logging\n"
        "from camptrainer import cli\n"
        "try:\n"
        "    cli.main(['--exercise', 'burpees'])\n"
        "except SystemExit as e:\n"
        "    print('EXIT', e.code)\n"
        "print('ROOT_LEVEL', logging.getLevelName(logging.getLogger().level))\n"
    )
    env = dict(os.environ, LOG_LEVEL='DEBUG')
    result = subprocess.run(
        [sys.executable, '-c', script],
        cwd=str(Path(__file__).resolve().parents[1]),
        env=env,
        capture_output=True,
        text=True,
        timeout=120,
    )
    assert 'EXIT 2' in result.stdout
    assert 'ROOT_LEVEL DEBUG' in result.stdout
