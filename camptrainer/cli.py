"""Run one camera-tracked exercise against the local webcam."""

import argparse
import logging
import sys

import cv2

from camptrainer.camera import CameraSource
from camptrainer.config import Settings
from camptrainer.errors import CameraError, CampTrainerError, PoseModelUnavailableError
from camptrainer.models import ExerciseConfig
from camptrainer.processor import FrameProcessor
from camptrainer.session import create_session

logger = logging.getLogger("CampTrainerCLI")


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="Count exercise reps with your webcam")

    parser.add_argument("--exercise", default="squats",
                        help="squats, jumping_jacks or pushups")
    parser.add_argument("--reps", type=int, default=5, help="Reps per set")
    parser.add_argument("--sets", type=int, default=2, help="Number of sets")
    parser.add_argument("--rest", type=int, default=5, help="Rest between sets in seconds")
    parser.add_argument("--camera", type=int, default=0, help="Camera device index")
    parser.add_argument("--language", default=None, help="Message language (en, mr)")
    parser.add_argument("--no-window", action="store_true",
                        help="Do not open a preview window")

    return parser.parse_args(argv)


def announce(event):
    if event.kind != 'feedback' and event.message:
        logger.info("[%s] %s", event.kind, event.message)


def run(args) -> int:
    """Drive one session until the exercise completes or the user quits."""
    settings = Settings.from_env()
    try:
        config = ExerciseConfig(
            exercise_type=args.exercise,
            reps_per_set=args.reps,
            sets=args.sets,
            rest_seconds=args.rest,
            language=args.language or settings.default_language,
        )
    except CampTrainerError as e:
        logger.error("%s", e)
        return 2

    camera = CameraSource(args.camera)
    try:
        session = create_session(config, camera=camera, on_effect=announce)
    except CameraError as e:
        logger.error("Camera error (%s): %s", e.kind, e)
        for suggestion in e.suggestions:
            logger.error("  - %s", suggestion)
        return 1

    # The session owns the camera and pose analyzer; leaving the block releases them
    processor = FrameProcessor(draw_overlay=not args.no_window)
    with session:
        try:
            while True:
                ok, frame = camera.read()
                if not ok:
                    logger.warning("Camera stopped delivering frames")
                    break

                try:
                    results = processor.process_frame(frame, session)
                except PoseModelUnavailableError as e:
                    logger.error("%s", e)
                    return 1
                for event in results['events']:
                    if event['kind'] == 'completion_due':
                        logger.info("Exercise finished: %d sets done", session.set_number)
                        return 0

                if not args.no_window:
                    cv2.imshow("camptrainer", results['annotated_frame'])
                    if cv2.waitKey(1) & 0xFF == ord('q'):
                        logger.info("Stopped by user")
                        break
        finally:
            if not args.no_window:
                cv2.destroyAllWindows()
    return 0


def main(argv=None):
    """Main entry point"""
    # Replace the handler the pose module installs at import time
    logging.basicConfig(
        level=getattr(logging, Settings.from_env().log_level, logging.INFO),
        force=True
    )
    sys.exit(run(parse_arguments(argv)))


if __name__ == "__main__":
    main()
