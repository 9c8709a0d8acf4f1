import math

import pytest

from camptrainer.landmarks import BodyLandmarks, Landmark


class ManualTimer:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test advances it."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback):
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def clock(self):
        return self.now

    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self.pending() if t.due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            timer.fired = True
            timer.callback()
        self.now = target


class FakeCamera:
    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.open_count = 0
        self.release_count = 0

    def open(self):
        if self.fail_with is not None:
            raise self.fail_with
        self.open_count += 1

    def release(self):
        self.release_count += 1


def _limb(root_x, root_y, angle, length=0.25):
    """Three points whose angle at the middle point is ``angle`` degrees.

    The far point hangs straight down from the middle joint and the near
    point is rotated away from it, so 180 is a straight limb.
    """
    theta = math.radians(angle)
    middle = (root_x, root_y)
    end = (root_x, root_y + length)
    start = (root_x + length * math.sin(theta), root_y + length * math.cos(theta))
    return start, middle, end


def squat_body(left_angle, right_angle=None, visibility=0.9):
    right_angle = left_angle if right_angle is None else right_angle
    lh, lk, la = _limb(0.4, 0.6, left_angle)
    rh, rk, ra = _limb(0.6, 0.6, right_angle)

    def lm(point):
        return Landmark(point[0], point[1], visibility)

    return BodyLandmarks(
        left_hip=lm(lh), left_knee=lm(lk), left_ankle=lm(la),
        right_hip=lm(rh), right_knee=lm(rk), right_ankle=lm(ra),
    )


def pushup_body(angle, visibility=0.9):
    ls, le, lw = _limb(0.4, 0.4, angle)
    rs, re, rw = _limb(0.6, 0.4, angle)

    def lm(point):
        return Landmark(point[0], point[1], visibility)

    return BodyLandmarks(
        left_shoulder=lm(ls), left_elbow=lm(le), left_wrist=lm(lw),
        right_shoulder=lm(rs), right_elbow=lm(re), right_wrist=lm(rw),
    )


def jack_body(extended, visibility=0.9):
    if extended:
        wrist_y, left_ankle_x, right_ankle_x = 0.1, 0.3, 0.7
    else:
        wrist_y, left_ankle_x, right_ankle_x = 0.5, 0.47, 0.53
    return BodyLandmarks(
        left_shoulder=Landmark(0.45, 0.3, visibility),
        right_shoulder=Landmark(0.55, 0.3, visibility),
        left_wrist=Landmark(0.4, wrist_y, visibility),
        right_wrist=Landmark(0.6, wrist_y, visibility),
        left_ankle=Landmark(left_ankle_x, 0.9, visibility),
        right_ankle=Landmark(right_ankle_x, 0.9, visibility),
    )


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def camera():
    return FakeCamera()
