"""Rep/set counting state machine.

The counter is a pure transition function over an explicit state value:

    Active --(last rep of set)--> SetComplete --(display delay)--> Resting
       ^                               |                             |
       |                               +--(last set)--> ExerciseComplete
       +-----------------(countdown reaches zero)-------------------+

Side effects (speech, beeps, vibration, timers) are never performed here.
They are returned as ``Effect`` values, and delayed events as ``Schedule``
requests, for the session to carry out.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple, Union

from camptrainer.config import CounterTimings
from camptrainer.models import ExerciseConfig


@dataclass(frozen=True)
class Active:
    rep: int = 0
    set: int = 1


@dataclass(frozen=True)
class SetComplete:
    rep: int
    set: int


@dataclass(frozen=True)
class Resting:
    rep: int
    set: int
    remaining: int


@dataclass(frozen=True)
class ExerciseComplete:
    rep: int
    set: int
    notified: bool = False


CounterState = Union[Active, SetComplete, Resting, ExerciseComplete]


class RepConfirmed:
    """A detector saw one full repetition."""


class DisplayElapsed:
    """The set-complete overlay has been shown long enough."""


class RestTick:
    """One second of rest has passed."""


class CompletionElapsed:
    """The exercise-complete banner has been shown long enough."""


CounterEvent = Union[RepConfirmed, DisplayElapsed, RestTick, CompletionElapsed]


class EffectKind(str, Enum):
    REP_COUNTED = 'rep_counted'
    SET_COMPLETED = 'set_completed'
    REST_STARTED = 'rest_started'
    COUNTDOWN_TICK = 'countdown_tick'
    REST_OVER = 'rest_over'
    EXERCISE_COMPLETED = 'exercise_completed'
    COMPLETION_DUE = 'completion_due'


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    value: Optional[int] = None


@dataclass(frozen=True)
class Schedule:
    """Request to deliver ``event`` back to the counter after ``delay`` seconds."""
    delay: float
    event: CounterEvent


Output = Union[Effect, Schedule]


def initial_state() -> Active:
    return Active(rep=0, set=1)


def is_detecting(state: CounterState) -> bool:
    """Detection runs only while a set is in progress."""
    return isinstance(state, Active)


def transition(
    state: CounterState,
    event: CounterEvent,
    config: ExerciseConfig,
    timings: CounterTimings = CounterTimings()
) -> Tuple[CounterState, List[Output]]:
    """Advance the counter by one event.

    Args:
        state: Current counter state
        event: Event to apply
        config: Exercise targets (reps per set, sets, rest seconds)
        timings: Display and countdown delays

    Returns:
        Tuple of (new state, effects and schedule requests in order).
        Events that do not apply to the current state leave it unchanged
        and produce nothing.
    """
    if isinstance(state, Active) and isinstance(event, RepConfirmed):
        return _count_rep(state, config, timings)

    if isinstance(state, SetComplete) and isinstance(event, DisplayElapsed):
        if state.set >= config.sets:
            return ExerciseComplete(rep=state.rep, set=state.set), [
                Effect(EffectKind.EXERCISE_COMPLETED),
                Schedule(timings.completion_delay, CompletionElapsed()),
            ]
        if config.rest_seconds <= 0:
            return _next_set(state.set)
        return Resting(rep=state.rep, set=state.set, remaining=config.rest_seconds), [
            Effect(EffectKind.REST_STARTED, config.rest_seconds),
            Schedule(timings.rest_tick, RestTick()),
        ]

    if isinstance(state, Resting) and isinstance(event, RestTick):
        remaining = state.remaining - 1
        if remaining <= 0:
            return _next_set(state.set)
        outputs: List[Output] = []
        if remaining <= timings.countdown_from:
            outputs.append(Effect(EffectKind.COUNTDOWN_TICK, remaining))
        outputs.append(Schedule(timings.rest_tick, RestTick()))
        return replace(state, remaining=remaining), outputs

    if isinstance(state, ExerciseComplete) and isinstance(event, CompletionElapsed):
        if state.notified:
            return state, []
        return replace(state, notified=True), [Effect(EffectKind.COMPLETION_DUE)]

    return state, []


def _count_rep(
    state: Active,
    config: ExerciseConfig,
    timings: CounterTimings
) -> Tuple[CounterState, List[Output]]:
    rep = state.rep + 1
    outputs: List[Output] = [Effect(EffectKind.REP_COUNTED, rep)]
    if rep < config.reps_per_set:
        return Active(rep=rep, set=state.set), outputs

    outputs.append(Effect(EffectKind.SET_COMPLETED, state.set))
    outputs.append(Schedule(timings.set_complete_delay, DisplayElapsed()))
    return SetComplete(rep=rep, set=state.set), outputs


def _next_set(current_set: int) -> Tuple[CounterState, List[Output]]:
    next_set = current_set + 1
    return Active(rep=0, set=next_set), [Effect(EffectKind.REST_OVER, next_set)]
