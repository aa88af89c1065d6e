"""
ALIGNIFY Workout Service - Hold Accumulator

Integrates per-frame match decisions over wall-clock time into progress
toward a required hold duration. Matching frames add time, non-matching
frames decay it. Frame gaps are clamped so a stalled stream can neither
jump straight to completion nor accumulate negative time.
"""

from dataclasses import dataclass, replace
from typing import Optional
from enum import Enum

# Absorbs float error when summing frame deltas up to the required duration.
COMPLETION_EPSILON = 1e-9


class HoldPhase(Enum):
    """Hold progression phases. COMPLETE is reported once, then reverts to IDLE."""
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"


@dataclass
class HoldState:
    """Snapshot of the accumulator after a tick."""
    cumulative_seconds: float
    required_seconds: float
    progress_percent: int = 0
    last_timestamp: Optional[float] = None
    phase: HoldPhase = HoldPhase.IDLE

    @property
    def is_complete(self) -> bool:
        return self.phase == HoldPhase.COMPLETE


class HoldAccumulator:
    """
    Hold-to-advance timer.

    Args:
        required_seconds: Matched time needed to complete the hold
        increment_rate: Seconds credited per matched second
        decay_rate: Seconds removed per unmatched second
        max_dt: Upper bound applied to the gap between two ticks
    """

    def __init__(
        self,
        required_seconds: float = 4.0,
        increment_rate: float = 1.0,
        decay_rate: float = 1.0,
        max_dt: float = 0.5,
    ):
        self.increment_rate = increment_rate
        self.decay_rate = decay_rate
        self.max_dt = max_dt
        self.state = HoldState(cumulative_seconds=0.0, required_seconds=required_seconds)

    def reset(self):
        self.state = HoldState(cumulative_seconds=0.0, required_seconds=self.state.required_seconds)

    def _clamped_delta(self, now: float) -> float:
        dt = now - self.state.last_timestamp
        return min(max(dt, 0.0), self.max_dt)

    def tick(self, is_match: bool, now: float) -> HoldState:
        state = self.state
        required = state.required_seconds

        if state.last_timestamp is not None:
            dt = self._clamped_delta(now)
            if is_match:
                state.cumulative_seconds += dt * self.increment_rate
            else:
                state.cumulative_seconds = max(0.0, state.cumulative_seconds - dt * self.decay_rate)
        state.last_timestamp = now

        if is_match and state.phase == HoldPhase.IDLE:
            state.phase = HoldPhase.ACCUMULATING
        elif state.phase == HoldPhase.ACCUMULATING and state.cumulative_seconds <= 0.0 and not is_match:
            state.phase = HoldPhase.IDLE

        if state.cumulative_seconds >= required - COMPLETION_EPSILON:
            completed = replace(
                state,
                cumulative_seconds=required,
                progress_percent=100,
                phase=HoldPhase.COMPLETE,
            )
            self.reset()
            return completed

        state.cumulative_seconds = min(state.cumulative_seconds, required)
        state.progress_percent = round(100 * state.cumulative_seconds / required)
        return replace(state)
