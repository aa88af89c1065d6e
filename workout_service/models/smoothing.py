"""
ALIGNIFY Workout Service - Temporal Smoothing

Sliding-window mean filters that suppress detector jitter. The landmark
smoother averages positions per landmark index, the angle smoother averages
joint angles per joint name. Both own a fixed-capacity ring buffer that is
seeded by replicating the first input across the whole window, so the filter
starts without warm-up bias.
"""

import logging
from collections import deque
from typing import Deque, Dict, Generic, Hashable, Mapping, TypeVar

import numpy as np

from .landmarks import AngleSet, Landmark, LandmarkFrame

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class _WindowedSmoother(Generic[K, V]):
    """Ring buffer of keyed samples shared by both smoothers."""

    def __init__(self, window_size: int = 5):
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self.window_size = window_size
        self._buffer: Deque[Mapping[K, V]] = deque(maxlen=window_size)

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def is_seeded(self) -> bool:
        return len(self._buffer) > 0

    def reset(self):
        """Drop history; the next push re-seeds the window."""
        if self._buffer:
            logger.debug(f"{type(self).__name__} reset ({len(self._buffer)} samples dropped)")
        self._buffer.clear()

    def _append(self, sample: Mapping[K, V]):
        if not self._buffer:
            for _ in range(self.window_size):
                self._buffer.append(dict(sample))
        else:
            self._buffer.append(dict(sample))

    def _history(self, key: K):
        """Values recorded for ``key`` in the frames where it appears."""
        return [sample[key] for sample in self._buffer if key in sample]


class LandmarkSmoother(_WindowedSmoother[int, Landmark]):
    """
    Moving-average filter over raw landmark frames.

    The output carries exactly the landmark indices present in the latest
    frame. Each position is the mean over the buffered frames in which that
    index appears; visibility is taken from the latest frame.
    """

    def push(self, frame: LandmarkFrame) -> LandmarkFrame:
        self._append(frame)

        smoothed: LandmarkFrame = {}
        for idx, latest in frame.items():
            coords = np.array([[lm.x, lm.y, lm.z] for lm in self._history(idx)])
            x, y, z = coords.mean(axis=0)
            smoothed[idx] = Landmark(
                x=float(x),
                y=float(y),
                z=float(z),
                visibility=latest.visibility,
            )
        return smoothed


class AngleSmoother(_WindowedSmoother[str, float]):
    """
    Moving-average filter over joint angle sets.

    A joint missing from the latest set but present in history is averaged
    over the frames where it appears, so a briefly occluded joint holds its
    recent value instead of dropping to zero. Joints never seen are omitted.
    """

    def push(self, angles: AngleSet) -> AngleSet:
        self._append(angles)

        joints: Dict[str, None] = {}
        for sample in self._buffer:
            joints.update(dict.fromkeys(sample))

        return {joint: float(np.mean(self._history(joint))) for joint in joints}
