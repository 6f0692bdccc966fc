"""
Motor Sync Tracker - turns N unordered axis completions into one transition
"""

from typing import Dict, Iterable, Tuple

from .types import CRANE_AXES


class MotorSyncTracker:
    """
    Tracks which axes of a multi-axis move have reached their target.

    Axes report in any order and may report more than once. Axes that are
    not part of the current move are pre-marked ready on reset so they
    never block progress.
    """

    def __init__(self, axes: Iterable[int] = CRANE_AXES):
        self._ready: Dict[int, bool] = {axis: False for axis in axes}

    def reset(self, moving: Iterable[int]) -> None:
        """Start a new multi-axis move. Only `moving` axes are awaited."""
        moving = set(moving)
        unknown = moving - set(self._ready)
        if unknown:
            raise ValueError(f"Unknown axes {sorted(unknown)}")
        for axis in self._ready:
            self._ready[axis] = axis not in moving

    def mark_ready(self, axis: int) -> bool:
        """
        Record that an axis reached its target.

        Returns True only when this call completes the set. Duplicate
        reports and unknown axes are ignored.
        """
        if axis not in self._ready or self._ready[axis]:
            return False
        self._ready[axis] = True
        return self.all_ready()

    def all_ready(self) -> bool:
        return all(self._ready.values())

    def pending(self) -> Tuple[int, ...]:
        return tuple(axis for axis, ready in self._ready.items() if not ready)

    def snapshot(self) -> Dict[int, bool]:
        return dict(self._ready)
