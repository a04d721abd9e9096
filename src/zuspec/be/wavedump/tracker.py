"""Set of signals changed during the currently open timestamp."""
from typing import Dict, Tuple

from .hierarchy import Signal


class ChangeTracker:
    """Collects changed signals, in first-change order, until drained."""

    def __init__(self):
        self._pending: Dict[Signal, None] = {}

    def on_change(self, signal: Signal):
        """Mark `signal` as changed in the open timestamp."""
        self._pending[signal] = None

    def drain(self) -> Tuple[Signal, ...]:
        """Return the pending signals and clear the set."""
        pending, self._pending = tuple(self._pending), {}
        return pending

    @property
    def pending(self) -> Tuple[Signal, ...]:
        return tuple(self._pending)

    def __contains__(self, signal) -> bool:
        return signal in self._pending

    def __len__(self):
        return len(self._pending)

    def __bool__(self):
        return bool(self._pending)
