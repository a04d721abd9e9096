"""Decides when the changes of a timestamp are written out."""
import logging
from typing import List

from .tracker import ChangeTracker
from .writer import TraceWriter

logger = logging.getLogger(__name__)


class TimestampScheduler:
    """Flushes accumulated changes when simulated time moves on.

    Changes are collected for `current_timestamp` until a tick at a
    different time arrives; only then is the timestamp written, and only if
    something changed. The end of simulation always flushes the final time,
    even when nothing is pending, and leaves the scheduler inert.
    """

    def __init__(self, tracker: ChangeTracker, writer: TraceWriter,
                 start_time: int = 0):
        self._tracker = tracker
        self._writer = writer
        self.current_timestamp = start_time
        self.flushed_timestamps: List[int] = []
        self._terminated = False

    @property
    def terminated(self) -> bool:
        return self._terminated

    def on_pre_tick(self, now: int):
        """Handle simulated time about to advance to `now`."""
        if self._terminated or now == self.current_timestamp:
            return
        if now < self.current_timestamp:
            raise ValueError(
                f"Time moved backwards from {self.current_timestamp} to {now}")
        if self._tracker:
            self._flush(self.current_timestamp)
        self.current_timestamp = now

    def on_simulation_end(self, now: int):
        """Flush the final time `now` and stop handling notifications."""
        if self._terminated:
            return
        if now < self.current_timestamp:
            raise ValueError(
                f"Simulation ended at {now}, before {self.current_timestamp}")
        self.current_timestamp = now
        self._flush(now)
        self._terminated = True
        self._writer.close()

    def _flush(self, timestamp: int):
        changed = self._tracker.drain()
        logger.debug("Flushing %d change(s) at #%d", len(changed), timestamp)
        self._writer.write_timestamp_block(timestamp, changed)
        self.flushed_timestamps.append(timestamp)
