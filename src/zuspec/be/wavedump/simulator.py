"""Minimal discrete-event simulator that drives signal changes.

The wave dumper only relies on the notifications exposed here: `pre_tick`
(time is about to be processed), `simulation_ended` and the per-signal
`changes` registry.
"""
import heapq
import logging
from typing import Callable, Dict, List

from .hierarchy import Signal, to_bits

logger = logging.getLogger(__name__)


class Listeners:
    """Ordered list of callbacks invoked synchronously."""

    def __init__(self):
        self._callbacks: List[Callable] = []

    def listen(self, callback: Callable) -> Callable:
        """Add a callback."""
        self._callbacks.append(callback)
        return callback

    def remove(self, callback: Callable):
        self._callbacks.remove(callback)

    def emit(self, *args):
        """Call every callback with `args`."""
        for cb in list(self._callbacks):
            cb(*args)

    def __len__(self):
        return len(self._callbacks)


class ChangeListeners:
    """Observer registry mapping a signal to the callbacks interested in it.

    Callbacks for a signal run in registration order with the signal as
    their only argument.
    """

    def __init__(self):
        self._subscribers: Dict[Signal, List[Callable[[Signal], None]]] = {}

    def subscribe(self, signal: Signal, callback: Callable[[Signal], None]):
        """Call `callback` whenever `signal` changes."""
        self._subscribers.setdefault(signal, []).append(callback)

    def unsubscribe(self, signal: Signal, callback: Callable[[Signal], None]):
        callbacks = self._subscribers.get(signal, [])
        callbacks.remove(callback)
        if not callbacks:
            del self._subscribers[signal]

    def subscribers(self, signal: Signal) -> List[Callable[[Signal], None]]:
        """Get the callbacks subscribed to `signal`."""
        return list(self._subscribers.get(signal, []))

    def notify(self, signal: Signal):
        """Call the subscribers of `signal` in registration order."""
        for cb in self.subscribers(signal):
            cb(signal)


class Simulator:
    """Runs time-ordered actions.

    Each tick advances `time` to the earliest scheduled time, emits
    `pre_tick` with that time and then runs every action registered for it,
    including actions registered at the same time while the tick runs.
    When no actions remain, or after `end_simulation()`, `simulation_ended`
    is emitted once with the final time.
    """

    def __init__(self):
        self.time = 0
        self.pre_tick = Listeners()
        self.simulation_ended = Listeners()
        self.changes = ChangeListeners()
        self._actions: Dict[int, List[Callable[[], None]]] = {}
        self._times: List[int] = []
        self._ending = False
        self._ended = False

    @property
    def has_ended(self) -> bool:
        return self._ended

    def register_action(self, time: int, action: Callable[[], None]):
        """Schedule `action` to run at `time`."""
        if time < self.time:
            raise ValueError(
                f"Cannot schedule action at {time}, current time is {self.time}")
        if time not in self._actions:
            self._actions[time] = []
            heapq.heappush(self._times, time)
        self._actions[time].append(action)

    def drive(self, signal: Signal, value) -> bool:
        """Set the value of `signal`, notifying listeners if it changed.

        Returns True when the value changed.
        """
        if signal.is_const:
            raise ValueError(f"Cannot drive constant signal '{signal.name}'")
        bits = to_bits(value, signal.width)
        if bits == signal.value:
            return False
        signal.value = bits
        self.changes.notify(signal)
        return True

    def tick(self) -> bool:
        """Process the next scheduled time. Returns False if none remain."""
        if not self._times:
            return False
        self.time = heapq.heappop(self._times)
        self.pre_tick.emit(self.time)
        actions = self._actions[self.time]
        while actions:
            actions.pop(0)()
        del self._actions[self.time]
        return True

    def end_simulation(self):
        """Stop after the tick currently being processed."""
        self._ending = True

    def run(self):
        """Process every scheduled time, then emit simulation_ended."""
        if self._ended:
            raise RuntimeError("Simulation has already ended")
        while not self._ending and self.tick():
            pass
        self._ended = True
        logger.debug("Simulation ended at time %d", self.time)
        self.simulation_ended.emit(self.time)
