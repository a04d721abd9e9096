"""Selection of the signals to dump and assignment of their markers."""
import logging
from typing import Callable, Dict, Iterator, List, Tuple

from .errors import ModuleNotBuiltError
from .hierarchy import Module, Signal
from .simulator import ChangeListeners

logger = logging.getLogger(__name__)


class MarkerTable:
    """Ordered mapping from tracked signal to its VCD marker (s0, s1, ...)."""

    def __init__(self):
        self._markers: Dict[Signal, str] = {}

    def add(self, signal: Signal) -> str:
        """Assign the next marker to `signal`."""
        if signal in self._markers:
            raise ValueError(f"Signal '{signal.path}' already has a marker")
        marker = f"s{len(self._markers)}"
        self._markers[signal] = marker
        return marker

    def marker_for(self, signal: Signal) -> str:
        """Get the marker of a tracked signal."""
        return self._markers[signal]

    def markers(self) -> List[str]:
        """Get all markers in assignment order."""
        return list(self._markers.values())

    def items(self) -> Iterator[Tuple[Signal, str]]:
        return iter(self._markers.items())

    def __contains__(self, signal) -> bool:
        return signal in self._markers

    def __iter__(self) -> Iterator[Signal]:
        return iter(self._markers)

    def __len__(self):
        return len(self._markers)


class SignalRegistry:
    """Walks a built module hierarchy and decides what gets dumped.

    Modules are expanded breadth-first; a module's signals get their markers
    when it is dequeued. Constants are skipped, and opaque submodules are
    never expanded. Each tracked signal gets a change subscription that
    forwards it to `on_change`.
    """

    def __init__(self, root: Module, changes: ChangeListeners,
                 on_change: Callable[[Signal], None]):
        if not root.has_built:
            raise ModuleNotBuiltError(root.name)
        self._root = root
        self._changes = changes
        self._on_change = on_change
        self.marker_table = MarkerTable()
        self.module_order: List[Module] = []
        self._collected = False

    def collect(self) -> MarkerTable:
        """Assign markers and subscribe to changes of every tracked signal."""
        if self._collected:
            raise RuntimeError("Signals have already been collected")
        self._collected = True

        queue = [self._root]
        i = 0
        while i < len(queue):
            m = queue[i]
            i += 1
            self.module_order.append(m)
            n_tracked = 0
            for sig in m.signals:
                if sig.is_const:
                    continue
                self.marker_table.add(sig)
                self._changes.subscribe(sig, self._on_change)
                n_tracked += 1
            for sub in m.submodules:
                if sub.opaque:
                    logger.debug("Not expanding opaque module %s", sub.path)
                    continue
                queue.append(sub)
            logger.debug("Module %s: %d tracked signal(s)", m.path, n_tracked)

        return self.marker_table

    def detach(self):
        """Remove the change subscriptions installed by collect()."""
        for sig in self.marker_table:
            if self._on_change in self._changes.subscribers(sig):
                self._changes.unsubscribe(sig, self._on_change)
