"""VCD text output."""
import logging
from typing import Iterable

from .hierarchy import Module, Signal
from .registry import MarkerTable
from .sanitizer import sanitize
from .uniquifier import NameUniquifier

logger = logging.getLogger(__name__)


def format_value(signal: Signal, marker: str) -> str:
    """Format the current value of `signal` as a VCD value-change line.

    A 1-bit signal is written as '<bit><marker>'; wider signals as
    'b<bits, MSB first> <marker>'.
    """
    if signal.width > 1:
        bits = ''.join(str(b) for b in reversed(signal.value))
        return f"b{bits} {marker}"
    return f"{signal.bit}{marker}"


def render_scope(m: Module, marker_table: MarkerTable, indent: int = 0) -> str:
    """Render the scope of `m`, or '' if it declares nothing to dump.

    Raises:
        NamingConflictError: two ports of one module share a sanitized name
    """
    padding = '  ' * indent
    tracked = [s for s in m.signals if s in marker_table]
    uniquifier = NameUniquifier(
        reserved=[sanitize(s.name) for s in tracked if s.is_port],
        scope=m.path)

    inner = ''
    for sig in tracked:
        name = uniquifier.get_unique_name(
            sanitize(sig.name), reserved=sig.is_port)
        marker = marker_table.marker_for(sig)
        inner += f"{padding}  $var wire {sig.width} {marker} {name} $end\n"
    for sub in m.submodules:
        inner += render_scope(sub, marker_table, indent + 1)

    if not inner:
        return ''
    name = m.unique_instance_name or sanitize(m.name)
    return (f"{padding}$scope module {name} $end\n"
            f"{inner}"
            f"{padding}$upscope $end\n")


class TraceWriter:
    """Appends VCD sections to an output file.

    The file is created (or truncated) on construction. Every write is
    flushed so the file holds everything written so far.
    """

    def __init__(self, path: str, marker_table: MarkerTable):
        self.path = path
        self._marker_table = marker_table
        self._fp = open(path, 'w')
        logger.debug("Opened trace file %s", path)

    @property
    def closed(self) -> bool:
        return self._fp.closed

    def close(self):
        """Close the output file."""
        self._fp.close()

    def _write(self, text: str):
        self._fp.write(text)
        self._fp.flush()

    def write_header(self, date: str, tool: str, version: str,
                     timescale: str, comment: str):
        """Write the $date, $version, $comment and $timescale sections."""
        self._write(
            f"$date\n  {date}\n$end\n"
            f"$version\n  {tool} {version}\n$end\n"
            f"$comment\n  {comment}\n$end\n"
            f"$timescale {timescale} $end\n")

    def write_scope(self, root: Module) -> str:
        """Write the scope and variable declarations. Returns the text."""
        return self.write_definitions(render_scope(root, self._marker_table))

    def write_definitions(self, scope_text: str) -> str:
        """Write already rendered scopes followed by $enddefinitions."""
        text = scope_text + "$enddefinitions $end\n"
        self._write(text)
        return text

    def write_initial_values(self):
        """Write the $dumpvars section with every tracked signal's value."""
        lines = [format_value(sig, marker)
                 for sig, marker in self._marker_table.items()]
        self._write("$dumpvars\n" + ''.join(l + '\n' for l in lines) + "$end\n")

    def write_timestamp_block(self, timestamp: int, changed: Iterable[Signal]):
        """Write '#<timestamp>' and the current value of each changed signal."""
        lines = [f"#{timestamp}"]
        for sig in changed:
            lines.append(format_value(sig, self._marker_table.marker_for(sig)))
        self._write('\n'.join(lines) + '\n')
