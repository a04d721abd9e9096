"""VCD (Value Change Dump) file reader.

Parses VCD text back into its header fields, variable declarations and
timestamp blocks, keeping values as the bit strings that were written.
Used to inspect dumps produced by WaveDumper.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class VCDSignal:
    """A $var declaration."""
    identifier: str  # Marker (e.g., "s0")
    name: str
    width: int
    scope_path: str  # Hierarchical path (e.g., "top.child")
    var_type: str  # wire, reg, ...


@dataclass
class VCDValueChange:
    """A value change within a timestamp block."""
    time: int
    identifier: str
    value: str  # Bit string, MSB first (e.g., "0101", "1", "x")


@dataclass
class VCDData:
    """Parsed VCD file data."""
    date: str = ""
    version: str = ""
    comment: str = ""
    timescale: str = ""
    signals: Dict[str, VCDSignal] = field(default_factory=dict)  # identifier -> signal
    signals_by_path: Dict[str, VCDSignal] = field(default_factory=dict)  # full_path -> signal
    scopes: List[str] = field(default_factory=list)  # scope paths in declaration order
    initial_values: Dict[str, str] = field(default_factory=dict)  # identifier -> value
    value_changes: List[VCDValueChange] = field(default_factory=list)
    timestamps: List[int] = field(default_factory=list)  # every '#t' line, in order

    def changes_at(self, time: int) -> Dict[str, str]:
        """Changes written in the block(s) for `time`, keyed by identifier."""
        return {c.identifier: c.value for c in self.value_changes if c.time == time}

    def value_at(self, identifier: str, time: int) -> Optional[str]:
        """Value of a signal after all changes up to and including `time`."""
        value = self.initial_values.get(identifier)
        for change in self.value_changes:
            if change.time > time:
                break
            if change.identifier == identifier:
                value = change.value
        return value


class VCDReader:
    """Parser for VCD files."""

    _SECTION_FIELDS = {'$date': 'date', '$version': 'version',
                       '$comment': 'comment', '$timescale': 'timescale'}

    def __init__(self, filename: str):
        self._filename = filename
        self._data = VCDData()
        self._current_scope: List[str] = []

    def parse(self) -> VCDData:
        """Parse the VCD file and return parsed data."""
        with open(self._filename, 'r') as f:
            tokens = f.read().split()
        return self.parse_tokens(tokens)

    def parse_tokens(self, tokens: List[str]) -> VCDData:
        idx = self._parse_definitions(tokens)
        self._parse_changes(tokens, idx)
        return self._data

    def _section(self, tokens: List[str], idx: int) -> Tuple[List[str], int]:
        """Return the tokens between tokens[idx] and its $end, and the next index."""
        end = idx + 1
        while end < len(tokens) and tokens[end] != '$end':
            end += 1
        if end == len(tokens):
            raise ValueError(f"Unterminated {tokens[idx]} section")
        return tokens[idx + 1:end], end + 1

    def _parse_definitions(self, tokens: List[str]) -> int:
        idx = 0
        while idx < len(tokens):
            tok = tokens[idx]
            body, next_idx = self._section(tokens, idx)

            if tok == '$enddefinitions':
                return next_idx
            elif tok in self._SECTION_FIELDS:
                setattr(self._data, self._SECTION_FIELDS[tok], ' '.join(body))
            elif tok == '$scope':
                self._current_scope.append(body[-1])
                self._data.scopes.append('.'.join(self._current_scope))
            elif tok == '$upscope':
                if self._current_scope:
                    self._current_scope.pop()
            elif tok == '$var':
                self._parse_var(body)
            else:
                raise ValueError(f"Unexpected token '{tok}' in definitions")

            idx = next_idx
        raise ValueError("Missing $enddefinitions")

    def _parse_var(self, body: List[str]):
        # <type> <width> <identifier> <name> [<range>]
        var_type, width, identifier, name = body[:4]
        scope_path = '.'.join(self._current_scope)
        full_path = f"{scope_path}.{name}" if scope_path else name

        signal = VCDSignal(
            identifier=identifier,
            name=name,
            width=int(width),
            scope_path=scope_path,
            var_type=var_type)
        self._data.signals[identifier] = signal
        self._data.signals_by_path[full_path] = signal

    def _parse_changes(self, tokens: List[str], idx: int):
        current_time: Optional[int] = None
        in_dumpvars = False

        while idx < len(tokens):
            tok = tokens[idx]
            idx += 1

            if tok in ('$dumpvars', '$dumpall', '$dumpon', '$dumpoff'):
                in_dumpvars = tok == '$dumpvars'
            elif tok == '$end':
                in_dumpvars = False
            elif tok == '$comment':
                _, idx = self._section(tokens, idx - 1)
            elif tok.startswith('#'):
                time = int(tok[1:])
                if current_time is not None and time < current_time:
                    raise ValueError(
                        f"Timestamp #{time} follows #{current_time}")
                current_time = time
                self._data.timestamps.append(time)
            else:
                if tok[0] in 'bBrR':
                    value, identifier = tok[1:], tokens[idx]
                    idx += 1
                elif tok[0] in '01xXzZ':
                    value, identifier = tok[0], tok[1:]
                else:
                    raise ValueError(f"Malformed value change '{tok}'")

                if in_dumpvars:
                    self._data.initial_values[identifier] = value.lower()
                elif current_time is None:
                    raise ValueError(
                        f"Value change for '{identifier}' before any timestamp")
                else:
                    self._data.value_changes.append(VCDValueChange(
                        time=current_time,
                        identifier=identifier,
                        value=value.lower()))
