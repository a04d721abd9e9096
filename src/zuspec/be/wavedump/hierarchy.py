"""Signal and module hierarchy observed by the wave dumper.

Signals compare by identity: two signals with the same name and value are
still distinct entries in a dump.
"""
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Union

from .sanitizer import sanitize
from .uniquifier import NameUniquifier

Bit = Union[int, str]

_BIT_CHARS = {'0': 0, '1': 1, 'x': 'x', 'X': 'x', 'z': 'z', 'Z': 'z'}


def bits_from_int(value: int, width: int) -> List[Bit]:
    """Convert an integer into a list of bits, least-significant first.

    Negative values are taken as two's complement. Values that do not fit in
    `width` bits raise ValueError.
    """
    if not -(1 << (width - 1)) <= value < (1 << width):
        raise ValueError(f"Value {value} does not fit in {width} bit(s)")
    if value < 0:
        value &= (1 << width) - 1
    return [(value >> i) & 1 for i in range(width)]


def bits_from_str(text: str) -> List[Bit]:
    """Convert an MSB-first bit string (e.g. '10x1') into an LSB-first list."""
    try:
        return [_BIT_CHARS[c] for c in reversed(text)]
    except KeyError as e:
        raise ValueError(f"Invalid bit character {e.args[0]!r} in '{text}'")


def _to_bit(b) -> Bit:
    if isinstance(b, str) and b in _BIT_CHARS:
        return _BIT_CHARS[b]
    if isinstance(b, int) and b in (0, 1):
        return int(b)
    raise ValueError(f"Invalid bit {b!r}; expected 0, 1, 'x' or 'z'")


def to_bits(value: Union[int, str, Sequence[Bit]], width: int) -> List[Bit]:
    """Normalize an int, MSB-first string or LSB-first bit sequence."""
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, int):
        bits = bits_from_int(value, width)
    elif isinstance(value, str):
        bits = bits_from_str(value)
    else:
        bits = [_to_bit(b) for b in value]
    if len(bits) != width:
        raise ValueError(
            f"Value has {len(bits)} bits, expected {width}")
    return bits


@dataclass(eq=False)
class Signal:
    """A named, fixed-width value owned by a module."""
    name: str
    width: int = 1
    value: Optional[List[Bit]] = field(default=None)  # LSB first
    is_port: bool = False
    is_const: bool = False
    module: Optional['Module'] = field(default=None, repr=False)

    def __post_init__(self):
        if self.width < 1:
            raise ValueError(
                f"Signal '{self.name}' must be at least 1 bit wide, "
                f"got {self.width}")
        if self.value is None:
            self.value = [0] * self.width
        else:
            self.value = to_bits(self.value, self.width)

    @property
    def bit(self) -> Bit:
        """The value of a width-1 signal."""
        if self.width != 1:
            raise ValueError(
                f"Signal '{self.name}' is {self.width} bits wide, not 1")
        return self.value[0]

    @property
    def value_int(self) -> Optional[int]:
        """Integer view of the value, or None if any bit is x or z."""
        result = 0
        for i, b in enumerate(self.value):
            if b not in (0, 1):
                return None
            result |= b << i
        return result

    @property
    def path(self) -> str:
        """Dotted hierarchical path of the signal."""
        if self.module is None:
            return self.name
        return f"{self.module.path}.{self.name}"


def Const(name: str, value, width: int = 1) -> Signal:
    """Create a constant signal."""
    return Signal(name=name, width=width, value=value, is_const=True)


@dataclass(eq=False)
class Module:
    """A node in the module hierarchy.

    Submodules and signals keep their declaration order. An opaque module
    is a leaf whose internals are never expanded by the dumper.
    """
    name: str
    opaque: bool = False
    submodules: List['Module'] = field(default_factory=list)
    signals: List[Signal] = field(default_factory=list)
    parent: Optional['Module'] = field(default=None, repr=False)
    unique_instance_name: Optional[str] = field(default=None)
    _built: bool = field(default=False, repr=False)

    @property
    def has_built(self) -> bool:
        return self._built

    @property
    def path(self) -> str:
        name = self.unique_instance_name or self.name
        if self.parent is None:
            return name
        return f"{self.parent.path}.{name}"

    def _check_not_built(self):
        if self._built:
            raise RuntimeError(
                f"Module '{self.name}' has already been built")

    def add_signal(self, name: str, width: int = 1, value=None,
                   is_port: bool = False, is_const: bool = False) -> Signal:
        """Declare a signal owned by this module."""
        self._check_not_built()
        sig = Signal(name=name, width=width, value=value,
                     is_port=is_port, is_const=is_const)
        sig.module = self
        self.signals.append(sig)
        return sig

    def add_input(self, name: str, width: int = 1, value=None) -> Signal:
        """Declare an input port."""
        return self.add_signal(name, width, value, is_port=True)

    def add_output(self, name: str, width: int = 1, value=None) -> Signal:
        """Declare an output port."""
        return self.add_signal(name, width, value, is_port=True)

    def add_const(self, name: str, value, width: int = 1) -> Signal:
        """Declare a constant signal."""
        return self.add_signal(name, width, value, is_const=True)

    def add_submodule(self, module: 'Module') -> 'Module':
        """Add `module` as the last child of this module."""
        self._check_not_built()
        if module.parent is not None:
            raise ValueError(
                f"Module '{module.name}' already belongs to "
                f"'{module.parent.name}'")
        module.parent = self
        self.submodules.append(module)
        return module

    def walk(self) -> Iterator['Module']:
        """Depth-first iteration over this module and its descendants."""
        yield self
        for sub in self.submodules:
            yield from sub.walk()

    def build(self) -> 'Module':
        """Freeze the hierarchy and assign unique instance names."""
        self._check_not_built()
        seen = set()
        for m in self.walk():
            if id(m) in seen:
                raise ValueError(
                    f"Module '{m.name}' appears more than once in the hierarchy")
            seen.add(id(m))
        if self.unique_instance_name is None:
            self.unique_instance_name = sanitize(self.name)
        self._name_submodules()
        return self

    def _name_submodules(self):
        uniquifier = NameUniquifier()
        for sub in self.submodules:
            sub.unique_instance_name = uniquifier.get_unique_name(
                sanitize(sub.name))
            sub._name_submodules()
        self._built = True
