"""Zuspec Wave-dump Back-end.

Captures the value changes of a module hierarchy during simulation and
writes them to a VCD (Value Change Dump) file.
"""
__version__ = '0.1.0'

from .errors import WaveDumperError, ModuleNotBuiltError, NamingConflictError
from .hierarchy import Signal, Module, Const, bits_from_int, bits_from_str
from .sanitizer import sanitize
from .uniquifier import NameUniquifier
from .simulator import Simulator, Listeners, ChangeListeners
from .registry import MarkerTable, SignalRegistry
from .tracker import ChangeTracker
from .writer import TraceWriter, format_value, render_scope
from .scheduler import TimestampScheduler
from .config import DumperConfig
from .dumper import WaveDumper
from .vcd_reader import VCDReader, VCDData, VCDSignal, VCDValueChange


__all__ = [
    'WaveDumper',
    'DumperConfig',
    'Simulator',
    'Listeners',
    'ChangeListeners',
    'Signal',
    'Module',
    'Const',
    'bits_from_int',
    'bits_from_str',
    'sanitize',
    'NameUniquifier',
    'MarkerTable',
    'SignalRegistry',
    'ChangeTracker',
    'TimestampScheduler',
    'TraceWriter',
    'format_value',
    'render_scope',
    'VCDReader',
    'VCDData',
    'VCDSignal',
    'VCDValueChange',
    'WaveDumperError',
    'ModuleNotBuiltError',
    'NamingConflictError',
]
