"""Configuration of a wave dump."""
import dataclasses as dc
import re
from datetime import datetime
from typing import Optional

from . import __version__

DEFAULT_OUTPUT_PATH = 'waves.vcd'

_TIMESCALE_RE = re.compile(r'^(1|10|100)\s*(s|ms|us|ns|ps|fs)$')


@dc.dataclass
class DumperConfig:
    """Settings for a WaveDumper.

    `date` defaults to the time of attach, in ISO-8601 form.
    """
    output_path: str = DEFAULT_OUTPUT_PATH
    timescale: str = '1ps'
    tool: str = 'zuspec-be-wavedump'
    version: str = __version__
    comment: str = 'Generated by zuspec-be-wavedump'
    date: Optional[str] = None

    def __post_init__(self):
        if not _TIMESCALE_RE.match(self.timescale):
            raise ValueError(f"Invalid timescale '{self.timescale}'")

    def header_date(self) -> str:
        """Get the date written in the $date section."""
        if self.date is not None:
            return self.date
        return datetime.now().isoformat()

    def with_overrides(self, **kwargs) -> 'DumperConfig':
        """Return a copy with every non-None keyword applied."""
        return dc.replace(self, **{k: v for k, v in kwargs.items() if v is not None})
