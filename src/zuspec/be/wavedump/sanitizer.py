"""Identifier sanitization for VCD output names."""
import re

_INVALID = re.compile(r'[^A-Za-z0-9_]')


def sanitize(name: str) -> str:
    """Make `name` a legal identifier.

    Every character outside [A-Za-z0-9_] becomes '_', and a leading
    underscore is added when the result would be empty or start with a digit.
    """
    result = _INVALID.sub('_', name)
    if not result or result[0].isdigit():
        result = '_' + result
    return result
