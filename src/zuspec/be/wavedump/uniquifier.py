"""Per-scope name uniquification."""
from typing import Iterable, Optional, Set

from .errors import NamingConflictError


class NameUniquifier:
    """Hands out collision-free names within one scope.

    Reserved names (ports) are granted verbatim. Names listed in `reserved`
    at construction are held back for their port, so an internal signal
    declared earlier can never take a port's name.
    """

    def __init__(self, reserved: Iterable[str] = (), scope: Optional[str] = None):
        self._scope = scope
        self._taken: Set[str] = set()
        self._held: Set[str] = set()
        for name in reserved:
            if name in self._held:
                raise NamingConflictError(name, scope)
            self._held.add(name)

    def is_available(self, name: str) -> bool:
        return name not in self._taken and name not in self._held

    def get_unique_name(self, name: str, reserved: bool = False) -> str:
        """Return a name unique in this scope, derived from `name`.

        Raises:
            NamingConflictError: `reserved` is set and `name` is already taken
        """
        if reserved:
            if name in self._taken:
                raise NamingConflictError(name, self._scope)
            self._held.discard(name)
            self._taken.add(name)
            return name

        candidate = name
        suffix = 0
        while not self.is_available(candidate):
            candidate = f"{name}_{suffix}"
            suffix += 1
        self._taken.add(candidate)
        return candidate
