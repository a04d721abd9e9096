"""Exceptions raised by the wave dumper."""


class WaveDumperError(Exception):
    """Base class for wave dumper errors."""
    pass


class ModuleNotBuiltError(WaveDumperError, RuntimeError):
    """A dumper was attached to a module hierarchy that has not been built."""

    def __init__(self, module_name: str):
        super().__init__(
            f"Module '{module_name}' must be built before it is passed to "
            f"the dumper. Call build() first.")
        self.module_name = module_name


class NamingConflictError(WaveDumperError, ValueError):
    """Two reserved (port) names collide within the same scope."""

    def __init__(self, name: str, scope: str = None):
        where = f" in scope '{scope}'" if scope else ""
        super().__init__(
            f"Reserved name '{name}' is already claimed{where}; "
            f"ports cannot be renamed")
        self.name = name
        self.scope = scope
