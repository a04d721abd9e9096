"""Waveform dumper attaching to a simulation."""
import logging
from typing import Optional

from .config import DumperConfig
from .errors import ModuleNotBuiltError
from .hierarchy import Module
from .registry import MarkerTable, SignalRegistry
from .scheduler import TimestampScheduler
from .simulator import Simulator
from .tracker import ChangeTracker
from .writer import TraceWriter, render_scope

logger = logging.getLogger(__name__)


class WaveDumper:
    """Dumps the signals of a module hierarchy to a VCD file.

    The module must be built before the dumper is attached. Attaching
    writes the header, scopes and initial values immediately; timestamp
    blocks follow as the simulation runs, and the final time is flushed
    when the simulation ends.

    Usage:
        top = Module('top')
        clk = top.add_input('clk')
        top.build()

        sim = Simulator()
        dumper = WaveDumper(top, sim, output_path='top.vcd')
        sim.register_action(5, lambda: sim.drive(clk, 1))
        sim.run()
    """

    def __init__(self, module: Module, simulator: Simulator,
                 output_path: Optional[str] = None,
                 config: Optional[DumperConfig] = None):
        """Attach a dumper to `module`.

        Args:
            module: Root of the hierarchy to dump; must be built
            simulator: Simulator delivering tick, end and change notifications
            output_path: Output file, overriding `config.output_path`
            config: Header and output settings

        Raises:
            ModuleNotBuiltError: `module` has not been built
            NamingConflictError: two ports of a module share a name
        """
        if not module.has_built:
            raise ModuleNotBuiltError(module.name)

        self.module = module
        self.config = (config or DumperConfig()).with_overrides(
            output_path=output_path)
        self.tracker = ChangeTracker()

        self._registry = SignalRegistry(
            module, simulator.changes, self.tracker.on_change)
        self.marker_table: MarkerTable = self._registry.collect()

        self._writer = None
        try:
            scope_text = render_scope(module, self.marker_table)
            self._writer = TraceWriter(self.config.output_path, self.marker_table)
            self._writer.write_header(
                date=self.config.header_date(),
                tool=self.config.tool,
                version=self.config.version,
                timescale=self.config.timescale,
                comment=self.config.comment)
            self._writer.write_definitions(scope_text)
            self._writer.write_initial_values()
        except Exception:
            self._registry.detach()
            if self._writer is not None:
                self._writer.close()
            raise

        self.scheduler = TimestampScheduler(
            self.tracker, self._writer, start_time=simulator.time)
        simulator.pre_tick.listen(self.scheduler.on_pre_tick)
        simulator.simulation_ended.listen(self.scheduler.on_simulation_end)

        logger.info("Dumping %d signal(s) of '%s' to %s",
                    len(self.marker_table), module.name,
                    self.config.output_path)

    @property
    def output_path(self) -> str:
        return self.config.output_path

    @property
    def module_order(self):
        """Modules in the order their signals received markers."""
        return list(self._registry.module_order)
