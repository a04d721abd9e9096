import os
import pytest
from zuspec.be.wavedump import (
    WaveDumper, DumperConfig, Simulator, Module, VCDReader,
    ModuleNotBuiltError, NamingConflictError)


def _config(**kwargs):
    return DumperConfig(date='2024-01-01T12:00:00', tool='wavedump',
                        version='1.0', **kwargs)


def test_smoke(tmpdir):
    """Test a 1-bit signal toggling 0->1 at t=5 and 1->0 at t=10.

    The dump must contain the header, a single scope with a single var,
    the initial value and exactly two timestamp blocks.
    """
    top = Module('top')
    a = top.add_signal('a')
    top.build()

    sim = Simulator()
    vcd_path = str(tmpdir.join("toggle.vcd"))
    WaveDumper(top, sim, output_path=vcd_path, config=_config())

    sim.register_action(5, lambda: sim.drive(a, 1))
    sim.register_action(10, lambda: sim.drive(a, 0))
    sim.run()

    with open(vcd_path) as f:
        content = f.read()

    assert content == """$date
  2024-01-01T12:00:00
$end
$version
  wavedump 1.0
$end
$comment
  Generated by zuspec-be-wavedump
$end
$timescale 1ps $end
$scope module top $end
  $var wire 1 s0 a $end
$upscope $end
$enddefinitions $end
$dumpvars
0s0
$end
#5
1s0
#10
0s0
"""


def test_default_output_path(tmpdir):
    """Test that the dump goes to waves.vcd when no path is given."""
    top = Module('top')
    top.add_signal('a')
    top.build()

    with tmpdir.as_cwd():
        dumper = WaveDumper(top, Simulator())
        assert dumper.output_path == 'waves.vcd'
        assert os.path.exists('waves.vcd')


def test_same_time_changes_coalesce(tmpdir):
    """Test that changes within one instant produce a single block."""
    top = Module('top')
    a = top.add_signal('a')
    b = top.add_signal('b')
    count = top.add_signal('count', width=8)
    top.build()

    sim = Simulator()
    vcd_path = str(tmpdir.join("coalesce.vcd"))
    WaveDumper(top, sim, output_path=vcd_path, config=_config())

    def step1():
        sim.drive(b, 1)
        sim.drive(count, 0xAA)
        sim.drive(a, 1)
        sim.drive(count, 0xAB)

    sim.register_action(5, step1)
    sim.register_action(5, lambda: sim.drive(a, 0))
    # Driving the same value again is not a change
    sim.register_action(7, lambda: sim.drive(b, 1))
    sim.register_action(9, lambda: sim.drive(count, 1))
    sim.run()

    data = VCDReader(vcd_path).parse()
    assert data.timestamps == [5, 9], f"Unexpected timestamps {data.timestamps}"

    changes_at_5 = [(c.identifier, c.value)
                    for c in data.value_changes if c.time == 5]
    assert changes_at_5 == [('s1', '1'), ('s2', '10101011'), ('s0', '0')]
    assert data.changes_at(9) == {'s2': '00000001'}


def test_forced_end_flush(tmpdir):
    """Test that a change at the final time is written at simulation end."""
    top = Module('top')
    a = top.add_signal('a')
    top.build()

    sim = Simulator()
    vcd_path = str(tmpdir.join("end.vcd"))
    dumper = WaveDumper(top, sim, output_path=vcd_path, config=_config())

    sim.register_action(3, lambda: sim.drive(a, 1))
    sim.run()

    data = VCDReader(vcd_path).parse()
    assert data.timestamps == [3]
    assert data.changes_at(3) == {'s0': '1'}
    assert dumper.scheduler.terminated


def test_quiet_end_writes_empty_block(tmpdir):
    """Test that the end-of-run flush writes the final time even if quiet."""
    top = Module('top')
    a = top.add_signal('a')
    top.build()

    sim = Simulator()
    vcd_path = str(tmpdir.join("quiet.vcd"))
    WaveDumper(top, sim, output_path=vcd_path, config=_config())

    sim.register_action(3, lambda: sim.drive(a, 1))
    sim.register_action(7, lambda: None)
    sim.run()

    data = VCDReader(vcd_path).parse()
    assert data.timestamps == [3, 7]
    assert data.changes_at(7) == {}

    with open(vcd_path) as f:
        assert f.read().endswith("#3\n1s0\n#7\n")


def test_hierarchy_dump(tmpdir):
    """Test nested scopes, opaque modules, constants and empty scopes."""
    top = Module('top')
    clk = top.add_input('clk')
    top.add_const('one', 1)
    core = top.add_submodule(Module('core'))
    state = core.add_signal('state', width=4, value=[1, 0, 1, 0])
    prim = core.add_submodule(Module('prim', opaque=True))
    prim.add_signal('hidden')
    wrapper = top.add_submodule(Module('wrapper'))
    wrapper.add_const('tied', 0)
    wrapper.add_submodule(Module('bbox', opaque=True)).add_input('x')
    top.build()

    sim = Simulator()
    vcd_path = str(tmpdir.join("hier.vcd"))
    dumper = WaveDumper(top, sim, output_path=vcd_path, config=_config())

    assert len(dumper.marker_table) == 2
    assert dumper.marker_table.marker_for(clk) == 's0'
    assert dumper.marker_table.marker_for(state) == 's1'

    with open(vcd_path) as f:
        content = f.read()
    assert """$scope module top $end
  $var wire 1 s0 clk $end
  $scope module core $end
    $var wire 4 s1 state $end
  $upscope $end
$upscope $end
$enddefinitions $end
$dumpvars
0s0
b0101 s1
$end
""" in content
    assert 'prim' not in content
    assert 'wrapper' not in content

    sim.register_action(2, lambda: sim.drive(clk, 1))
    sim.register_action(2, lambda: sim.drive(prim.signals[0], 1))
    sim.register_action(4, lambda: sim.drive(state, '1111'))
    sim.run()

    data = VCDReader(vcd_path).parse()
    assert data.scopes == ['top', 'top.core']
    assert set(data.signals_by_path) == {'top.clk', 'top.core.state'}
    assert data.changes_at(2) == {'s0': '1'}
    assert data.changes_at(4) == {'s1': '1111'}


def test_initial_values_once_per_signal(tmpdir):
    """Test that $dumpvars holds each tracked signal exactly once."""
    top = Module('top')
    for i in range(3):
        top.add_signal(f"sig{i}", width=i + 1, value=i)
    child = top.add_submodule(Module('child'))
    child.add_signal('sig0')
    top.build()

    vcd_path = str(tmpdir.join("init.vcd"))
    dumper = WaveDumper(top, Simulator(), output_path=vcd_path,
                        config=_config())
    dumper.scheduler.on_simulation_end(0)

    data = VCDReader(vcd_path).parse()
    markers = dumper.marker_table.markers()
    assert len(set(markers)) == len(markers) == 4
    assert sorted(data.initial_values) == sorted(markers)
    assert data.initial_values == {'s0': '0', 's1': '01', 's2': '010', 's3': '0'}


def test_port_names_are_kept(tmpdir):
    """Test that an internal signal yields its name to a later port."""
    top = Module('top')
    top.add_signal('data')
    top.add_signal('data')
    top.add_input('data')
    top.add_signal('a.b')
    top.build()

    vcd_path = str(tmpdir.join("names.vcd"))
    WaveDumper(top, Simulator(), output_path=vcd_path, config=_config())

    data = VCDReader(vcd_path).parse()
    names = [(s.identifier, s.name) for s in data.signals.values()]
    assert names == [('s0', 'data_0'), ('s1', 'data_1'), ('s2', 'data'),
                     ('s3', 'a_b')]


def test_port_name_conflict(tmpdir):
    """Test that two ports with the same sanitized name are rejected."""
    top = Module('top')
    top.add_input('a.b')
    top.add_output('a_b')
    top.build()

    with pytest.raises(NamingConflictError):
        WaveDumper(top, Simulator(), output_path=str(tmpdir.join("x.vcd")))


def test_failed_attach_leaves_nothing_behind(tmpdir):
    """Test that a rejected attach leaves no subscriptions and no file."""
    top = Module('top')
    a = top.add_signal('a')
    top.add_input('a.b')
    top.add_output('a_b')
    top.build()

    sim = Simulator()
    vcd_path = str(tmpdir.join("conflict.vcd"))
    with pytest.raises(NamingConflictError):
        WaveDumper(top, sim, output_path=vcd_path)

    for sig in top.signals:
        assert sim.changes.subscribers(sig) == [], f"{sig.name} still subscribed"
    assert len(sim.pre_tick) == 0
    assert len(sim.simulation_ended) == 0
    assert not os.path.exists(vcd_path)

    # The signals can still be driven and dumped by a later attach
    top.signals[1].name = 'c'
    dumper = WaveDumper(top, sim, output_path=vcd_path, config=_config())
    sim.register_action(1, lambda: sim.drive(a, 1))
    sim.run()
    assert VCDReader(vcd_path).parse().changes_at(1) == {'s0': '1'}
    assert len(dumper.marker_table) == 3


def test_unbuilt_module(tmpdir):
    """Test that attaching to an unbuilt module fails without output."""
    top = Module('top')
    top.add_signal('a')

    vcd_path = str(tmpdir.join("unbuilt.vcd"))
    with pytest.raises(ModuleNotBuiltError):
        WaveDumper(top, Simulator(), output_path=vcd_path)
    assert not os.path.exists(vcd_path)


def test_duplicate_instance_names(tmpdir):
    """Test that sibling instances with the same name get unique scopes."""
    top = Module('top')
    for _ in range(2):
        top.add_submodule(Module('u')).add_signal('q')
    top.build()

    vcd_path = str(tmpdir.join("inst.vcd"))
    WaveDumper(top, Simulator(), output_path=vcd_path, config=_config())

    data = VCDReader(vcd_path).parse()
    assert data.scopes == ['top', 'top.u', 'top.u_0']
    assert data.signals_by_path['top.u_0.q'].identifier == 's1'
