"""Tests for the per-tick economy simulation."""

import pytest

from rebar.errors import UnknownUnit, CannotBuild
from rebar.game_state import GameState
from rebar.unit import Unit
from rebar.world_params import WorldParams

HALF_WIND_BUILD = 0.5 * 1600.0 / 300.0


# ---------------------------------------------------------------------------
# Time and storage
# ---------------------------------------------------------------------------

def test_time(state):
    assert state.time == pytest.approx(0.0)
    state.simulate(1.5)
    assert state.time == pytest.approx(1.5)
    state.simulate(0.1)
    assert state.time == pytest.approx(1.6)


def test_initial_pools_from_world_params():
    s = GameState(WorldParams(start_metal=120.0, start_energy=80.0))
    assert s.metal == 120.0
    assert s.energy == 80.0
    assert s.wind_strength == 25.0
    assert s.units == []


def test_storage(state):
    assert state.energy_storage() == pytest.approx(500.0)
    assert state.metal_storage() == pytest.approx(500.0)

    com = Unit.new_unconstructed(1.0, 1.0, 1.0)
    com.m_storage = 500.0
    com.e_storage = 500.0
    state.register_unit("Commander", com)
    state.add_completed_unit("Commander")

    # Matches the start of a normal game of BAR
    state.simulate(0.01)
    assert state.energy_storage() == pytest.approx(1000.0)
    assert state.metal_storage() == pytest.approx(1000.0)
    assert state.energy == pytest.approx(1000.0)
    assert state.metal == pytest.approx(1000.0)

    # Losing the commander drops back to base storage
    state.units.clear()
    state.simulate(0.01)
    assert state.energy_storage() == pytest.approx(500.0)
    assert state.metal_storage() == pytest.approx(500.0)
    assert state.energy == pytest.approx(500.0)
    assert state.metal == pytest.approx(500.0)


def test_unfinished_units_add_no_storage(state, commander):
    state.register_unit("Commander", commander)
    state.add_unit("Commander")
    assert state.metal_storage() == 500.0
    assert state.energy_storage() == 500.0


def test_resource_generation(state, commander):
    state.simulate(2.0)
    assert state.energy == pytest.approx(500.0)
    assert state.metal == pytest.approx(500.0)

    state.register_unit("Commander", commander)
    state.add_completed_unit("Commander")

    state.simulate(2.0)
    assert state.energy == pytest.approx(560.0)
    assert state.metal == pytest.approx(504.0)

    state.simulate(250.0)
    assert state.energy == pytest.approx(1000.0)
    assert state.metal == pytest.approx(1000.0)


def test_zero_dt_changes_nothing(state, commander, mex):
    state.register_unit("Commander", commander)
    state.register_unit("Mex", mex)
    state.add_completed_unit("Commander")
    state.add_completed_unit("Mex")
    state.simulate(3.0)

    before = (state.energy, state.metal, state.time)
    state.simulate(0.0)
    assert (state.energy, state.metal, state.time) == before


# ---------------------------------------------------------------------------
# Wind
# ---------------------------------------------------------------------------

def test_wind(state, wind):
    state.wind_strength = 8.0
    state.simulate(2.0)
    assert state.energy == pytest.approx(500.0)
    assert state.metal == pytest.approx(500.0)

    state.register_unit("Wind", wind)
    state.add_completed_unit("Wind")

    # Limited by the lower of the unit's rating and the map wind
    state.simulate(2.0)
    assert state.energy == pytest.approx(516.0)


def test_double_wind_caps_each_generator(state, wind):
    state.wind_strength = 8.0
    state.simulate(2.0)
    assert state.energy == pytest.approx(500.0)
    assert state.metal == pytest.approx(500.0)

    state.register_unit("Wind", wind)
    state.add_completed_unit("Wind")
    state.add_completed_unit("Wind")

    state.simulate(2.0)
    assert state.energy == pytest.approx(532.0)


def test_weak_generator_below_wind_strength(state, wind):
    wind.wind_e_per_second = 5.0
    state.register_unit("Wind", wind)
    state.add_completed_unit("Wind")
    state.energy = 0.0
    state.simulate(2.0)
    assert state.energy == pytest.approx(10.0)


# ---------------------------------------------------------------------------
# Consumption priority
# ---------------------------------------------------------------------------

def test_mex(state, mex):
    state.energy = 25.0
    state.simulate(2.0)
    assert state.energy == pytest.approx(25.0)
    assert state.metal == pytest.approx(500.0)

    state.register_unit("Mex", mex)
    state.add_completed_unit("Mex")

    state.simulate(2.0)
    assert state.energy == pytest.approx(19.0)
    assert state.metal == pytest.approx(506.0)
    state.simulate(6.0)
    assert state.energy == pytest.approx(1.0)
    assert state.metal == pytest.approx(524.0)
    state.simulate(1.0)  # Energy stall
    assert state.energy == pytest.approx(1.0)
    assert state.metal == pytest.approx(524.0)

    state.energy = 100.0
    state.simulate(1.0)
    assert state.metal == pytest.approx(527.0)


def test_double_mex(state, mex):
    state.energy = 28.0
    state.simulate(2.0)
    assert state.energy == pytest.approx(28.0)
    assert state.metal == pytest.approx(500.0)

    state.register_unit("Mex", mex)
    state.add_completed_unit("Mex")
    state.add_completed_unit("Mex")

    state.simulate(4.0)
    assert state.energy == pytest.approx(4.0)
    assert state.metal == pytest.approx(524.0)
    state.simulate(1.0)  # Only the first mex can be powered
    assert state.energy == pytest.approx(1.0)
    assert state.metal == pytest.approx(527.0)
    state.simulate(1.0)  # Full stall
    assert state.energy == pytest.approx(1.0)
    assert state.metal == pytest.approx(527.0)


def test_exact_energy_does_not_power_unit(state, mex):
    state.register_unit("Mex", mex)
    state.add_completed_unit("Mex")
    state.energy = 3.0
    state.metal = 500.0
    state.simulate(1.0)
    assert state.energy == 3.0
    assert state.metal == 500.0


def test_unfinished_units_neither_produce_nor_consume(state, commander, mex):
    state.register_unit("Commander", commander)
    state.register_unit("Mex", mex)
    state.add_unit("Commander")
    state.add_unit("Mex")
    state.energy = 100.0
    state.metal = 100.0
    state.simulate(5.0)
    assert state.energy == 100.0
    assert state.metal == 100.0


# ---------------------------------------------------------------------------
# Catalog and instantiation
# ---------------------------------------------------------------------------

def test_add_unit_returns_index_and_clones(state, mex):
    state.register_unit("Mex", mex)
    assert state.add_unit("Mex") == 0
    assert state.add_completed_unit("Mex") == 1

    assert not state.units[0].alive
    assert state.units[0].metal == 0.0
    assert state.units[1].alive
    assert state.units[1].metal == mex.m_build_cost

    state.units[0].m_per_second = 99.0
    assert state.unit_catalog["Mex"].m_per_second == 3.0
    assert not state.unit_catalog["Mex"].alive


def test_register_unit_overwrites(state, mex, wind):
    state.register_unit("Thing", mex)
    state.register_unit("Thing", wind)
    idx = state.add_unit("Thing")
    assert state.units[idx].name == "Wind"


def test_add_unknown_unit(state):
    with pytest.raises(UnknownUnit) as exc:
        state.add_unit("armnothing")
    assert exc.value.name == "armnothing"
    assert isinstance(exc.value, KeyError)
    with pytest.raises(UnknownUnit):
        state.add_completed_unit("armnothing")
    assert state.units == []


# ---------------------------------------------------------------------------
# Build orders
# ---------------------------------------------------------------------------

def test_build_unit_requires_build_option(builder_state):
    s = builder_state
    s.register_unit("armsolar", Unit.new_unconstructed(155.0, 0.0, 2600.0))

    with pytest.raises(CannotBuild) as exc:
        s.build_unit(0, "armsolar")
    assert exc.value.builder_idx == 0
    assert exc.value.name == "armsolar"
    assert len(s.units) == 1
    assert s.units[0].build_target is None

    s.units[0].build_options.add("armsolar")
    idx = s.build_unit(0, "armsolar")
    assert idx == 1
    assert len(s.units) == 2
    assert s.units[0].build_target == 1
    assert not s.units[1].alive


def test_build_unit_unknown_template(builder_state):
    s = builder_state
    s.units[0].build_options.add("armghost")
    with pytest.raises(UnknownUnit):
        s.build_unit(0, "armghost")
    assert len(s.units) == 1
    assert s.units[0].build_target is None


def test_build_unit_bad_builder_index(builder_state):
    with pytest.raises(IndexError):
        builder_state.build_unit(5, "armwin")
    with pytest.raises(IndexError):
        builder_state.build_unit(-1, "armwin")


def test_build_completion(builder_state):
    s = builder_state
    target = s.build_unit(0, "armwin")

    s.simulate(HALF_WIND_BUILD)
    wind = s.units[target]
    assert not wind.alive
    assert wind.metal == pytest.approx(20.0)
    assert wind.energy == pytest.approx(87.5)
    assert s.metal == pytest.approx(980.0)
    assert s.energy == pytest.approx(912.5)
    assert s.units[0].build_target == target

    s.simulate(HALF_WIND_BUILD)
    assert wind.alive
    assert wind.metal == 40.0
    assert wind.energy == 175.0
    assert s.metal == pytest.approx(960.0)
    assert s.energy == pytest.approx(825.0)
    assert s.units[0].build_target is None


def test_build_step_clamped_to_remaining(builder_state):
    s = builder_state
    target = s.build_unit(0, "armwin")

    # Ten times the needed time still only costs the unit once
    s.simulate(10 * 1600.0 / 300.0)
    assert s.units[target].alive
    assert s.metal == pytest.approx(960.0)
    assert s.energy == pytest.approx(825.0)


def test_unaffordable_build_step_is_skipped(builder_state):
    s = builder_state
    target = s.build_unit(0, "armwin")
    s.metal = 10.0

    s.simulate(HALF_WIND_BUILD)
    assert s.units[target].metal == 0.0
    assert s.units[target].energy == 0.0
    assert s.metal == 10.0
    assert s.energy == 1000.0
    assert s.units[0].build_target == target

    s.metal = 1000.0
    s.simulate(HALF_WIND_BUILD)
    assert s.units[target].metal == pytest.approx(20.0)


def test_build_gated_on_both_resources(builder_state):
    s = builder_state
    target = s.build_unit(0, "armwin")
    s.energy = 50.0
    s.simulate(HALF_WIND_BUILD)
    assert s.units[target].metal == 0.0
    assert s.metal == 1000.0


def test_build_priority_follows_list_order(builder_state):
    s = builder_state
    s.add_completed_unit("Builder")
    first = s.build_unit(0, "armwin")
    second = s.build_unit(1, "armwin")
    s.metal = 30.0

    s.simulate(HALF_WIND_BUILD)
    assert s.units[first].metal == pytest.approx(20.0)
    assert s.units[second].metal == 0.0
    assert s.metal == pytest.approx(10.0)


def test_builder_upkeep_stall_does_not_stop_building(builder_state):
    s = builder_state
    s.units[0].e_cost_per_second = 10000.0
    target = s.build_unit(0, "armwin")
    s.simulate(HALF_WIND_BUILD)
    assert s.units[target].metal == pytest.approx(20.0)


def test_unfinished_builder_does_not_build(builder_state):
    s = builder_state
    idx = s.add_unit("Builder")
    target = s.add_unit("armwin")
    s.units[idx].build_target = target
    s.simulate(HALF_WIND_BUILD)
    assert s.units[target].metal == 0.0
    assert s.metal == 1000.0


def test_assisting_builder_released_when_target_done(builder_state):
    s = builder_state
    s.add_completed_unit("Builder")
    target = s.build_unit(0, "armwin")
    s.units[1].build_target = target

    s.simulate(2 * HALF_WIND_BUILD)
    assert s.units[target].alive
    assert s.units[0].build_target is None
    assert s.units[1].build_target is None
    # Only the first builder paid for it
    assert s.metal == pytest.approx(960.0)


def test_build_target_out_of_range_fails_fast(builder_state):
    s = builder_state
    s.units[0].build_target = 7
    with pytest.raises(IndexError):
        s.simulate(1.0)


def test_negative_build_target_is_not_wrapped(builder_state):
    s = builder_state
    s.add_unit("armwin")
    s.units[0].build_target = -1
    with pytest.raises(IndexError):
        s.simulate(1.0)


# ---------------------------------------------------------------------------
# Invariants over a longer run
# ---------------------------------------------------------------------------

def _busy_state(commander, mex, wind):
    s = GameState()
    s.wind_strength = 11.0
    commander.buildpower = 300.0
    commander.build_options = {"Mex", "Wind"}
    s.register_unit("Commander", commander)
    s.register_unit("Mex", mex)
    s.register_unit("Wind", wind)
    s.register_unit("Big", Unit.new_unconstructed(900.0, 4000.0, 9000.0))
    s.add_completed_unit("Commander")
    for _ in range(4):
        s.add_completed_unit("Mex")
    s.add_completed_unit("Wind")
    s.units[0].build_options.add("Big")
    s.build_unit(0, "Big")
    return s


DTS = [0.5, 1.0, 0.25, 3.0, 0.0, 2.0, 1.5, 0.1] * 25


def test_pools_stay_within_bounds(commander, mex, wind):
    s = _busy_state(commander, mex, wind)
    for dt in DTS:
        time_before = s.time
        s.simulate(dt)
        assert s.time == pytest.approx(time_before + dt)
        assert 0.0 <= s.metal <= s.metal_storage()
        assert 0.0 <= s.energy <= s.energy_storage()
        for u in s.units:
            assert 0.0 <= u.metal <= u.m_build_cost + 1e-9
            assert 0.0 <= u.energy <= u.e_build_cost + 1e-9


def test_trajectory_is_deterministic(commander, mex, wind):
    a = _busy_state(commander, mex, wind)
    b = _busy_state(commander.clone(), mex.clone(), wind.clone())
    for dt in DTS:
        a.simulate(dt)
        b.simulate(dt)
        assert (a.energy, a.metal, a.time) == (b.energy, b.metal, b.time)
        assert [(u.metal, u.energy, u.alive) for u in a.units] == \
               [(u.metal, u.energy, u.alive) for u in b.units]
