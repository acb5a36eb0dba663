"""Shared test fixtures for the ReBAR test suite."""

import sys
from pathlib import Path

import pytest

# Ensure sim/ is on the path so `rebar` imports work
SIM_ROOT = Path(__file__).parent.parent
if str(SIM_ROOT) not in sys.path:
    sys.path.insert(0, str(SIM_ROOT))

from rebar.game_state import GameState
from rebar.unit import Unit
from rebar.world_params import WorldParams

UNITDEFS_DIR = Path(__file__).parent / "unitdefs"
SCENARIOS_DIR = Path(__file__).parent / "scenarios"


@pytest.fixture
def state():
    """Fresh game state with BAR default world parameters."""
    return GameState(WorldParams())


@pytest.fixture
def commander():
    """Commander-like template: storage, income and 300 build power."""
    com = Unit.new_unconstructed(1.0, 1.0, 1.0, name="Commander")
    com.m_storage = 500.0
    com.e_storage = 500.0
    com.e_per_second = 30.0
    com.m_per_second = 2.0
    return com


@pytest.fixture
def mex():
    """Metal extractor template: 3 E/s upkeep for 3 M/s."""
    m = Unit.new_unconstructed(1.0, 1.0, 1.0, name="Mex")
    m.m_storage = 50.0
    m.e_cost_per_second = 3.0
    m.m_per_second = 3.0
    return m


@pytest.fixture
def wind():
    """Wind generator template producing up to 25 E/s."""
    w = Unit.new_unconstructed(1.0, 1.0, 1.0, name="Wind")
    w.wind_e_per_second = 25.0
    w.e_storage = 100.0
    return w


@pytest.fixture
def builder_state(state):
    """State with a completed 300 BP builder (index 0) that can build a wind turbine."""
    builder = Unit.new_unconstructed(1.0, 1.0, 1.0, name="Builder")
    builder.buildpower = 300.0
    builder.m_storage = 500.0
    builder.e_storage = 500.0
    builder.build_options = {"armwin"}
    state.register_unit("Builder", builder)
    state.register_unit("armwin", Unit.new_unconstructed(40.0, 175.0, 1600.0, name="Wind Turbine"))
    state.add_completed_unit("Builder")
    return state
