"""
ReBAR - Resource economy kernel for Beyond All Reason style matches.
"""

from rebar.errors import (
    RebarError, UnknownUnit, CannotBuild,
    LoaderError, MissingRequiredField, InvalidFieldType, LuaSyntaxError,
    ScenarioError,
)
from rebar.world_params import WorldParams, DEFAULT_WORLD_PARAMS
from rebar.unit import Unit
from rebar.game_state import GameState

__version__ = "0.1.0"
