"""
ReBAR - Unit Definition Loader
===============================
Builds Unit templates from BAR unit definition files.

A definition is Lua source such as::

    return {
        armwin = {
            buildtime = 1600,
            energycost = 175,
            metalcost = 40,
            windgenerator = 25,
        },
    }

Keys are matched case-insensitively, since BAR defs mix ``metalCost`` and
``metalcost``; a definition that spells one key two ways is rejected.
Unknown keys are ignored.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from rebar.errors import LoaderError, InvalidFieldType, MissingRequiredField
from rebar.lua_table import parse_lua_table
from rebar.unit import Unit

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Unknown"

# Optional numeric fields: definition key -> Unit attribute
OPTIONAL_FLOAT_FIELDS = {
    "workertime": "buildpower",
    "windgenerator": "wind_e_per_second",
    "energystorage": "e_storage",
    "metalmake": "m_per_second",
    "metalstorage": "m_storage",
}

REQUIRED_FLOAT_FIELDS = {
    "buildtime": "buildtime",
    "metalcost": "m_build_cost",
    "energycost": "e_build_cost",
}


# ---------------------------------------------------------------------------
# Field access
# ---------------------------------------------------------------------------

def _get_float(defs: dict, key: str, default: Optional[float] = None) -> float:
    if key not in defs:
        if default is None:
            raise MissingRequiredField(key)
        return default
    value = defs[key]
    # bool is an int subclass in Python but a distinct type in Lua
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidFieldType(key, "float", value)
    return float(value)


def _get_string(defs: dict, key: str, default: str) -> str:
    if key not in defs:
        return default
    value = defs[key]
    if not isinstance(value, str):
        raise InvalidFieldType(key, "string", value)
    return value


def _get_string_set(defs: dict, key: str) -> set:
    if key not in defs:
        return set()
    value = defs[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidFieldType(key, "list of strings", value)
    return set(value)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def unit_from_fields(fields: dict) -> Unit:
    """Build an unconstructed template from definition key/value pairs."""
    defs = {}
    for key, value in fields.items():
        lowered = str(key).lower()
        if lowered in defs:
            raise LoaderError(f"Key {key} duplicates {lowered} when keys are matched case-insensitively")
        defs[lowered] = value

    e_per_sec = _get_float(defs, "energymake", 0.0)
    e_cost = _get_float(defs, "energyupkeep", 0.0)
    if e_cost < 0.0:
        # Negative upkeep means the unit is a net producer
        e_per_sec -= e_cost
        e_cost = 0.0

    unit = Unit(
        name=_get_string(defs, "name", DEFAULT_NAME),
        e_cost_per_second=e_cost,
        e_per_second=e_per_sec,
        build_options=_get_string_set(defs, "buildoptions"),
    )
    for key, attr in REQUIRED_FLOAT_FIELDS.items():
        setattr(unit, attr, _get_float(defs, key))
    for key, attr in OPTIONAL_FLOAT_FIELDS.items():
        setattr(unit, attr, _get_float(defs, key, 0.0))
    return unit


def parse_definition(definition: str) -> Unit:
    defs = parse_lua_table(definition)
    if not isinstance(defs, dict):
        raise LoaderError("Unit definition must be a keyed table")

    # Standard BAR layout wraps the fields in a single table keyed by unit id
    if len(defs) == 1:
        inner = next(iter(defs.values()))
        if isinstance(inner, dict):
            defs = inner
    return unit_from_fields(defs)


def load_definition_from_path(definition_path: Union[str, Path]) -> Unit:
    path = Path(definition_path)
    try:
        unit = parse_definition(path.read_text(encoding="utf-8"))
    except LoaderError as e:
        e.source = str(path)
        raise
    if unit.name == DEFAULT_NAME:
        unit.name = path.stem
    logger.debug("Loaded unit definition %s from %s", unit.name, path)
    return unit


def load_unit_dir(directory: Union[str, Path]) -> Dict[str, Unit]:
    """Load every ``*.lua`` definition in a directory, keyed by file stem.

    The stem is the unit id that ``buildoptions`` entries refer to.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Unit definition directory not found: {directory}")
    units = {}
    for path in sorted(directory.glob("*.lua")):
        units[path.stem] = load_definition_from_path(path)
    logger.debug("Loaded %d unit definitions from %s", len(units), directory)
    return units


def load_units(path: Union[str, Path]) -> Dict[str, Unit]:
    """Load a single definition file or a directory of them."""
    path = Path(path)
    if path.is_dir():
        return load_unit_dir(path)
    return {path.stem: load_definition_from_path(path)}
