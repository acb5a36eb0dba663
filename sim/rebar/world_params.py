"""
ReBAR - World Parameters
=========================
Global constants shared by every unit in a match.
"""

from dataclasses import dataclass, fields, replace
from typing import Optional

from rebar.errors import ScenarioError


@dataclass(frozen=True)
class WorldParams:
    # Reserved for health decay of abandoned construction; nothing reads these yet.
    decay_delay: float = 9.0
    decay_rate: float = 0.03

    start_metal: float = 1000.0
    base_metal_storage: float = 500.0
    start_energy: float = 1000.0
    base_energy_storage: float = 500.0


# Defaults taken from BAR
DEFAULT_WORLD_PARAMS = WorldParams()


def world_params_from_dict(data: Optional[dict]) -> WorldParams:
    """Build WorldParams from a YAML ``world:`` block, defaulting missing keys."""
    if not data:
        return DEFAULT_WORLD_PARAMS
    known = {f.name for f in fields(WorldParams)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ScenarioError(f"Unknown world parameter(s): {', '.join(unknown)}")

    values = {}
    for key, val in data.items():
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise ScenarioError(f"World parameter {key} must be a number, got {val!r}")
        values[key] = float(val)
    return replace(DEFAULT_WORLD_PARAMS, **values)


def world_params_to_dict(params: WorldParams) -> dict:
    return {f.name: getattr(params, f.name) for f in fields(WorldParams)}
