"""
ReBAR - Data Models
====================
Scenario definitions and simulation results.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple

from rebar.world_params import WorldParams, DEFAULT_WORLD_PARAMS


# ---------------------------------------------------------------------------
# Scenario definitions
# ---------------------------------------------------------------------------

@dataclass
class StartUnit:
    unit: str
    completed: bool = True


@dataclass
class BuildOrderStep:
    at: float
    builder: int
    unit: str


@dataclass
class Scenario:
    name: str
    description: str = ""
    world_params: WorldParams = DEFAULT_WORLD_PARAMS
    wind_strength: float = 25.0
    dt: float = 1.0
    duration: float = 600.0
    snapshot_every: int = 10

    # Paths as written in the file; resolved against base_dir
    unitdefs: List[str] = field(default_factory=list)
    base_dir: Optional[str] = None
    # Inline templates: catalog name -> definition fields
    units: Dict[str, dict] = field(default_factory=dict)

    start: List[StartUnit] = field(default_factory=list)
    orders: List[BuildOrderStep] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Simulation results
# ---------------------------------------------------------------------------

@dataclass
class Snapshot:
    time: float
    metal: float = 0.0
    energy: float = 0.0
    metal_storage: float = 0.0
    energy_storage: float = 0.0
    alive_units: int = 0
    under_construction: int = 0


@dataclass
class SimResult:
    scenario_name: str = ""
    final_time: float = 0.0

    snapshots: List[Snapshot] = field(default_factory=list)
    # (time, unit index, unit name)
    completion_log: List[Tuple[float, int, str]] = field(default_factory=list)
    pending_orders: List[BuildOrderStep] = field(default_factory=list)

    @property
    def final(self) -> Optional[Snapshot]:
        return self.snapshots[-1] if self.snapshots else None
