"""
ReBAR - Unit
=============
A single record type serves as both catalog template and live instance.
Templates are authored non-alive; instances are clones of a template.
"""

import copy
from dataclasses import dataclass, field
from typing import Optional, Set


@dataclass
class Unit:
    name: str = "Unnamed"
    # Flips to True once, on construction completion. Combat is not modeled,
    # so health is not tracked.
    alive: bool = False
    # Resources banked inside a unit under construction
    metal: float = 0.0
    energy: float = 0.0

    # Build
    buildtime: float = 0.0
    m_build_cost: float = 0.0
    e_build_cost: float = 0.0
    buildpower: float = 0.0
    build_target: Optional[int] = None  # index into GameState.units, not owned
    build_options: Set[str] = field(default_factory=set)

    # Production
    e_cost_per_second: float = 0.0
    e_per_second: float = 0.0
    wind_e_per_second: float = 0.0
    e_storage: float = 0.0
    m_per_second: float = 0.0
    m_storage: float = 0.0

    @classmethod
    def new_unconstructed(cls, m_cost: float, e_cost: float, buildtime: float,
                          name: str = "Unnamed") -> "Unit":
        return cls(name=name, buildtime=buildtime, m_build_cost=m_cost, e_build_cost=e_cost)

    @property
    def build_progress(self) -> float:
        """Fraction of construction paid for, 0.0 to 1.0.

        Metal is the reference resource. Units with no metal cost fall back
        to energy; units that cost nothing at all report 0.0 until built.
        """
        if self.alive:
            return 1.0
        if self.m_build_cost > 0:
            return self.metal / self.m_build_cost
        if self.e_build_cost > 0:
            return self.energy / self.e_build_cost
        return 0.0

    @property
    def is_building(self) -> bool:
        return self.build_target is not None

    def construct(self):
        """Finish construction: bank the full cost and bring the unit online."""
        self.metal = self.m_build_cost
        self.energy = self.e_build_cost
        self.alive = True

    def clone(self) -> "Unit":
        return copy.deepcopy(self)
