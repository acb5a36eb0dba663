"""
ReBAR - Game State
===================
Owns the live unit list, the unit catalog and the global resource pools,
and advances them with simulate(dt).

The order of ``units`` is the resource priority order: when a pool cannot
cover everyone, units earlier in the list are served first and the rest
stall for that tick. Shortfalls are never split proportionally.
"""

import logging
import math
from typing import Dict, List, Optional

from rebar.errors import UnknownUnit, CannotBuild
from rebar.unit import Unit
from rebar.world_params import WorldParams, DEFAULT_WORLD_PARAMS

logger = logging.getLogger(__name__)

DEFAULT_WIND_STRENGTH = 25.0

# Absolute tolerance when deciding that a build step finished the target
BUILD_EPSILON = 1e-9


class GameState:
    def __init__(self, world_params: Optional[WorldParams] = None):
        self.world_params = world_params or DEFAULT_WORLD_PARAMS
        self.units: List[Unit] = []
        self.unit_catalog: Dict[str, Unit] = {}
        self.energy = self.world_params.start_energy
        self.metal = self.world_params.start_metal
        self.wind_strength = DEFAULT_WIND_STRENGTH
        self.time = 0.0

    # ------------------------------------------------------------------
    # Catalog and instantiation
    # ------------------------------------------------------------------

    def register_unit(self, name: str, template: Unit):
        """Insert or replace the catalog template stored under ``name``."""
        if name in self.unit_catalog:
            logger.debug("Replacing unit template %s", name)
        else:
            logger.debug("Registered unit template %s", name)
        self.unit_catalog[name] = template

    def add_unit(self, name: str) -> int:
        """Clone a catalog template onto the end of the unit list."""
        template = self.unit_catalog.get(name)
        if template is None:
            raise UnknownUnit(name)
        self.units.append(template.clone())
        idx = len(self.units) - 1
        logger.debug("Added unit %s at index %d", name, idx)
        return idx

    def add_completed_unit(self, name: str) -> int:
        idx = self.add_unit(name)
        self.units[idx].construct()
        return idx

    def build_unit(self, builder_idx: int, name: str) -> int:
        """Start construction of ``name`` and point the builder at it.

        Returns the index of the new, unconstructed unit.
        """
        builder = self._unit_at(builder_idx)
        if name not in builder.build_options:
            raise CannotBuild(builder_idx, name, builder.name)
        if builder.build_target is not None:
            logger.debug("Unit %d abandons build target %d", builder_idx, builder.build_target)

        target_idx = self.add_unit(name)
        builder.build_target = target_idx
        logger.debug("Unit %d (%s) starts building %s at index %d",
                     builder_idx, builder.name, name, target_idx)
        return target_idx

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def metal_storage(self) -> float:
        storage = self.world_params.base_metal_storage
        for unit in self.units:
            if unit.alive:
                storage += unit.m_storage
        return storage

    def energy_storage(self) -> float:
        storage = self.world_params.base_energy_storage
        for unit in self.units:
            if unit.alive:
                storage += unit.e_storage
        return storage

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def simulate(self, dt: float):
        """Advance the economy by ``dt`` seconds.

        Production, then consumption, then construction, then the storage
        clamp. Pools may exceed storage until the clamp at the end.
        """
        self._produce(dt)
        self._consume(dt)
        self._progress_builds(dt)

        self.metal = min(self.metal, self.metal_storage())
        self.energy = min(self.energy, self.energy_storage())
        self.time += dt

    def _produce(self, dt: float):
        for unit in self.units:
            if unit.alive:
                self.energy += dt * unit.e_per_second
                # Each generator is capped on its own, not as a shared pool.
                self.energy += dt * min(unit.wind_e_per_second, self.wind_strength)

    def _consume(self, dt: float):
        # Binary allocation: a unit is either fully powered or stalls.
        for unit in self.units:
            if unit.alive:
                e_consumed = dt * unit.e_cost_per_second
                if self.energy > e_consumed:
                    self.energy -= e_consumed
                    self.metal += dt * unit.m_per_second

    def _progress_builds(self, dt: float):
        for i, builder in enumerate(self.units):
            if builder.build_target is None or not builder.alive:
                continue
            target_idx = builder.build_target
            target = self._unit_at(target_idx)

            if target.alive:
                # Completed by an earlier builder in the list.
                builder.build_target = None
                continue

            remaining = 1.0 - target.build_progress
            if target.buildtime > 0:
                build_step = min(dt * builder.buildpower / target.buildtime, remaining)
            else:
                build_step = remaining

            build_m_cost = build_step * target.m_build_cost
            build_e_cost = build_step * target.e_build_cost
            if not (self.metal > build_m_cost and self.energy > build_e_cost):
                continue

            self.metal -= build_m_cost
            self.energy -= build_e_cost
            target.metal += build_m_cost
            target.energy += build_e_cost

            if math.isclose(build_step, remaining, abs_tol=BUILD_EPSILON):
                target.construct()
                builder.build_target = None
                logger.debug("Unit %d (%s) finished %s at t=%.2f",
                             i, builder.name, target.name, self.time + dt)

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def _unit_at(self, idx: int) -> Unit:
        if not 0 <= idx < len(self.units):
            raise IndexError(f"Unit index {idx} out of range (have {len(self.units)} units)")
        return self.units[idx]

    def alive_count(self) -> int:
        return sum(1 for u in self.units if u.alive)

    def under_construction_count(self) -> int:
        return sum(1 for u in self.units if not u.alive)
