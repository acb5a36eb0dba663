"""
ReBAR - Scenario Engine
========================
Drives a GameState through a scenario with a fixed tick length, issuing
build orders as builders become free and recording snapshots.
"""

import logging
import math
from pathlib import Path
from typing import List, Optional

from rebar.errors import ScenarioError, UnknownUnit
from rebar.game_state import GameState
from rebar.loader import load_units, unit_from_fields
from rebar.models import Scenario, BuildOrderStep, SimResult, Snapshot

logger = logging.getLogger(__name__)

# Slack when comparing accumulated float time against order times
TIME_EPSILON = 1e-9


class ScenarioEngine:
    def __init__(self, scenario: Scenario, duration: Optional[float] = None,
                 dt: Optional[float] = None):
        self.scenario = scenario
        self.duration = scenario.duration if duration is None else duration
        self.dt = scenario.dt if dt is None else dt
        if self.dt <= 0:
            raise ScenarioError(f"dt must be positive, got {self.dt}")
        self.state = GameState(scenario.world_params)
        self.state.wind_strength = scenario.wind_strength
        self.result = SimResult(scenario_name=scenario.name)
        self._pending: List[BuildOrderStep] = list(scenario.orders)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> SimResult:
        self._initialize()
        ticks = max(0, math.ceil(self.duration / self.dt - TIME_EPSILON))
        for tick in range(1, ticks + 1):
            self._step_tick()
            if tick % self.scenario.snapshot_every == 0 or tick == ticks:
                self._record_snapshot()
        self._finalize()
        return self.result

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _initialize(self):
        s = self.state
        base_dir = Path(self.scenario.base_dir) if self.scenario.base_dir else Path.cwd()

        for entry in self.scenario.unitdefs:
            path = Path(entry)
            if not path.is_absolute():
                path = base_dir / path
            for name, template in load_units(path).items():
                s.register_unit(name, template)

        for name, fields in self.scenario.units.items():
            fields = dict(fields)
            fields.setdefault("name", name)
            s.register_unit(name, unit_from_fields(fields))

        for start in self.scenario.start:
            try:
                if start.completed:
                    s.add_completed_unit(start.unit)
                else:
                    s.add_unit(start.unit)
            except UnknownUnit as e:
                raise ScenarioError(f"Start unit {start.unit!r} is not defined") from e

        logger.info("Scenario %s: %d templates, %d starting units, %d orders",
                    self.scenario.name, len(s.unit_catalog), len(s.units), len(self._pending))
        self._record_snapshot()

    # ------------------------------------------------------------------
    # Per-tick simulation
    # ------------------------------------------------------------------

    def _step_tick(self):
        self._issue_orders()
        was_alive = [u.alive for u in self.state.units]
        self.state.simulate(self.dt)
        self._log_completions(was_alive)

    def _issue_orders(self):
        s = self.state
        blocked = set()
        still_pending = []
        for order in self._pending:
            if not 0 <= order.builder < len(s.units):
                raise ScenarioError(f"Build order for {order.unit} names builder "
                                    f"#{order.builder}, but only {len(s.units)} units exist")
            builder = s.units[order.builder]
            # Orders are FIFO per builder: anything behind a waiting order waits too
            if (order.builder in blocked or order.at > s.time + TIME_EPSILON
                    or not builder.alive or builder.is_building):
                blocked.add(order.builder)
                still_pending.append(order)
                continue
            try:
                s.build_unit(order.builder, order.unit)
            except UnknownUnit as e:
                raise ScenarioError(f"Build order at {order.at:g}s names undefined unit "
                                    f"{order.unit!r}") from e
            blocked.add(order.builder)
        self._pending = still_pending

    def _log_completions(self, was_alive: List[bool]):
        for idx, unit in enumerate(self.state.units):
            # Units appended this tick are never alive before the next one
            if unit.alive and (idx >= len(was_alive) or not was_alive[idx]):
                self.result.completion_log.append((self.state.time, idx, unit.name))

    # ------------------------------------------------------------------
    # Snapshot recording
    # ------------------------------------------------------------------

    def _record_snapshot(self):
        s = self.state
        self.result.snapshots.append(Snapshot(
            time=s.time,
            metal=s.metal,
            energy=s.energy,
            metal_storage=s.metal_storage(),
            energy_storage=s.energy_storage(),
            alive_units=s.alive_count(),
            under_construction=s.under_construction_count(),
        ))

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def _finalize(self):
        self.result.final_time = self.state.time
        self.result.pending_orders = list(self._pending)
        if self._pending:
            logger.info("Scenario %s ended with %d unissued orders",
                        self.scenario.name, len(self._pending))
