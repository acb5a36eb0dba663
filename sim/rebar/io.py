"""
ReBAR - I/O
============
Load and save scenarios from YAML files, export results as JSON.
"""

import json
import os
from pathlib import Path

import yaml

from rebar.errors import ScenarioError
from rebar.models import Scenario, StartUnit, BuildOrderStep, SimResult
from rebar.world_params import world_params_from_dict, world_params_to_dict


def load_scenario(filepath: str) -> Scenario:
    with open(filepath, "r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ScenarioError(f"{filepath}: invalid YAML: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ScenarioError(f"{filepath}: scenario must be a mapping")

    scenario = Scenario(
        name=data.get("name", Path(filepath).stem),
        description=data.get("description", ""),
        world_params=world_params_from_dict(data.get("world")),
        wind_strength=_number(data, "wind_strength", 25.0),
        dt=_number(data, "dt", 1.0),
        duration=_number(data, "duration", 600.0),
        snapshot_every=int(_number(data, "snapshot_every", 10)),
        base_dir=str(Path(filepath).resolve().parent),
    )
    if scenario.dt <= 0:
        raise ScenarioError(f"dt must be positive, got {scenario.dt}")
    if scenario.snapshot_every < 1:
        raise ScenarioError(f"snapshot_every must be at least 1, got {scenario.snapshot_every}")

    unitdefs = data.get("unitdefs", [])
    if isinstance(unitdefs, str):
        unitdefs = [unitdefs]
    scenario.unitdefs = [str(p) for p in unitdefs]

    inline = data.get("units", {}) or {}
    if not isinstance(inline, dict):
        raise ScenarioError("units must map unit names to definition fields")
    for name, fields in inline.items():
        if not isinstance(fields, dict):
            raise ScenarioError(f"Definition for unit {name} must be a mapping")
        scenario.units[str(name)] = dict(fields)

    for item in data.get("start", []) or []:
        if isinstance(item, str):
            scenario.start.append(StartUnit(unit=item))
        elif isinstance(item, dict) and "unit" in item:
            scenario.start.append(StartUnit(unit=str(item["unit"]),
                                            completed=bool(item.get("completed", True))))
        else:
            raise ScenarioError(f"Invalid start entry: {item!r}")

    for item in data.get("orders", []) or []:
        if not isinstance(item, dict) or "unit" not in item or "builder" not in item:
            raise ScenarioError(f"Build order needs 'builder' and 'unit': {item!r}")
        try:
            step = BuildOrderStep(
                at=float(item.get("at", 0.0)),
                builder=int(item["builder"]),
                unit=str(item["unit"]),
            )
        except (TypeError, ValueError) as e:
            raise ScenarioError(f"Invalid build order {item!r}: {e}") from e
        scenario.orders.append(step)

    return scenario


def save_scenario(scenario: Scenario, filepath: str):
    data = {
        "name": scenario.name,
        "description": scenario.description,
        "world": world_params_to_dict(scenario.world_params),
        "wind_strength": scenario.wind_strength,
        "dt": scenario.dt,
        "duration": scenario.duration,
        "snapshot_every": scenario.snapshot_every,
    }
    if scenario.unitdefs:
        data["unitdefs"] = _rebase_unitdefs(scenario, Path(filepath).resolve().parent)
    if scenario.units:
        data["units"] = {name: dict(fields) for name, fields in scenario.units.items()}
    data["start"] = [{"unit": s.unit, "completed": s.completed} for s in scenario.start]
    data["orders"] = [{"at": o.at, "builder": o.builder, "unit": o.unit}
                      for o in scenario.orders]

    with open(filepath, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _rebase_unitdefs(scenario: Scenario, target_dir: Path) -> list:
    """Rewrite unitdefs entries relative to the directory being saved into."""
    base_dir = Path(scenario.base_dir) if scenario.base_dir else Path.cwd()
    entries = []
    for entry in scenario.unitdefs:
        path = Path(entry)
        if not path.is_absolute():
            path = (base_dir / path).resolve()
        try:
            entries.append(Path(os.path.relpath(path, target_dir)).as_posix())
        except ValueError:
            # No relative path between drives on Windows
            entries.append(str(path))
    return entries


def export_result_json(result: SimResult, filepath: str):
    """Export a simulation result as JSON."""
    with open(filepath, "w") as f:
        json.dump(result_to_dict(result), f, indent=2)


def result_to_dict(result: SimResult) -> dict:
    return {
        "scenario_name": result.scenario_name,
        "final_time": result.final_time,
        "snapshots": [
            {"time": s.time, "metal": s.metal, "energy": s.energy,
             "metal_storage": s.metal_storage, "energy_storage": s.energy_storage,
             "alive_units": s.alive_units, "under_construction": s.under_construction}
            for s in result.snapshots
        ],
        "completion_log": [
            {"time": t, "index": i, "unit": name}
            for t, i, name in result.completion_log
        ],
        "pending_orders": [
            {"at": o.at, "builder": o.builder, "unit": o.unit}
            for o in result.pending_orders
        ],
    }


def _number(data: dict, key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScenarioError(f"{key} must be a number, got {value!r}")
    return float(value)
