"""Tests for CLI integration (subprocess-based)."""

import json
import subprocess
import sys
from pathlib import Path

SIM_ROOT = Path(__file__).parent.parent
CLI_PATH = SIM_ROOT / "cli.py"
TESTS_DIR = Path(__file__).parent
SCENARIO_PATH = TESTS_DIR / "scenarios" / "wind_opening.yaml"


def _run_cli(*args, timeout=30):
    """Run CLI command and return CompletedProcess."""
    cmd = [sys.executable, str(CLI_PATH)] + list(args)
    return subprocess.run(
        cmd, capture_output=True, text=True, timeout=timeout, cwd=str(SIM_ROOT)
    )


def test_simulate_exits_0():
    result = _run_cli("simulate", str(SCENARIO_PATH), "--duration", "30")
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "SUMMARY" in result.stdout
    assert "Wind Turbine" in result.stdout


def test_simulate_export_json(tmp_path):
    out = tmp_path / "out.json"
    result = _run_cli("sim", str(SCENARIO_PATH), "--export-json", str(out))
    assert result.returncode == 0, f"stderr: {result.stderr}"
    data = json.loads(out.read_text())
    assert data["scenario_name"] == "Wind Opening"


def test_compare():
    result = _run_cli("compare", str(SCENARIO_PATH),
                      str(TESTS_DIR / "scenarios" / "inline_builder.yaml"))
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "SCENARIO COMPARISON" in result.stdout
    assert "Inline Builder" in result.stdout


def test_units_lists_definitions():
    result = _run_cli("units", str(TESTS_DIR / "unitdefs"))
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "Loaded 4 unit definition(s)" in result.stdout
    assert "Basic Solar" in result.stdout


def test_missing_scenario_exits_1():
    result = _run_cli("simulate", "does_not_exist.yaml")
    assert result.returncode == 1
    assert "Error" in result.stderr


def test_broken_unitdef_exits_1(tmp_path):
    bad = tmp_path / "armbad.lua"
    bad.write_text("return { armbad = { metalcost = 1 } }")
    result = _run_cli("units", str(bad))
    assert result.returncode == 1
    assert "buildtime" in result.stderr
