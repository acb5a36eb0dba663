"""
ReBAR Economy Simulator - CLI Entry Point
===========================================
Usage:
    python cli.py simulate <scenario.yaml> [--duration 600] [--dt 1.0] [--export-json out.json]
    python cli.py compare <scenario1.yaml> <scenario2.yaml> [...]
    python cli.py units <path> [<path> ...]
"""

import argparse
import sys

from rebar.engine import ScenarioEngine
from rebar.errors import RebarError
from rebar.format import print_full_report, print_unit_table, compare_and_print
from rebar.io import load_scenario
from rebar.loader import load_units
from rebar.log import configure_logging


def cmd_simulate(args):
    scenario = load_scenario(args.file)
    engine = ScenarioEngine(scenario, duration=args.duration, dt=args.dt)
    result = engine.run()
    print_full_report(result)

    if args.export_json:
        from rebar.io import export_result_json
        export_result_json(result, args.export_json)
        print(f"\nExported JSON to {args.export_json}")


def cmd_compare(args):
    results = []
    for f in args.files:
        scenario = load_scenario(f)
        engine = ScenarioEngine(scenario, duration=args.duration)
        results.append(engine.run())
    compare_and_print(results)


def cmd_units(args):
    units = {}
    for path in args.paths:
        units.update(load_units(path))
    print(f"Loaded {len(units)} unit definition(s)")
    print_unit_table(units)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="ReBAR Economy Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level (default: $REBAR_LOG_LEVEL or WARNING)")
    sub = parser.add_subparsers(dest="command", help="Command to run")

    # simulate
    p_sim = sub.add_parser("simulate", aliases=["sim"],
                           help="Simulate a scenario from YAML")
    p_sim.add_argument("file", help="Path to scenario YAML file")
    p_sim.add_argument("--duration", "-d", type=float, default=None,
                       help="Simulation duration in seconds (default: from scenario)")
    p_sim.add_argument("--dt", type=float, default=None,
                       help="Tick length in seconds (default: from scenario)")
    p_sim.add_argument("--export-json", default=None,
                       help="Export the result as JSON")

    # compare
    p_cmp = sub.add_parser("compare", aliases=["cmp"],
                           help="Compare multiple scenarios")
    p_cmp.add_argument("files", nargs="+", help="Scenario YAML files")
    p_cmp.add_argument("--duration", "-d", type=float, default=None,
                       help="Simulation duration in seconds (default: from each scenario)")

    # units
    p_units = sub.add_parser("units", help="Load unit definitions and list their economy")
    p_units.add_argument("paths", nargs="+", help="Unit definition .lua files or directories")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command in ("simulate", "sim"):
            cmd_simulate(args)
        elif args.command in ("compare", "cmp"):
            cmd_compare(args)
        elif args.command == "units":
            cmd_units(args)
        else:
            parser.print_help()
    except (RebarError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
