"""
ReBAR - Output Formatting
==========================
Pretty-printing for simulation results and unit catalogs.
"""

from typing import Dict, List

from rebar.models import SimResult
from rebar.unit import Unit


def fmt_time(seconds: float) -> str:
    m, s = divmod(int(round(seconds)), 60)
    return f"{m}:{s:02d}"


def fmt_rate(val: float) -> str:
    if val >= 1000:
        return f"{val:.0f}"
    return f"{val:.1f}"


def print_full_report(result: SimResult):
    print()
    print("=" * 70)
    print(f"  REBAR ECONOMY SIMULATION")
    print(f"  Scenario: {result.scenario_name}")
    print(f"  Duration: {fmt_time(result.final_time)}")
    print("=" * 70)

    print_timeline(result)
    print_snapshots(result)
    print_pending_orders(result)
    print_summary(result)


def print_timeline(result: SimResult):
    print()
    print("--- CONSTRUCTION TIMELINE ---")
    if not result.completion_log:
        print(" Nothing completed")
        return
    print(f" {'Time':>6}  {'#':>4}  {'Completed':<24}")
    print(f" {'----':>6}  {'-':>4}  {'---------':<24}")
    for time, idx, name in result.completion_log:
        print(f" {fmt_time(time):>6}  {idx:>4}  {name:<24}")


def print_snapshots(result: SimResult):
    print()
    print("--- ECONOMY SNAPSHOTS ---")
    print(f" {'Time':>6} {'Metal':>8} {'M cap':>8} {'Energy':>8} {'E cap':>8} "
          f"{'Alive':>6} {'Bldg':>5}")
    print(f" {'----':>6} {'-----':>8} {'-----':>8} {'------':>8} {'-----':>8} "
          f"{'-----':>6} {'----':>5}")
    for s in result.snapshots:
        print(f" {fmt_time(s.time):>6} {s.metal:>8.0f} {s.metal_storage:>8.0f} "
              f"{s.energy:>8.0f} {s.energy_storage:>8.0f} "
              f"{s.alive_units:>6} {s.under_construction:>5}")


def print_pending_orders(result: SimResult):
    if not result.pending_orders:
        return
    print()
    print("--- UNISSUED ORDERS ---")
    for o in result.pending_orders:
        print(f" {fmt_time(o.at):>6}  builder #{o.builder:<4} {o.unit}")


def print_summary(result: SimResult):
    print()
    print("--- SUMMARY ---")
    final = result.final
    if final:
        print(f" Metal:          {fmt_rate(final.metal)} / {fmt_rate(final.metal_storage)}")
        print(f" Energy:         {fmt_rate(final.energy)} / {fmt_rate(final.energy_storage)}")
        print(f" Units alive:    {final.alive_units}")
    print(f" Completed:      {len(result.completion_log)}")
    if result.completion_log:
        print(f" Last complete:  {fmt_time(result.completion_log[-1][0])}")


def print_unit_table(units: Dict[str, Unit]):
    print(f" {'Id':<16} {'Name':<22} {'M':>6} {'E':>7} {'Time':>7} {'BP':>5} "
          f"{'E/s':>6} {'Upk':>5} {'Wind':>5} {'M/s':>5} {'Estor':>6} {'Mstor':>6}")
    print(" " + "-" * 104)
    for key in sorted(units):
        u = units[key]
        print(f" {key[:16]:<16} {u.name[:22]:<22} {u.m_build_cost:>6.0f} {u.e_build_cost:>7.0f} "
              f"{u.buildtime:>7.0f} {u.buildpower:>5.0f} {fmt_rate(u.e_per_second):>6} "
              f"{fmt_rate(u.e_cost_per_second):>5} {fmt_rate(u.wind_e_per_second):>5} "
              f"{fmt_rate(u.m_per_second):>5} {u.e_storage:>6.0f} {u.m_storage:>6.0f}")


def compare_and_print(results: List[SimResult]):
    if not results:
        return

    names = [r.scenario_name for r in results]
    col_w = max(20, max(len(n) for n in names) + 2)

    print()
    print("=" * (16 + col_w * len(results)))
    print("  SCENARIO COMPARISON")
    print("=" * (16 + col_w * len(results)))

    print(f"{'':>16}", end="")
    for name in names:
        print(f"{name:>{col_w}}", end="")
    print()

    rows = [
        ("Metal", lambda r: fmt_rate(r.final.metal) if r.final else "--"),
        ("Metal cap", lambda r: fmt_rate(r.final.metal_storage) if r.final else "--"),
        ("Energy", lambda r: fmt_rate(r.final.energy) if r.final else "--"),
        ("Energy cap", lambda r: fmt_rate(r.final.energy_storage) if r.final else "--"),
        ("Units alive", lambda r: str(r.final.alive_units) if r.final else "--"),
        ("Completed", lambda r: str(len(r.completion_log))),
        ("Last complete", lambda r: fmt_time(r.completion_log[-1][0]) if r.completion_log else "--"),
    ]
    for label, getter in rows:
        print(f" {label:<15}", end="")
        for r in results:
            print(f"{getter(r):>{col_w}}", end="")
        print()
