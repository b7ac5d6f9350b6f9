#!/usr/bin/env python3
"""
Opportunity Scan Script.

Runs a handful of detection cycles against the configured price source
and displays what each one found, without executing anything.
"""

import argparse
import asyncio
import sys
from pathlib import Path

import orjson

# Add src to path for direct execution
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mev_dashboard.config.settings import get_settings
from mev_dashboard.core.engine import SimulationEngine
from mev_dashboard.core.types import OpportunityKind
from mev_dashboard.utils.time import format_timestamp_ms


async def main(ticks: int, export: Path | None) -> int:
    """Scan and display opportunities."""
    print("=" * 60)
    print("  OPPORTUNITY SCAN")
    print("=" * 60)
    print()

    # Load settings
    try:
        settings = get_settings()
    except Exception as e:
        print(f"Error loading settings: {e}")
        return 1

    engine = SimulationEngine(settings)
    snapshots = []

    try:
        for tick in range(1, ticks + 1):
            await engine.price_cache.refresh_all(force=True)
            snapshot = await engine.feed.tick()
            snapshots.append(snapshot)

            print(f"Tick {tick} [{format_timestamp_ms(snapshot.timestamp_ms)}]: {snapshot.total} opportunities")
            for kind in OpportunityKind:
                for opportunity in snapshot.bucket(kind):
                    print(
                        f"  {kind.value:<11} {opportunity.profit_pct:+8.4f}%  "
                        f"{opportunity.estimated_profit:+10.4f} USD  {opportunity.label}"
                    )
            print()
    finally:
        if engine.price_source is not None:
            await engine.price_source.close()

    # Summary
    print("=" * 60)
    print("  SUMMARY")
    print("=" * 60)
    print()

    best = max(
        (s.best() for s in snapshots if s.best() is not None),
        key=lambda o: o.profit_pct,
        default=None,
    )
    print(f"Ticks:           {ticks}")
    print(f"Opportunities:   {sum(s.total for s in snapshots)}")
    print(f"Best:            {best.label if best else '-'}")
    print()

    if export is not None:
        export.write_bytes(orjson.dumps(snapshots, option=orjson.OPT_INDENT_2))
        print(f"Exported to: {export}")

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Scan for simulated opportunities")
    parser.add_argument("--ticks", type=int, default=5, help="number of detection cycles")
    parser.add_argument("--export", type=Path, default=None, help="write snapshots as JSON")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.ticks, args.export)))
