#!/usr/bin/env python3
"""
Latency Benchmark Script.

Measures internal latencies of the detection path: rate synthesis,
each finder, and a full feed tick.
"""

import asyncio
import random
import statistics
import sys
from collections.abc import Callable
from pathlib import Path

# Add src to path for direct execution
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mev_dashboard.core.types import OpportunityKind
from mev_dashboard.market.price_cache import PriceCache
from mev_dashboard.market.tokens import DEFAULT_TOKENS, DEFAULT_VENUES
from mev_dashboard.strategy.base import FinderConstraints
from mev_dashboard.strategy.complex import ComplexFinder
from mev_dashboard.strategy.feed import OpportunityFeed
from mev_dashboard.strategy.rates import RateSynthesizer
from mev_dashboard.strategy.simple import SimpleFinder
from mev_dashboard.strategy.triangular import TriangularFinder
from mev_dashboard.utils.time import format_duration_us, get_timestamp_us


SEED = 42


def summarize(latencies: list[int]) -> dict[str, float]:
    """Aggregate latency samples."""
    return {
        "min": min(latencies),
        "max": max(latencies),
        "avg": statistics.mean(latencies),
        "p50": statistics.median(latencies),
        "p99": sorted(latencies)[int(len(latencies) * 0.99)],
    }


def time_calls(func: Callable[[], object], iterations: int) -> dict[str, float]:
    """Time repeated calls of a function."""
    latencies: list[int] = []
    for _ in range(iterations):
        start = get_timestamp_us()
        func()
        latencies.append(get_timestamp_us() - start)
    return summarize(latencies)


async def prepare_cache(rng: random.Random) -> PriceCache:
    """Price cache with one synthetic refresh done."""
    cache = PriceCache(DEFAULT_TOKENS, rng=rng)
    await cache.refresh_all(force=True)
    return cache


def benchmark_rate_synthesis(cache: PriceCache, rng: random.Random, iterations: int) -> dict[str, float]:
    """Benchmark venue rate synthesis."""
    synthesizer = RateSynthesizer(rng)
    quotes = cache.snapshot()
    return time_calls(lambda: synthesizer.synthesize(quotes, DEFAULT_VENUES), iterations)


def benchmark_finder(
    kind: OpportunityKind,
    cache: PriceCache,
    rng: random.Random,
    iterations: int,
) -> dict[str, float]:
    """Benchmark one finder over a fixed set of rates."""
    finders = {
        OpportunityKind.SIMPLE: SimpleFinder(rng),
        OpportunityKind.TRIANGULAR: TriangularFinder(rng),
        OpportunityKind.COMPLEX: ComplexFinder(rng),
    }
    finder = finders[kind]
    quotes = cache.snapshot()
    rates = RateSynthesizer(rng).synthesize(quotes, DEFAULT_VENUES)
    constraints = FinderConstraints(min_profit_pct=0.0)

    return time_calls(
        lambda: finder.find(quotes, rates, DEFAULT_TOKENS, constraints),
        iterations,
    )


async def benchmark_feed_tick(rng: random.Random, iterations: int) -> dict[str, float]:
    """Benchmark a full feed tick, forcing a price refresh every time."""
    cache = PriceCache(DEFAULT_TOKENS, rng=rng, ttl_ms=0)
    feed = OpportunityFeed(
        price_cache=cache,
        synthesizer=RateSynthesizer(rng),
        venues=DEFAULT_VENUES,
        finders={
            OpportunityKind.SIMPLE: SimpleFinder(rng),
            OpportunityKind.TRIANGULAR: TriangularFinder(rng),
            OpportunityKind.COMPLEX: ComplexFinder(rng),
        },
    )

    latencies: list[int] = []
    for _ in range(iterations):
        start = get_timestamp_us()
        await feed.tick()
        latencies.append(get_timestamp_us() - start)

    return summarize(latencies)


def format_stats(stats: dict[str, float]) -> str:
    """Format stats for display."""
    return (
        f"min={format_duration_us(int(stats['min']))}, "
        f"avg={format_duration_us(int(stats['avg']))}, "
        f"p50={format_duration_us(int(stats['p50']))}, "
        f"p99={format_duration_us(int(stats['p99']))}, "
        f"max={format_duration_us(int(stats['max']))}"
    )


async def run() -> int:
    """Run all benchmarks."""
    rng = random.Random(SEED)
    cache = await prepare_cache(rng)

    print("=" * 70)
    print("  LATENCY BENCHMARK")
    print("=" * 70)
    print()

    # Warm up
    print("Warming up...")
    benchmark_rate_synthesis(cache, rng, 100)
    for kind in OpportunityKind:
        benchmark_finder(kind, cache, rng, 100)
    await benchmark_feed_tick(rng, 10)
    print()

    print("Running benchmarks...")
    print()

    print("1. Rate Synthesis (10,000 iterations)")
    print(f"   {format_stats(benchmark_rate_synthesis(cache, rng, 10_000))}")
    print()

    for i, kind in enumerate(OpportunityKind, start=2):
        print(f"{i}. {kind.value.capitalize()} Finder (1,000 iterations)")
        print(f"   {format_stats(benchmark_finder(kind, cache, rng, 1000))}")
        print()

    print("5. Full Feed Tick (1,000 iterations)")
    print(f"   {format_stats(await benchmark_feed_tick(rng, 1000))}")
    print()

    print("=" * 70)
    print("  SUMMARY")
    print("=" * 70)
    print()
    print("Target: feed tick well under the 5s default interval")
    print()

    return 0


def main() -> int:
    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
