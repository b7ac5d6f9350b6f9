"""
Entry point for the MEV dashboard simulation.

Usage:
    python -m mev_dashboard          # terminal panel
    python -m mev_dashboard serve    # HTTP/WebSocket API
    mev-dashboard                    # if installed via pip
"""

import argparse
import asyncio
import sys


# Try to use uvloop for better performance
try:
    import uvloop

    uvloop.install()
    UVLOOP_ENABLED = True
except ImportError:
    UVLOOP_ENABLED = False


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mev-dashboard",
        description="Synthetic Solana arbitrage opportunity simulator",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=("run", "serve"),
        default="run",
        help="run the terminal panel (default) or serve the dashboard API",
    )
    parser.add_argument("--no-panel", action="store_true", help="log only, no terminal panel")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from pydantic import ValidationError

    from mev_dashboard import __version__
    from mev_dashboard.config.settings import get_settings

    args = parse_args(argv)

    # Print banner
    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     SOLANA MEV DASHBOARD v{__version__:<30}      ║
║                                                               ║
║     Synthetic Arbitrage Opportunity Simulator                 ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    # Load settings
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        return 1

    # Print configuration summary
    print("Configuration:")
    print(f"  Risk profile:   {settings.risk_profile.value}")
    print(f"  Min profit:     {settings.min_profit_threshold:.2f}%")
    print(f"  Position size:  {settings.max_transaction_size} SOL")
    print(f"  Tick interval:  {settings.tick_interval_ms}ms")
    print(f"  Auto-execute:   {'Enabled' if settings.auto_execute else 'Disabled'}")
    print(f"  Upstream:       {'CoinGecko' if settings.use_upstream_prices else 'Synthetic only'}")
    print(f"  uvloop:         {'Enabled' if UVLOOP_ENABLED else 'Disabled'}")
    print()

    if args.command == "serve":
        from mev_dashboard.dashboard.server import main as serve

        serve(settings)
        return 0

    from mev_dashboard.core.engine import SimulationEngine
    from mev_dashboard.telemetry.logger import setup_logging
    from mev_dashboard.telemetry.reporter import CLIReporter

    # Run the engine
    async def run_engine() -> int:
        async_logger = setup_logging(level=settings.log_level)
        engine = SimulationEngine(settings)
        reporter = CLIReporter(metrics=engine.metrics, auto_execute=settings.auto_execute)
        reporter.attach(engine.event_bus)

        try:
            if not args.no_panel:
                reporter.start(interval=settings.report_interval)
            await engine.run()
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            reporter.stop()
            reporter.detach()
            reporter.print_summary()
            async_logger.stop()

    try:
        return asyncio.run(run_engine())
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
