"""
Entry point for the headless scanner.

Usage:
    python -m flasharb
    flasharb  # if installed via pip
"""

import asyncio
import signal
import sys


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from flasharb import __version__
    from flasharb.config.constants import SUPPORTED_CHAINS
    from flasharb.config.settings import get_settings
    from flasharb.core.engine import create_engine
    from flasharb.telemetry.logger import setup_logging
    from flasharb.telemetry.reporter import CLIReporter

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     FLASH ARBITRAGE SCANNER v{__version__:<27}      ║
║                                                               ║
║     Cross-DEX price gaps, flash loan profitability            ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nCheck your .env file, for example:")
        print("  SIMULATION=false")
        print("  NODE_PROVIDER=infura")
        print("  INFURA_API_KEY=your_api_key")
        return 1

    print("Configuration:")
    print(f"  Quotes:         {'SIMULATED' if settings.simulation else settings.node_provider.upper()}")
    print(f"  Chain:          {SUPPORTED_CHAINS[settings.chain]}")
    print(f"  Scan interval:  {settings.scan_interval_seconds:.1f}s")
    print(f"  Flash loan fee: {settings.flash_loan_fee_rate * 100:.2f}%")
    print(f"  Gas limit:      {settings.gas_limit_estimate:,}")
    print(f"  Auto-execute:   {'ON' if settings.auto_execute else 'OFF'}")
    print(f"  Min profit:     ${settings.min_profit_threshold_usd:,.2f}")
    print()

    if not settings.simulation and settings.receiver_configured:
        print("⚠️  WARNING: Live execution is configured!")
        print("    Flash loan transactions can be submitted on chain.")
        print()

    async def run_scanner() -> int:
        queue_logging = setup_logging(level=settings.log_level, log_file=settings.log_file)
        shutdown = asyncio.Event()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, shutdown.set)

        try:
            async with create_engine(settings) as engine:
                reporter = CLIReporter(engine.metrics)
                reporter.attach(engine.event_bus)

                await engine.start()
                await shutdown.wait()

                await engine.stop()
                reporter.print_summary()
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            queue_logging.stop()

    return asyncio.run(run_scanner())


if __name__ == "__main__":
    sys.exit(main())
