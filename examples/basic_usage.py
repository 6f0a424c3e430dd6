#!/usr/bin/env python3
"""
Basic Usage Example - Tick Decision Engine

Runs an auto trading session against the simulated gateway. It shows how to:
- Build an engine from layered configuration
- Select a market and a strategy
- Watch engine snapshots on stdout
- Stop on a take-profit / stop-loss limit or after a fixed number of ticks

Run: python examples/basic_usage.py
"""

import asyncio

from tickbot_app.engine import TradingEngine
from tickbot_app.gateway.simulated import SimulatedGateway, SimulatedInstrument
from tickbot_app.logging import configure_logging
from tickbot_app.publishing import StdoutSnapshotPublisher
from tickbot_app.state import StrategyConfig

SYMBOL = "R_100"


async def main() -> None:
    configure_logging(level="WARNING")

    gateway = SimulatedGateway(seed=42)
    gateway.add_instrument(SimulatedInstrument(SYMBOL, initial_price=1000.0, volatility=0.001))

    engine = TradingEngine.from_config(
        gateway, SYMBOL,
        overrides={"martingale": {"base_stake": 0.5}},
        publishers=[StdoutSnapshotPublisher(format="pretty", include_timestamp=False)],
    )
    engine.select_strategy(StrategyConfig.over_under(8, "under"))
    engine.set_limits(take_profit=5.0, stop_loss=20.0)

    await engine.select_market(SYMBOL)
    await engine.start()
    await gateway.run(SYMBOL, ticks=300, interval_s=0.01)

    if engine.running:
        await engine.stop()

    snapshot = engine.snapshot()
    print(f"\n📊 {snapshot.wins} wins / {snapshot.losses} losses, "
          f"P/L {snapshot.aggregate_profit:+.2f}, max loss streak {snapshot.max_loss_streak}")
    if snapshot.halted_reason:
        print(f"⛔ {snapshot.halted_reason}")


if __name__ == "__main__":
    asyncio.run(main())
