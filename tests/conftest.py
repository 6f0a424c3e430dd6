"""Pytest configuration and shared fixtures."""

import asyncio

import pytest

from tickbot_app.config.defaults import (
    EngineConfig,
    ExecutionParams,
    MartingaleParams,
    RecoveryParams,
    get_default_config,
)
from tickbot_app.gateway.simulated import SimulatedGateway


SYMBOL = "R_100"


async def _spin(iterations: int = 20) -> None:
    """Let scheduled tasks run up to their next real suspension point."""
    for _ in range(iterations):
        await asyncio.sleep(0)


def _quotes_for_digits(digits, base: int = 1000) -> list[str]:
    """Two-decimal quotes whose last digits are ``digits``, e.g. 1 -> '1000.01'."""
    return [f"{base}.{index % 10}{digit}" for index, digit in enumerate(digits)]


@pytest.fixture
def gateway() -> SimulatedGateway:
    """Seeded simulated gateway with manual settlement and empty history."""
    gw = SimulatedGateway(seed=7, auto_settle=False)
    gw.set_history(SYMBOL, [])
    return gw


@pytest.fixture
def engine_config() -> EngineConfig:
    """Default config with fast backoff and no recovery."""
    base = get_default_config()
    return EngineConfig(
        feed=base.feed,
        detector=base.detector,
        martingale=MartingaleParams(base_stake=1.0, multiplier=2.0, max_level=5),
        recovery=RecoveryParams(enabled=False),
        limits=base.limits,
        execution=ExecutionParams(completion_timeout_s=5.0, error_backoff_s=0.0,
                                  fast_mode_delay_s=0.0),
        accumulator=base.accumulator,
    )


@pytest.fixture
def spin():
    """Coroutine function that yields to the event loop a few times."""
    return _spin


@pytest.fixture
def quotes_for_digits():
    """Builder for quotes ending in the given digits."""
    return _quotes_for_digits
