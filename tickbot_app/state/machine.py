"""
Entry signal state machine.

A SignalDetector watches one strategy. While ARMED it classifies every
observation through the strategy's dispatch row and fires an EntrySignal
when the trigger condition is met; it then stays TRIGGERED, ignoring
observations, until the caller re-arms it after the resulting contract
settles.
"""

from typing import Optional, Sequence

from ..config.defaults import DetectorParams
from ..logging.config import get_state_logger, log_state_transition
from ..metrics.movement import movement_vs_average, price_movement
from .models import (
    Classification,
    DetectorRuntimeState,
    DetectorState,
    EntrySignal,
    StrategyConfig,
)
from .strategies import ObservationKind, StrategyRule, TriggerMode, get_rule

state_logger = get_state_logger(__name__)


class SignalDetector:
    """Armed/Triggered detector for a single strategy."""

    def __init__(self, config: StrategyConfig, params: Optional[DetectorParams] = None):
        self.config = config
        self.params = params or DetectorParams()
        self.rule: StrategyRule = get_rule(config.tag)
        self.runtime = DetectorRuntimeState()

    @property
    def state(self) -> DetectorState:
        return self.runtime.state

    @property
    def is_armed(self) -> bool:
        return self.runtime.state == DetectorState.ARMED

    @property
    def opposite_count(self) -> int:
        return self.runtime.opposite_count

    @property
    def threshold(self) -> int:
        return getattr(self.params, self.rule.threshold_param)

    def observe_tick(self, digit: Optional[int], prices: Sequence[float]) -> Optional[EntrySignal]:
        """
        Derive this strategy's observation from the latest tick and evaluate it.

        Args:
            digit: Last digit of the latest tick
            prices: Price buffer including the latest tick, oldest first

        Returns:
            EntrySignal when the strategy fires, None otherwise
        """
        if self.rule.observation == ObservationKind.DIGIT:
            observation = digit
        elif self.rule.observation == ObservationKind.MOVEMENT:
            observation = price_movement(prices[-2], prices[-1]) if len(prices) >= 2 else None
        else:
            observation = movement_vs_average(prices, self.params.average_window)

        if observation is None:
            return None
        return self.evaluate(observation)

    def evaluate(self, observation) -> Optional[EntrySignal]:
        """Classify one observation and advance the state machine."""
        if not self.is_armed:
            return None

        classification = self.rule.classify(self.config, observation)
        mode = self.rule.mode
        runtime = self.runtime

        if mode == TriggerMode.INSTANT:
            if classification == Classification.TARGET:
                return self._fire(f"digit {observation} appeared")
            self.runtime = runtime.with_observation(0)
            return None

        if mode == TriggerMode.PATTERN:
            if classification != Classification.TARGET:
                self.runtime = runtime.with_observation(0, 0)
                return None
            pattern = runtime.pattern_count + 1
            if pattern >= self.threshold:
                return self._fire(f"{pattern} consecutive qualifying digits")
            self.runtime = runtime.with_observation(0, pattern)
            return None

        # Counter mode
        if classification == Classification.OPPOSITE:
            self.runtime = runtime.with_observation(runtime.opposite_count + 1)
            return None
        if classification == Classification.TARGET:
            if runtime.opposite_count >= self.threshold:
                return self._fire(
                    f"{observation_text(observation)} after {runtime.opposite_count} opposite"
                )
            self.runtime = runtime.with_observation(0)
            return None
        self.runtime = runtime.with_observation(runtime.opposite_count)
        return None

    def fire_now(self, reason: str) -> Optional[EntrySignal]:
        """
        Emit an entry without consulting observations (tick-interval trading).

        Returns None while TRIGGERED.
        """
        if not self.is_armed:
            return None
        return self._fire(reason)

    def rearm(self) -> None:
        """Re-arm after the triggered contract reached a terminal outcome."""
        if self.runtime.state == DetectorState.ARMED:
            return
        self.runtime = self.runtime.with_armed()
        log_state_transition(state_logger, self.config.label, DetectorState.TRIGGERED.value,
                             DetectorState.ARMED.value, "rearm")

    def reset(self) -> None:
        """Clear counters and re-arm (start, symbol switch, strategy change)."""
        previous = self.runtime.state
        self.runtime = DetectorRuntimeState()
        if previous != DetectorState.ARMED:
            log_state_transition(state_logger, self.config.label, previous.value,
                                 DetectorState.ARMED.value, "reset")

    def _fire(self, reason: str) -> EntrySignal:
        self.runtime = self.runtime.with_triggered()
        signal = self._build_signal(reason)
        log_state_transition(
            state_logger, self.config.label, DetectorState.ARMED.value,
            DetectorState.TRIGGERED.value, "entry_signal",
            context={"trade_type": signal.trade_type, "reason": reason},
        )
        return signal

    def _build_signal(self, reason: str) -> EntrySignal:
        cfg = self.config
        return EntrySignal(
            strategy_tag=cfg.tag,
            trade_type=self.rule.trade_type(cfg),
            prediction=self.rule.prediction(cfg),
            barrier=self.rule.barrier(cfg),
            multi_predictions=self.rule.orders(cfg),
            reason=f"{cfg.label}: {reason}",
        )


def observation_text(observation) -> str:
    """Render an observation (digit or Movement) for signal reasons."""
    return getattr(observation, "value", str(observation))
