"""
Strategy dispatch table.

Every strategy is one row: which observation it watches, how an observation
is classified against the configured target, how many opposite observations
arm an entry, which contract it buys, and what recovery mode trades instead
after a loss.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..metrics.movement import Movement
from .models import Classification, StrategyConfig, StrategyTag, SubOrder


class ObservationKind(str, Enum):
    """Per-tick input a strategy consumes."""
    DIGIT = "digit"            # Last digit of the tick
    MOVEMENT = "movement"      # Price vs previous price
    AVERAGE = "average"        # Price vs moving average


class TriggerMode(str, Enum):
    """How classified observations turn into an entry."""
    COUNTER = "counter"        # K consecutive opposites, then a target
    INSTANT = "instant"        # First target observation
    PATTERN = "pattern"        # N consecutive targets


@dataclass(frozen=True)
class StrategyRule:
    """One row of the dispatch table."""
    observation: ObservationKind
    mode: TriggerMode
    threshold_param: str       # DetectorParams field holding K or N
    classify: Callable[[StrategyConfig, object], Classification]
    trade_type: Callable[[StrategyConfig], str]
    prediction: Callable[[StrategyConfig], Optional[int]]
    barrier: Callable[[StrategyConfig], Optional[str]] = lambda cfg: None
    orders: Callable[[StrategyConfig], tuple] = lambda cfg: ()
    substitute_on_loss: Optional[Callable[[StrategyConfig], StrategyConfig]] = None

    @property
    def recovery_eligible(self) -> bool:
        return self.substitute_on_loss is not None


def _target_if(condition: bool) -> Classification:
    return Classification.TARGET if condition else Classification.OPPOSITE


def _classify_parity(cfg: StrategyConfig, digit: int) -> Classification:
    is_even = digit % 2 == 0
    return _target_if(is_even if cfg.parity == "even" else not is_even)


def _classify_movement(cfg: StrategyConfig, movement: Movement) -> Classification:
    wanted = Movement.RISE if cfg.direction == "rise" else Movement.FALL
    return _target_if(movement == wanted)


def _classify_average(cfg: StrategyConfig, movement: Movement) -> Classification:
    wanted = Movement.HIGHER if cfg.direction == "higher" else Movement.LOWER
    return _target_if(movement == wanted)


def _classify_over_under(cfg: StrategyConfig, digit: int) -> Classification:
    if cfg.side == "under":
        return _target_if(digit < cfg.target)
    return _target_if(digit > cfg.target)


def _classify_configured_digit(cfg: StrategyConfig, digit: int) -> Classification:
    return Classification.TARGET if digit == cfg.digit else Classification.NEUTRAL


def _classify_dual(cfg: StrategyConfig, digit: int) -> Classification:
    return _target_if(cfg.under <= digit <= cfg.over)


def _substitute_over_under(cfg: StrategyConfig) -> StrategyConfig:
    return StrategyConfig.over_under(5, cfg.side)


def _substitute_under_five(cfg: StrategyConfig) -> StrategyConfig:
    return StrategyConfig.over_under(5, "under")


def _substitute_dual_pair(cfg: StrategyConfig) -> StrategyConfig:
    # under-4/over-5 and under-3/over-6 recover into each other
    if (cfg.under, cfg.over) == (4, 5):
        return StrategyConfig.dual_barrier(3, 6)
    return StrategyConfig.dual_barrier(4, 5)


def _dual_legs(cfg: StrategyConfig) -> tuple:
    return (SubOrder("DIGITUNDER", cfg.under), SubOrder("DIGITOVER", cfg.over))


STRATEGY_TABLE: dict[StrategyTag, StrategyRule] = {
    StrategyTag.EVEN_ODD: StrategyRule(
        observation=ObservationKind.DIGIT,
        mode=TriggerMode.COUNTER,
        threshold_param="parity_threshold",
        classify=_classify_parity,
        trade_type=lambda cfg: "DIGITEVEN" if cfg.parity == "even" else "DIGITODD",
        prediction=lambda cfg: None,
    ),
    StrategyTag.RISE_FALL: StrategyRule(
        observation=ObservationKind.MOVEMENT,
        mode=TriggerMode.COUNTER,
        threshold_param="movement_threshold",
        classify=_classify_movement,
        trade_type=lambda cfg: "CALL" if cfg.direction == "rise" else "PUT",
        prediction=lambda cfg: None,
    ),
    StrategyTag.DIFFERS: StrategyRule(
        observation=ObservationKind.DIGIT,
        mode=TriggerMode.INSTANT,
        threshold_param="parity_threshold",
        classify=_classify_configured_digit,
        trade_type=lambda cfg: "DIGITDIFF",
        prediction=lambda cfg: cfg.digit,
        substitute_on_loss=_substitute_under_five,
    ),
    StrategyTag.MATCHES: StrategyRule(
        observation=ObservationKind.DIGIT,
        mode=TriggerMode.INSTANT,
        threshold_param="parity_threshold",
        classify=_classify_configured_digit,
        trade_type=lambda cfg: "DIGITMATCH",
        prediction=lambda cfg: cfg.digit,
        substitute_on_loss=_substitute_under_five,
    ),
    StrategyTag.OVER_UNDER: StrategyRule(
        observation=ObservationKind.DIGIT,
        mode=TriggerMode.COUNTER,
        threshold_param="over_under_threshold",
        classify=_classify_over_under,
        trade_type=lambda cfg: "DIGITOVER" if cfg.side == "over" else "DIGITUNDER",
        prediction=lambda cfg: cfg.target,
        substitute_on_loss=_substitute_over_under,
    ),
    StrategyTag.HIGHER_LOWER: StrategyRule(
        observation=ObservationKind.AVERAGE,
        mode=TriggerMode.COUNTER,
        threshold_param="movement_threshold",
        classify=_classify_average,
        trade_type=lambda cfg: "CALL" if cfg.direction == "higher" else "PUT",
        prediction=lambda cfg: None,
        barrier=lambda cfg: f"{cfg.barrier_offset:+g}",
    ),
    StrategyTag.DUAL_BARRIER: StrategyRule(
        observation=ObservationKind.DIGIT,
        mode=TriggerMode.PATTERN,
        threshold_param="dual_confirm_ticks",
        classify=_classify_dual,
        trade_type=lambda cfg: "DUAL",
        prediction=lambda cfg: None,
        orders=_dual_legs,
        substitute_on_loss=_substitute_dual_pair,
    ),
}


def get_rule(tag: StrategyTag) -> StrategyRule:
    """Look up the dispatch row for a strategy tag."""
    try:
        return STRATEGY_TABLE[StrategyTag(tag)]
    except (KeyError, ValueError) as e:
        raise ValueError(f"Unknown strategy tag: {tag!r}") from e


def substitute_for(cfg: StrategyConfig) -> Optional[StrategyConfig]:
    """Strategy recovery mode trades after a loss, None if not eligible."""
    rule = get_rule(cfg.tag)
    if rule.substitute_on_loss is None:
        return None
    return rule.substitute_on_loss(cfg)
