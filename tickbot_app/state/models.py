"""
Signal detector data models.

This module defines the strategy configuration variants, the immutable
detector runtime state and the entry signals the detector emits.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class StrategyTag(str, Enum):
    """Supported entry strategies."""
    EVEN_ODD = "even_odd"
    RISE_FALL = "rise_fall"
    DIFFERS = "differs"
    MATCHES = "matches"
    OVER_UNDER = "over_under"
    HIGHER_LOWER = "higher_lower"
    DUAL_BARRIER = "dual_barrier"


class DetectorState(str, Enum):
    """Detector lifecycle states."""
    ARMED = "armed"
    TRIGGERED = "triggered"


class Classification(str, Enum):
    """How a single observation relates to the strategy's target outcome."""
    TARGET = "target"
    OPPOSITE = "opposite"
    NEUTRAL = "neutral"


_PARITIES = ("even", "odd")
_DIRECTIONS = ("rise", "fall")
_SIDES = ("over", "under")
_HL_DIRECTIONS = ("higher", "lower")


def _check_digit(value: int, name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 9:
        raise ValueError(f"{name} must be a digit 0-9, got {value!r}")


@dataclass(frozen=True)
class StrategyConfig:
    """
    Tagged strategy variant.

    Only the fields relevant to ``tag`` are set; use the classmethod
    constructors rather than building instances directly.
    """
    tag: StrategyTag
    parity: Optional[str] = None          # EVEN_ODD
    direction: Optional[str] = None       # RISE_FALL, HIGHER_LOWER
    digit: Optional[int] = None           # DIFFERS, MATCHES
    target: Optional[int] = None          # OVER_UNDER
    side: Optional[str] = None            # OVER_UNDER
    barrier_offset: Optional[float] = None  # HIGHER_LOWER, signed
    under: Optional[int] = None           # DUAL_BARRIER
    over: Optional[int] = None            # DUAL_BARRIER

    @classmethod
    def even_odd(cls, parity: str) -> "StrategyConfig":
        if parity not in _PARITIES:
            raise ValueError(f"parity must be one of {_PARITIES}, got {parity!r}")
        return cls(tag=StrategyTag.EVEN_ODD, parity=parity)

    @classmethod
    def rise_fall(cls, direction: str) -> "StrategyConfig":
        if direction not in _DIRECTIONS:
            raise ValueError(f"direction must be one of {_DIRECTIONS}, got {direction!r}")
        return cls(tag=StrategyTag.RISE_FALL, direction=direction)

    @classmethod
    def differs(cls, digit: int) -> "StrategyConfig":
        _check_digit(digit, "digit")
        return cls(tag=StrategyTag.DIFFERS, digit=digit)

    @classmethod
    def matches(cls, digit: int) -> "StrategyConfig":
        _check_digit(digit, "digit")
        return cls(tag=StrategyTag.MATCHES, digit=digit)

    @classmethod
    def over_under(cls, target: int, side: str) -> "StrategyConfig":
        _check_digit(target, "target")
        if side not in _SIDES:
            raise ValueError(f"side must be one of {_SIDES}, got {side!r}")
        # No digit can be over 9 or under 0
        if (side == "over" and target == 9) or (side == "under" and target == 0):
            raise ValueError(f"{side} {target} can never win")
        return cls(tag=StrategyTag.OVER_UNDER, target=target, side=side)

    @classmethod
    def higher_lower(cls, barrier_offset: float, direction: str) -> "StrategyConfig":
        if direction not in _HL_DIRECTIONS:
            raise ValueError(f"direction must be one of {_HL_DIRECTIONS}, got {direction!r}")
        if not barrier_offset:
            raise ValueError("barrier_offset must be non-zero")
        return cls(tag=StrategyTag.HIGHER_LOWER, barrier_offset=float(barrier_offset),
                   direction=direction)

    @classmethod
    def dual_barrier(cls, under: int, over: int) -> "StrategyConfig":
        _check_digit(under, "under")
        _check_digit(over, "over")
        if under > over:
            raise ValueError(f"under ({under}) must not exceed over ({over})")
        return cls(tag=StrategyTag.DUAL_BARRIER, under=under, over=over)

    @property
    def label(self) -> str:
        """Short human readable name, e.g. ``under-8``."""
        if self.tag == StrategyTag.EVEN_ODD:
            return self.parity
        if self.tag == StrategyTag.RISE_FALL:
            return self.direction
        if self.tag in (StrategyTag.DIFFERS, StrategyTag.MATCHES):
            return f"{self.tag.value}-{self.digit}"
        if self.tag == StrategyTag.OVER_UNDER:
            return f"{self.side}-{self.target}"
        if self.tag == StrategyTag.HIGHER_LOWER:
            return f"{self.direction}{self.barrier_offset:+g}"
        return f"under-{self.under}/over-{self.over}"


@dataclass(frozen=True)
class SubOrder:
    """One leg of a multi-contract entry."""
    trade_type: str
    prediction: Optional[int] = None
    barrier: Optional[str] = None


@dataclass(frozen=True)
class EntrySignal:
    """Entry decision emitted by the detector and sized by the risk manager."""
    strategy_tag: StrategyTag
    trade_type: str
    prediction: Optional[int] = None
    barrier: Optional[str] = None
    multi_predictions: tuple = ()         # tuple[SubOrder, ...]
    reason: str = ""
    stake: Optional[float] = None
    recovery: bool = False                # Substituted by recovery mode

    @property
    def orders(self) -> tuple:
        """Legs to purchase: the sub-orders, or the signal itself as one leg."""
        if self.multi_predictions:
            return self.multi_predictions
        return (SubOrder(self.trade_type, self.prediction, self.barrier),)

    def with_stake(self, stake: float) -> "EntrySignal":
        return replace(self, stake=stake)

    def with_substitute(self, trade_type: str, prediction: Optional[int], reason: str,
                        multi_predictions: tuple = ()) -> "EntrySignal":
        """Replace the traded contract(s), keeping the originating strategy tag."""
        return replace(self, trade_type=trade_type, prediction=prediction, barrier=None,
                       multi_predictions=multi_predictions, reason=reason, recovery=True)


@dataclass(frozen=True)
class DetectorRuntimeState:
    """Runtime state of a signal detector."""
    state: DetectorState = DetectorState.ARMED
    opposite_count: int = 0          # Consecutive opposite observations
    pattern_count: int = 0           # Consecutive qualifying digits (dual barrier)
    observations: int = 0
    triggers: int = 0

    def with_observation(self, opposite_count: int, pattern_count: int = 0) -> "DetectorRuntimeState":
        return DetectorRuntimeState(
            state=self.state,
            opposite_count=opposite_count,
            pattern_count=pattern_count,
            observations=self.observations + 1,
            triggers=self.triggers,
        )

    def with_triggered(self) -> "DetectorRuntimeState":
        """Disarm after firing; counters reset."""
        return DetectorRuntimeState(
            state=DetectorState.TRIGGERED,
            opposite_count=0,
            pattern_count=0,
            observations=self.observations + 1,
            triggers=self.triggers + 1,
        )

    def with_armed(self) -> "DetectorRuntimeState":
        return DetectorRuntimeState(
            state=DetectorState.ARMED,
            opposite_count=0,
            pattern_count=0,
            observations=self.observations,
            triggers=self.triggers,
        )
