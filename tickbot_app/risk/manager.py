"""
Consolidated staking and limit policy.

RiskManager owns the martingale stake plan, recovery mode and loss-streak
statistics. Every settled outcome goes through ``on_outcome`` exactly once;
halting conditions are raised as TradingHaltError subclasses for the engine
to act on.
"""

from typing import Optional

from ..config.defaults import MartingaleParams, RecoveryParams
from ..errors import MartingaleCapExceeded, RecoveryExhausted
from ..logging.config import get_risk_logger, log_risk_decision
from ..state.models import EntrySignal, StrategyConfig, StrategyTag
from ..state.strategies import get_rule, substitute_for
from .models import (
    AggregateLedger,
    LimitBreach,
    RecoveryState,
    RiskDecision,
    RiskStatus,
    StakePlan,
)

risk_logger = get_risk_logger(__name__)

DEFAULT_RECOVERY_TARGET = 5


class RiskManager:
    """Martingale, recovery, fast mode and aggregate limit checks."""

    def __init__(self, martingale: Optional[MartingaleParams] = None,
                 recovery: Optional[RecoveryParams] = None,
                 fast_mode: bool = False):
        martingale = martingale or MartingaleParams()
        self.recovery_params = recovery or RecoveryParams()
        self.plan = StakePlan(
            base_stake=martingale.base_stake,
            multiplier=martingale.multiplier,
            max_level=martingale.max_level,
        )
        self.recovery = RecoveryState(max_attempts=self.recovery_params.max_attempts)
        self.fast_mode = fast_mode
        self.strategy: Optional[StrategyConfig] = None

        self.loss_streak = 0
        self.max_loss_streak = 0
        self.halted_reason: Optional[str] = None
        self._breached_limit: Optional[str] = None

    @property
    def current_stake(self) -> float:
        if self.fast_mode:
            return round(self.plan.base_stake, 2)
        return self.plan.current_stake

    @property
    def level(self) -> int:
        return self.plan.level

    # Configuration commands

    def configure_stake(self, base_stake: float, multiplier: Optional[float] = None,
                        max_level: Optional[int] = None) -> None:
        """Replace the stake plan; the martingale level restarts at 0."""
        if base_stake <= 0:
            raise ValueError(f"base_stake must be positive, got {base_stake}")
        multiplier = self.plan.multiplier if multiplier is None else multiplier
        max_level = self.plan.max_level if max_level is None else max_level
        if multiplier < 1:
            raise ValueError(f"multiplier must be at least 1, got {multiplier}")
        if max_level < 0:
            raise ValueError(f"max_level must be non-negative, got {max_level}")
        self.plan = StakePlan(base_stake=base_stake, multiplier=multiplier, max_level=max_level)

    def configure_recovery(self, params: RecoveryParams) -> None:
        self.recovery_params = params
        self.recovery = RecoveryState(max_attempts=params.max_attempts)

    def set_strategy(self, strategy: Optional[StrategyConfig]) -> None:
        """Select the strategy outcomes refer to; recovery restarts."""
        self.strategy = strategy
        self.recovery = self.recovery.cleared()

    def set_fast_mode(self, enabled: bool) -> None:
        """Toggle flat-stake fast mode. Enabling it resets staking state."""
        if enabled and not self.fast_mode:
            self.reset()
        self.fast_mode = enabled
        risk_logger.info("Fast mode toggled", fast_mode=enabled, stake=self.current_stake)

    def reset(self) -> None:
        """Back to base stake with no recovery and no streak."""
        self.plan = self.plan.with_level(0)
        self.recovery = self.recovery.cleared()
        self.loss_streak = 0
        self.halted_reason = None
        self._breached_limit = None

    # Decisions

    def plan_entry(self, signal: EntrySignal) -> EntrySignal:
        """Attach the stake and apply recovery substitution to a fresh signal."""
        if (not self.fast_mode and self.recovery.active
                and self.recovery.substitute_strategy is not None):
            substitute = self.recovery.substitute_strategy
            rule = get_rule(substitute.tag)
            signal = signal.with_substitute(
                rule.trade_type(substitute),
                rule.prediction(substitute),
                f"recovery {self.recovery.attempts}/{self.recovery.max_attempts}: "
                f"{substitute.label} instead of {signal.reason}",
                multi_predictions=rule.orders(substitute),
            )
        return signal.with_stake(self.current_stake)

    def on_outcome(self, won: bool, profit: float = 0.0) -> RiskDecision:
        """
        Apply a settled outcome to the stake plan and recovery state.

        Raises:
            MartingaleCapExceeded: A loss pushed the level past max_level.
            RecoveryExhausted: Recovery lost more than max_attempts times.
        """
        if won:
            self.loss_streak = 0
        else:
            self.loss_streak += 1
            self.max_loss_streak = max(self.max_loss_streak, self.loss_streak)

        if self.fast_mode:
            return self._decide(RiskStatus.FLAT, "fast mode keeps a flat stake", profit)

        if won:
            was_recovering = self.recovery.active
            self.plan = self.plan.with_level(0)
            self.recovery = self.recovery.cleared()
            reason = "win clears recovery" if was_recovering else "win resets martingale"
            return self._decide(RiskStatus.RESET, reason, profit)

        next_level = self.plan.level + 1
        if next_level > self.plan.max_level:
            self.halted_reason = (
                f"Martingale level {next_level} exceeds maximum {self.plan.max_level}"
            )
            log_risk_decision(risk_logger, "halt", self.plan.level, self.plan.current_stake,
                              self.halted_reason)
            raise MartingaleCapExceeded(self.halted_reason, level=next_level,
                                        max_level=self.plan.max_level)
        self.plan = self.plan.with_level(next_level)

        if self._recovery_applies():
            if not self.recovery.active:
                self.recovery = self.recovery.with_activated(self.strategy,
                                                             self._substitute_strategy())
                return self._decide(RiskStatus.RECOVERY,
                                    f"recovery with {self.recovery.substitute_strategy.label}",
                                    profit)
            self.recovery = self.recovery.with_attempt()
            if self.recovery.attempts > self.recovery.max_attempts:
                self.halted_reason = (
                    f"Recovery failed after {self.recovery.max_attempts} attempts"
                )
                log_risk_decision(risk_logger, "halt", self.plan.level, self.plan.current_stake,
                                  self.halted_reason)
                raise RecoveryExhausted(self.halted_reason, attempts=self.recovery.attempts,
                                        max_attempts=self.recovery.max_attempts)
            return self._decide(RiskStatus.RECOVERY,
                                f"recovery attempt {self.recovery.attempts}", profit)

        return self._decide(RiskStatus.LOSS, "loss raises martingale level", profit)

    def on_unknown_outcome(self, contract_id: str) -> RiskDecision:
        """An outcome that never arrived changes nothing."""
        return self._decide(RiskStatus.UNKNOWN, f"outcome of {contract_id} unknown", None)

    def check_limits(self, ledger: AggregateLedger) -> Optional[LimitBreach]:
        """
        Compare the ledger total against take-profit and stop-loss.

        Reports a crossing once; the same limit reports again only after the
        total has moved back inside the limits.
        """
        total = ledger.total
        breach = None
        if ledger.take_profit is not None and total >= ledger.take_profit:
            breach = LimitBreach("take_profit", total, ledger.take_profit)
        elif ledger.stop_loss is not None and total <= -abs(ledger.stop_loss):
            breach = LimitBreach("stop_loss", total, -abs(ledger.stop_loss))

        if breach is None:
            self._breached_limit = None
            return None
        if breach.limit == self._breached_limit:
            return None
        self._breached_limit = breach.limit
        self.halted_reason = breach.message
        log_risk_decision(risk_logger, "halt", self.plan.level, self.current_stake,
                          breach.message, context={"total_profit": round(total, 2)})
        return breach

    def _recovery_applies(self) -> bool:
        return (self.recovery_params.enabled and self.strategy is not None
                and get_rule(self.strategy.tag).recovery_eligible)

    def _substitute_strategy(self) -> StrategyConfig:
        params = self.recovery_params
        default = substitute_for(self.strategy)
        # Overrides only apply to single-digit substitutes
        if default.tag != StrategyTag.OVER_UNDER or (
                params.trade_type is None and params.target_digit is None):
            return default
        side = default.side
        if params.trade_type is not None:
            side = "over" if params.trade_type == "DIGITOVER" else "under"
        target = DEFAULT_RECOVERY_TARGET if params.target_digit is None else params.target_digit
        return StrategyConfig.over_under(target, side)

    def _decide(self, status: RiskStatus, reason: str, profit: Optional[float]) -> RiskDecision:
        decision = RiskDecision(
            status=status,
            next_stake=self.current_stake,
            level=self.plan.level,
            recovery_active=self.recovery.active,
            recovery_attempts=self.recovery.attempts,
            loss_streak=self.loss_streak,
            reason=reason,
        )
        context = {"profit": profit} if profit is not None else None
        log_risk_decision(risk_logger, status.value, decision.level, decision.next_stake,
                          reason, context=context)
        return decision
