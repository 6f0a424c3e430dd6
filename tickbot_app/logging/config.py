"""
Centralized logging configuration for the tick decision engine.

All components log through structlog so that tick, signal, stake and
contract events share one structured format. Call configure_logging once at
process start; module loggers obtained earlier pick the configuration up
lazily.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structlog logger instance (name is typically __name__)."""
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for signal detector state transitions.

    Bound with subsystem=state_machine so arming/trigger events can be
    filtered into an audit trail.
    """
    return get_logger(name).bind(
        subsystem="state_machine",
        audit_trail=True
    )


def get_risk_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for staking and limit decisions.

    Bound with subsystem=risk so every stake change is auditable.
    """
    return get_logger(name).bind(
        subsystem="risk",
        audit_trail=True
    )


def log_state_transition(
    logger: FilteringBoundLogger,
    strategy: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a detector state transition with standardized format.

    Args:
        logger: Structlog logger instance
        strategy: Strategy tag of the detector
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        strategy=strategy,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("state_transition")


def log_risk_decision(
    logger: FilteringBoundLogger,
    status: str,
    level: int,
    stake: float,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a staking decision with standardized format.

    Args:
        logger: Structlog logger instance
        status: Decision status (reset, loss, recovery, halt)
        level: Martingale level after the decision
        stake: Stake for the next trade
        reason: Short human readable reason
        context: Additional context data
    """
    bound_logger = logger.bind(
        risk_status=status,
        martingale_level=level,
        next_stake=stake,
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if status == "halt":
        bound_logger.warning("risk_decision")
    else:
        bound_logger.info("risk_decision")
