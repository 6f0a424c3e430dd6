"""Tests for structured audit logging of detector and risk decisions."""

import structlog
from structlog.testing import capture_logs

from tickbot_app.logging.config import (
    configure_logging,
    get_risk_logger,
    get_state_logger,
    log_risk_decision,
    log_state_transition,
)


class TestAuditLogging:
    """Test audit logger binding and helper formats."""

    def test_state_transition_entry(self):
        with capture_logs() as entries:
            logger = get_state_logger("tests.detector")
            log_state_transition(logger, "under-8", "armed", "triggered", "entry_signal",
                                 context={"trade_type": "DIGITUNDER"})

        entry = entries[-1]
        assert entry["event"] == "state_transition"
        assert entry["subsystem"] == "state_machine"
        assert entry["audit_trail"] is True
        assert entry["strategy"] == "under-8"
        assert entry["to_state"] == "triggered"
        assert entry["context"] == {"trade_type": "DIGITUNDER"}

    def test_risk_halt_logged_as_warning(self):
        with capture_logs() as entries:
            logger = get_risk_logger("tests.risk")
            log_risk_decision(logger, "loss", 1, 2.0, "loss raises martingale level")
            log_risk_decision(logger, "halt", 5, 32.0, "Martingale level 6 exceeds maximum 5")

        assert [e["log_level"] for e in entries] == ["info", "warning"]
        assert entries[0]["subsystem"] == "risk"
        assert entries[0]["next_stake"] == 2.0
        assert entries[1]["martingale_level"] == 5
        assert "context" not in entries[0]


class TestConfigureLogging:
    """Test process-wide logging configuration."""

    def test_json_renderer_selected(self):
        try:
            configure_logging(level="DEBUG", format_json=True, include_caller=True)
            processors = structlog.get_config()["processors"]

            assert isinstance(processors[-1], structlog.processors.JSONRenderer)
            assert any(isinstance(p, structlog.processors.TimeStamper) for p in processors)
        finally:
            structlog.reset_defaults()

    def test_console_renderer_without_timestamp(self):
        try:
            configure_logging(include_timestamp=False)
            processors = structlog.get_config()["processors"]

            assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
            assert not any(isinstance(p, structlog.processors.TimeStamper) for p in processors)
        finally:
            structlog.reset_defaults()
