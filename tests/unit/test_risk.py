"""
Unit tests for RiskManager.

Tests concurrency and cooldown limits, stop-loss halts, and resume.
"""

from dataclasses import replace
from datetime import date, timedelta

import pytest

from mev_dashboard.core.types import SimpleOpportunity
from mev_dashboard.execution.risk import HALT_STOP_LOSS, RiskLimits, RiskManager, RiskState
from tests.mocks import FakeClock


class TestRiskLimits:
    """Tests for RiskLimits dataclass."""

    def test_default_limits(self) -> None:
        """Test default limit values."""
        limits = RiskLimits()

        assert limits.max_concurrent_trades == 3
        assert limits.min_time_between_trades_ms == 5000
        assert limits.stop_loss_pct == -3.0

    def test_loss_limit(self) -> None:
        """Test that the loss limit is a share of the position value."""
        assert RiskLimits(stop_loss_pct=-3.0).loss_limit(1000.0) == pytest.approx(30.0)
        assert RiskLimits(stop_loss_pct=0.0).loss_limit(1000.0) == 0.0


class TestRiskState:
    """Tests for RiskState dataclass."""

    def test_reset_daily_lifts_stop_loss(self) -> None:
        """Test that a new day clears counters and a stop-loss halt."""
        state = RiskState(daily_pnl=-25.0, daily_trades=50, is_halted=True, halt_reason=HALT_STOP_LOSS)

        state.reset_daily()

        assert state.daily_pnl == 0.0
        assert state.daily_trades == 0
        assert state.is_halted is False
        assert state.halt_reason == ""

    def test_reset_daily_keeps_manual_halt(self) -> None:
        """Test that a manual halt survives the daily reset."""
        state = RiskState(is_halted=True, halt_reason="Manual: maintenance")

        state.reset_daily()

        assert state.is_halted is True


class TestRiskManager:
    """Tests for RiskManager."""

    @pytest.fixture
    def clock(self) -> FakeClock:
        """Controllable clock."""
        return FakeClock()

    @pytest.fixture
    def risk_manager(self, clock: FakeClock) -> RiskManager:
        """Create a risk manager with test limits."""
        limits = RiskLimits(
            max_concurrent_trades=2,
            min_time_between_trades_ms=100,
            stop_loss_pct=-3.0,
        )
        return RiskManager(limits=limits, clock=clock)

    def test_check_trade_passes(
        self,
        risk_manager: RiskManager,
        simple_opportunity: SimpleOpportunity,
    ) -> None:
        """Test that a valid trade passes checks."""
        result = risk_manager.check_trade(simple_opportunity)

        assert result
        assert result.reason == ""

    def test_concurrency_limit(
        self,
        risk_manager: RiskManager,
        clock: FakeClock,
        simple_opportunity: SimpleOpportunity,
    ) -> None:
        """Test that open trades are capped."""
        risk_manager.record_trade_start()
        clock.advance(200)
        risk_manager.record_trade_start()
        clock.advance(200)

        result = risk_manager.check_trade(simple_opportunity)

        assert not result
        assert "concurrent" in result.reason
        assert risk_manager.available_capacity == 0

        risk_manager.record_trade_failed()
        assert risk_manager.check_trade(simple_opportunity)

    def test_cooldown(
        self,
        risk_manager: RiskManager,
        clock: FakeClock,
        simple_opportunity: SimpleOpportunity,
    ) -> None:
        """Test that trades too close together are rejected."""
        risk_manager.record_trade_start()
        risk_manager.record_trade_complete(1.0, 1000.0)
        clock.advance(50)

        result = risk_manager.check_trade(simple_opportunity)
        assert not result
        assert "Cooldown" in result.reason

        clock.advance(50)
        assert risk_manager.check_trade(simple_opportunity)

    def test_negative_expected_profit(
        self,
        risk_manager: RiskManager,
        simple_opportunity: SimpleOpportunity,
    ) -> None:
        """Test that a losing opportunity is never auto-executed."""
        losing = replace(simple_opportunity, estimated_profit=-1.0)

        assert not risk_manager.check_trade(losing)

    def test_stop_loss_halts_trading(
        self,
        risk_manager: RiskManager,
        clock: FakeClock,
        simple_opportunity: SimpleOpportunity,
    ) -> None:
        """Test that session losses beyond the stop-loss halt auto-execution."""
        risk_manager.record_trade_start()
        risk_manager.record_trade_complete(-31.0, 1000.0)
        clock.advance(1000)

        assert risk_manager.state.is_halted
        assert risk_manager.state.halt_reason == HALT_STOP_LOSS
        assert not risk_manager.is_trading_allowed

        result = risk_manager.check_trade(simple_opportunity)
        assert not result
        assert "halted" in result.reason

        # Still breached, resume refuses
        assert risk_manager.resume() is False

    def test_loss_within_limit_keeps_trading(
        self,
        risk_manager: RiskManager,
        clock: FakeClock,
        simple_opportunity: SimpleOpportunity,
    ) -> None:
        """Test that losses below the stop-loss do not halt."""
        risk_manager.record_trade_start()
        risk_manager.record_trade_complete(-29.0, 1000.0)
        clock.advance(1000)

        assert risk_manager.is_trading_allowed
        assert risk_manager.check_trade(simple_opportunity)

    def test_force_halt_and_resume(
        self,
        risk_manager: RiskManager,
        simple_opportunity: SimpleOpportunity,
    ) -> None:
        """Test manual halt and resume."""
        risk_manager.force_halt("maintenance")

        assert not risk_manager.check_trade(simple_opportunity)
        assert risk_manager.state.halt_reason == "Manual: maintenance"

        assert risk_manager.resume() is True
        assert risk_manager.check_trade(simple_opportunity)

    def test_new_day_resets_counters(
        self,
        risk_manager: RiskManager,
        clock: FakeClock,
        simple_opportunity: SimpleOpportunity,
    ) -> None:
        """Test that the first check on a new day resets the session."""
        risk_manager.record_trade_start()
        risk_manager.record_trade_complete(-50.0, 1000.0)
        clock.advance(1000)
        risk_manager.state.current_date = date.today() - timedelta(days=1)

        assert risk_manager.check_trade(simple_opportunity)
        assert risk_manager.state.daily_pnl == 0.0

    def test_update_limits_keeps_state(self, risk_manager: RiskManager) -> None:
        """Test that replacing limits keeps counters."""
        risk_manager.record_trade_start()

        risk_manager.update_limits(RiskLimits(max_concurrent_trades=5))

        assert risk_manager.state.open_trades == 1
        assert risk_manager.available_capacity == 4

    def test_to_dict(self, risk_manager: RiskManager) -> None:
        """Test status export."""
        risk_manager.record_trade_start()
        risk_manager.record_trade_complete(2.5, 1000.0)

        data = risk_manager.to_dict()

        assert data["daily_pnl"] == 2.5
        assert data["daily_trades"] == 1
        assert data["open_trades"] == 0
        assert data["loss_limit"] == pytest.approx(30.0)
