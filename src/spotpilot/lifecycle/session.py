"""Single owner of the open position for one (instrument, account) pair."""

from __future__ import annotations

from typing import Optional

from ..config import TradingConfiguration
from ..errors import PositionStateError, SettlementError
from ..execution.router import ExecutionLayer
from ..signals.contract import LONG, Signal
from ..storage.history import InMemoryTradeRepository, TradeRecord, TradeRepository
from ..utils.log import (
    E_ENTRY_BLOCKED,
    E_POSITION_CLOSED,
    E_POSITION_CLOSING,
    E_POSITION_FAILED,
    E_POSITION_OPENED,
    E_REOPEN_CLEARED,
    E_REOPEN_SCHEDULED,
    E_REOPEN_SKIPPED,
    R_CANCELLED,
    R_DAILY_LOSS,
    R_LOW_CONFIDENCE,
    R_NOT_ACTIONABLE,
    R_SETTLEMENT,
    R_TRADE_CAP,
    TelemetryContext,
    log_event,
)
from .policy import PolicyDecision, PositionPolicy
from .position import CloseReason, Position
from .risk_guard import DailyLossGuard


class TradingSession:
    """Open, monitor and close positions for one instrument.

    At most one position is open at a time. Every tick evaluates the
    :class:`PositionPolicy` once; a close decision is settled through the
    injected :class:`ExecutionLayer` and the result is appended to the
    :class:`TradeRepository`. Settlement failures leave the position ``FAILED``
    and are never retried here.
    """

    def __init__(
        self,
        instrument: str,
        config: TradingConfiguration,
        executor: ExecutionLayer,
        repository: TradeRepository | None = None,
        *,
        balance: float = 1_000.0,
        account: str = "default",
        policy: PositionPolicy | None = None,
        ctx: TelemetryContext | None = None,
    ) -> None:
        self.instrument = instrument
        self.account = account
        self.config = config
        self.executor = executor
        self.repository = repository if repository is not None else InMemoryTradeRepository()
        self.balance = float(balance)
        self.ctx = ctx or TelemetryContext(instrument=instrument, account=account)
        self.policy = policy or PositionPolicy(self.ctx)
        self.guard = DailyLossGuard(config.max_daily_loss_percent, self.ctx)
        self.position: Optional[Position] = None
        self.last_failure: Optional[Position] = None
        self.auto_trade = True
        self.trades_opened = 0
        self._pending_reopen = False

    # -- state -------------------------------------------------------------
    @property
    def has_open_position(self) -> bool:
        return self.position is not None

    @property
    def pending_reopen(self) -> bool:
        return self._pending_reopen

    def _clear_reopen(self, reason: str) -> None:
        if self._pending_reopen:
            self._pending_reopen = False
            log_event(E_REOPEN_CLEARED, self.ctx, reason=reason)

    def set_config(self, config: TradingConfiguration) -> None:
        self.config = config
        self.guard.max_daily_loss_percent = config.max_daily_loss_percent

    def disable_auto_trade(self) -> None:
        self.auto_trade = False
        self._clear_reopen(R_CANCELLED)

    def enable_auto_trade(self) -> None:
        self.auto_trade = True

    def trade_cap_reached(self) -> bool:
        if self.config.turbo_mode:
            return False
        return self.trades_opened >= self.config.max_trades_per_session

    # -- entries -----------------------------------------------------------
    def open_position(self, signal: Signal, price: float, now: float) -> Optional[Position]:
        """Open a position in ``signal.direction`` at ``price``.

        Returns ``None`` when the daily loss guard blocks entries. A failed
        settlement returns the ``FAILED`` position and records it in history.
        """

        if self.position is not None:
            raise PositionStateError(f"{self.instrument}: position {self.position.id} already open")
        if self.guard.should_block(now, self.balance):
            log_event(E_ENTRY_BLOCKED, self.ctx, reason=R_DAILY_LOSS, balance=self.balance)
            return None

        cfg = self.config
        size = self.balance * cfg.max_position_percent / 100.0
        pos = Position(
            instrument=self.instrument,
            direction=signal.direction,
            entry_price=price,
            size=size,
            opened_at=now,
            account=self.account,
        )
        try:
            fill = self.executor.open(pos, price)
        except SettlementError as exc:
            pos.status = "FAILED"
            pos.error = str(exc)
            pos.closed_at = now
            self.last_failure = pos
            self.repository.append(TradeRecord.from_position(pos))
            log_event(E_POSITION_FAILED, self.ctx, position_id=pos.id, stage="open", reason=R_SETTLEMENT, error=str(exc))
            return pos

        pos.entry_price = fill.price
        pos.fees = fill.fee
        sign = 1.0 if pos.direction == LONG else -1.0
        if cfg.take_profit_enabled:
            pos.take_profit_price = fill.price * (1 + sign * cfg.take_profit_percent / 100.0)
        if cfg.stop_loss_enabled:
            pos.stop_loss_price = fill.price * (1 - sign * cfg.stop_loss_percent / 100.0)
        self.position = pos
        self.trades_opened += 1
        log_event(
            E_POSITION_OPENED,
            self.ctx,
            position_id=pos.id,
            direction=pos.direction,
            entry=pos.entry_price,
            size=pos.size,
            confidence=signal.confidence,
            turbo=cfg.turbo_mode,
        )
        return pos

    def _try_reopen(self, signal: Signal, price: float, now: float) -> Optional[Position]:
        if not self.auto_trade:
            self._clear_reopen(R_CANCELLED)
            return None
        if not signal.actionable:
            log_event(E_REOPEN_SKIPPED, self.ctx, reason=R_NOT_ACTIONABLE, confidence=signal.confidence)
            return None
        if not self.config.turbo_mode:
            if self.trade_cap_reached():
                log_event(E_REOPEN_SKIPPED, self.ctx, reason=R_TRADE_CAP, trades=self.trades_opened)
                self._clear_reopen(R_TRADE_CAP)
                return None
            if signal.confidence < self.config.reopen_min_confidence:
                # keep the intent and wait for a stronger signal
                log_event(E_REOPEN_SKIPPED, self.ctx, reason=R_LOW_CONFIDENCE, confidence=signal.confidence)
                return None
        self._pending_reopen = False
        return self.open_position(signal, price, now)

    # -- monitoring --------------------------------------------------------
    def on_tick(
        self, price: float, now: float, signal: Signal | None = None
    ) -> Optional[PolicyDecision]:
        """Evaluate one tick.

        With an open position the policy decision is returned (and acted on).
        Without one, a pending auto-reopen is attempted using ``signal``.
        """

        if self.position is None:
            if self._pending_reopen and signal is not None:
                self._try_reopen(signal, price, now)
            return None

        decision = self.policy.decide(self.position, price, now, self.config, signal)
        if decision.should_close and decision.reason is not None:
            self.close_position(decision.reason, price, now, reopen=decision.reopen)
        return decision

    # -- exits -------------------------------------------------------------
    def close_position(
        self, reason: CloseReason, price: float, now: float, *, reopen: bool = False
    ) -> Position:
        pos = self.position
        if pos is None or not pos.is_open:
            raise PositionStateError(f"{self.instrument}: no open position to close")

        self._clear_reopen(R_CANCELLED)
        pos.status = "CLOSING"
        log_event(E_POSITION_CLOSING, self.ctx, position_id=pos.id, reason=reason, price=price)
        try:
            fill = self.executor.close(pos, price)
        except SettlementError as exc:
            pos.status = "FAILED"
            pos.error = str(exc)
            pos.close_reason = reason
            pos.closed_at = now
            self.position = None
            self.last_failure = pos
            self.repository.append(TradeRecord.from_position(pos))
            log_event(E_POSITION_FAILED, self.ctx, position_id=pos.id, stage="close", reason=R_SETTLEMENT, error=str(exc))
            return pos

        pos.fees += fill.fee
        pos.exit_price = fill.price
        pos.realized_pnl = pos.pnl_at(fill.price) - pos.fees
        pos.close_reason = reason
        pos.closed_at = now
        pos.status = "CLOSED"
        self.balance += pos.realized_pnl
        self.position = None
        self.repository.append(TradeRecord.from_position(pos))
        log_event(
            E_POSITION_CLOSED,
            self.ctx,
            position_id=pos.id,
            reason=reason,
            exit=pos.exit_price,
            pnl=round(pos.realized_pnl, 8),
            balance=round(self.balance, 8),
        )

        if reopen and self.auto_trade:
            self._pending_reopen = True
            log_event(E_REOPEN_SCHEDULED, self.ctx, after=pos.id)
        return pos


__all__ = ["TradingSession"]
