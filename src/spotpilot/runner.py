"""Tick-driven scheduler tying the candle store, scorer and session together.

Each :meth:`TickRunner.step` refreshes candles from the injected feed,
evaluates a fresh signal once enough bars are stored, and hands price and
signal to the :class:`~spotpilot.lifecycle.session.TradingSession`. Nothing
here performs network I/O itself; feeds and execution are injected.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional

import pandas as pd

from .config import TradingConfiguration
from .data.candles import Candle, CandleStore, candles_from_frame
from .errors import CandleSequenceError
from .execution.router import PaperExecutor
from .indicators.snapshot import MIN_CANDLES
from .lifecycle.policy import PolicyDecision
from .lifecycle.position import Position
from .lifecycle.session import TradingSession
from .signals.contract import Signal
from .signals.scorer import evaluate
from .storage.history import InMemoryTradeRepository, TradeRecord, to_frame
from .utils.log import (
    E_DATA_WAIT,
    E_ERROR,
    R_INSUFFICIENT_DATA,
    TelemetryContext,
    log_event,
    new_id,
)

CandleFeed = Callable[[str], Iterable[Candle]]
PriceSource = Callable[[str], Optional[float]]


@dataclass
class TickResult:
    now: float
    price: Optional[float] = None
    signal: Optional[Signal] = None
    decision: Optional[PolicyDecision] = None
    opened: Optional[Position] = None
    waiting: bool = False


def should_open(signal: Signal) -> bool:
    """Entry rule used by the runner: actionable and passing every quality flag."""
    return signal.actionable and signal.is_quality


class TickRunner:
    def __init__(
        self,
        feed: CandleFeed,
        store: CandleStore,
        session: TradingSession,
        *,
        price_source: PriceSource | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        ctx: TelemetryContext | None = None,
    ) -> None:
        if store.instrument != session.instrument:
            raise ValueError("store and session must share the instrument")
        self.feed = feed
        self.store = store
        self.session = session
        self.price_source = price_source
        self.clock = clock
        self.sleep = sleep
        self.ctx = ctx or TelemetryContext(
            run_id=new_id("run"),
            instrument=store.instrument,
            interval=store.interval,
            account=session.account,
        )
        self.signals_evaluated = 0

    @property
    def config(self) -> TradingConfiguration:
        return self.session.config

    def _price(self) -> Optional[float]:
        if self.price_source is not None:
            price = self.price_source(self.store.instrument)
            return float(price) if price is not None else None
        last = self.store.last
        return last.close if last is not None else None

    def step(self, now: float | None = None) -> TickResult:
        now = self.clock() if now is None else now
        self.store.merge(self.feed(self.store.instrument))
        price = self._price()

        if not self.store.ready(MIN_CANDLES):
            log_event(
                E_DATA_WAIT,
                self.ctx,
                have=len(self.store),
                need=MIN_CANDLES,
                reason=R_INSUFFICIENT_DATA,
            )
            decision = None
            if price is not None and self.session.has_open_position:
                decision = self.session.on_tick(price, now)
            return TickResult(now, price, decision=decision, waiting=True)

        signal = evaluate(self.store.window(), self.config, ctx=self.ctx)
        self.signals_evaluated += 1
        if price is None:
            return TickResult(now, signal=signal)

        session = self.session
        if (
            not session.has_open_position
            and not session.pending_reopen
            and session.auto_trade
            and not session.trade_cap_reached()
            and should_open(signal)
        ):
            opened = session.open_position(signal, price, now)
            return TickResult(now, price, signal=signal, opened=opened)

        decision = session.on_tick(price, now, signal)
        return TickResult(now, price, signal=signal, decision=decision)

    def next_interval(self) -> float:
        """Seconds until the next refresh; faster while a turbo position is open."""
        cfg = self.config
        if cfg.turbo_mode and self.session.has_open_position:
            return cfg.turbo_refresh_ms / 1000.0
        return cfg.trading_interval_ms / 1000.0

    def run(self, max_ticks: int | None = None) -> int:
        """Run the loop until ``max_ticks`` ticks were processed.

        Rejected candle batches are logged and the loop continues with the
        next refresh. Returns the number of ticks processed.
        """

        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            try:
                self.step()
            except CandleSequenceError as exc:
                log_event(E_ERROR, self.ctx, error=str(exc), stage="refresh")
            ticks += 1
            if max_ticks is None or ticks < max_ticks:
                self.sleep(self.next_interval())
        return ticks


# ---------------------------------------------------------------------------
# Historical replay
# ---------------------------------------------------------------------------


@dataclass
class ReplayResult:
    start_balance: float
    balance: float
    ticks: int
    signals: int
    trades: List[TradeRecord] = field(default_factory=list)

    @property
    def closed(self) -> List[TradeRecord]:
        return [t for t in self.trades if t.status == "CLOSED"]

    @property
    def win_rate(self) -> float:
        closed = self.closed
        if not closed:
            return 0.0
        return sum(1 for t in closed if (t.pnl or 0.0) > 0) / len(closed)

    @property
    def total_return(self) -> float:
        if self.start_balance <= 0:
            return 0.0
        return self.balance / self.start_balance - 1.0

    def to_frame(self) -> pd.DataFrame:
        return to_frame(self.trades)


def replay(
    frame: pd.DataFrame,
    config: TradingConfiguration,
    *,
    balance: float = 1_000.0,
    fee_perc: float = 0.0,
    instrument: str = "REPLAY",
) -> ReplayResult:
    """Paper-trade ``frame`` bar by bar, one tick per closed candle.

    The tick time is the close time of each bar. A position still open after
    the last bar is closed manually at the last close.
    """

    candles = candles_from_frame(frame)
    bars: Iterator[Candle] = iter(candles)
    store = CandleStore(instrument, config.interval, maxlen=max(MIN_CANDLES, 500))
    session = TradingSession(
        instrument,
        config,
        PaperExecutor(fee_perc=fee_perc),
        InMemoryTradeRepository(),
        balance=balance,
    )

    def feed(_: str) -> list[Candle]:
        nxt = next(bars, None)
        return [nxt] if nxt is not None else []

    runner = TickRunner(feed, store, session)
    ticks = 0
    for c in candles:
        runner.step((c.open_time + store.interval_ms) / 1000.0)
        ticks += 1

    if session.position is not None and store.last is not None:
        last = store.last
        session.close_position("manual", last.close, (last.open_time + store.interval_ms) / 1000.0)

    return ReplayResult(
        start_balance=float(balance),
        balance=session.balance,
        ticks=ticks,
        signals=runner.signals_evaluated,
        trades=session.repository.list(),
    )


__all__ = ["CandleFeed", "TickResult", "TickRunner", "ReplayResult", "replay", "should_open"]
