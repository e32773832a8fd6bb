from __future__ import annotations

import logging
import sys
import uuid
from dataclasses import asdict, dataclass

import structlog

# -- Event names -----------------------------------------------------------
# Short string codes so that they are easy to search for in aggregated log
# output.

# Market data.
E_CANDLE_REJECTED = "candle_rejected"
E_DATA_WAIT = "data_wait"

# Signal evaluation.
E_SIGNAL_EVALUATED = "signal_evaluated"
E_CONFLUENCE_EVALUATED = "confluence_evaluated"

# Position lifecycle.
E_POSITION_OPENED = "position_opened"
E_POSITION_CLOSING = "position_closing"
E_POSITION_CLOSED = "position_closed"
E_POSITION_FAILED = "position_failed"
E_TRAILING_ACTIVATED = "trailing_activated"
E_REOPEN_SCHEDULED = "reopen_scheduled"
E_REOPEN_SKIPPED = "reopen_skipped"
E_REOPEN_CLEARED = "reopen_cleared"
E_ENTRY_BLOCKED = "entry_blocked"

# Risk guards.
E_RISK_GUARD_ACTIVE = "risk_guard_active"
E_RISK_GUARD_CLEARED = "risk_guard_cleared"

# Generic error/diagnostics events.
E_ERROR = "error"


# -- Reason codes ----------------------------------------------------------
R_INSUFFICIENT_DATA = "insufficient_data"
R_OUT_OF_ORDER = "out_of_order"
R_DUPLICATE = "duplicate"
R_GAP = "gap"
R_TRADE_CAP = "trade_cap"
R_LOW_CONFIDENCE = "low_confidence"
R_NOT_ACTIONABLE = "not_actionable"
R_DAILY_LOSS = "daily_loss"
R_CANCELLED = "cancelled"
R_SETTLEMENT = "settlement"


@dataclass(slots=True)
class TelemetryContext:
    """Context information that will be bound to every telemetry event.

    The fields are optional so that callers can supply whatever identifiers
    they have available.
    """

    run_id: str | None = None
    instrument: str | None = None
    interval: str | None = None
    account: str | None = None
    position_id: str | None = None


def new_id(prefix: str) -> str:
    """Return a short unique identifier with ``prefix``.

    Examples
    --------
    >>> new_id("pos")  # doctest: +SKIP
    'pos_4f9d2ab3'
    """

    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def log_event(event: str, ctx: TelemetryContext | None = None, **fields) -> None:
    """Log ``event`` via structlog, binding context and extra fields.

    Parameters
    ----------
    event:
        Event name constant, e.g. :data:`E_POSITION_CLOSED`.
    ctx:
        Optional :class:`TelemetryContext` whose non-``None`` attributes will be
        bound to the log record.
    **fields:
        Additional key/value pairs describing the event.
    """

    logger = structlog.get_logger()
    if ctx is not None:
        logger = logger.bind(**{k: v for k, v in asdict(ctx).items() if v is not None})
    logger.info(event, **fields)


def _stderr_logger(*args) -> structlog.PrintLogger:
    return structlog.PrintLogger(sys.stderr)


def setup_logger(level: str = "INFO"):
    """Configure and return a structlog logger.

    Parameters
    ----------
    level:
        Logging level name, e.g. ``"INFO"`` or ``"DEBUG"``.
    """

    lvl = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=lvl)
    processors = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]
    # events go to stderr so command output on stdout stays machine readable;
    # the stream is looked up per logger so a replaced sys.stderr is honoured
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(lvl),
        logger_factory=_stderr_logger,
    )
    return structlog.get_logger()


__all__ = [
    "TelemetryContext",
    "new_id",
    "log_event",
    "setup_logger",
]
