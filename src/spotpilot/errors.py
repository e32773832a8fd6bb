from __future__ import annotations


class SpotPilotError(Exception):
    pass


class ConfigError(SpotPilotError):
    pass


class InsufficientDataError(SpotPilotError):
    """Raised when an indicator window is shorter than the required minimum."""

    def __init__(self, have: int, need: int) -> None:
        super().__init__(f"insufficient data: have {have} candles, need {need}")
        self.have = have
        self.need = need


class CandleSequenceError(SpotPilotError):
    pass


class SettlementError(SpotPilotError):
    pass


class PositionStateError(SpotPilotError):
    pass
