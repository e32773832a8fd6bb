from __future__ import annotations

import argparse
import json
import re
import sys
from pathlib import Path

from spotpilot import __version__
from spotpilot.config import TradingConfiguration, load_config
from spotpilot.data.candles import CandleStore, candles_from_frame
from spotpilot.errors import CandleSequenceError, ConfigError, InsufficientDataError
from spotpilot.runner import replay
from spotpilot.signals.scorer import evaluate
from spotpilot.utils.io import atomic_to_csv, atomic_write_json, read_candles_csv
from spotpilot.utils.log import setup_logger


class SafeHelpFormatter(argparse.ArgumentDefaultsHelpFormatter, argparse.RawTextHelpFormatter):
    """Help formatter that escapes bare '%' to avoid ValueError in argparse."""

    def _expand_help(self, action):
        params = dict(vars(action), prog=self._prog)
        help_text = self._get_help_string(action) or ""
        help_text = re.sub(r"%(?!\()", "%%", help_text)
        return help_text % params


def _load_config(args: argparse.Namespace) -> TradingConfiguration | None:
    try:
        cfg = load_config(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return None
    overrides = {}
    if getattr(args, "interval", None):
        overrides["interval"] = args.interval
    if getattr(args, "turbo", False):
        overrides["turbo_mode"] = True
    if overrides:
        try:
            cfg = TradingConfiguration.from_dict({**cfg.model_dump(), **overrides})
        except ConfigError as exc:
            print(f"Invalid configuration: {exc}", file=sys.stderr)
            return None
    return cfg


def _read_csv(path: str):
    p = Path(path)
    if not p.exists():
        print(f"CSV file not found: {p}", file=sys.stderr)
        return None
    return read_candles_csv(p)


# ------------------------------- CLI commands --------------------------------


def cmd_signal(args: argparse.Namespace) -> int:
    cfg = _load_config(args)
    if cfg is None:
        return 1
    df = _read_csv(args.csv)
    if df is None:
        return 1
    store = CandleStore(args.symbol, cfg.interval, maxlen=max(len(df), 1))
    try:
        store.extend(candles_from_frame(df))
    except CandleSequenceError as exc:
        print(f"Candle data rejected: {exc}", file=sys.stderr)
        return 1
    try:
        signal = evaluate(store.window(), cfg)
    except InsufficientDataError as exc:
        print(f"insufficient data, waiting ({exc})", file=sys.stderr)
        return 1
    payload = signal.to_dict()
    print(json.dumps(payload, indent=2 if args.pretty else None))
    if args.out:
        atomic_write_json(payload, Path(args.out))
    return 0


def cmd_replay(args: argparse.Namespace) -> int:
    cfg = _load_config(args)
    if cfg is None:
        return 1
    df = _read_csv(args.csv)
    if df is None:
        return 1
    try:
        res = replay(
            df,
            cfg,
            balance=float(args.balance),
            fee_perc=float(args.fee),
            instrument=args.symbol,
        )
    except CandleSequenceError as exc:
        print(f"Candle data rejected: {exc}", file=sys.stderr)
        return 1

    print(
        f"Balance end: {res.balance:.2f} | "
        f"Return: {res.total_return:.6f} | "
        f"Trades: {len(res.closed)} | "
        f"Failed: {len(res.trades) - len(res.closed)} | "
        f"Win rate: {res.win_rate:.3f} | "
        f"Signals: {res.signals}"
    )
    if args.export:
        out = Path(args.export)
        atomic_to_csv(res.to_frame(), out)
        print(f"Trades written to: {out.resolve()}")
    return 0


def cmd_validate_config(args: argparse.Namespace) -> int:
    try:
        cfg = TradingConfiguration.from_file(args.path)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    print(f"OK ({cfg.interval}, turbo={cfg.turbo_mode})")
    return 0


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--csv", required=True, help="OHLCV CSV with a time/open_time column")
    parser.add_argument(
        "--config",
        default=None,
        help="YAML/JSON trading configuration (default: $SPOTPILOT_CONFIG or built-ins)",
    )
    parser.add_argument("--interval", default=None, help="Bar interval override, e.g. 1m, 1h")
    parser.add_argument("--turbo", action="store_true", help="Enable turbo mode")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="spotpilot",
        description="spotpilot – signal scoring and position lifecycle for spot trading.",
        formatter_class=SafeHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--log-level", default="WARNING", help="Log level for structured events")
    sub = p.add_subparsers(dest="command")

    p_sig = sub.add_parser(
        "signal", help="Evaluate a signal on the last bar", formatter_class=SafeHelpFormatter
    )
    _add_common(p_sig)
    p_sig.add_argument("--symbol", default="SIGNAL", help="Instrument label")
    p_sig.add_argument("--pretty", action="store_true", help="Indent JSON output")
    p_sig.add_argument("--out", default=None, help="Also write the signal JSON to this file")
    p_sig.set_defaults(func=cmd_signal)

    p_rp = sub.add_parser(
        "replay", help="Paper-trade a CSV bar by bar", formatter_class=SafeHelpFormatter
    )
    _add_common(p_rp)
    p_rp.add_argument("--symbol", default="REPLAY", help="Instrument label")
    p_rp.add_argument("--balance", type=float, default=1000.0, help="Starting balance (quote)")
    p_rp.add_argument("--fee", type=float, default=0.0, help="Fee as a fraction of size, e.g. 0.001")
    p_rp.add_argument("--export", default=None, help="Write trades to this CSV")
    p_rp.set_defaults(func=cmd_replay)

    p_val = sub.add_parser(
        "validate-config", help="Validate a trading configuration file", formatter_class=SafeHelpFormatter
    )
    p_val.add_argument("path", help="YAML/JSON configuration file")
    p_val.set_defaults(func=cmd_validate_config)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(args.log_level)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
