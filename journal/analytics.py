# journal/analytics.py

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from journal.models import TradeRecord
from journal.schemas import SetupTag, EmotionTag, UNSPECIFIED_TAG
from logger import logger

TRADE_COLUMNS = [
    "ticker", "entry_price", "exit_price", "size", "confidence",
    "setup_tag", "emotion_tag", "trade_date",
]
RECENT_TRADES = 10
MONTHLY_WINDOW = 6

SETUP_TAGS = frozenset(tag.value for tag in SetupTag)
EMOTION_TAGS = frozenset(tag.value for tag in EmotionTag)

PORTFOLIO_RANGES = {
    "1w": relativedelta(days=7),
    "1m": relativedelta(months=1),
    "3m": relativedelta(months=3),
    "6m": relativedelta(months=6),
    "1y": relativedelta(years=1),
}
DEFAULT_RANGE = "3m"


@dataclass
class CategoryStats:
    count: int
    wins: int
    total_pl: float
    win_rate: float


@dataclass
class TradingStats:
    total_trades: int
    closed_trades: int
    win_rate: float
    total_pl: float
    avg_trade_size: float
    setups: Dict[str, CategoryStats] = field(default_factory=dict)
    emotions: Dict[str, CategoryStats] = field(default_factory=dict)
    confidence: Dict[int, CategoryStats] = field(default_factory=dict)
    recent_trades: List[dict] = field(default_factory=list)


def round_half_up(value: float, places: int) -> float:
    """Rounds halves toward positive infinity: 0.125 -> 0.13, -0.125 -> -0.12."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def normalize_tag(value: Optional[str], allowed: Iterable[str]) -> str:
    """Maps empty or unknown tags to the Unspecified bucket."""
    if value is None:
        return UNSPECIFIED_TAG
    value = str(value).strip()
    return value if value in allowed else UNSPECIFIED_TAG


def trades_to_frame(trades: Sequence[TradeRecord]) -> pd.DataFrame:
    """
    Converts trade records into a DataFrame with derived `closed` and `pnl` columns.

    Args:
        trades (Sequence[TradeRecord]): Trade records, in the order they should be analysed.

    Returns:
        pd.DataFrame: One row per trade. `pnl` is NaN for open positions.
    """
    frame = pd.DataFrame([{
        "ticker": trade.ticker,
        "entry_price": trade.entry_price,
        "exit_price": trade.exit_price,
        "size": trade.size,
        "confidence": trade.confidence,
        "setup_tag": normalize_tag(trade.setup_tag, SETUP_TAGS),
        "emotion_tag": normalize_tag(trade.emotion_tag, EMOTION_TAGS),
        "trade_date": trade.trade_date,
    } for trade in trades], columns=TRADE_COLUMNS)

    entry_price = pd.to_numeric(frame["entry_price"], errors="coerce")
    exit_price = pd.to_numeric(frame["exit_price"], errors="coerce")
    size = pd.to_numeric(frame["size"], errors="coerce")

    frame["size"] = size
    frame["closed"] = exit_price.notna()
    frame["pnl"] = np.where(frame["closed"], (exit_price - entry_price) * size, np.nan)
    return frame


def _win_rate(wins: int, count: int) -> float:
    if count == 0:
        return 0.0
    return round_half_up(wins / count * 100, 1)


def _category_stats(pnl: pd.Series) -> CategoryStats:
    count = int(pnl.size)
    wins = int((pnl > 0).sum())
    return CategoryStats(
        count=count,
        wins=wins,
        total_pl=round_half_up(math.fsum(pnl), 2),
        win_rate=_win_rate(wins, count),
    )


def analyze_by_category(closed: pd.DataFrame, column: str) -> Dict[str, CategoryStats]:
    """Per-tag statistics over closed trades, in first-appearance order."""
    return {
        str(key): _category_stats(group["pnl"])
        for key, group in closed.groupby(column, sort=False)
    }


def analyze_by_confidence(closed: pd.DataFrame) -> Dict[int, CategoryStats]:
    """Per-confidence-level statistics over closed trades, lowest level first."""
    return {
        int(level): _category_stats(group["pnl"])
        for level, group in closed.groupby("confidence", sort=True)
    }


def _recent_trades(frame: pd.DataFrame) -> List[dict]:
    recent = []
    for row in frame.tail(RECENT_TRADES).itertuples(index=False):
        recent.append({
            "ticker": row.ticker,
            "setup": row.setup_tag,
            "emotion": row.emotion_tag,
            "confidence": int(row.confidence),
            "pl": round_half_up(row.pnl, 2) if row.closed else None,
        })
    return recent


def aggregate_trades(trades: Sequence[TradeRecord]) -> TradingStats:
    """
    Builds the statistics summary used for insight generation.

    Args:
        trades (Sequence[TradeRecord]): A user's trades, oldest first.

    Returns:
        TradingStats: Overall metrics plus setup, emotion and confidence breakdowns.

    Raises:
        ValueError: If no trades are given.
    """
    if not trades:
        raise ValueError("At least one trade is required to aggregate statistics.")

    frame = trades_to_frame(trades)
    closed = frame[frame["closed"]]

    total_trades = len(frame)
    closed_trades = len(closed)
    wins = int((closed["pnl"] > 0).sum())

    stats = TradingStats(
        total_trades=total_trades,
        closed_trades=closed_trades,
        win_rate=_win_rate(wins, closed_trades),
        total_pl=round_half_up(math.fsum(closed["pnl"]), 2),
        avg_trade_size=round_half_up(math.fsum(frame["size"]) / total_trades, 2),
        setups=analyze_by_category(closed, "setup_tag"),
        emotions=analyze_by_category(closed, "emotion_tag"),
        confidence=analyze_by_confidence(closed),
        recent_trades=_recent_trades(frame),
    )
    logger.debug(
        f"Aggregated {total_trades} trades ({closed_trades} closed): "
        f"win rate {stats.win_rate}%, total P/L {stats.total_pl}"
    )
    return stats


def portfolio_range_start(range_key: Optional[str], today: Optional[date] = None) -> Tuple[str, date]:
    """
    Resolves a portfolio range key to its first included date.

    Unknown keys fall back to the default three-month window.
    """
    if range_key not in PORTFOLIO_RANGES:
        range_key = DEFAULT_RANGE
    today = today or date.today()
    return range_key, today - PORTFOLIO_RANGES[range_key]


def summarize_portfolio(trades: Sequence[TradeRecord], range_key: str) -> dict:
    """
    Portfolio metrics for the trades inside one range.

    Args:
        trades (Sequence[TradeRecord]): Trades already filtered to the range, oldest first.
        range_key (str): The resolved range key, echoed back in the summary.

    Returns:
        dict: Totals, average win and loss, equity curve, setup distribution and
        monthly P/L for the last six months that had closed trades.
    """
    frame = trades_to_frame(trades)
    closed = frame[frame["closed"]]
    winners = closed[closed["pnl"] > 0]
    losers = closed[closed["pnl"] < 0]

    equity = closed["pnl"].cumsum()
    equity_curve = [
        {"trade_date": trade_date, "equity": round_half_up(value, 2), "trade": ticker}
        for trade_date, value, ticker in zip(closed["trade_date"], equity, closed["ticker"])
    ]

    monthly_pl = []
    if not closed.empty:
        months = pd.to_datetime(closed["trade_date"]).dt.strftime("%Y-%m")
        for month, pnl in closed["pnl"].groupby(months, sort=True).sum().tail(MONTHLY_WINDOW).items():
            monthly_pl.append({
                "month": datetime.strptime(month, "%Y-%m").strftime("%b %Y"),
                "pl": round_half_up(pnl, 2),
            })

    setup_distribution = {
        str(tag): int(count) for tag, count in frame.groupby("setup_tag", sort=False).size().items()
    }

    return {
        "range": range_key,
        "total_trades": len(frame),
        "closed_trades": len(closed),
        "open_trades": len(frame) - len(closed),
        "total_pl": round_half_up(math.fsum(closed["pnl"]), 2),
        "win_rate": _win_rate(len(winners), len(closed)),
        "avg_win": round_half_up(winners["pnl"].mean(), 2) if not winners.empty else 0.0,
        "avg_loss": round_half_up(abs(losers["pnl"].mean()), 2) if not losers.empty else 0.0,
        "equity_curve": equity_curve,
        "setup_distribution": setup_distribution,
        "monthly_pl": monthly_pl,
    }
