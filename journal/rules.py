# journal/rules.py

from typing import Dict, List, Optional, Tuple
from journal.analytics import CategoryStats, TradingStats, round_half_up
from journal.schemas import InsightPayload, InsightType, Severity

# Win rate band with no insight: [LOW_WIN_RATE, HIGH_WIN_RATE]
LOW_WIN_RATE = 40
HIGH_WIN_RATE = 70

# Position sizing needs at least this many trades
MIN_TRADES_FOR_SIZING = 5
# Average P/L must exceed this share of the average position size. Tunable heuristic.
POSITION_SIZING_FACTOR = 0.1

HIGH_CONFIDENCE = 4
LOW_CONFIDENCE = 2


def format_number(value: float) -> str:
    """Prints whole numbers without a trailing .0 (500, not 500.0)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _best_and_worst(groups: Dict[str, CategoryStats]) -> Optional[Tuple[Tuple[str, CategoryStats], Tuple[str, CategoryStats]]]:
    """
    First group with the highest and first group with the lowest total P/L.

    Returns None when there are fewer than two groups or every group
    shares the same total.
    """
    if len(groups) < 2:
        return None
    entries = list(groups.items())
    best = entries[0]
    worst = entries[0]
    for entry in entries[1:]:
        if entry[1].total_pl > best[1].total_pl:
            best = entry
        if entry[1].total_pl < worst[1].total_pl:
            worst = entry
    if best[1].total_pl == worst[1].total_pl:
        return None
    return best, worst


def performance_insight(stats: TradingStats) -> Optional[InsightPayload]:
    if stats.closed_trades == 0:
        return None
    profitable = stats.total_pl > 0
    follow_up = (
        "Your consistent profitability shows good discipline and strategy execution."
        if profitable else
        "Focus on refining your entry criteria and risk management to improve profitability."
    )
    return InsightPayload(
        type=InsightType.PERFORMANCE,
        title="Strong Trading Performance" if profitable else "Performance Review Needed",
        content=(
            f"You've completed {stats.closed_trades} trades with a {format_number(stats.win_rate)}% win rate, "
            f"generating ${format_number(stats.total_pl)} in total P/L. {follow_up}"
        ),
        severity=Severity.SUCCESS if profitable else Severity.WARNING,
    )


def setup_insight(stats: TradingStats) -> Optional[InsightPayload]:
    standout = _best_and_worst(stats.setups)
    if standout is None:
        return None
    (best_name, best), (worst_name, worst) = standout
    return InsightPayload(
        type=InsightType.PATTERN,
        title="Setup Performance Standouts",
        content=(
            f'Your "{best_name}" setups are your strongest performers with ${format_number(best.total_pl)} P/L '
            f"and a {format_number(best.win_rate)}% win rate. Consider allocating more capital to this strategy "
            f'while reviewing your "{worst_name}" approach which has generated ${format_number(worst.total_pl)} P/L.'
        ),
        severity=Severity.INFO,
    )


def emotion_insight(stats: TradingStats) -> Optional[InsightPayload]:
    standout = _best_and_worst(stats.emotions)
    if standout is None:
        return None
    (best_name, best), (worst_name, worst) = standout
    return InsightPayload(
        type=InsightType.PATTERN,
        title="Emotional Trading Patterns",
        content=(
            f'You trade most effectively when feeling "{best_name}" (generating ${format_number(best.total_pl)} P/L), '
            f'but struggle when "{worst_name}" (${format_number(worst.total_pl)} P/L). '
            "Consider implementing a pre-trade emotional check-in to optimize your trading state."
        ),
        severity=Severity.INFO,
    )


def confidence_insight(stats: TradingStats) -> Optional[InsightPayload]:
    high = [group.total_pl for level, group in stats.confidence.items() if level >= HIGH_CONFIDENCE]
    low = [group.total_pl for level, group in stats.confidence.items() if level <= LOW_CONFIDENCE]
    if not high or not low:
        return None

    calibrated = sum(high) > sum(low)
    high_pl = round_half_up(sum(high), 2)
    low_pl = round_half_up(sum(low), 2)
    if calibrated:
        status = "well-calibrated"
        advice = "Your confidence levels align well with outcomes - trust your high-confidence setups."
    else:
        status = "needs adjustment"
        advice = ("Your confidence assessment may need refinement - analyze what makes you confident "
                  "versus what actually works.")
    return InsightPayload(
        type=InsightType.RISK,
        title="Confidence Calibration Analysis",
        content=(
            f"Your high-confidence trades (4-5) generated ${format_number(high_pl)} P/L while low-confidence "
            f"trades (1-2) generated ${format_number(low_pl)} P/L. Your confidence appears {status}. {advice}"
        ),
        severity=Severity.SUCCESS if calibrated else Severity.WARNING,
    )


def win_rate_insight(stats: TradingStats) -> Optional[InsightPayload]:
    if stats.win_rate < LOW_WIN_RATE:
        return InsightPayload(
            type=InsightType.RECOMMENDATION,
            title="Win Rate Enhancement Opportunity",
            content=(
                f"Your {format_number(stats.win_rate)}% win rate suggests room for improvement in trade selection. "
                "Focus on waiting for higher-probability setups, tightening your entry criteria, and consider "
                "paper trading new strategies before implementing them with real capital."
            ),
            severity=Severity.WARNING,
        )
    if stats.win_rate > HIGH_WIN_RATE:
        return InsightPayload(
            type=InsightType.RECOMMENDATION,
            title="Excellent Win Rate Achievement",
            content=(
                f"Your impressive {format_number(stats.win_rate)}% win rate demonstrates strong trade selection "
                "skills. Ensure you're maximizing this edge by letting winners run longer and not cutting profits "
                "too early - your high accuracy suggests you can afford to be more aggressive with profit targets."
            ),
            severity=Severity.SUCCESS,
        )
    return None


def position_sizing_insight(stats: TradingStats) -> Optional[InsightPayload]:
    if stats.total_trades < MIN_TRADES_FOR_SIZING or stats.closed_trades == 0:
        return None
    avg_pl = stats.total_pl / stats.closed_trades
    if abs(avg_pl) <= stats.avg_trade_size * POSITION_SIZING_FACTOR:
        return None

    positive = avg_pl > 0
    advice = (
        "Consider gradually increasing position sizes on your best setups."
        if positive else
        "Review your stop-loss levels and consider reducing position sizes until consistency improves."
    )
    return InsightPayload(
        type=InsightType.RISK,
        title="Position Sizing Consideration",
        content=(
            f"With an average P/L of ${format_number(round_half_up(avg_pl, 2))} per trade and average position "
            f"size of {format_number(stats.avg_trade_size)} shares, your risk-reward profile shows "
            f"{'good' if positive else 'concerning'} results. {advice}"
        ),
        severity=Severity.SUCCESS if positive else Severity.WARNING,
    )


FOUNDATION_INSIGHT = InsightPayload(
    type=InsightType.RECOMMENDATION,
    title="Building Your Trading Foundation",
    content=(
        "Continue logging trades consistently to build a robust dataset. The more data you provide, the more "
        "specific and actionable insights I can generate about your trading patterns and performance."
    ),
    severity=Severity.INFO,
)

RULES = (
    performance_insight,
    setup_insight,
    emotion_insight,
    confidence_insight,
    win_rate_insight,
    position_sizing_insight,
)


def generate_rule_based_insights(stats: TradingStats) -> List[InsightPayload]:
    """
    Applies each rule in a fixed order and keeps the ones that fire.

    Args:
        stats (TradingStats): Aggregated statistics.

    Returns:
        List[InsightPayload]: At least one insight; the foundation insight
        when no rule fired.
    """
    insights = [insight for insight in (rule(stats) for rule in RULES) if insight is not None]
    if not insights:
        return [FOUNDATION_INSIGHT.model_copy()]
    return insights
