"""
Remote insight generation through an OpenAI-compatible chat completions API.

Builds a coaching prompt from aggregated statistics, sends a single request
and normalizes whatever comes back into InsightPayload objects. Any failure
is raised as RemoteGenerationError so the caller can fall back to the
rule-based insights.
"""

import json
import re
from typing import Any, Dict, List, Optional

import httpx

from journal.analytics import CategoryStats, TradingStats
from journal.config import Settings
from journal.errors import RemoteGenerationError
from journal.rules import format_number
from journal.schemas import InsightPayload, InsightType, Severity
from logger import logger

SYSTEM_PROMPT = (
    "You are an expert trading coach. Provide specific, actionable insights in a conversational tone. "
    "Always respond with valid JSON only, no additional text."
)

MAX_FALLBACK_INSIGHTS = 3
MIN_SENTENCE_LENGTH = 20

INSIGHT_TYPES = {item.value for item in InsightType}
SEVERITIES = {item.value for item in Severity}

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_SENTENCE_END = re.compile(r"[.!?]+")


def _category_line(name: str, data: CategoryStats) -> str:
    return (
        f"- {name}: {data.count} trades, {format_number(data.win_rate)}% win rate, "
        f"${format_number(data.total_pl)} P/L"
    )


def _recent_line(trade: Dict[str, Any]) -> str:
    pl = "open" if trade["pl"] is None else f"${format_number(trade['pl'])}"
    return (
        f"- {trade['ticker']} ({trade['setup']}, {trade['emotion']}, "
        f"confidence {trade['confidence']}): {pl}"
    )


def build_prompt(stats: TradingStats) -> str:
    """Renders the statistics into the user prompt sent to the model."""
    setup_lines = "\n".join(_category_line(name, data) for name, data in stats.setups.items())
    emotion_lines = "\n".join(_category_line(name, data) for name, data in stats.emotions.items())
    confidence_lines = "\n".join(
        _category_line(f"Level {level}", data) for level, data in stats.confidence.items()
    )
    recent_lines = "\n".join(_recent_line(trade) for trade in stats.recent_trades)

    return f"""You are an expert trading coach analyzing a trader's performance. Based on the data below, provide 3-5 specific, actionable insights in a conversational, encouraging tone.

Trading Performance Summary:
- Total Trades: {stats.total_trades} ({stats.closed_trades} closed)
- Win Rate: {format_number(stats.win_rate)}%
- Total P/L: ${format_number(stats.total_pl)}
- Average Position Size: {format_number(stats.avg_trade_size)} shares

Setup Performance:
{setup_lines}

Emotional State Performance:
{emotion_lines}

Confidence Level Performance:
{confidence_lines}

Most Recent Trades:
{recent_lines}

Write insights that:
1. Highlight their strongest performing setups/emotions with specific numbers
2. Identify areas for improvement with actionable advice
3. Analyze confidence calibration
4. Provide specific recommendations based on their data
5. Use an encouraging, coach-like tone

Respond with ONLY a JSON array in this exact format:
[
  {{
    "type": "performance|pattern|risk|recommendation",
    "title": "Clear, engaging title (max 60 chars)",
    "content": "Detailed insight with specific data and actionable advice (2-3 sentences)",
    "severity": "info|warning|success"
  }}
]"""


def _choice(value: Any, allowed: set, default: Any) -> Any:
    return value if isinstance(value, str) and value in allowed else default


def _normalize_insight(item: Dict[str, Any], index: int) -> InsightPayload:
    return InsightPayload(
        type=_choice(item.get("type"), INSIGHT_TYPES, InsightType.RECOMMENDATION),
        title=str(item.get("title") or f"Trading Insight #{index + 1}"),
        content=str(item.get("content") or "No content available"),
        severity=_choice(item.get("severity"), SEVERITIES, Severity.INFO),
    )


def _insights_from_text(content: str) -> List[InsightPayload]:
    sentences = [s.strip() for s in _SENTENCE_END.split(content) if len(s.strip()) > MIN_SENTENCE_LENGTH]
    return [
        InsightPayload(
            type=InsightType.RECOMMENDATION,
            title=f"AI Trading Insight #{index + 1}",
            content=f"{sentence}.",
            severity=Severity.INFO,
        )
        for index, sentence in enumerate(sentences[:MAX_FALLBACK_INSIGHTS])
    ]


def parse_insights(content: str) -> List[InsightPayload]:
    """
    Converts the model's reply into insights.

    A JSON array (or a single JSON object) is normalized field by field.
    Anything else is split into sentences and the first few long ones
    become generic recommendations.

    Raises:
        RemoteGenerationError: If neither path yields an insight.
    """
    cleaned = _FENCE.sub("", content.strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        parsed = None

    items = parsed if isinstance(parsed, list) else [parsed]
    if parsed is not None and items and all(isinstance(item, dict) for item in items):
        return [_normalize_insight(item, index) for index, item in enumerate(items)]

    logger.warning(f"Model reply was not structured insights, using plain text: {content[:200]}")
    insights = _insights_from_text(content)
    if not insights:
        raise RemoteGenerationError("Model reply contained no usable insights")
    return insights


class RemoteInsightClient:
    """Single-attempt client for the text-generation service."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    async def complete(self, prompt: str) -> str:
        """
        Sends one chat completion request and returns the reply text.

        Raises:
            RemoteGenerationError: On network errors, non-200 responses or an empty reply.
        """
        settings = self.settings
        try:
            async with httpx.AsyncClient(timeout=settings.openai_timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{settings.openai_base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {settings.openai_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": settings.openai_model,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": prompt},
                        ],
                        "temperature": settings.openai_temperature,
                        "max_tokens": settings.openai_max_tokens,
                    },
                )
        except httpx.HTTPError as e:
            raise RemoteGenerationError(f"Request to text-generation service failed: {e}") from e

        if response.status_code != 200:
            raise RemoteGenerationError(
                f"Text-generation service error: {response.status_code} - {response.text[:500]}"
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RemoteGenerationError(f"Malformed response from text-generation service: {e}") from e

        if not isinstance(content, str):
            raise RemoteGenerationError(f"Unexpected content type from text-generation service: {type(content).__name__}")
        if not content:
            raise RemoteGenerationError("No content received from text-generation service")
        return content

    async def generate(self, stats: TradingStats) -> List[InsightPayload]:
        content = await self.complete(build_prompt(stats))
        return parse_insights(content)
