# journal/insights.py

from typing import List, Optional

import httpx
from sqlalchemy.orm import Session

from journal import crud
from journal.analytics import TradingStats
from journal.config import Settings
from journal.errors import PersistenceError, RemoteGenerationError
from journal.llm import RemoteInsightClient
from journal.rules import generate_rule_based_insights
from journal.schemas import InsightPayload
from logger import logger


async def generate_insights(stats: TradingStats, settings: Settings,
                            transport: Optional[httpx.AsyncBaseTransport] = None) -> List[InsightPayload]:
    """
    Produces insights for the given statistics.

    Uses the remote model when an API key is configured and falls back to
    the rule-based insights on any remote failure.

    Args:
        stats (TradingStats): Aggregated statistics.
        settings (Settings): Runtime configuration.
        transport (httpx.AsyncBaseTransport, optional): Overrides the HTTP transport.

    Returns:
        List[InsightPayload]: Never empty.
    """
    if settings.remote_insights_enabled:
        try:
            insights = await RemoteInsightClient(settings, transport=transport).generate(stats)
            logger.info(f"Generated {len(insights)} insights with {settings.openai_model}.")
            return insights
        except RemoteGenerationError as e:
            logger.error(f"Remote insight generation failed, falling back to rule-based insights: {e}")
        except Exception as e:
            logger.error(f"Unexpected error during remote insight generation, falling back to rule-based insights: {e}",
                         exc_info=True)

    insights = generate_rule_based_insights(stats)
    logger.info(f"Generated {len(insights)} rule-based insights.")
    return insights


def store_insights(db: Session, user_id: str, insights: List[InsightPayload]) -> bool:
    """
    Persists a batch of insights. Failures are logged and reported as False.
    """
    try:
        crud.create_insights(db, user_id, insights)
    except PersistenceError as e:
        logger.error(f"Failed to store insights for user {user_id}: {e}")
        return False
    logger.info(f"Stored {len(insights)} insights for user {user_id}.")
    return True
