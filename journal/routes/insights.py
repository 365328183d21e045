# journal/routes/insights.py

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from journal import schemas, crud, analytics
from journal.auth import get_current_user_id
from journal.config import Settings, get_settings
from journal.database import get_db
from journal.errors import NoDataError
from journal.insights import generate_insights, store_insights
from logger import logger

router = APIRouter(tags=["insights"])


def get_llm_transport() -> Optional[httpx.AsyncBaseTransport]:
    """HTTP transport for the text-generation client; None uses httpx's default."""
    return None


@router.post("/generate-insights", response_model=schemas.GenerateInsightsResponse)
async def generate(user_id: str = Depends(get_current_user_id),
                   db: Session = Depends(get_db),
                   settings: Settings = Depends(get_settings),
                   transport: Optional[httpx.AsyncBaseTransport] = Depends(get_llm_transport)):
    """
    Analyses the caller's trades and returns a fresh batch of insights.

    The batch is also stored; a storage failure is logged and does not
    affect the response.
    """
    try:
        trades = crud.get_trades(db, user_id, ascending=True)
        if not trades:
            logger.info(f"No trades found for user {user_id}.")
            raise NoDataError()
        logger.info(f"Generating insights from {len(trades)} trades for user {user_id}.")

        stats = analytics.aggregate_trades(trades)
        insights = await generate_insights(stats, settings, transport=transport)
        store_insights(db, user_id, insights)

        return {"insights": insights}

    except HTTPException as http_exc:
        raise http_exc  # Re-raise HTTP exceptions to be handled by FastAPI
    except Exception as e:
        logger.error(f"Error generating insights: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate insights")


@router.get("/insights", response_model=schemas.StoredInsightsResponse)
async def get_insights(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """
    Retrieves the caller's most recently stored insights.
    """
    try:
        insights = crud.get_recent_insights(db, user_id)
        return {"insights": [schemas.InsightResponse.model_validate(record) for record in insights]}
    except Exception as e:
        logger.error(f"Error retrieving insights: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve insights.")
