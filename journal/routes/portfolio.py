# journal/routes/portfolio.py

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from journal import schemas, crud, analytics
from journal.auth import get_current_user_id
from journal.database import get_db
from logger import logger

router = APIRouter(
    prefix="/portfolio",
    tags=["portfolio"]
)


@router.get("", response_model=schemas.PortfolioSummary)
async def get_portfolio(requested_range: Optional[str] = Query(default=analytics.DEFAULT_RANGE, alias="range"),
                        user_id: str = Depends(get_current_user_id),
                        db: Session = Depends(get_db)):
    """
    Summarises the caller's trades over a time range (1w, 1m, 3m, 6m or 1y).
    """
    try:
        range_key, since = analytics.portfolio_range_start(requested_range)
        trades = crud.get_trades(db, user_id, ascending=True, since=since)
        logger.info(f"Portfolio for user {user_id}: {len(trades)} trades since {since}.")
        return analytics.summarize_portfolio(trades, range_key)
    except Exception as e:
        logger.error(f"Error building portfolio summary: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build portfolio summary.")
