# journal/crud.py

from datetime import date
from typing import Optional, Sequence
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from journal.models import TradeRecord, InsightRecord
from journal.schemas import TradeCreate, TradeUpdate, InsightPayload
from journal.errors import PersistenceError

STORED_INSIGHTS_LIMIT = 10


def create_trade(db: Session, user_id: str, trade: TradeCreate) -> TradeRecord:
    """
    Creates a new trade record owned by the given user.

    Args:
        db (Session): SQLAlchemy session.
        user_id (str): Owner of the trade.
        trade (TradeCreate): Trade data.

    Returns:
        TradeRecord: The created trade record.
    """
    trade_record = TradeRecord(user_id=user_id, **trade.model_dump(mode="python"))
    db.add(trade_record)
    db.commit()
    db.refresh(trade_record)
    return trade_record


def get_trade(db: Session, user_id: str, trade_id: int) -> Optional[TradeRecord]:
    """Returns the trade if it exists and belongs to the user, otherwise None."""
    return db.query(TradeRecord).filter(
        TradeRecord.id == trade_id,
        TradeRecord.user_id == user_id
    ).first()


def get_trades(db: Session, user_id: str, ascending: bool = False,
               since: Optional[date] = None) -> list[TradeRecord]:
    """
    Retrieves the user's trades ordered by trade date.

    Args:
        db (Session): SQLAlchemy session.
        user_id (str): Owner whose trades are returned.
        ascending (bool): Oldest first when True, newest first otherwise.
        since (date, optional): Only trades on or after this date.

    Returns:
        list[TradeRecord]: List of trade records.
    """
    query = db.query(TradeRecord).filter(TradeRecord.user_id == user_id)
    if since is not None:
        query = query.filter(TradeRecord.trade_date >= since)
    if ascending:
        query = query.order_by(TradeRecord.trade_date.asc(), TradeRecord.id.asc())
    else:
        query = query.order_by(TradeRecord.trade_date.desc(), TradeRecord.id.desc())
    return query.all()


def update_trade(db: Session, trade_record: TradeRecord, updates: TradeUpdate) -> TradeRecord:
    """
    Applies the fields explicitly set in the update; an explicit null exit
    price reopens the position.
    """
    for field, value in updates.model_dump(exclude_unset=True, mode="python").items():
        if value is None and field != "exit_price":
            continue
        setattr(trade_record, field, value)
    db.commit()
    db.refresh(trade_record)
    return trade_record


def delete_trade(db: Session, trade_record: TradeRecord) -> None:
    db.delete(trade_record)
    db.commit()


def create_insights(db: Session, user_id: str,
                    insights: Sequence[InsightPayload]) -> list[InsightRecord]:
    """
    Stores a generated batch of insights. Earlier batches are left untouched.

    Raises:
        PersistenceError: If the batch could not be written.
    """
    records = [
        InsightRecord(
            user_id=user_id,
            insight_type=insight.type,
            title=insight.title,
            content=insight.content,
            severity=insight.severity,
        )
        for insight in insights
    ]
    try:
        db.add_all(records)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(str(e)) from e
    return records


def get_recent_insights(db: Session, user_id: str,
                        limit: int = STORED_INSIGHTS_LIMIT) -> list[InsightRecord]:
    """Returns the user's most recently stored insights, newest first."""
    return db.query(InsightRecord).filter(
        InsightRecord.user_id == user_id
    ).order_by(InsightRecord.created_at.desc(), InsightRecord.id.desc()).limit(limit).all()
