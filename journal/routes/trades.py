# journal/routes/trades.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from journal import schemas, crud
from journal.auth import get_current_user_id
from journal.database import get_db
from logger import logger

router = APIRouter(
    prefix="/trades",
    tags=["trades"]
)


def _get_owned_trade(db: Session, user_id: str, trade_id: int):
    trade_record = crud.get_trade(db, user_id, trade_id)
    if trade_record is None:
        raise HTTPException(status_code=404, detail=f"Trade {trade_id} not found.")
    return trade_record


@router.post("", response_model=schemas.APIResponse, status_code=201)
async def add_trade(trade: schemas.TradeCreate, user_id: str = Depends(get_current_user_id),
                    db: Session = Depends(get_db)):
    """
    Adds a new trade to the caller's journal.
    """
    try:
        logger.info(f"Received Trade Data for user {user_id}: {trade}")
        trade_record = crud.create_trade(db, user_id, trade)
        return {"status": "success", "trade": schemas.TradeResponse.model_validate(trade_record)}
    except Exception as e:
        logger.error(f"Error processing trade data: {e}", exc_info=True)
        raise HTTPException(status_code=422, detail="Invalid trade data.")


@router.get("", response_model=schemas.APIResponse)
async def get_trades(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """
    Retrieves the caller's trades, most recent first.
    """
    try:
        logger.info(f"Fetching trade records for user {user_id}.")
        trades = crud.get_trades(db, user_id)
        return {"status": "success", "trades": [schemas.TradeResponse.model_validate(t) for t in trades]}
    except Exception as e:
        logger.error(f"Error retrieving trades: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve trades.")


@router.get("/{trade_id}", response_model=schemas.APIResponse)
async def get_trade(trade_id: int, user_id: str = Depends(get_current_user_id),
                    db: Session = Depends(get_db)):
    trade_record = _get_owned_trade(db, user_id, trade_id)
    return {"status": "success", "trade": schemas.TradeResponse.model_validate(trade_record)}


@router.put("/{trade_id}", response_model=schemas.APIResponse)
async def update_trade(trade_id: int, updates: schemas.TradeUpdate,
                       user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """
    Updates the fields present in the request body. Sending `exit_price: null`
    reopens the position.
    """
    trade_record = _get_owned_trade(db, user_id, trade_id)
    try:
        trade_record = crud.update_trade(db, trade_record, updates)
        logger.info(f"Trade {trade_id} updated for user {user_id}.")
        return {"status": "success", "trade": schemas.TradeResponse.model_validate(trade_record)}
    except Exception as e:
        logger.error(f"Error updating trade {trade_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update trade.")


@router.delete("/{trade_id}", response_model=schemas.APIResponse)
async def delete_trade(trade_id: int, user_id: str = Depends(get_current_user_id),
                       db: Session = Depends(get_db)):
    """
    Deletes one of the caller's trades.
    """
    trade_record = _get_owned_trade(db, user_id, trade_id)
    try:
        crud.delete_trade(db, trade_record)
        logger.info(f"Trade {trade_id} deleted for user {user_id}.")
        return {"status": "success", "message": f"Trade {trade_id} has been deleted."}
    except Exception as e:
        logger.error(f"Error deleting trade {trade_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete trade.")
