# backend/routes/stock.py
from typing import Optional, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from utils.catalog import like_pattern
from models.stock import StockMovement
from models.restock import RestockLog
import schemas.stock as stock_schemas

router = APIRouter(tags=["Stock"])


# Stock movement history, newest first
@router.get("/stock-movements", response_model=List[stock_schemas.StockMovementResponse])
def list_movements(
    product_id: Optional[int] = Query(None),
    q: Optional[str] = Query(None, description="Product name or reference"),
    db: Session = Depends(get_db),
):
    query = db.query(StockMovement)

    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    if q:
        like = like_pattern(q)
        query = query.filter(or_(
            StockMovement.product_name.ilike(like, escape="\\"),
            StockMovement.product_reference.ilike(like, escape="\\"),
        ))

    return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).all()


# Out-of-stock episodes, newest first
@router.get("/restock-logs", response_model=List[stock_schemas.RestockLogResponse])
def list_restock_logs(
    product_id: Optional[int] = Query(None),
    restocked: Optional[bool] = Query(None, description="false = still out of stock"),
    db: Session = Depends(get_db),
):
    query = db.query(RestockLog)

    if product_id is not None:
        query = query.filter(RestockLog.product_id == product_id)
    if restocked is not None:
        query = query.filter(RestockLog.restocked == restocked)

    return query.order_by(RestockLog.created_at.desc(), RestockLog.id.desc()).all()
