# backend/schemas/stock.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional

from schemas.product import ProductResponse


class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_reference: str
    previous_quantity: int
    new_quantity: int
    change: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RestockLogResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_reference: str
    out_of_stock_date: datetime
    restocked: bool
    restock_date: Optional[datetime] = None
    restock_quantity: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Result of a quantity edit or restock
class QuantityChangeResponse(BaseModel):
    product: ProductResponse
    changed: bool
    movement: Optional[StockMovementResponse] = None
    restock_log: Optional[RestockLogResponse] = None
    completed_steps: List[str] = []
