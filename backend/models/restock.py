# backend/models/restock.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base

# One out-of-stock episode of a product, closed when the product is restocked.
# At most one open (restocked = False) row exists per product.
class RestockLog(Base):
    __tablename__ = "restock_logs"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String, nullable=False)
    product_reference = Column(String, nullable=False)

    out_of_stock_date = Column(DateTime(timezone=True), nullable=False)
    restocked = Column(Boolean, nullable=False, default=False, index=True)
    restock_date = Column(DateTime(timezone=True), nullable=True)
    restock_quantity = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product")
