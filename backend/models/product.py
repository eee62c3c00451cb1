# backend/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint, func
from database import Base

# Model Product
# A single catalogue item. The category is stored by name (informal link
# to categories.name), the reference is the shop's own part code.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    reference = Column(String, unique=True, nullable=False, index=True)
    category = Column(String, nullable=False, default="", index=True)

    buying_price = Column(Numeric(10, 2, asdecimal=False), CheckConstraint("buying_price >= 0"), nullable=False, default=0)
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
