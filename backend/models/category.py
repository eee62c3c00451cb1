# backend/models/category.py
from sqlalchemy import Column, Integer, String
from database import Base

# Product category. Products point at it by name, so renames are not supported.
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
