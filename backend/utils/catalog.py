# backend/utils/catalog.py
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from models.category import Category
from models.product import Product

ALL_CATEGORIES = "all"


def like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def filter_products(query: Query, q: Optional[str] = None, category: Optional[str] = None) -> Query:
    """Search term over name/description/reference AND exact category."""
    if q:
        like = like_pattern(q)
        query = query.filter(or_(
            Product.name.ilike(like, escape="\\"),
            Product.description.ilike(like, escape="\\"),
            Product.reference.ilike(like, escape="\\"),
        ))
    if category and category != ALL_CATEGORIES:
        query = query.filter(Product.category == category)
    return query


def count_products_in_category(db: Session, name: str) -> int:
    return db.query(Product).filter(Product.category == name).count()


def ensure_category(db: Session, name: Optional[str]) -> Optional[Category]:
    """Create the category on the fly when a product uses a new one. Not committed."""
    name = (name or "").strip()
    if not name:
        return None
    existing = db.query(Category).filter(Category.name == name).first()
    if existing:
        return existing
    category = Category(name=name)
    db.add(category)
    return category
