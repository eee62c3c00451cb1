# backend/routes/categories.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from utils.audit import write_log
from utils.catalog import count_products_in_category
import schemas.category as category_schemas

router = APIRouter(prefix="/categories", tags=["Categories"])

logger = logging.getLogger(__name__)


@router.get("", response_model=List[category_schemas.CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.post("", response_model=category_schemas.CategoryResponse, status_code=201)
def add_category(
    payload: category_schemas.CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    if db.query(Category).filter(Category.name == payload.name).first():
        raise HTTPException(status_code=409, detail="Category already exists")

    category = Category(name=payload.name)
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Category already exists")
    db.refresh(category)

    write_log(db, action="CATEGORY_CREATE", resource="categories", status="SUCCESS",
              ip=request.client.host if request.client else None, meta={"name": category.name})
    return category


@router.delete("/{name:path}")
def delete_category(name: str, request: Request, db: Session = Depends(get_db)):
    category = db.query(Category).filter(Category.name == name).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    # Products reference categories by name only, so the check happens here
    in_use = count_products_in_category(db, name)
    if in_use > 0:
        logger.warning("Refused to delete category %r used by %d product(s)", name, in_use)
        write_log(db, action="CATEGORY_DELETE", resource="categories", status="FAIL",
                  ip=request.client.host if request.client else None,
                  meta={"name": name, "products": in_use})
        raise HTTPException(
            status_code=409,
            detail=f'Cannot delete category "{name}" because {in_use} product(s) are using it.',
        )

    db.delete(category)
    db.commit()
    write_log(db, action="CATEGORY_DELETE", resource="categories", status="SUCCESS",
              ip=request.client.host if request.client else None, meta={"name": name})
    return {"detail": f"Category '{name}' deleted"}
