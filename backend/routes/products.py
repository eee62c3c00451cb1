# backend/routes/products.py
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.product import Product
from utils.audit import write_log
from utils.catalog import filter_products, ensure_category
from utils.quantity_rules import apply_quantity_change, QuantityChangeOutcome, QuantityUpdateError
import schemas.product as product_schemas
import schemas.stock as stock_schemas

router = APIRouter(tags=["Products"])

# Fields written by the full edit form besides the quantity
EDITABLE_FIELDS = ("name", "description", "reference", "category", "buying_price")


# ---- HELPERS ----
def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None

def _serialize(product: Product) -> product_schemas.ProductResponse:
    fields = list(product_schemas.ProductResponse.model_fields.keys())
    data = {f: getattr(product, f) for f in fields if hasattr(product, f)}
    data["low_stock"] = product.quantity < settings.LOW_STOCK_THRESHOLD
    return product_schemas.ProductResponse.model_validate(data)

def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

def _reference_taken(db: Session, reference: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Product).filter(Product.reference == reference)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None

def _change_response(outcome: QuantityChangeOutcome) -> stock_schemas.QuantityChangeResponse:
    return stock_schemas.QuantityChangeResponse(
        product=_serialize(outcome.product),
        changed=outcome.plan.changed,
        movement=stock_schemas.StockMovementResponse.model_validate(outcome.movement) if outcome.movement else None,
        restock_log=stock_schemas.RestockLogResponse.model_validate(outcome.restock_log) if outcome.restock_log else None,
        completed_steps=outcome.completed_steps,
    )

def _run_quantity_change(db: Session, request: Request, product: Product, new_quantity: int,
                         action: str, updates=None) -> QuantityChangeOutcome:
    """Apply a quantity change and audit it; a failed step becomes a 502 with the partial progress."""
    product_id, previous = product.id, product.quantity
    try:
        outcome = apply_quantity_change(db, product, new_quantity, updates=updates)
    except QuantityUpdateError as e:
        write_log(
            db, action=action, resource="products", status="FAIL", ip=_client_ip(request),
            meta={"id": product_id, "from": previous, "to": new_quantity,
                  "failed_step": e.step, "completed_steps": e.completed_steps},
        )
        raise HTTPException(status_code=502, detail={
            "message": "Store update failed",
            "failed_step": e.step,
            "completed_steps": e.completed_steps,
        })

    if outcome.plan.changed or updates:
        write_log(
            db, action=action, resource="products", status="SUCCESS", ip=_client_ip(request),
            meta={"id": product_id, "from": previous, "to": new_quantity},
        )
    return outcome


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=List[product_schemas.ProductResponse])
def list_products(
    q: Optional[str] = Query(None, description="Search in name, description and reference"),
    category: Optional[str] = Query(None, description="Exact category name, 'all' for every category"),
    db: Session = Depends(get_db),
):
    query = filter_products(db.query(Product), q=q, category=category)
    items = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return [_serialize(p) for p in items]


@router.get("/products/stats", response_model=product_schemas.ProductStats)
def product_stats(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Catalogue size plus stock totals of the filtered products."""
    total_products = db.query(Product).count()

    filtered = filter_products(
        db.query(
            func.coalesce(func.sum(Product.quantity), 0),
            func.coalesce(func.sum(Product.buying_price * Product.quantity), 0),
        ),
        q=q, category=category,
    )
    total_items, total_value = filtered.one()

    out_of_stock = db.query(Product).filter(Product.quantity == 0).count()

    return {
        "total_products": total_products,
        "total_items": int(total_items or 0),
        "total_value": round(float(total_value or 0), 2),
        "out_of_stock": out_of_stock,
    }


@router.get("/products/out-of-stock", response_model=List[product_schemas.ProductResponse])
def list_out_of_stock(db: Session = Depends(get_db)):
    items = (db.query(Product)
             .filter(Product.quantity == 0)
             .order_by(Product.created_at.desc(), Product.id.desc())
             .all())
    return [_serialize(p) for p in items]


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _serialize(_get_product_or_404(db, product_id))


# =========================
# ADD PRODUCT
# =========================
@router.post("/products", response_model=product_schemas.ProductResponse, status_code=201)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    if _reference_taken(db, payload.reference):
        write_log(db, action="PRODUCT_CREATE", resource="products", status="FAIL",
                  ip=_client_ip(request), meta={"reference": payload.reference, "reason": "Reference exists"})
        raise HTTPException(status_code=409, detail="Product reference already exists")

    ensure_category(db, payload.category)
    new_product = Product(**payload.model_dump())
    db.add(new_product)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Product reference already exists")
    db.refresh(new_product)

    write_log(
        db, action="PRODUCT_CREATE", resource="products", status="SUCCESS",
        ip=_client_ip(request), meta={"id": new_product.id, "reference": new_product.reference},
    )
    return _serialize(new_product)


# =========================
# FULL EDIT (PUT)
# =========================
@router.put("/products/{product_id}", response_model=product_schemas.ProductResponse)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    product = _get_product_or_404(db, product_id)

    if _reference_taken(db, payload.reference, exclude_id=product.id):
        raise HTTPException(status_code=409, detail="Product reference already exists")

    if ensure_category(db, payload.category) is not None:
        db.commit()

    data = payload.model_dump()
    updates = {k: data[k] for k in EDITABLE_FIELDS}
    outcome = _run_quantity_change(db, request, product, payload.quantity, "PRODUCT_UPDATE", updates=updates)
    return _serialize(outcome.product)


# =========================
# INLINE QUANTITY EDIT
# =========================
@router.patch("/products/{product_id}/quantity", response_model=stock_schemas.QuantityChangeResponse)
def update_quantity(
    product_id: int,
    payload: product_schemas.QuantityUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    """Same quantity as stored is a cancelled edit: nothing is written and ``changed`` is false."""
    product = _get_product_or_404(db, product_id)
    outcome = _run_quantity_change(db, request, product, payload.quantity, "STOCK_UPDATE")
    return _change_response(outcome)


# =========================
# QUICK RESTOCK
# =========================
@router.post("/products/{product_id}/restock", response_model=stock_schemas.QuantityChangeResponse)
def restock_product(
    product_id: int,
    payload: product_schemas.RestockRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    product = _get_product_or_404(db, product_id)
    if product.quantity != 0:
        raise HTTPException(status_code=409, detail="Product is not out of stock")

    outcome = _run_quantity_change(db, request, product, payload.quantity, "STOCK_RESTOCK")
    return _change_response(outcome)
