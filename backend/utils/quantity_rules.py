# backend/utils/quantity_rules.py
"""Bookkeeping for product quantity changes.

A quantity change is split in two parts:

* ``plan_quantity_change`` decides, from the previous and the new quantity
  only, which records have to be written.
* ``apply_quantity_change`` issues those writes against the store.

The writes (stock movement, restock log, product row) are committed one by
one in the order given by ``settings.QUANTITY_STEP_ORDER``. They are not
atomic: if a step fails, the steps before it stay committed and the
``QuantityUpdateError`` raised lists them.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings, QUANTITY_STEPS
from models.product import Product
from models.stock import StockMovement
from models.restock import RestockLog

logger = logging.getLogger(__name__)

RESTOCK_OPEN = "open"
RESTOCK_CLOSE = "close"


@dataclass(frozen=True)
class QuantityChangePlan:
    previous_quantity: int
    new_quantity: int
    # None, RESTOCK_OPEN or RESTOCK_CLOSE
    restock_action: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.previous_quantity != self.new_quantity

    @property
    def change(self) -> int:
        return self.new_quantity - self.previous_quantity


@dataclass
class QuantityChangeOutcome:
    product: Product
    plan: QuantityChangePlan
    movement: Optional[StockMovement] = None
    restock_log: Optional[RestockLog] = None
    completed_steps: List[str] = field(default_factory=list)


class QuantityUpdateError(Exception):
    """A write of a quantity change failed after ``completed_steps`` were committed."""

    def __init__(self, step: str, completed_steps: Sequence[str], cause: Exception):
        self.step = step
        self.completed_steps = list(completed_steps)
        self.cause = cause
        super().__init__(
            f"Quantity update failed at step '{step}' "
            f"(already committed: {', '.join(self.completed_steps) or 'nothing'})"
        )


def _check_quantity(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def plan_quantity_change(previous_quantity: int, new_quantity: int) -> QuantityChangePlan:
    previous_quantity = _check_quantity("previous_quantity", previous_quantity)
    new_quantity = _check_quantity("new_quantity", new_quantity)

    restock_action = None
    if previous_quantity == 0 and new_quantity > 0:
        restock_action = RESTOCK_CLOSE
    elif previous_quantity > 0 and new_quantity == 0:
        restock_action = RESTOCK_OPEN

    return QuantityChangePlan(previous_quantity, new_quantity, restock_action)


def _check_step_order(step_order: Sequence[str]) -> Sequence[str]:
    if sorted(step_order) != sorted(QUANTITY_STEPS):
        raise ValueError(f"step_order must list each of {', '.join(QUANTITY_STEPS)} exactly once")
    return step_order


def find_open_restock(db: Session, product_id: int) -> Optional[RestockLog]:
    """Most recent open restock log of a product."""
    return (
        db.query(RestockLog)
        .filter(RestockLog.product_id == product_id, RestockLog.restocked.is_(False))
        .order_by(RestockLog.out_of_stock_date.desc(), RestockLog.id.desc())
        .first()
    )


def apply_quantity_change(
    db: Session,
    product: Product,
    new_quantity: int,
    updates: Optional[Dict[str, Any]] = None,
    step_order: Optional[Sequence[str]] = None,
) -> QuantityChangeOutcome:
    """Set ``product.quantity`` to ``new_quantity`` and write the matching logs.

    ``updates`` holds other product fields (full edit) written together with
    the quantity in the ``product`` step. Name and reference snapshots on the
    logs use the updated values.
    """
    plan = plan_quantity_change(product.quantity, new_quantity)
    outcome = QuantityChangeOutcome(product=product, plan=plan)
    updates = dict(updates or {})

    if not plan.changed and not updates:
        return outcome

    order = _check_step_order(step_order or settings.quantity_step_order)
    now = datetime.now(timezone.utc)
    product_id = product.id
    product_name = updates.get("name", product.name)
    product_reference = updates.get("reference", product.reference)

    def movement_step():
        if not plan.changed:
            return
        movement = StockMovement(
            product_id=product_id,
            product_name=product_name,
            product_reference=product_reference,
            previous_quantity=plan.previous_quantity,
            new_quantity=plan.new_quantity,
            change=plan.change,
        )
        db.add(movement)
        db.commit()
        db.refresh(movement)
        outcome.movement = movement

    def restock_step():
        if plan.restock_action == RESTOCK_CLOSE:
            entry = find_open_restock(db, product_id)
            if entry is None:
                # Nothing was tracked for this episode
                return
            entry.restocked = True
            entry.restock_date = now
            entry.restock_quantity = plan.new_quantity
        elif plan.restock_action == RESTOCK_OPEN:
            entry = find_open_restock(db, product_id)
            if entry is not None:
                outcome.restock_log = entry
                return
            entry = RestockLog(
                product_id=product_id,
                product_name=product_name,
                product_reference=product_reference,
                out_of_stock_date=now,
                restocked=False,
            )
            db.add(entry)
        else:
            return
        db.commit()
        db.refresh(entry)
        outcome.restock_log = entry

    def product_step():
        for key, value in updates.items():
            setattr(product, key, value)
        product.quantity = plan.new_quantity
        product.updated_at = now
        db.commit()
        db.refresh(product)

    steps = {"movement": movement_step, "restock": restock_step, "product": product_step}

    for name in order:
        try:
            steps[name]()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(
                "Quantity change of product %s (%s -> %s) failed at step %s, committed: %s",
                product_id, plan.previous_quantity, plan.new_quantity, name, outcome.completed_steps,
            )
            raise QuantityUpdateError(name, outcome.completed_steps, e) from e
        outcome.completed_steps.append(name)

    return outcome
