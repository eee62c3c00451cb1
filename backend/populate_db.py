import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from sqlalchemy.orm import Session

from database import SessionLocal, init_db
from models.category import Category
from models.product import Product

# Starter catalogue for a fresh shop database
SAMPLE_CATEGORIES = ["Brakes", "Engine", "Filters", "Electrical", "Suspension"]

SAMPLE_PRODUCTS = [
    # name, description, reference, category, buying_price, quantity
    ("Brake pads front", "Ceramic front brake pad set", "BRK-PAD-F01", "Brakes", 24.90, 18),
    ("Brake disc 280mm", "Vented front brake disc", "BRK-DSC-280", "Brakes", 39.50, 6),
    ("Oil filter", "Spin-on oil filter, M20x1.5", "FLT-OIL-015", "Filters", 4.75, 42),
    ("Air filter", "Panel air filter", "FLT-AIR-220", "Filters", 9.30, 0),
    ("Spark plug", "Iridium spark plug", "ENG-SPK-IR7", "Engine", 7.10, 64),
    ("Timing belt kit", "Belt, tensioner and idler", "ENG-TBK-104", "Engine", 89.00, 3),
    ("Alternator 90A", "Remanufactured alternator", "ELC-ALT-090", "Electrical", 142.00, 2),
    ("Shock absorber rear", "Gas rear shock absorber", "SUS-SHK-R12", "Suspension", 36.40, 9),
]


def seed_catalog(session: Session) -> int:
    """Insert the sample categories and products that are missing. Returns the number of new products."""
    existing_categories = {c.name for c in session.query(Category).all()}
    for name in SAMPLE_CATEGORIES:
        if name not in existing_categories:
            session.add(Category(name=name))

    existing_refs = {r for (r,) in session.query(Product.reference).all()}
    count = 0
    for name, description, reference, category, price, quantity in SAMPLE_PRODUCTS:
        if reference in existing_refs:
            continue
        session.add(Product(
            name=name, description=description, reference=reference,
            category=category, buying_price=price, quantity=quantity,
        ))
        count += 1

    session.commit()
    return count


if __name__ == "__main__":
    init_db()
    session = SessionLocal()
    try:
        added = seed_catalog(session)
        print(f"Seeded {added} products.")
    finally:
        session.close()
