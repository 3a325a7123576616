# shopcart/data/seed.py
from decimal import Decimal

from shopcart.data.database import SessionLocal, init_db
from shopcart.data.models import ProductModel
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"name": "Keyboard", "price": Decimal("199.99"), "stock_quantity": 25},
    {"name": "Mouse", "price": Decimal("49.50"), "stock_quantity": 100},
    {"name": "Monitor", "price": Decimal("899.00"), "stock_quantity": 10},
]


def seed():
    init_db()
    db = SessionLocal()
    try:
        # tylko gdy tabela pusta
        if db.query(ProductModel).first():
            return
        db.add_all([ProductModel(**p) for p in PRODUCTS])
        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
