# shopcart/repos/product_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from shopcart.data.models.product import ProductModel

# bulk update bez synchronizacji sesji, stan czytamy ponownie z bazy
_NO_SYNC = {"synchronize_session": False}


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id, populate_existing=True)

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        # warunkowy update w jednym zapytaniu, 0 rows = za malo towaru
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock_quantity >= quantity,
            )
            .values(stock_quantity=ProductModel.stock_quantity - quantity),
            execution_options=_NO_SYNC,
        )
        return result.rowcount

    def increment_stock(self, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock_quantity=ProductModel.stock_quantity + quantity),
            execution_options=_NO_SYNC,
        )
        return result.rowcount
