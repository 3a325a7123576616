# shopcart/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ItemIn(BaseModel):
    """Body dodania lub zmiany pozycji koszyka."""

    product_id: int = Field(..., gt=0, description="Product ID (> 0)")
    quantity: int = Field(..., gt=0, description="Quantity (> 0)")


class CartItemOut(BaseModel):
    product_id: int
    name: str
    quantity: int
    item_price: Decimal


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    items: List[CartItemOut]
    total_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    item_price: Decimal


class OrderOut(BaseModel):
    """Wynik checkoutu."""

    order_id: int
    user_id: int
    total_amount: Decimal
    created_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)
