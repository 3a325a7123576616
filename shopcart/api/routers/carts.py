# shopcart/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcart.api.deps import get_current_principal, get_scheduler, to_http
from shopcart.data.database import get_db
from shopcart.domain.errors import ShopError
from shopcart.domain.schemas import CartOut, ItemIn
from shopcart.services.auth_service import Principal
from shopcart.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session = Depends(get_db), scheduler=Depends(get_scheduler)) -> CartService:
    return CartService(db=db, scheduler=scheduler)


@router.post("", response_model=CartOut, status_code=201)
def create_cart(
    principal: Principal = Depends(get_current_principal),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.create_cart(principal.id)
    except ShopError as e:
        raise to_http(e)


@router.get("/{cart_id}", response_model=CartOut)
def get_cart(
    cart_id: int,
    principal: Principal = Depends(get_current_principal),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.get_cart(cart_id, principal.id)
    except ShopError as e:
        raise to_http(e)


@router.post("/{cart_id}", response_model=CartOut, status_code=201)
def add_item(
    cart_id: int,
    payload: ItemIn,
    principal: Principal = Depends(get_current_principal),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.add_item(principal.id, cart_id, payload.product_id, payload.quantity)
    except ShopError as e:
        raise to_http(e)


@router.put("/{cart_id}", response_model=CartOut)
def update_item(
    cart_id: int,
    payload: ItemIn,
    principal: Principal = Depends(get_current_principal),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.update_item(principal.id, cart_id, payload.product_id, payload.quantity)
    except ShopError as e:
        raise to_http(e)


@router.delete("/{cart_id}/product/{product_id}", response_model=CartOut)
def remove_item(
    cart_id: int,
    product_id: int,
    principal: Principal = Depends(get_current_principal),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.remove_item(principal.id, cart_id, product_id)
    except ShopError as e:
        raise to_http(e)


@router.delete("/{cart_id}", response_model=CartOut)
def clear_cart(
    cart_id: int,
    principal: Principal = Depends(get_current_principal),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.clear_cart(principal.id, cart_id)
    except ShopError as e:
        raise to_http(e)
