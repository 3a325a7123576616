# shopcart/api/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcart.api.deps import get_current_principal, get_payment_client, get_scheduler, to_http
from shopcart.data.database import get_db
from shopcart.domain.errors import ShopError
from shopcart.domain.schemas import OrderOut
from shopcart.services.auth_service import Principal
from shopcart.services.checkout_service import CheckoutService

router = APIRouter(prefix="/cart", tags=["checkout"])


def get_service(
    db: Session = Depends(get_db),
    payment_client=Depends(get_payment_client),
    scheduler=Depends(get_scheduler),
) -> CheckoutService:
    return CheckoutService(db=db, payment_client=payment_client, scheduler=scheduler)


@router.post("/{cart_id}/checkout", response_model=OrderOut, status_code=201)
def checkout(
    cart_id: int,
    principal: Principal = Depends(get_current_principal),
    svc: CheckoutService = Depends(get_service),
):
    """
    Zamienia koszyk w zamowienie, koszyk zostaje pusty.
    """
    try:
        return svc.checkout(cart_id, principal.id)
    except ShopError as e:
        raise to_http(e)
