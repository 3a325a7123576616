# shopcart/api/deps.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shopcart.domain.errors import ShopError
from shopcart.services.auth_service import Principal, TokenVerifier
from shopcart.services.payment_client import PaymentClient, build_payment_client
from shopcart.services.scheduler import CeleryReservationScheduler

bearer_scheme = HTTPBearer(auto_error=False)


def to_http(e: ShopError) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if e.status_code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=e.status_code, detail=e.message, headers=headers)


def get_token_verifier() -> TokenVerifier:
    return TokenVerifier()


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Principal:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return verifier.verify(credentials.credentials)
    except ShopError as e:
        raise to_http(e)


def get_scheduler() -> CeleryReservationScheduler:
    return CeleryReservationScheduler()


def get_payment_client() -> PaymentClient:
    return build_payment_client()
