# shopcart/services/payment_client.py
from decimal import Decimal

import requests
from requests import RequestException

from shopcart.domain.errors import PaymentFailed
from shopcart.utils.logging import get_logger
from shopcart.utils.settings import PAYMENT_SERVICE_URL, PAYMENT_TIMEOUT_SECONDS

logger = get_logger(__name__)


class PaymentClient:
    def authorize(self, user_id: int, amount: Decimal) -> bool:
        raise NotImplementedError


class AlwaysApprovePaymentClient(PaymentClient):
    """Gdy brak skonfigurowanej bramki platnosci."""

    def authorize(self, user_id: int, amount: Decimal) -> bool:
        logger.info(f"No payment gateway configured, approving {amount} for user {user_id}")
        return True


class HttpPaymentClient(PaymentClient):
    # platnosci nie sa ponawiane, blad transportu = PaymentFailed
    def __init__(self, base_url: str | None = None, timeout: int = PAYMENT_TIMEOUT_SECONDS):
        self.base_url = (base_url or PAYMENT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    def authorize(self, user_id: int, amount: Decimal) -> bool:
        url = f"{self.base_url}/authorizations"
        logger.info(f"PaymentClient POST {url} amount={amount} user={user_id}")

        try:
            resp = requests.post(
                url,
                json={"user_id": user_id, "amount": str(amount)},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except (RequestException, ValueError) as e:
            logger.error(f"Payment authorization failed for user {user_id}: {e}")
            raise PaymentFailed() from e

        return bool(body.get("approved", False))


def build_payment_client() -> PaymentClient:
    if PAYMENT_SERVICE_URL:
        return HttpPaymentClient()
    return AlwaysApprovePaymentClient()
