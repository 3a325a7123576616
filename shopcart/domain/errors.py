# shopcart/domain/errors.py


class ShopError(Exception):
    """Baza bledow ze stala odpowiedzia HTTP."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class NotFound(ShopError):
    status_code = 404
    message = "Not found"


class InvalidInput(ShopError):
    status_code = 400
    message = "Invalid input"


class InsufficientStock(ShopError):
    status_code = 400
    message = "Insufficient stock"

    def __init__(self, product_id: int | None = None, message: str | None = None):
        self.product_id = product_id
        if message is None and product_id is not None:
            message = f"Insufficient stock for product ID {product_id}"
        super().__init__(message)


class CartAlreadyExists(ShopError):
    status_code = 400
    message = "Cart already exists for this user"


class EmptyCart(ShopError):
    status_code = 400
    message = "Cart is empty"


class PaymentFailed(ShopError):
    status_code = 400
    message = "Payment failed. Please try again"


class Unauthorized(ShopError):
    status_code = 401
    message = "Could not validate credentials"


class Forbidden(ShopError):
    status_code = 403
    message = "Access denied"


class StoreFailure(ShopError):
    # szczegoly bledu bazy tylko w logach, klient dostaje stala wiadomosc
    status_code = 500
    message = "Internal server error"


class CartChanged(ShopError):
    # pozycje koszyka zmienily sie miedzy odczytem a zamknieciem zamowienia
    status_code = 409
    message = "Cart changed during checkout, please try again"
