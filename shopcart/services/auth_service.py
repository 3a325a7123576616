# shopcart/services/auth_service.py
from dataclasses import dataclass

from jose import JWTError, jwt

from shopcart.domain.errors import Forbidden, Unauthorized
from shopcart.utils.settings import ALLOWED_ROLES, JWT_ALGORITHM, JWT_SECRET_KEY


@dataclass(frozen=True)
class Principal:
    id: int
    role: str


class TokenVerifier:
    """
    Weryfikacja bearer tokena, tylko odczyt.
    Wystawianie tokenow i hasla sa poza tym serwisem.
    """

    def __init__(
        self,
        secret_key: str = JWT_SECRET_KEY,
        algorithm: str = JWT_ALGORITHM,
        allowed_roles: tuple[str, ...] = ALLOWED_ROLES,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.allowed_roles = allowed_roles

    def verify(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise Unauthorized() from e

        user_id = payload.get("user_id", payload.get("sub"))
        try:
            user_id = int(user_id)
        except (TypeError, ValueError) as e:
            raise Unauthorized() from e

        role = payload.get("role", "user")
        if role not in self.allowed_roles:
            raise Forbidden(f"Role '{role}' may not use the cart")

        return Principal(id=user_id, role=role)

