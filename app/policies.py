import logging

from app.models.product import Product
from app.models.user import User

logger = logging.getLogger(__name__)


class AuthorizationError(Exception):
    """Exception raised when a policy denies an action."""

    def __init__(self, message: str = "This action is unauthorized."):
        super().__init__(message)


class ProductPolicy:
    """
    Role-based rules for product actions.

    Any authenticated user may list products; viewing a single product and
    every write are reserved for admins.
    """

    def view_any(self, user: User) -> bool:
        return True

    def view(self, user: User, product: Product) -> bool:
        return user.is_admin

    def create(self, user: User) -> bool:
        return user.is_admin

    def update(self, user: User, product: Product) -> bool:
        return user.is_admin

    def delete(self, user: User, product: Product) -> bool:
        return user.is_admin

    def authorize(self, ability: str, user: User, product: Product = None) -> None:
        """
        Raise AuthorizationError unless `user` may perform `ability`.

        Args:
            ability: One of view_any, view, create, update, delete
            user: Authenticated user
            product: Target product for item-level abilities
        """
        check = getattr(self, ability)
        allowed = check(user) if product is None else check(user, product)
        if not allowed:
            logger.info(f"User #{user.id} denied '{ability}' on products")
            raise AuthorizationError()


product_policy = ProductPolicy()
