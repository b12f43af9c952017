from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.product import Product
from app.models.user import User
from app.policies import AuthorizationError, product_policy
from app.services.auth_service import AuthService
from app.services.product_service import ProductService, ProductNotFoundError
from app.utils.rate_limit import RateLimiter, RateLimitExceededError, get_rate_limiter

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthenticated.",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token on the request to its user, or fail with 401."""
    if credentials is None:
        raise _unauthenticated()

    user = AuthService(db).authenticate_token(credentials.credentials)
    if user is None:
        raise _unauthenticated()

    request.state.user = user
    return user


def enforce_rate_limit(
    user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """Count the request against the caller's per-minute quota."""
    try:
        limiter.check(f"user:{user.id}")
    except RateLimitExceededError as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers={"Retry-After": str(e.retry_after)},
        )


def authorize(ability: str, user: User, product: Product = None) -> None:
    """Run a product policy check, translating a denial into 403."""
    try:
        product_policy.authorize(ability, user, product)
    except AuthorizationError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


def product_for(ability: str):
    """
    Build a dependency that loads the `{product_id}` product and authorizes
    `ability` on it.

    The lookup (404) runs before the policy (403), and both run before the
    request body is validated.
    """
    def dependency(
        product_id: int,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> Product:
        try:
            product = ProductService(db).get_or_fail(product_id)
        except ProductNotFoundError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        authorize(ability, user, product)
        return product

    return dependency


def can_create_product(user: User = Depends(get_current_user)) -> User:
    authorize("create", user)
    return user


def can_list_products(user: User = Depends(get_current_user)) -> User:
    authorize("view_any", user)
    return user
