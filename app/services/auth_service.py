from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql import func
from passlib.context import CryptContext
from typing import Optional, Tuple
import hashlib
import hmac
import logging
import secrets

from app.models.user import User, UserRole, AccessToken
from app.schemas.user import RegisterRequest

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TOKEN_NAME = "api"


class EmailAlreadyRegisteredError(Exception):
    """Exception raised when registering with an e-mail that is taken."""
    pass


class InvalidCredentialsError(Exception):
    """Exception raised when an e-mail/password pair does not match."""
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _digest(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


class AuthService:
    """
    Service class for registration, login and bearer token management.

    Tokens are opaque: the client receives `"<id>|<secret>"` once and the
    database keeps only a SHA-256 digest of the secret.
    """

    def __init__(self, db: Session):
        self.db = db

    def register(self, data: RegisterRequest, role: UserRole = UserRole.USER) -> Tuple[User, str]:
        """
        Create a user account and issue its first token.

        Raises:
            EmailAlreadyRegisteredError: If the e-mail is already taken
        """
        if self.get_by_email(data.email):
            raise EmailAlreadyRegisteredError("Email is already registered")

        user = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            role=role,
        )
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError:
            # Lost a race against a concurrent registration with the same e-mail
            self.db.rollback()
            raise EmailAlreadyRegisteredError("Email is already registered")

        token = self._issue_token(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User #{user.id} registered")
        return user, token

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue a new token.

        Raises:
            InvalidCredentialsError: If the e-mail is unknown or the password is wrong
        """
        user = self.get_by_email(email)
        if not user or not verify_password(password, user.password):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError("Invalid credentials")

        token = self._issue_token(user)
        self.db.commit()
        return user, token

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def authenticate_token(self, plain_token: str) -> Optional[User]:
        """
        Resolve a bearer credential to its user.

        Returns:
            The token owner, or None if the credential is malformed or unknown
        """
        token_id, separator, secret = plain_token.partition("|")
        if not separator or not token_id.isdigit() or not secret:
            return None

        access_token = self.db.query(AccessToken).filter(AccessToken.id == int(token_id)).first()
        if not access_token or not hmac.compare_digest(access_token.token, _digest(secret)):
            return None

        access_token.last_used_at = func.now()
        self.db.commit()
        return access_token.user

    def revoke_all(self, user: User) -> int:
        """
        Delete every token belonging to a user.

        Returns:
            Number of tokens revoked
        """
        revoked = (
            self.db.query(AccessToken)
            .filter(AccessToken.user_id == user.id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info(f"Revoked {revoked} token(s) for user #{user.id}")
        return revoked

    def _issue_token(self, user: User, name: str = TOKEN_NAME) -> str:
        secret = secrets.token_hex(20)
        access_token = AccessToken(user_id=user.id, name=name, token=_digest(secret))
        self.db.add(access_token)
        self.db.flush()
        return f"{access_token.id}|{secret}"
