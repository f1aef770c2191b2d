"""
Auth Service: signup, login, token issue/verify.

Rules:
- Passwords are stored as bcrypt hashes only
- Tokens are HS256 JWTs carrying {"id": user_id}
- Login errors name the failing step (USER_NOT_FOUND / WRONG_PASSWORD)
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from sonia.core.store import UserStore
from sonia.domain.errors import ErrorCodes, WellnessError
from sonia.domain.schemas import UserRecord

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode())
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def extract_token(authorization: str | None) -> str | None:
    """
    Authorization header → token.

    Accepts the raw token or "Bearer <token>".
    """
    if not authorization:
        return None
    value = authorization.strip()
    if value.lower().startswith("bearer "):
        value = value[7:].strip()
    return value or None


class AuthService:
    """
    Signup/login against the user store.

    Usage:
        auth = AuthService(store, secret="...")
        auth.signup("Asha", "asha@example.com", "pw")
        session = auth.login("asha@example.com", "pw")
        user_id = auth.decode_token(session["token"])
    """

    def __init__(
        self,
        store: UserStore,
        secret: str,
        algorithm: str = "HS256",
        token_ttl_days: int = 7,
        bcrypt_rounds: int = 10,
    ):
        """
        Raises:
            WellnessError: JWT_SECRET_MISSING (fail-fast)
        """
        if not secret:
            raise WellnessError(
                ErrorCodes.JWT_SECRET_MISSING,
                "JWT secret is missing. Set JWT_SECRET or auth.jwt_secret.",
            )
        self.store = store
        self.secret = secret
        self.algorithm = algorithm
        self.token_ttl = timedelta(days=token_ttl_days)
        self.bcrypt_rounds = bcrypt_rounds

    def signup(self, name: str | None, email: str | None, password: str | None) -> UserRecord:
        """
        Raises:
            WellnessError: MISSING_FIELDS, USER_EXISTS
        """
        if not email or not email.strip() or not password:
            raise WellnessError(ErrorCodes.MISSING_FIELDS, "Missing fields")

        if self.store.find_user_by_email(email) is not None:
            raise WellnessError(ErrorCodes.USER_EXISTS, "User already exists")

        password_hash = hash_password(password, self.bcrypt_rounds)
        return self.store.create_user((name or "").strip(), email, password_hash)

    def login(self, email: str | None, password: str | None) -> dict[str, Any]:
        """
        Returns:
            {"token", "userId", "email", "name"}

        Raises:
            WellnessError: MISSING_CREDENTIALS, USER_NOT_FOUND, WRONG_PASSWORD
        """
        if not email or not password:
            raise WellnessError(ErrorCodes.MISSING_CREDENTIALS, "Missing credentials")

        user = self.store.find_user_by_email(email)
        if user is None:
            raise WellnessError(ErrorCodes.USER_NOT_FOUND, "User not found")

        if not verify_password(password, user.password_hash):
            raise WellnessError(ErrorCodes.WRONG_PASSWORD, "Wrong password")

        logger.info(f"User {user.user_id} logged in")
        return {
            "token": self.issue_token(user.user_id),
            "userId": user.user_id,
            "email": user.email,
            "name": user.name,
        }

    def issue_token(self, user_id: str) -> str:
        now = datetime.now(UTC)
        claims = {"id": user_id, "iat": now, "exp": now + self.token_ttl}
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str | None) -> str:
        """
        Token → user_id.

        Raises:
            WellnessError: NO_TOKEN, INVALID_TOKEN (bad signature, expired, no id)
        """
        if not token:
            raise WellnessError(ErrorCodes.NO_TOKEN, "No token")

        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise WellnessError(ErrorCodes.INVALID_TOKEN, "Invalid token") from e

        user_id = claims.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise WellnessError(ErrorCodes.INVALID_TOKEN, "Invalid token")
        return user_id

    def get_profile(self, user_id: str) -> UserRecord:
        """
        Raises:
            WellnessError: USER_NOT_FOUND
        """
        user = self.store.get_user(user_id)
        if user is None:
            raise WellnessError(ErrorCodes.USER_NOT_FOUND, "User not found")
        return user
