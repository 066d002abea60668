"""Authentication utilities for JWT and password hashing."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from fastapi import HTTPException, Request
from jose import JWTError, jwt
from starlette.status import HTTP_401_UNAUTHORIZED

from config.settings import AuthConfig
from tournaments.models import UserRole

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_COOKIE_NAME = "access_token"

# Password hashing configuration
BCRYPT_ROUNDS = 12

# Security logger for auth events
security_logger = logging.getLogger("security")


class AuthenticationError(HTTPException):
    """Custom exception for authentication failures."""

    def __init__(self, detail: str = "Authentication failed"):
        super().__init__(status_code=HTTP_401_UNAUTHORIZED, detail=detail)


class PasswordUtils:
    """Utilities for password hashing and verification."""

    @staticmethod
    def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
        """Hash a password using bcrypt."""
        salt = bcrypt.gensalt(rounds=rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )


class JWTUtils:
    """Utilities for JWT token creation and validation."""

    def __init__(self, config: AuthConfig):
        self.secret_key = config.jwt_secret_key
        self.expire_hours = config.jwt_expire_hours

    def create_access_token(
        self, user_id: str, email: str, name: str, role: UserRole
    ) -> str:
        """
        Create a JWT access token for a user.

        Args:
            user_id: Stable account ID
            email: User's email address
            name: Display name
            role: Role the account registered with

        Returns:
            JWT token string
        """
        now = datetime.now(timezone.utc)
        expire = now + timedelta(hours=self.expire_hours)

        payload = {
            "sub": user_id,
            "email": email,
            "name": name,
            "role": role.value,
            "exp": expire,
            "iat": now,
        }

        return jwt.encode(payload, self.secret_key, algorithm=JWT_ALGORITHM)

    def decode_access_token(self, token: str) -> dict[str, Any]:
        """
        Decode and validate a JWT access token.

        Raises:
            AuthenticationError: If token is invalid or expired
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            security_logger.warning(f"JWT decode error: {e}")
            raise AuthenticationError("Invalid or expired token")

        if "sub" not in payload or "role" not in payload:
            raise AuthenticationError("Invalid token payload")

        return payload

    def cookie_settings(self) -> dict[str, Any]:
        """Secure cookie settings for JWT storage."""
        return {
            "httponly": True,
            "secure": True,
            "samesite": "strict",
            "max_age": self.expire_hours * 3600,
        }


def get_token_from_request(request: Request) -> str:
    """
    Extract the JWT from an Authorization header or the httpOnly cookie.

    Raises:
        AuthenticationError: If no token is present
    """
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()

    token = request.cookies.get(ACCESS_TOKEN_COOKIE_NAME)
    if not token:
        raise AuthenticationError("No authentication token found")
    return token


def log_security_event(
    event_type: str, details: dict[str, Any], request: Request | None = None
):
    """
    Log security-related events for monitoring and auditing.

    Args:
        event_type: Type of security event (e.g., "login_attempt", "registration")
        details: Dictionary of event details (avoid sensitive data)
        request: Optional FastAPI request for IP logging
    """
    log_data = {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **details,
    }

    if request and request.client:
        log_data["client_ip"] = request.client.host

    security_logger.info(f"Security event: {log_data}")
