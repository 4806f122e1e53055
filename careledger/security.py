"""Credential collaborator: password hashing and access tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from careledger.config import get_settings
from careledger.errors import AuthenticationError

# Password hashing context
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class CredentialService:
    """Hash and verify secrets, issue and validate signed tokens."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expiry_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expiry_minutes = expiry_minutes or settings.token_expiry_minutes

    def hash(self, secret: str) -> str:
        """Hash a password."""
        return pwd_context.hash(secret)

    def verify(self, secret: str, digest: str) -> bool:
        """Verify a password against its hash."""
        try:
            return pwd_context.verify(secret, digest)
        except (ValueError, TypeError):
            # Malformed or unknown digest format
            return False

    def issue(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed access token carrying the given claims."""
        to_encode = claims.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.expiry_minutes)
        )
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def validate(self, token: str) -> Dict[str, Any]:
        """Decode and verify a token, returning its claims."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise AuthenticationError("Invalid or expired access token", code="INVALID_TOKEN")
        if payload.get("type") != "access":
            raise AuthenticationError("Invalid or expired access token", code="INVALID_TOKEN")
        return payload
