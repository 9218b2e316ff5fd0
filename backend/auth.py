import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import Settings

logger = logging.getLogger(__name__)

ADMIN_ID = "1"
ADMIN_ROLE = "admin"

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminIdentity:
    """Decoded token claims, passed to protected handlers."""

    id: str
    email: str
    role: str

    def as_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


def verify_credentials(settings: Settings, email: str, password: str) -> bool:
    if email != settings.admin_email:
        return False
    # Plaintext fallback first, then the configured hash
    if settings.admin_password and hmac.compare_digest(
        password.encode(), settings.admin_password.encode()
    ):
        return True
    return hmac.compare_digest(
        hash_password(password).encode(), settings.admin_password_hash.encode()
    )


def create_access_token(
    settings: Settings, identity: AdminIdentity, now: Optional[datetime] = None
) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": identity.id,
        "email": identity.email,
        "role": identity.role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.token_ttl_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> AdminIdentity:
    """Raise `jwt.PyJWTError` on a bad signature, malformed or expired token."""
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
    return AdminIdentity(
        id=str(payload["sub"]),
        email=payload.get("email", ""),
        role=payload.get("role", ""),
    )


def login(settings: Settings, email: str, password: str) -> tuple[str, AdminIdentity]:
    if not email or not password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    logger.info("Login attempt for %s", email)
    if not verify_credentials(settings, email, password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    identity = AdminIdentity(id=ADMIN_ID, email=email, role=ADMIN_ROLE)
    return create_access_token(settings, identity), identity


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> AdminIdentity:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication token required")

    try:
        identity = decode_access_token(settings, credentials.credentials)
    except jwt.PyJWTError as exc:
        logger.info("Token verification failed: %s", exc)
        raise HTTPException(status_code=403, detail="Invalid or expired token")

    if identity.role != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return identity
