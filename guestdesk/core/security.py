from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from guestdesk.core.config import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
settings = get_settings()

TOKEN_TYPE = "organization"


class InvalidTokenError(ValueError):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(organization_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Signed dashboard token whose subject is the organization id."""
    issued = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": organization_id,
        "organizationId": organization_id,
        "type": TOKEN_TYPE,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def read_organization_id(token: str) -> str:
    """Returns the organization id carried by a valid, unexpired token."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError("Invalid or expired token") from exc

    organization_id = claims.get("organizationId") or claims.get("sub")
    if claims.get("type") != TOKEN_TYPE or not organization_id:
        raise InvalidTokenError("Invalid or expired token")
    return organization_id


def describe_expiry() -> str:
    minutes = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    if minutes % (60 * 24) == 0:
        return f"{minutes // (60 * 24)}d"
    if minutes % 60 == 0:
        return f"{minutes // 60}h"
    return f"{minutes}m"
