from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status
from jose import JWTError
from jose.jwt import decode, encode

from api.config import get_settings
from api.schemas.auth_schemas import AuthTokenPayload

ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(data: AuthTokenPayload) -> str:
    """Create a JWT access token. Token issuance belongs to the identity service; this is used by tests and tooling."""
    settings = get_settings()
    claims = data.model_dump(exclude_none=True)
    if "exp" not in claims:
        claims["exp"] = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: Optional[str]) -> AuthTokenPayload:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    settings = get_settings()
    try:
        payload = decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return AuthTokenPayload(**payload)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    except ValueError:
        # claims decoded but failed validation
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token claims")
