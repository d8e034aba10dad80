from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from knowledgebase.core.config import Settings
from knowledgebase.core.deps import get_settings
from knowledgebase.core.errors import Unauthorized
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.core.security")

# Reads Authorization: Bearer <token>; missing header is handled below as 401
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


# ------ JWT Token creation -----
def create_access_token(data: dict, settings: Settings) -> str:
    """Create a signed access token with expiry.

    Production tokens come from the identity provider; this mirrors its claims
    for local development and tests.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    if settings.JWT_AUDIENCE:
        to_encode.setdefault("aud", settings.JWT_AUDIENCE)
    if settings.JWT_ISSUER:
        to_encode.setdefault("iss", settings.JWT_ISSUER)
    token = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    logger.debug("Access token created", extra={"user_sub": data.get("sub")})
    return token


def decode_access_token(token: str, settings: Settings) -> Optional[dict]:
    """
    Verify the token and return its claims, or None if invalid.
    """
    if not settings.JWT_SECRET_KEY:
        logger.error("JWT_SECRET_KEY is not configured; rejecting token")
        return None
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"verify_aud": bool(settings.JWT_AUDIENCE)},
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token expired")
        return None
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        return None

    if not payload.get("sub"):
        logger.warning("Token has no subject claim")
        return None
    return payload


# ------ Get Current User -----
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """
    Dependency used in protected routes.
    - Reads the bearer token issued by the identity provider.
    - Verifies signature, expiry and (when configured) audience/issuer.
    - Raises Unauthorized (401) if anything is invalid.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.warning("Authentication failed - missing bearer token")
        raise Unauthorized("Unauthorized")

    claims = decode_access_token(credentials.credentials, settings)
    if claims is None:
        logger.warning("Authentication failed - invalid token")
        raise Unauthorized("Unauthorized")

    user = CurrentUser(
        id=str(claims["sub"]),
        name=claims.get("name"),
        email=claims.get("email"),
    )
    logger.debug("User authenticated", extra={"user_id": user.id})
    return user
