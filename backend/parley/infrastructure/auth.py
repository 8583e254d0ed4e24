"""Token Verification — turns an identity-provider bearer token into a CallerIdentity.

Invariants:
    - A missing header yields None (the caller gate decides what that means)
    - A present but invalid/expired token is always 401, never silently anonymous
    - Only the `sub` claim is required; name/email/picture are optional profile hints
"""

import logging

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from parley.config import Settings, get_settings
from parley.core.domain_types import CallerIdentity
from parley.core.errors import UnauthorizedError, ErrorContext

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def decode_identity(token: str, settings: Settings) -> CallerIdentity:
    """Verify the token signature/claims and extract the caller identity."""
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=settings.auth_jwt_algorithms,
            issuer=settings.auth_jwt_issuer,
            audience=settings.auth_jwt_audience,
            options={
                "require": ["sub"],
                "verify_aud": settings.auth_jwt_audience is not None,
            },
            leeway=settings.auth_jwt_leeway_seconds,
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise UnauthorizedError(ErrorContext(debug_info={"reason": "expired"}))
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected invalid token: {e}")
        raise UnauthorizedError(ErrorContext(debug_info={"reason": "invalid"}))

    return CallerIdentity(
        subject=str(payload["sub"]),
        name=payload.get("name"),
        email=payload.get("email"),
        picture_url=payload.get("picture") or payload.get("image_url"),
    )


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CallerIdentity | None:
    """FastAPI dependency — optional verified identity of the caller."""
    if credentials is None:
        return None
    return decode_identity(credentials.credentials, settings)
