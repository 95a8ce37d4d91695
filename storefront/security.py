"""
Bearer token verification and authorization dependencies

Tokens are issued by the account service. This module only verifies them
and turns their claims into a typed structure for the routes.
"""
import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from storefront.config import settings

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


class UserClaims(BaseModel):
    """Claims of an authenticated caller"""
    user_id: int = Field(..., validation_alias=AliasChoices("sub", "id"))
    email: Optional[str] = None
    role: str = "customer"

    model_config = ConfigDict(extra="ignore", frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def can_access_user(self, user_id: int) -> bool:
        return self.is_admin or self.user_id == user_id


def decode_access_token(token: str) -> UserClaims:
    """
    Verify a bearer token and extract its claims

    Raises:
        jwt.PyJWTError: If the signature or expiry is invalid
        ValidationError: If required claims are missing or mistyped
    """
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    return UserClaims.model_validate(payload)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> UserClaims:
    """Dependency resolving the caller's claims from the Authorization header"""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization token required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        return decode_access_token(credentials.credentials)
    except (jwt.PyJWTError, ValidationError) as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )


def require_admin(claims: UserClaims = Depends(get_current_user)) -> UserClaims:
    """Dependency allowing only administrators"""
    if not claims.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return claims
