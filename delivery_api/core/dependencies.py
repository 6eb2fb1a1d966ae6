from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from delivery_api.core.config import Settings
from delivery_api.core.errors import AuthenticationError
from delivery_api.core.security import TokenClaims, decode_access_token
from delivery_api.models.user import UserRole

# OAuth2 scheme for token authentication.
# auto_error=False so a missing header goes through our own 401 envelope.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def get_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


async def get_token_claims(
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> TokenClaims:
    """
    Dependency to get the verified claims of the bearer token.

    Usage in routes:
        claims: TokenClaims = Depends(get_token_claims)
    """
    if not token:
        raise AuthenticationError()

    claims = decode_access_token(token, settings)
    if claims is None:
        raise AuthenticationError()

    return claims


def require_roles(*roles: UserRole):
    """
    Dependency factory that only lets the given roles through.
    Any other role fails closed with 401, like a bad token.
    """
    allowed = {role.value for role in roles}

    async def dependency(claims: TokenClaims = Depends(get_token_claims)) -> TokenClaims:
        if claims.role not in allowed:
            raise AuthenticationError()
        return claims

    return dependency


require_admin = require_roles(UserRole.ADMIN)
