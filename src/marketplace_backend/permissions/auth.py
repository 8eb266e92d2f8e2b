"""
Authentication module producing the Principal consumed by every route.
Bearer tokens are verified once here instead of per handler.
"""

import json
import hashlib
import logging
from typing import Annotated
from pydantic import BaseModel
from sqlalchemy.orm import Session
from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param

from marketplace_backend.database import get_db
from marketplace_backend.interface.tokens import TokenError, verify_access_token
from marketplace_backend.model.auth import User
from marketplace_backend.api.exceptions import UnauthorizedException
from marketplace_backend.redis_cache import get_redis_client
from marketplace_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)

# Configuration
AUTH_CACHE_TTL = 10  # seconds


class AuthenticationResult:
    """Result of authentication containing user info and role"""

    def __init__(self, user_id: str, role: str):
        self.user_id = user_id
        self.role = role


class AuthenticationService:
    """Service for handling bearer authentication"""

    @staticmethod
    def authenticate_bearer(token: str, db: Session) -> AuthenticationResult:
        """Verify a bearer token and resolve its subject against the user table"""

        try:
            claims = verify_access_token(token)
        except TokenError as e:
            logger.info(f"Bearer authentication failed: {e}")
            raise UnauthorizedException(str(e))

        result = db.query(User.id, User.role).filter(User.id == claims.user_id).first()

        if result is None:
            logger.info(f"Token subject {claims.user_id} does not exist")
            raise UnauthorizedException("Invalid credentials")

        user_id, role = result
        return AuthenticationResult(user_id, role)


class PrincipalBuilder:
    """Builder for creating Principal objects"""

    @staticmethod
    def build(auth_result: AuthenticationResult) -> Principal:
        return Principal(
            user_id=auth_result.user_id,
            role=auth_result.role
        )

    @staticmethod
    async def build_with_cache(token: str, db: Session) -> Principal:
        """Build Principal with caching support"""

        cache = await get_redis_client()
        cache_key = "principal:" + hashlib.sha256(token.encode()).hexdigest()

        try:
            cached_data = await cache.get(cache_key)
            if cached_data:
                logger.debug(f"Principal cache hit for {cache_key}")
                return Principal.model_validate(json.loads(cached_data))
        except Exception as e:
            logger.warning(f"Cache retrieval error: {e}")

        auth_result = AuthenticationService.authenticate_bearer(token, db)
        principal = PrincipalBuilder.build(auth_result)

        try:
            await cache.set(cache_key, principal.model_dump_json(), ttl=AUTH_CACHE_TTL)
        except Exception as e:
            logger.warning(f"Cache storage error: {e}")

        return principal


class BearerCredentials(BaseModel):
    token: str
    scheme: str = "Bearer"


def parse_authorization_header(request: Request) -> BearerCredentials:
    """Parse the Authorization header into bearer credentials"""

    authorization = request.headers.get("Authorization")
    if not authorization:
        raise UnauthorizedException("Token não fornecido")

    scheme, param = get_authorization_scheme_param(authorization)

    if scheme.lower() != "bearer" or not param:
        raise UnauthorizedException("Token não fornecido ou malformado")

    return BearerCredentials(token=param)


async def get_current_principal(
    credentials: Annotated[BearerCredentials, Depends(parse_authorization_header)],
    db: Session = Depends(get_db)
) -> Principal:
    """Main dependency for getting the current authenticated principal."""
    return await PrincipalBuilder.build_with_cache(credentials.token, db)


get_current_permissions = get_current_principal
