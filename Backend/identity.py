"""
Access resolution: turns request credentials into an Identity, or None for anonymous.

Two strategies exist and exactly one is active, chosen by IDENTITY_MODE:

* provider - bearer tokens issued by Supabase Auth. Tokens are verified locally when
  SUPABASE_JWT_SECRET is set, otherwise through the auth API. The role comes from the
  users table.
* fixture - trusts the x-mock-role / x-mock-user-id headers. Local testing only;
  refused when ENVIRONMENT=production.

Resolution never raises. Callers decide what an anonymous caller may do.
"""
import logging
import uuid
from typing import Mapping, Optional

from fastapi import Depends, Request
from jose import jwt, JWTError

from config import settings
from db import supabase, USERS_TABLE
from errors import AuthorizationError
from models import Identity, Role

logger = logging.getLogger(__name__)

MOCK_ROLE_HEADER = "x-mock-role"
MOCK_USER_ID_HEADER = "x-mock-user-id"
TOKEN_AUDIENCE = "authenticated"


def _bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    auth_header = headers.get("authorization")
    if not auth_header:
        return None
    scheme, _, token = auth_header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def _parse_role(value) -> Optional[Role]:
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        return None


class ProviderIdentityResolver:
    def __init__(self, client, jwt_secret: str = ""):
        self.client = client
        self.jwt_secret = jwt_secret

    def resolve(self, headers: Mapping[str, str]) -> Optional[Identity]:
        token = _bearer_token(headers)
        if token is None:
            return None

        claims = self._verify(token)
        if claims is None:
            return None

        user_id = claims.get("sub")
        if not user_id:
            return None
        role = self._lookup_role(user_id, claims.get("app_metadata") or {})
        return Identity(id=user_id, role=role, email=claims.get("email"))

    def _verify(self, token: str) -> Optional[dict]:
        if self.jwt_secret:
            try:
                return jwt.decode(token, self.jwt_secret, algorithms=["HS256"], audience=TOKEN_AUDIENCE)
            except JWTError as e:
                logger.warning(f"Rejected access token: {e}")
                return None

        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"Identity provider rejected token: {e}")
            return None
        user = getattr(response, "user", None)
        if user is None:
            return None
        return {
            "sub": user.id,
            "email": getattr(user, "email", None),
            "app_metadata": getattr(user, "app_metadata", None) or {},
        }

    def _lookup_role(self, user_id: str, app_metadata: dict) -> Role:
        # The users table is the system of record. app_metadata is only writable
        # server-side, so it is a safe fallback; user_metadata is never consulted.
        try:
            response = self.client.table(USERS_TABLE).select("role").eq("id", user_id).limit(1).execute()
            if response.data:
                role = _parse_role(response.data[0].get("role"))
                if role is not None:
                    return role
        except Exception as e:
            logger.error(f"Error fetching role for user {user_id}: {e}")

        return _parse_role(app_metadata.get("role")) or Role.EMPLOYEE


class FixtureIdentityResolver:
    """NOT FOR PRODUCTION: any caller able to set headers can claim any role.

    x-mock-user-id must be an existing users.id (a UUID); documents and reviews
    reference it through foreign keys.
    """

    def resolve(self, headers: Mapping[str, str]) -> Optional[Identity]:
        role = _parse_role(headers.get(MOCK_ROLE_HEADER, ""))
        user_id = (headers.get(MOCK_USER_ID_HEADER) or "").strip()
        if role is None or not user_id:
            return None
        try:
            uuid.UUID(user_id)
        except ValueError:
            logger.warning(f"Ignoring non-UUID {MOCK_USER_ID_HEADER}: {user_id}")
            return None
        return Identity(id=user_id, role=role)


def build_resolver(config=settings):
    if config.identity_mode == "fixture":
        if config.is_production:
            raise RuntimeError("Fixture identities cannot be used in production")
        logger.warning("Identity mode is 'fixture': x-mock-* headers are trusted")
        return FixtureIdentityResolver()
    return ProviderIdentityResolver(supabase, config.supabase_jwt_secret)


resolver = build_resolver()


def is_admin(identity: Optional[Identity]) -> bool:
    return identity is not None and identity.role == Role.ADMIN


def require_admin(identity: Optional[Identity]) -> Identity:
    if not is_admin(identity):
        raise AuthorizationError("Forbidden")
    return identity


# FastAPI dependencies

def get_resolver():
    return resolver


def get_identity(request: Request, identity_resolver=Depends(get_resolver)) -> Optional[Identity]:
    return identity_resolver.resolve(request.headers)
