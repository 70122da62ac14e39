"""Authentication helpers and FastAPI security dependencies.

Sessions are issued by Clerk: the bearer token is a JWT whose `sub`
claim is the caller's Clerk id. This module verifies that token and
exposes dependencies for the three access levels used by the API:

- `get_current_clerk_id`: any valid token (the profile may not exist yet)
- `authorize_clerk_id`: the `{clerk_id}` in the path must be the caller,
  unless the caller is an admin
- `require_admin`: the caller's profile has `user_type == 'admin'`

Token verification raises HTTPExceptions on failure so it can be used
directly inside route dependencies.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlmodel import Session
from .config import settings
from .database import get_session
from . import models, repositories

bearer_scheme = HTTPBearer()
logger = logging.getLogger("community_hub.auth")


def decode_token(token: str) -> dict:
    """Decode and verify a session JWT.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure. The `sub` claim is required and the
    issuer is checked when `JWT_ISSUER` is configured.
    """
    kwargs = {}
    if settings.JWT_ISSUER:
        kwargs['issuer'] = settings.JWT_ISSUER
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={'require': ['sub'], 'verify_aud': False},
            **kwargs,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired')
    except jwt.InvalidTokenError as e:
        logger.info("token_rejected reason=%s", e)
        raise HTTPException(status_code=401, detail='invalid token')


def get_current_clerk_id(credentials: HTTPAuthorizationCredentials = Security(bearer_scheme)) -> str:
    """Return the caller's Clerk id taken from the token `sub` claim."""
    payload = decode_token(credentials.credentials)
    clerk_id = payload.get('sub')
    if not clerk_id:
        raise HTTPException(status_code=401, detail='invalid token payload')
    return clerk_id


def get_current_user(
    clerk_id: str = Depends(get_current_clerk_id),
    db: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the caller's profile.

    Raises HTTPException(401) when the token is valid but no profile has
    been created for it yet.
    """
    user = repositories.UserRepository(db).get_by_clerk_id(clerk_id)
    if not user:
        raise HTTPException(status_code=401, detail='user not found')
    return user


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    """Allow only profiles whose `user_type` is `admin`."""
    if user.user_type != 'admin':
        raise HTTPException(status_code=403, detail='admin access required')
    return user


def is_self_or_admin(db: Session, caller_clerk_id: str, target_clerk_id: Optional[str]) -> bool:
    if caller_clerk_id == target_clerk_id:
        return True
    caller = repositories.UserRepository(db).get_by_clerk_id(caller_clerk_id)
    return caller is not None and caller.user_type == 'admin'


def authorize_clerk_id(
    clerk_id: str,
    caller: str = Depends(get_current_clerk_id),
    db: Session = Depends(get_session),
) -> str:
    """Guard for `/users/{clerk_id}/...` routes; returns the path `clerk_id`."""
    if not is_self_or_admin(db, caller, clerk_id):
        raise HTTPException(status_code=403, detail='not allowed to access this user')
    return clerk_id
