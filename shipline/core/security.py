# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. JWT creation / decoding                  (PyJWT / HS256)
3. Session cookie contract                  (HTTP-only, SameSite=Lax, 7 days)
4. FastAPI dependency guards                (get_current_user, require_role,
                                             get_optional_user)
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from shipline.core.config import settings
from shipline.core.errors import (
    ApiError,
    AuthenticationRequired,
    InsufficientPermissions,
    InvalidToken,
    UserNotFound,
)
from shipline.database import get_db
from shipline.models.user import Role, User

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# Each hash gets a fresh random salt, embedded in the hash string together
# with the round count, so two hashes of one password never compare equal.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Hash a plaintext password with PBKDF2-SHA256."""
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.  A malformed
    stored hash never verifies.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# 2.  JWT – session tokens
# ---------------------------------------------------------------------------

_ALGORITHM = "HS256"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT with HS256.

    *data* should contain at minimum: sub (user id handle) and role.
    ``iat`` and ``exp`` claims are added automatically; ``exp`` is never
    omitted.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["iat"] = now
    to_encode["exp"] = expire
    return _jwt.encode(to_encode, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT.  Raises ``InvalidToken`` on any failure
    (expired, bad signature, malformed, missing claims).
    """
    try:
        return _jwt.decode(
            token,
            settings.secret_key,
            algorithms=[_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except _jwt.InvalidTokenError as exc:  # ExpiredSignatureError is a subclass
        raise InvalidToken() from exc


# ---------------------------------------------------------------------------
# 3.  Session cookie
# ---------------------------------------------------------------------------


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# Browsers send the cookie; non-browser clients may send
# ``Authorization: Bearer <jwt>`` instead.  auto_error is off because a
# missing header is only an error when the cookie is missing too.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def extract_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    """Cookie first, ``Authorization: Bearer`` second."""
    return request.cookies.get(settings.cookie_name) or bearer or None


def resolve_user(db: Session, token: str) -> User:
    """
    Verify *token* and re-load its account.  A deleted account loses access
    at once, even while its token is still within ``exp``.
    """
    payload = decode_access_token(token)
    user = db.query(User).filter(User.user_id == payload["sub"]).first()
    if user is None:
        raise UserNotFound()
    return user


def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency: resolve the caller or reject the request.

    Failure order: no token → AUTHENTICATION_REQUIRED, bad/expired token →
    INVALID_TOKEN, account gone → USER_NOT_FOUND (all 401).
    """
    token = extract_token(request, bearer)
    if not token:
        raise AuthenticationRequired()
    user = resolve_user(db, token)
    request.state.user_id = user.user_id
    return user


def require_role(*roles: Role):
    """
    Dependency factory: wraps :func:`get_current_user` and additionally
    asserts that the caller's role is one of *roles*.  Raises 403 otherwise.
    """
    allowed = frozenset(roles)

    def _guard(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role_enum not in allowed:
            raise InsufficientPermissions(
                "Access requires one of the following roles: "
                + ", ".join(sorted(r.value for r in allowed))
            )
        return current_user

    return _guard


require_admin = require_role(Role.ADMIN)


def get_optional_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Dependency: same resolution path as :func:`get_current_user`, but any
    failure (no token, bad token, deleted account) yields ``None``.
    """
    token = extract_token(request, bearer)
    if not token:
        return None
    try:
        user = resolve_user(db, token)
    except ApiError:
        return None
    request.state.user_id = user.user_id
    return user


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request (IPv4 or IPv6).

    This is the rate-limit key, so the raw X-Forwarded-For header is never
    read here: a client can put anything in it.  Behind a reverse proxy,
    uvicorn's proxy-headers middleware rewrites ``request.client`` from that
    header, but only for peers listed in FORWARDED_ALLOW_IPS.
    """
    if request.client:
        return request.client.host

    return "unknown"
