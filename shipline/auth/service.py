# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Auth service – login, session refresh, session introspection.

The router owns the cookie; everything here is plain functions over a
session so it can be exercised without HTTP.
"""

from functools import lru_cache
from typing import Optional

from sqlalchemy.orm import Session

from shipline.core.errors import AuthenticationRequired, InvalidCredentials, UserNotFound
from shipline.core.logger import logger
from shipline.core.security import create_access_token, hash_password, verify_password
from shipline.models.user import User


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Verified against when the user id is unknown so both failure paths
    # cost one full PBKDF2 run.
    return hash_password("shipline-timing-equaliser")


def issue_token(user: User) -> str:
    return create_access_token({"sub": user.user_id, "role": user.role})


def login(db: Session, user_id: str, password: str) -> tuple[User, str]:
    """
    Check credentials and return ``(user, token)``.

    Unknown user id and wrong password raise the *same* error, so the
    response does not reveal which accounts exist.
    """
    user = db.query(User).filter(User.user_id == user_id).first()
    if user is None:
        verify_password(password, _dummy_hash())
        logger.info("Login failed for unknown user id")
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        logger.info("Login failed for user=%s", user.user_id)
        raise InvalidCredentials()

    logger.info("Login succeeded for user=%s role=%s", user.user_id, user.role)
    return user, issue_token(user)


def get_current_user(db: Session, user_id: Optional[str]) -> User:
    """Re-read the account behind a verified token."""
    if not user_id:
        raise AuthenticationRequired("Authentication required")
    user = db.query(User).filter(User.user_id == user_id).first()
    if user is None:
        raise UserNotFound("User not found")
    return user


def refresh(db: Session, user_id: Optional[str]) -> tuple[User, str]:
    """Confirm the account still exists and mint a token with a fresh expiry."""
    user = get_current_user(db, user_id)
    logger.info("Session refreshed for user=%s", user.user_id)
    return user, issue_token(user)


def check_auth(db: Session, user_id: Optional[str]) -> dict:
    """Never raises: ``{"authenticated": bool, "user": User | None}``."""
    if not user_id:
        return {"authenticated": False, "user": None}
    user = db.query(User).filter(User.user_id == user_id).first()
    if user is None:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": user}
