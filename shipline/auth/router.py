# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – login, logout, current-user info, refresh, status check.

Security notes
--------------
* Login returns the *same* error whether the user id doesn't exist or the
  password is wrong.  This prevents user-enumeration attacks.
* Failed logins are counted per client address (5 per 15 minutes);
  successful ones are not.
* The token travels in an HTTP-only, SameSite=Lax cookie so page scripts
  can never read it.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from shipline.auth import service
from shipline.auth.schemas import (
    CheckAuthResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    UserPublic,
    UserResponse,
)
from shipline.core.ratelimit import AuthLimitedRoute, auth_limiter
from shipline.core.security import (
    clear_session_cookie,
    get_client_ip,
    get_current_user,
    get_optional_user,
    set_session_cookie,
)
from shipline.database import get_db
from shipline.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# POST /api/auth/login
# ---------------------------------------------------------------------------


def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Authenticate and set the session cookie."""
    user, token = service.login(db, body.user_id, body.password)
    # only failed attempts count against the auth budget
    auth_limiter.refund(get_client_ip(request))

    set_session_cookie(response, token)
    return LoginResponse(message="Login successful", user=UserPublic.model_validate(user))


router.add_api_route(
    "/login",
    login,
    methods=["POST"],
    response_model=LoginResponse,
    route_class_override=AuthLimitedRoute,
)


# ---------------------------------------------------------------------------
# POST /api/auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    """Clear the session cookie.  Always succeeds, logged in or not."""
    clear_session_cookie(response)
    return MessageResponse(message="Logout successful")


# ---------------------------------------------------------------------------
# GET /api/auth/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Return the authenticated user's public profile (no secrets)."""
    user = service.get_current_user(db, current_user.user_id)
    return UserResponse(user=UserPublic.model_validate(user))


# ---------------------------------------------------------------------------
# POST /api/auth/refresh
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=LoginResponse)
def refresh(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Issue a new token with a fresh 7-day window."""
    user, token = service.refresh(db, current_user.user_id)
    set_session_cookie(response, token)
    return LoginResponse(message="Token refreshed successfully", user=UserPublic.model_validate(user))


# ---------------------------------------------------------------------------
# GET /api/auth/check
# ---------------------------------------------------------------------------


@router.get("/check", response_model=CheckAuthResponse)
def check(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Report whether the caller is logged in; never 401s."""
    result = service.check_auth(db, current_user.user_id if current_user else None)
    user = result["user"]
    return CheckAuthResponse(
        authenticated=result["authenticated"],
        user=UserPublic.model_validate(user) if user is not None else None,
    )
