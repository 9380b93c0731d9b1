"""
Identity and access control for the dashboard and admin endpoints.

The caller sends the Supabase access token as a bearer token. Visitors
without a valid session are redirected to /login; signed-in users without
the admin role are redirected from /admin to /dashboard.
"""
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from database import get_supabase_client
from models import Role
from schemas import CurrentUser

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"


class AuthRedirect(Exception):
    """Raised by the guards below; rendered as a 303 redirect."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


def user_from_auth(user) -> CurrentUser:
    """Build a CurrentUser from a Supabase auth user object"""
    metadata = getattr(user, "user_metadata", None) or {}
    role = Role.ADMIN if metadata.get("role") == Role.ADMIN.value else Role.USER
    return CurrentUser(
        id=str(user.id),
        email=getattr(user, "email", None),
        name=metadata.get("name"),
        role=role,
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    supabase: Client = Depends(get_supabase_client),
) -> Optional[CurrentUser]:
    if not credentials or not credentials.credentials:
        return None

    try:
        response = supabase.auth.get_user(credentials.credentials)
    except Exception as e:
        logger.warning(f"Rejected access token: {e}")
        return None

    if not response or not response.user:
        return None
    return user_from_auth(response.user)


def login_redirect(request: Request) -> AuthRedirect:
    return AuthRedirect(f"{LOGIN_PATH}?from={quote(request.url.path, safe='')}")


def require_user(
    request: Request,
    current_user: Optional[CurrentUser] = Depends(get_current_user),
) -> CurrentUser:
    if current_user is None:
        raise login_redirect(request)
    return current_user


def require_admin(
    request: Request,
    current_user: Optional[CurrentUser] = Depends(get_current_user),
) -> CurrentUser:
    if current_user is None:
        raise login_redirect(request)
    if not current_user.is_admin:
        logger.info(f"Non-admin user {current_user.id} redirected away from {request.url.path}")
        raise AuthRedirect(DASHBOARD_PATH)
    return current_user
