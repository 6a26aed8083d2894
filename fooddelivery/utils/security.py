import logging
from fastapi import Request, Depends

from fooddelivery.auth import service as auth_service
from fooddelivery.auth.context import AuthContext
from fooddelivery.auth.guard import is_admin
from fooddelivery.errors import Unauthenticated, Forbidden

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"

def _token_from_request(request: Request) -> str | None:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)
    return token or None

def get_current_user(request: Request) -> AuthContext:
    token = _token_from_request(request)
    if not token:
        raise Unauthenticated("Non authentifié")

    try:
        ctx = auth_service.get_user_from_token(token)
    except Exception:
        logger.warning("security.get_current_user: token rejected by identity provider")
        raise Unauthenticated("Session expirée, veuillez vous connecter")
    if ctx is None:
        raise Unauthenticated("Session expirée, veuillez vous connecter")
    return ctx

def require_user(user: AuthContext = Depends(get_current_user)) -> AuthContext:
    return user

def require_admin(user: AuthContext = Depends(get_current_user)) -> AuthContext:
    if not is_admin(user):
        raise Forbidden("Accès interdit")
    return user
