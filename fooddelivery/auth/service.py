"""Fournisseur d'identité (Supabase Auth) vu par le service.
La gestion des identifiants (connexion, inscription, reset) est hors périmètre:
on ne fait que résoudre un access_token en AuthContext.
"""
from typing import Optional, Dict, Any

from fooddelivery.auth.context import AuthContext, ROLE_ADMIN, ROLE_USER
from .repository import get_user_from_access_token as _repo_get_user_from_token

def determine_role(app_metadata: Dict[str, Any] | None) -> str:
    """Rôle applicatif lu dans app_metadata (modifiable uniquement côté service-role).
    Tout ce qui n'est pas 'admin' est un utilisateur standard; le rôle 'system'
    n'est jamais attribué à un token.
    """
    role_lower = str((app_metadata or {}).get("role", "")).lower()
    if role_lower == ROLE_ADMIN:
        return ROLE_ADMIN
    return ROLE_USER

def get_user_from_token(access_token: str) -> Optional[AuthContext]:
    """Normalise l'utilisateur issu de supabase.auth.get_user(access_token):
    - Retourne AuthContext(user_id, role, email, token), ou None si le token ne résout aucun id
    """
    raw = _repo_get_user_from_token(access_token)
    uid = raw.get("id")
    if not uid:
        return None
    role = determine_role(raw.get("app_metadata"))
    return AuthContext(user_id=str(uid), role=role, email=raw.get("email"), token=access_token)
