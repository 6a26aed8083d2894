# module fooddelivery.auth.context
"""Contexte d'authentification explicite, passé à chaque appel de service.
- Construit par utils.security.get_current_user à partir du token (Bearer ou cookie).
- SYSTEM_ACTOR représente le chemin de réconciliation des paiements (webhook Stripe):
  aucun token ne peut produire ce rôle.
"""
from dataclasses import dataclass
from typing import Optional

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SYSTEM = "system"


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    role: str = ROLE_USER
    email: Optional[str] = None
    token: Optional[str] = None


SYSTEM_ACTOR = AuthContext(user_id="system:payments", role=ROLE_SYSTEM)
