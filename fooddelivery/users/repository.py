"""Couche d’accès aux données (Supabase) pour le profil utilisateur (table users).
Le profil est la ligne applicative associée à l'id Supabase Auth; seule l'adresse
de livraison par défaut y est écrite par le service.
"""
from typing import Any, Dict
import logging

import fooddelivery.infra.supabase_client as supabase_client
from fooddelivery.errors import UpstreamFailure

logger = logging.getLogger(__name__)


def update_default_address(user_id: str, address: Dict[str, Any]) -> bool:
    """Met à jour l'adresse par défaut (address_line1/2, city, country) du profil.
    - Les champs optionnels absents sont remis à NULL, comme à la saisie.
    - Retour: True si une ligne a été mise à jour.
    """
    payload = {
        "address_line1": address.get("address_line1"),
        "address_line2": address.get("address_line2") or None,
        "city": address.get("city") or None,
        "country": address.get("country") or None,
    }
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("users")
            .update(payload)
            .eq("id", user_id)
            .execute()
        )
    except Exception:
        logger.exception("users.repository.update_default_address failed id=%s", user_id)
        raise UpstreamFailure("Mise à jour de l'adresse impossible")
    return bool(res.data)
