"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
- Clé API et client HTTP (délai maximum) configurés une seule fois.
- Toute erreur Stripe devient UpstreamFailure; toute erreur de signature devient InvalidSignature.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import stripe

from fooddelivery.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, STRIPE_TIMEOUT_SECONDS
from fooddelivery.errors import InvalidInput, InvalidSignature, UpstreamFailure

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("fooddelivery.security")

_configured = False

# module fooddelivery.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY (UpstreamFailure si absente).
    - Installe un client HTTP avec délai maximum (STRIPE_TIMEOUT_SECONDS).
    """
    global _configured
    if not STRIPE_SECRET_KEY:
        raise UpstreamFailure("Stripe non configuré (STRIPE_SECRET_KEY manquant)")
    if not _configured:
        stripe.api_key = STRIPE_SECRET_KEY
        stripe.default_http_client = stripe.RequestsClient(timeout=STRIPE_TIMEOUT_SECONDS)
        stripe.max_network_retries = 2
        _configured = True
    return stripe

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
    client_reference_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout (mode "payment").
    Retour: dict session (ex: {"id": "cs_test_...", "url": "https://..."})
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.create(
            line_items=line_items,
            mode="payment",
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            client_reference_id=client_reference_id,
            payment_method_types=["card"],
        )
    except stripe.StripeError as e:
        logger.exception("payments.stripe_client.create_session failed metadata=%s", metadata)
        raise UpstreamFailure(f"Stripe: {getattr(e, 'user_message', None) or 'création de session impossible'}")
    return dict(session)

def get_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Stripe Checkout par son identifiant.
    Retour: dict session incluant "id", "payment_status", "metadata", etc.
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except stripe.InvalidRequestError:
        raise InvalidInput("Session Stripe introuvable ou invalide")
    except stripe.StripeError:
        logger.exception("payments.stripe_client.get_session failed session_id=%s", session_id)
        raise UpstreamFailure("Stripe: lecture de session impossible")
    return dict(session)

def construct_event(payload: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
    """
    Valide la signature d'un webhook Stripe et retourne l'événement (dict JSON).
    - Échec fermé: secret absent, en-tête absent, signature expirée ou invalide, JSON invalide -> InvalidSignature.
    - Chaque rejet est journalisé sur le logger 'fooddelivery.security'.
    """
    if not STRIPE_WEBHOOK_SECRET:
        security_logger.error("stripe webhook rejected: STRIPE_WEBHOOK_SECRET not configured")
        raise InvalidSignature()
    if not signature_header:
        security_logger.warning("stripe webhook rejected: missing Stripe-Signature header")
        raise InvalidSignature()
    try:
        body = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else str(payload)
        stripe.WebhookSignature.verify_header(
            body, signature_header, STRIPE_WEBHOOK_SECRET, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
        event = json.loads(body)
    except stripe.SignatureVerificationError as e:
        security_logger.warning("stripe webhook rejected: signature verification failed (%s)", e)
        raise InvalidSignature()
    except ValueError as e:
        security_logger.warning("stripe webhook rejected: invalid payload (%s)", e)
        raise InvalidSignature("Payload webhook invalide")
    if not isinstance(event, dict):
        security_logger.warning("stripe webhook rejected: payload is not an event object")
        raise InvalidSignature("Payload webhook invalide")
    return event
