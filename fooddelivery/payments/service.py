"""
Cas d'usage 'payments': orchestre commandes, line_items, Stripe et métadonnées.
- create_checkout_session: session Checkout pour une commande 'pending_payment' (re-déclenchable).
- reconcile: webhook Stripe signé -> transition 'paid' via SYSTEM_ACTOR (idempotent).
- confirm_session: alternative sans webhook, relit la session côté Stripe.
"""
from typing import Any, Dict, Optional
import logging

from fooddelivery.auth import guard
from fooddelivery.auth.context import AuthContext, SYSTEM_ACTOR
from fooddelivery.config import APP_BASE_URL, CHECKOUT_SUCCESS_PATH, CHECKOUT_CANCEL_PATH
from fooddelivery.errors import Forbidden, InvalidInput, NotFound
from fooddelivery.orders import service as orders_service
from fooddelivery.orders.models import OrderStatus

from . import line_items as line_items_logic
from . import metadata as meta
from . import stripe_client

logger = logging.getLogger(__name__)

PAYMENT_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}

def _callback_url(path: str, order_id: str) -> str:
    sep = "&" if "?" in path else "?"
    return f"{APP_BASE_URL}{path}{sep}orderId={order_id}"

def create_checkout_session(order_id: str, actor: AuthContext) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout pour une commande de l'utilisateur courant.
    - NotFound/Forbidden selon orders_service.get_order; seul l'acheteur peut payer.
    - InvalidInput si la commande n'est plus 'pending_payment'.
    - Un échec Stripe laisse la commande 'pending_payment': l'appel peut être rejoué.
    Retour: {"url", "orderId", "sessionId"}
    """
    order = orders_service.get_order(order_id, actor)
    if not guard.is_buyer(actor, order):
        raise Forbidden("Seul l'acheteur peut payer cette commande")
    if order.get("status") != OrderStatus.PENDING_PAYMENT.value:
        raise InvalidInput(f"Commande non payable (statut={order.get('status')})")

    session = stripe_client.create_session(
        line_items=line_items_logic.to_line_items(order),
        success_url=_callback_url(CHECKOUT_SUCCESS_PATH, order_id),
        cancel_url=_callback_url(CHECKOUT_CANCEL_PATH, order_id),
        metadata=meta.make_metadata(order),
        client_reference_id=str(order_id),
    )
    session_id = session.get("id") or ""
    try:
        orders_service.record_checkout_session(order_id, session_id)
    except Exception:
        # Traçabilité seulement: la réconciliation s'appuie sur metadata.orderId
        logger.exception("payments.checkout: session id not recorded order_id=%s session_id=%s", order_id, session_id)
    logger.info("payments.checkout order_id=%s session_id=%s", order_id, session_id)
    return {"url": session.get("url"), "orderId": str(order_id), "sessionId": session_id}

def _mark_paid(order_id: str) -> Dict[str, Any]:
    order = orders_service.transition(order_id, SYSTEM_ACTOR, OrderStatus.PAID.value)
    return {"status": "ok", "orderId": order_id, "orderStatus": order.get("status")}

def reconcile(payload: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
    """
    Traite un webhook Stripe.
    - Signature invalide: InvalidSignature, aucun changement d'état.
    - checkout.session.completed (payé): metadata.orderId -> transition 'paid' (idempotent,
      un événement rejoué ne change rien).
    - Autres types, session non payée, commande inconnue: {"status": "ignored"} (HTTP 200).
    """
    event = stripe_client.construct_event(payload, signature_header)
    event_type = (event or {}).get("type")
    if event_type not in PAYMENT_EVENTS:
        logger.info("payments.webhook ignored type=%s", event_type)
        return {"status": "ignored", "type": event_type}

    session = meta.extract_session(event)
    payment_status = session.get("payment_status")
    if payment_status not in (None, "paid", "no_payment_required"):
        logger.info("payments.webhook awaiting payment type=%s payment_status=%s", event_type, payment_status)
        return {"status": "ignored", "type": event_type}

    order_id = meta.extract_order_id(session)
    if not order_id:
        logger.warning("payments.webhook %s without metadata.orderId event_id=%s", event_type, event.get("id"))
        return {"status": "ignored", "type": event_type}

    try:
        result = _mark_paid(order_id)
    except NotFound:
        logger.warning("payments.webhook unknown order_id=%s event_id=%s", order_id, event.get("id"))
        return {"status": "ignored", "type": event_type}
    logger.info("payments.webhook order_id=%s status=%s event_id=%s", order_id, result["orderStatus"], event.get("id"))
    return result

def confirm_session(session_id: str, actor: AuthContext) -> Dict[str, Any]:
    """
    Alternative sans webhook: vérifie la session Stripe puis applique 'paid'.
    - InvalidInput si payment_status != 'paid' ou metadata.orderId absent.
    - Forbidden si la session appartient à un autre acheteur ou n'a pas de buyerId.
    """
    if not session_id:
        raise InvalidInput("session_id manquant")
    session = stripe_client.get_session(session_id)
    payment_status = session.get("payment_status") or ""
    if payment_status != "paid":
        raise InvalidInput(f"Paiement non confirmé (payment_status={payment_status})")

    buyer_id = meta.extract_buyer_id(session)
    # Session sans buyerId: rattachée à aucun acheteur
    if not buyer_id or buyer_id != actor.user_id:
        raise Forbidden("Session appartenant à un autre utilisateur")
    order_id = meta.extract_order_id(session)
    if not order_id:
        raise InvalidInput("Metadata orderId manquant")
    return _mark_paid(order_id)
