import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field

from fooddelivery.auth.context import AuthContext
from fooddelivery.errors import InvalidInput
from fooddelivery.utils.security import require_user
from fooddelivery.utils.rate_limit import optional_rate_limit
from fooddelivery.payments import service as payments_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    order_id: str = Field(alias="orderId", min_length=1)


# module fooddelivery.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(req: CheckoutRequest, user: AuthContext = Depends(require_user)):
    """
    Crée une session Checkout Stripe pour une commande 'pending_payment' de l’utilisateur.
    - Entrée JSON: {"orderId": "<uuid>"}
    - Réponse: {"url", "orderId", "sessionId"}; le front redirige vers url.
    - Rejouable tant que la commande n'est pas payée.
    """
    return JSONResponse(payments_service.create_checkout_session(req.order_id, user))


@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request):
    """
    Webhook Stripe (non authentifié, signature vérifiée).
    - 400 si signature/payload invalide (aucun changement d'état).
    - 200 {"status": "ok"|"ignored"} sinon; un événement rejoué est sans effet.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    # Appels Supabase/Stripe bloquants: hors de la boucle d'événements
    result = await run_in_threadpool(payments_service.reconcile, payload, sig_header)
    return JSONResponse(result)


@router.get("/confirm")
def confirm_checkout_get(session_id: str, user: AuthContext = Depends(require_user)):
    """
    Alternative sans webhook: confirme la session Stripe et marque la commande payée.
    - 400 si paiement non confirmé, 403 si session d’un autre utilisateur.
    """
    return payments_service.confirm_session(session_id, user)


@router.post("/confirm")
async def confirm_checkout_post(request: Request, user: AuthContext = Depends(require_user)):
    """
    Variante POST: accepte session_id en query ou JSON body {"session_id": "..."}.
    """
    session_id = request.query_params.get("session_id")
    if not session_id:
        try:
            body = await request.json()
        except ValueError:
            body = None
        session_id = (body or {}).get("session_id") if isinstance(body, dict) else None
    if not session_id:
        raise InvalidInput("session_id manquant")
    return await run_in_threadpool(payments_service.confirm_session, session_id, user)
