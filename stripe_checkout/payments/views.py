import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.status import HTTP_303_SEE_OTHER

from stripe_checkout.catalog import CatalogCache, get_catalog
from stripe_checkout.utils.rate_limit import optional_rate_limit
from . import checkout as payments_checkout
from . import webhook as payments_webhook
from .models import CheckoutRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])
webhook_router = APIRouter(prefix="/stripe-checkout/v1", tags=["Stripe webhook"])

def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")

# module stripe_checkout.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(
    body: CheckoutRequest,
    request: Request,
    catalog: CatalogCache = Depends(get_catalog),
) -> Dict[str, Any]:
    """
    Crée une session Checkout Stripe pour le panier soumis.
    - Entrée JSON: {"cart": "[{\"id\": \"prod_...\", \"quantity\": 2}]"} ou {"items": [{"id": ..., "quantity": ...}]}
    - Sécurité: rate limit (10 req / 60s par IP), prix relus chez Stripe
    - Réponse: {"id": "cs_...", "url": "https://checkout.stripe.com/..."}
    - Erreurs: 400 panier invalide, 403 boutique fermée, 502 erreur Stripe (message générique)
    """
    session = payments_checkout.build_session(body.payload(), base_url=_base_url(request), catalog=catalog)
    return session

@router.post(
    "/checkout/form",
    dependencies=[Depends(optional_rate_limit(times=10, seconds=60))],
    include_in_schema=False,
)
def create_checkout_session_form(
    request: Request,
    cart: str = Form(""),
    catalog: CatalogCache = Depends(get_catalog),
):
    """Variante formulaire HTML: même validation, puis redirection 303 vers la page Stripe."""
    session = payments_checkout.build_session(cart, base_url=_base_url(request), catalog=catalog)
    return RedirectResponse(url=session["url"], status_code=HTTP_303_SEE_OTHER)

@webhook_router.api_route("/webhook", methods=["GET", "POST", "PUT"], include_in_schema=False)
async def stripe_webhook(request: Request):
    """
    Webhook Stripe: corps texte brut et code HTTP seulement (Stripe n'exploite pas le corps).
    Toute la logique (portes, déduplication, notifications) est dans payments.webhook.
    """
    payload = await request.body()
    result = await run_in_threadpool(
        payments_webhook.handle_delivery,
        request.method,
        request.headers.get("content-type"),
        request.headers.get("stripe-signature"),
        payload,
    )
    return PlainTextResponse(result.message, status_code=result.status_code)

