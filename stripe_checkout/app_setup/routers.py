"""
Registre central des routers (catalogue, paiements, webhook Stripe, health).
"""
from fastapi import FastAPI
from stripe_checkout.catalog import views as catalog_views
from stripe_checkout.payments import views as payments_views
from stripe_checkout.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(catalog_views.router)
    app.include_router(payments_views.router)
    # Webhook Stripe (chemin public configuré côté Stripe)
    app.include_router(payments_views.webhook_router)
    # Health & monitoring
    app.include_router(health_router)
