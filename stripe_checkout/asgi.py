"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn -k uvicorn.workers.UvicornWorker) importe `stripe_checkout.asgi:app`.
- Toute la configuration FastAPI (routes, middlewares, lifespan) est centralisée dans stripe_checkout.app_setup.
"""

from stripe_checkout.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "stripe_checkout.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
