"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Lance le rafraîchissement périodique du catalogue (tâche asyncio, arrêtée à l'extinction).
- Variables d'environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement le rate limiting (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l'init échoue
  - DISABLE_CATALOG_REFRESH=1: pas de tâche de rafraîchissement (tests)
"""
import asyncio
import contextlib
import logging
import os
from contextlib import asynccontextmanager
import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter
from starlette.concurrency import run_in_threadpool

from stripe_checkout import config
from stripe_checkout.catalog import catalog_cache

logger = logging.getLogger("uvicorn.error")

async def _init_rate_limiter(app: FastAPI) -> None:
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        return
    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            from fakeredis.aioredis import FakeRedis  # tests only
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning("Rate limiting falling back to local in-memory due to init error: %s", e)
        else:
            app.state.rate_limit_enabled = False
            logger.warning("Rate limiting disabled due to init error: %s", e)

async def refresh_catalog_periodically(interval_seconds: int) -> None:
    """Rafraîchit catalogue + tarif de livraison à intervalle fixe; une erreur n'arrête pas la boucle."""
    while True:
        try:
            result = await run_in_threadpool(catalog_cache.refresh)
            logger.info("catalog.refresh products=%s shipping_rate=%s", result["products"], result["shipping_rate"])
        except Exception:
            logger.exception("catalog.refresh failed")
        await asyncio.sleep(interval_seconds)

@asynccontextmanager
async def lifespan(app: FastAPI):
    await _init_rate_limiter(app)

    refresh_task = None
    if os.getenv("DISABLE_CATALOG_REFRESH") != "1" and config.CATALOG_REFRESH_INTERVAL_SECONDS > 0:
        refresh_task = asyncio.create_task(refresh_catalog_periodically(config.CATALOG_REFRESH_INTERVAL_SECONDS))
        logger.info("Catalog refresh scheduled every %ss", config.CATALOG_REFRESH_INTERVAL_SECONDS)
    try:
        yield
    finally:
        if refresh_task is not None:
            refresh_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await refresh_task
        if getattr(FastAPILimiter, "redis", None) is not None:
            await FastAPILimiter.close()
