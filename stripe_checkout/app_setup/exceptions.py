"""
Gestionnaires d'exceptions.
- HTTPException => JSON {"detail": ...} pour l'API.
- Formulaire de checkout (HTML): redirection vers la page panier avec le message (?error=...).
"""
import urllib.parse
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from stripe_checkout.config import CHECKOUT_CANCEL_PATH

FORM_CHECKOUT_PATH = "/api/v1/payments/checkout/form"

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        accept = (request.headers.get("accept") or "").lower()
        if request.url.path == FORM_CHECKOUT_PATH and "text/html" in accept:
            msg = urllib.parse.quote_plus(str(exc.detail or "Erreur"))
            sep = "&" if "?" in CHECKOUT_CANCEL_PATH else "?"
            return RedirectResponse(url=f"{CHECKOUT_CANCEL_PATH}{sep}error={msg}", status_code=HTTP_303_SEE_OTHER)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)
