# module stripe_checkout.app
"""
Instance FastAPI unique de l'application (construite par app_setup.factory).
"""
from stripe_checkout.app_setup.factory import create_app

app = create_app()
