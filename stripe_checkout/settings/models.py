# module stripe_checkout.settings.models
from typing import List
from pydantic import BaseModel, Field, field_validator

SECRET_KEYS = ("stripe_secret_key", "stripe_webhook_secret")

class StoreSettings(BaseModel):
    """
    Réglages de la boutique, validés à la frontière (table 'settings' + valeurs .env par défaut).
    """
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_shipping_rate_id: str = ""
    stripe_product_ids: List[str] = Field(default_factory=list)
    max_quantity_per_item: int = Field(10, ge=1, le=99)
    stripe_enable_invoice_creation: bool = False

    consent_message: str = ""
    shipping_message: str = ""
    submit_message: str = ""
    receipt_message: str = ""

    stripe_timezone: str = "America/Denver"
    admin_email: str = ""

    enable_groupme_notifications: bool = False
    groupme_bot_id: str = ""
    groupme_group_id: str = ""

    stripe_disable_store: bool = False
    stripe_store_disabled_message: str = "The store is currently closed."

    site_name: str = ""
    site_url: str = ""

    @field_validator("stripe_product_ids", mode="before")
    @classmethod
    def _split_ids(cls, v):
        # Un id par ligne (ou séparés par des virgules), doublons retirés, ordre conservé
        if isinstance(v, str):
            v = v.replace(",", "\n").splitlines()
        seen: List[str] = []
        for item in v or []:
            item = str(item).strip()
            if item and item not in seen:
                seen.append(item)
        return seen

    @field_validator(
        "stripe_enable_invoice_creation",
        "enable_groupme_notifications",
        "stripe_disable_store",
        mode="before",
    )
    @classmethod
    def _parse_flag(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "on")
        return bool(v)

    @field_validator("max_quantity_per_item", mode="before")
    @classmethod
    def _parse_max(cls, v):
        if isinstance(v, str):
            v = v.strip() or 10
        return v
