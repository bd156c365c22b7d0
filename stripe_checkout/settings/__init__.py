"""
Module 'settings': magasin clé/valeur des réglages de la boutique (secrets chiffrés).
"""

from .models import StoreSettings, SECRET_KEYS
from .service import load_settings, save_setting, clear_settings_cache, get_or_create_encryption_key

__all__ = [
    "StoreSettings",
    "SECRET_KEYS",
    "load_settings",
    "save_setting",
    "clear_settings_cache",
    "get_or_create_encryption_key",
]
