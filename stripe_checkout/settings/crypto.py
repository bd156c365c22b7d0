"""
Chiffrement symétrique des secrets stockés dans la table des réglages.
Fernet: AES-CBC + HMAC, IV aléatoire par valeur, jeton base64 (IV + texte chiffré).
"""
import logging
from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

def generate_key() -> str:
    """Nouvelle clé aléatoire (base64 urlsafe, 32 octets)."""
    return Fernet.generate_key().decode("ascii")

def encrypt(value: str, key: str) -> str:
    if not value:
        return ""
    return Fernet(key.encode("ascii")).encrypt(value.encode("utf-8")).decode("ascii")

def decrypt(token: str, key: str) -> str:
    """
    Déchiffre un jeton; retourne "" si vide, malformé ou chiffré avec une autre clé.
    """
    if not token:
        return ""
    try:
        return Fernet(key.encode("ascii")).decrypt(token.encode("ascii")).decode("utf-8")
    except (InvalidToken, ValueError, UnicodeError):
        logger.warning("settings.crypto.decrypt failed (clé différente ou valeur corrompue)")
        return ""
