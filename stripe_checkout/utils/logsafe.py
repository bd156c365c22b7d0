MAX_LOG_LENGTH = 100

def safe_log_data(value, length: int = MAX_LOG_LENGTH) -> str:
    """
    Tronque une valeur avant de la journaliser (payload/erreur Stripe).
    Les retours à la ligne sont aplatis pour garder une entrée de log par ligne.
    """
    text = str(value if value is not None else "")
    text = " ".join(text.split())
    return text[:length]
