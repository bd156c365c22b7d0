# module stripe_checkout.utils.ttl_cache
"""
Cache clé/valeur en mémoire avec expiration par entrée.
Utilisé pour le catalogue, le tarif de livraison, les réglages et les ids d'événements webhook déjà vus.
Pas de verrou: les écritures concurrentes sont des remplacements idempotents (dernier écrivain gagnant).
"""
import time
from typing import Any, Callable, Dict, Optional, Tuple

_MISSING = object()

class TTLCache:
    """
    Les entrées expirées sont purgées à la lecture de leur clé, et toutes les
    `sweep_every` écritures (une clé écrite une seule fois, comme un id d'événement, finit donc libérée).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = 100):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._sweep_every = max(1, int(sweep_every))
        self._writes = 0

    def size(self) -> int:
        """Nombre d'entrées stockées, expirées comprises tant qu'elles n'ont pas été purgées."""
        return len(self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return default
        return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._writes += 1
        if self._writes >= self._sweep_every:
            self.purge_expired()
        self._entries[key] = (self._clock() + float(ttl_seconds), value)

    def purge_expired(self) -> int:
        """Retire toutes les entrées expirées; retourne leur nombre."""
        self._writes = 0
        now = self._clock()
        expired = [k for k, (expires_at, _) in list(self._entries.items()) if now >= expires_at]
        for k in expired:
            self._entries.pop(k, None)
        return len(expired)

    def add(self, key: str, ttl_seconds: float) -> bool:
        """Marque une clé comme vue. Retourne False si elle l'était déjà (et non expirée)."""
        if self.get(key, _MISSING) is not _MISSING:
            return False
        self.set(key, True, ttl_seconds)
        return True

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def expires_in(self, key: str) -> Optional[float]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return max(0.0, entry[0] - self._clock())
