"""
Logique panier pure (pas de Stripe, pas de DB).
Le panier vit côté client et est renvoyé en entier au checkout: ici on le reconstruit et on le valide.
"""
import json
import re
from typing import Any, Dict, List
from fastapi import HTTPException

_DIGITS = re.compile(r"[0-9]{1,9}")

class CartLimitError(ValueError):
    def __init__(self, product_id: str, max_quantity: int):
        self.product_id = product_id
        self.max_quantity = max_quantity
        super().__init__(f"Quantité maximale de {max_quantity} atteinte pour le produit {product_id}")

class CartLine:
    __slots__ = ("product_id", "quantity")

    def __init__(self, product_id: str, quantity: int):
        self.product_id = product_id
        self.quantity = quantity

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.product_id, "quantity": self.quantity}

    def __repr__(self) -> str:
        return f"CartLine({self.product_id!r}, {self.quantity})"

class Cart:
    """
    Panier {product_id: CartLine}, plafonné par article.
    Un ajout qui dépasse le plafond est refusé (CartLimitError), jamais ramené au plafond.
    """

    def __init__(self, max_quantity_per_item: int):
        if max_quantity_per_item < 1:
            raise ValueError("max_quantity_per_item doit être >= 1")
        self.max_quantity_per_item = max_quantity_per_item
        self._lines: Dict[str, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._lines

    def quantity(self, product_id: str) -> int:
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def add(self, product_id: str, quantity: int = 1) -> CartLine:
        if quantity < 1:
            raise ValueError(f"Quantité invalide pour le produit {product_id}")
        new_quantity = self.quantity(product_id) + quantity
        if new_quantity > self.max_quantity_per_item:
            raise CartLimitError(product_id, self.max_quantity_per_item)
        line = self._lines.setdefault(product_id, CartLine(product_id, 0))
        line.quantity = new_quantity
        return line

    def set_quantity(self, product_id: str, quantity: int) -> CartLine:
        if quantity < 1:
            raise ValueError(f"Quantité invalide pour le produit {product_id}")
        if quantity > self.max_quantity_per_item:
            raise CartLimitError(product_id, self.max_quantity_per_item)
        line = self._lines.setdefault(product_id, CartLine(product_id, 0))
        line.quantity = quantity
        return line

    def remove(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def to_payload(self) -> List[Dict[str, Any]]:
        return [line.to_dict() for line in self._lines.values()]

    def quantities(self) -> Dict[str, int]:
        return {pid: line.quantity for pid, line in self._lines.items()}

# module stripe_checkout.payments.cart
def parse_cart_payload(raw: Any) -> List[Dict[str, Any]]:
    """
    Accepte le panier sous forme de chaîne JSON ('[{"id": ..., "quantity": ...}]') ou de liste déjà décodée.
    - Soulève HTTPException(400) si le panier est absent, vide ou mal formé.
    """
    if raw is None or raw == "":
        raise HTTPException(status_code=400, detail="Aucun panier fourni")
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (ValueError, TypeError):
            raise HTTPException(status_code=400, detail="Panier mal formé")
    if not isinstance(raw, list) or not all(isinstance(it, dict) for it in raw):
        raise HTTPException(status_code=400, detail="Panier mal formé")
    if not raw:
        raise HTTPException(status_code=400, detail="Panier vide")
    return raw

def _line_quantity(item: Dict[str, Any], product_id: str) -> int:
    """
    Entier strict: int (hors bool) ou chaîne de chiffres.
    Flottants (1.5, 10.9, Infinity, NaN) refusés, jamais tronqués.
    """
    qty = item.get("quantity")
    if isinstance(qty, str) and _DIGITS.fullmatch(qty.strip()):
        qty = int(qty.strip())
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
        raise HTTPException(status_code=400, detail=f"Quantité invalide pour le produit {product_id}")
    return qty

def aggregate_quantities(items: List[Dict[str, Any]], max_quantity_per_item: int) -> Dict[str, int]:
    """
    Agrège un panier brut [{id, quantity}, ...] en {product_id: total_quantity}.
    - Chaque ligne est d'abord vérifiée contre max_quantity_per_item (valeur serveur, pas celle du client).
    - Les ids en double sont ensuite additionnés puis la somme est revérifiée.
    - Première violation => HTTPException(400) pour toute la requête, sans ajustement silencieux.
    """
    if not items:
        raise HTTPException(status_code=400, detail="Panier vide")

    lines = []
    for it in items:
        product_id = str(it.get("id") or "").strip()
        if not product_id:
            raise HTTPException(status_code=400, detail="Chaque article doit contenir un champ 'id'")
        qty = _line_quantity(it, product_id)
        if qty > max_quantity_per_item:
            raise HTTPException(status_code=400, detail=str(CartLimitError(product_id, max_quantity_per_item)))
        lines.append((product_id, qty))

    cart = Cart(max_quantity_per_item)
    for product_id, qty in lines:
        try:
            cart.add(product_id, qty)
        except CartLimitError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return cart.quantities()
