"""
Logique de prix pure (pas de Stripe, pas de DB).
- Agrège le panier demandé, fige les prix du catalogue (snapshot) et calcule le total.
- Tous les montants sont des Decimal arrondis au centime.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping

from fooddelivery.errors import InvalidInput, NotFound

CENT = Decimal("0.01")
# Plafond par article; le total est borné par orders.total_amount numeric(10, 2)
MAX_QUANTITY_PER_ITEM = 99
MAX_ORDER_TOTAL = Decimal("99999999.99")

# module fooddelivery.orders.pricing
def to_decimal(value: Any) -> Decimal:
    """
    Convertit un montant (str|float|int|Decimal) en Decimal arrondi au centime.
    - Passe par str() pour éviter les artefacts binaires des float (12.1 -> 12.10, pas 12.0999...).
    """
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInput(f"Montant invalide: {value!r}")

def to_minor_units(amount: Any) -> int:
    """Montant en unités mineures (centimes/pence) pour Stripe: 12.345 -> 1235."""
    return int((to_decimal(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))

def aggregate_quantities(items: List[Mapping[str, Any]]) -> Dict[str, int]:
    """
    Agrège un panier brut [{menu_item_id, quantity}, ...] en {menu_item_id: total_quantity}.
    - Soulève InvalidInput si le panier est vide, si un id manque ou si une quantité est <= 0.
    - InvalidInput aussi si la quantité cumulée d'un article dépasse MAX_QUANTITY_PER_ITEM.
    """
    if not items:
        raise InvalidInput("Panier vide")
    quantities: Dict[str, int] = {}
    for it in items:
        menu_item_id = str(it.get("menu_item_id") or "").strip()
        qty = it.get("quantity")
        if not menu_item_id:
            raise InvalidInput("Article sans identifiant")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise InvalidInput(f"Quantité invalide pour l'article {menu_item_id}")
        quantities[menu_item_id] = quantities.get(menu_item_id, 0) + qty
        if quantities[menu_item_id] > MAX_QUANTITY_PER_ITEM:
            raise InvalidInput(f"Quantité maximale ({MAX_QUANTITY_PER_ITEM}) dépassée pour l'article {menu_item_id}")
    return quantities

def snapshot_lines(
    restaurant: Mapping[str, Any],
    menu_items: Mapping[str, Mapping[str, Any]],
    quantities: Mapping[str, int],
) -> List[Dict[str, Any]]:
    """
    Fige le prix du catalogue pour chaque ligne demandée.
    - NotFound si un article est inconnu ou n'appartient pas au restaurant.
    - InvalidInput si un article est marqué indisponible.
    Retour: [{menu_item_id, name, quantity, price(Decimal)}]
    """
    lines: List[Dict[str, Any]] = []
    for menu_item_id, qty in quantities.items():
        item = menu_items.get(menu_item_id)
        if not item or str(item.get("restaurant_id")) != str(restaurant.get("id")):
            raise NotFound(f"Article {menu_item_id} introuvable")
        if item.get("is_available") is False:
            raise InvalidInput(f"Article {item.get('name') or menu_item_id} indisponible")
        lines.append({
            "menu_item_id": menu_item_id,
            "name": item.get("name") or "Article",
            "quantity": qty,
            "price": to_decimal(item.get("price")),
        })
    return lines

def compute_total(lines: List[Mapping[str, Any]], delivery_price: Any) -> Decimal:
    """Total = somme(quantité x prix figé) + frais de livraison du restaurant.
    - InvalidInput si le total dépasse MAX_ORDER_TOTAL.
    """
    subtotal = sum((Decimal(line["quantity"]) * line["price"] for line in lines), Decimal("0"))
    total = (subtotal + to_decimal(delivery_price or 0)).quantize(CENT, rounding=ROUND_HALF_UP)
    if total > MAX_ORDER_TOTAL:
        raise InvalidInput("Montant de commande trop élevé")
    return total
