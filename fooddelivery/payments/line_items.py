"""
Construction des line_items Stripe à partir d'une commande (pas d'appel Stripe, pas de DB).
"""
from decimal import Decimal
from typing import Any, Dict, List, Mapping

from fooddelivery.config import STRIPE_CURRENCY
from fooddelivery.errors import InvalidInput
from fooddelivery.orders.pricing import to_decimal, to_minor_units

# module fooddelivery.payments.line_items
def _line(name: str, amount: Any, quantity: int, currency: str) -> Dict[str, Any]:
    return {
        "quantity": quantity,
        "price_data": {
            "currency": currency,
            "unit_amount": to_minor_units(amount),
            "product_data": {"name": name},
        },
    }

def to_line_items(order: Mapping[str, Any], currency: str = STRIPE_CURRENCY) -> List[Dict[str, Any]]:
    """
    Une ligne par order_item (nom, prix figé en unités mineures, quantité)
    + une ligne 'Frais de livraison'.
    - Les frais de livraison sont déduits du total persisté (total - lignes): le montant
      facturé est exactement total_amount, même si le restaurant a changé ses frais depuis.
    - InvalidInput si la commande n'a aucune ligne ou un total incohérent.
    """
    items = order.get("order_items") or []
    if not items:
        raise InvalidInput("Commande sans article")

    line_items: List[Dict[str, Any]] = []
    subtotal = Decimal("0")
    for item in items:
        menu = item.get("menu_items") or {}
        qty = int(item.get("quantity") or 0)
        price = to_decimal(item.get("price"))
        line_items.append(_line(menu.get("name") or "Article", price, qty, currency))
        subtotal += price * qty

    delivery_fee = to_decimal(order.get("total_amount")) - subtotal
    if delivery_fee < 0:
        raise InvalidInput("Total de commande incohérent")
    restaurant_name = (order.get("restaurants") or {}).get("name")
    label = f"Frais de livraison - {restaurant_name}" if restaurant_name else "Frais de livraison"
    line_items.append(_line(label, delivery_fee, 1, currency))
    return line_items
