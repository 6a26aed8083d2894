# module fooddelivery.orders.models
"""Statuts de commande, graphe de transitions et schémas d'entrée.

Cycle de vie: pending_payment -> paid -> preparing -> out_for_delivery -> delivered,
'cancelled' atteignable depuis tout statut non terminal.
Les transitions ne vont que vers l'avant (un statut peut être sauté, jamais rejoué).
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


FORWARD_SEQUENCE = [
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PAID,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]
TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def parse_status(value) -> Optional[OrderStatus]:
    """Convertit une valeur brute en OrderStatus, None si inconnue."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value or "").strip())
    except ValueError:
        return None


def is_reachable(current: OrderStatus, new: OrderStatus) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if new == OrderStatus.CANCELLED:
        return True
    return FORWARD_SEQUENCE.index(new) > FORWARD_SEQUENCE.index(current)


def is_at_least_paid(status: OrderStatus) -> bool:
    """Vrai si le paiement est déjà acquis (paid ou un statut ultérieur hors annulation)."""
    if status == OrderStatus.CANCELLED:
        return False
    return FORWARD_SEQUENCE.index(status) >= FORWARD_SEQUENCE.index(OrderStatus.PAID)


# --- Schémas d'entrée (validés à la frontière HTTP) ---

class OrderItemRequest(BaseModel):
    # Aucun champ prix: le prix vient toujours du catalogue
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    menu_item_id: str = Field(alias="menuItemId", min_length=1)
    quantity: int


class DeliveryDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address_line1: str = Field(alias="addressLine1", min_length=1)
    address_line2: Optional[str] = Field(default=None, alias="addressLine2")
    city: Optional[str] = None
    country: Optional[str] = None


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    restaurant_id: str = Field(alias="restaurantId", min_length=1)
    items: List[OrderItemRequest]
    delivery_details: Optional[DeliveryDetails] = Field(default=None, alias="deliveryDetails")


class StatusUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: str
