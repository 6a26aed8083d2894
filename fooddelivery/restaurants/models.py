from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MenuItemInput(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(ge=0, decimal_places=2)
    category: Optional[str] = None
    is_available: bool = Field(default=True, alias="isAvailable")


class RestaurantCreate(BaseModel):
    """Création: un seul restaurant par propriétaire."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str = Field(min_length=1)
    city: str = Field(min_length=1)
    country: str = Field(min_length=1)
    delivery_price: Decimal = Field(ge=0, decimal_places=2, alias="deliveryPrice")
    estimated_time: Optional[int] = Field(default=None, ge=0, alias="estimatedTime")
    cuisines: List[str] = Field(default_factory=list)
    is_available: bool = Field(default=True, alias="isAvailable")
    menu_items: List[MenuItemInput] = Field(default_factory=list, alias="menuItems")


class RestaurantUpdate(BaseModel):
    """Mise à jour partielle: seuls les champs fournis sont écrits."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    country: Optional[str] = Field(default=None, min_length=1)
    delivery_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2, alias="deliveryPrice")
    estimated_time: Optional[int] = Field(default=None, ge=0, alias="estimatedTime")
    cuisines: Optional[List[str]] = None
    is_available: Optional[bool] = Field(default=None, alias="isAvailable")
    menu_items: Optional[List[MenuItemInput]] = Field(default=None, alias="menuItems")
