"""Inventory items that rules can give to or take from the player."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

ItemSlot = Literal["top", "bottom", "underwear", "panties", "shoes", "socks", "accessory"]


class Item(BaseModel):
    """A single inventory item."""

    id: str
    """Unique identifier; inventories never hold two items with the same id."""

    name: str
    description: str = ""
    icon: str = "Package"

    slot: ItemSlot | None = None
    """Equipment slot the item can be worn in, if any."""
