"""
Inventory and carry-capacity model.

Items have a weight and a stack limit. An NPC may carry up to its base
capacity plus the bonus of any equipped capacity items (a backpack adds
+20). Limits are enforced when items are added, never retroactively:
unequipping a backpack can leave an NPC overweight, which only slows it
down and blocks further additions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from homestead.core.results import AddItemResult, FailureReason

if TYPE_CHECKING:
    from homestead.core.agent import NPC
    from homestead.core.config import SimulationConfig


@dataclass(frozen=True)
class ItemDefinition:
    id: str
    name: str
    type: str               # resource, food, tool, equipment
    weight: float
    max_stack: int
    value: int = 0
    capacity_bonus: float = 0.0
    house_resource: str | None = None   # storage bucket when deposited at home

    @property
    def is_equipment(self) -> bool:
        return self.type == "equipment"

    @classmethod
    def from_dict(cls, item_id: str, d: dict[str, Any]) -> ItemDefinition:
        return cls(
            id=item_id,
            name=d.get("name", item_id),
            type=d.get("type", "resource"),
            weight=float(d.get("weight", 0.0)),
            max_stack=int(d.get("max_stack", 1)),
            value=int(d.get("value", 0)),
            capacity_bonus=float(d.get("capacity_bonus", 0.0)),
            house_resource=d.get("house_resource"),
        )


class CarryCapacityModel:
    """
    Weighted, stack-limited inventories.

    Stateless apart from the item catalog: all inventory state lives on the
    NPC, so the model can be shared by every profession and the scheduler.
    """

    def __init__(self, config: SimulationConfig) -> None:
        self.base_capacity = float(config.base_carry_capacity)
        self.near_capacity_ratio = float(config.near_capacity_ratio)
        self.catalog: dict[str, ItemDefinition] = {
            item_id: ItemDefinition.from_dict(item_id, d)
            for item_id, d in config.item_catalog.items()
        }

    def item(self, item_id: str) -> ItemDefinition | None:
        return self.catalog.get(item_id)

    # ------------------------------------------------------------------
    # Derived queries
    # ------------------------------------------------------------------

    def total_weight(self, npc: NPC) -> float:
        total = 0.0
        for item_id, qty in npc.inventory.items():
            item = self.catalog.get(item_id)
            if item is not None:
                total += item.weight * qty
        return total

    def max_carry_weight(self, npc: NPC) -> float:
        bonus = 0.0
        for item_id in npc.equipped:
            item = self.catalog.get(item_id)
            if item is not None:
                bonus += item.capacity_bonus
        return self.base_capacity + bonus

    def is_overweight(self, npc: NPC) -> bool:
        return self.total_weight(npc) > self.max_carry_weight(npc)

    def is_near_capacity(self, npc: NPC) -> bool:
        return self.total_weight(npc) >= self.max_carry_weight(npc) * self.near_capacity_ratio

    def remaining_capacity(self, npc: NPC) -> float:
        return max(0.0, self.max_carry_weight(npc) - self.total_weight(npc))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, npc: NPC, item_id: str, qty: int) -> AddItemResult:
        """Add *qty* of *item_id*; rejected (never clamped) if a limit is exceeded."""
        item = self.catalog.get(item_id)
        if item is None:
            return AddItemResult(False, FailureReason.UNKNOWN_ITEM, f"Unknown item '{item_id}'")
        if qty <= 0:
            return AddItemResult(False, FailureReason.INVALID_QUANTITY, "Quantity must be positive")

        current = npc.inventory.get(item_id, 0)
        if current + qty > item.max_stack:
            return AddItemResult(
                False, FailureReason.STACK_LIMIT_EXCEEDED,
                f"{item.name} stack limit is {item.max_stack}",
            )

        new_weight = self.total_weight(npc) + item.weight * qty
        max_weight = self.max_carry_weight(npc)
        if new_weight > max_weight:
            return AddItemResult(
                False, FailureReason.OVER_CAPACITY,
                f"Too heavy: {new_weight:.1f}/{max_weight:.1f}",
            )

        npc.inventory[item_id] = current + qty
        return AddItemResult(True, message=f"+{qty} {item.name}")

    def remove_item(self, npc: NPC, item_id: str, qty: int) -> bool:
        """Remove *qty*; returns False without mutating if not enough is held."""
        current = npc.inventory.get(item_id, 0)
        if qty <= 0 or current < qty:
            return False
        remaining = current - qty
        if remaining:
            npc.inventory[item_id] = remaining
        else:
            del npc.inventory[item_id]
            if item_id in npc.equipped:
                npc.equipped.remove(item_id)
        return True

    def equip(self, npc: NPC, item_id: str) -> AddItemResult:
        item = self.catalog.get(item_id)
        if item is None:
            return AddItemResult(False, FailureReason.UNKNOWN_ITEM, f"Unknown item '{item_id}'")
        if not item.is_equipment:
            return AddItemResult(False, FailureReason.NOT_EQUIPPABLE, f"{item.name} cannot be equipped")
        if npc.inventory.get(item_id, 0) <= 0:
            return AddItemResult(False, FailureReason.INSUFFICIENT_QUANTITY, f"No {item.name} carried")
        if item_id not in npc.equipped:
            npc.equipped.append(item_id)
        return AddItemResult(True, message=f"Equipped {item.name}")

    def unequip(self, npc: NPC, item_id: str) -> bool:
        if item_id not in npc.equipped:
            return False
        npc.equipped.remove(item_id)
        return True

    def house_deposits(self, npc: NPC) -> dict[str, tuple[str, int]]:
        """
        Raw resources the NPC would hand over at home.

        Returns ``{item_id: (house_resource, qty)}`` for every carried item
        that has a storage bucket; tools and equipment are kept.
        """
        deposits: dict[str, tuple[str, int]] = {}
        for item_id, qty in npc.inventory.items():
            item = self.catalog.get(item_id)
            if item is None or item.house_resource is None or qty <= 0:
                continue
            deposits[item_id] = (item.house_resource, qty)
        return deposits
