"""
Houses and the house directory.

A house stores the raw resources its resident brings home. The house owns
the resident link (``npc_id``); the NPC keeps only the inverse ``house_id``.
The directory keeps both sides in sync when it is given the NPC.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

from homestead.core.grid import Position

if TYPE_CHECKING:
    from homestead.core.agent import NPC

logger = logging.getLogger(__name__)


class HouseType(str, Enum):
    FARMER = "farmer"
    LUMBERJACK = "lumberjack"
    MINER = "miner"
    HUNTER = "hunter"


HOUSE_NAMES: dict[HouseType, str] = {
    HouseType.FARMER: "Farmer House",
    HouseType.LUMBERJACK: "Lumberjack House",
    HouseType.MINER: "Miner House",
    HouseType.HUNTER: "Hunter Lodge",
}


@dataclass
class House:
    id: str
    type: HouseType
    position: Position
    max_storage_capacity: int
    inventory: dict[str, int] = field(default_factory=lambda: {
        "wood": 0, "stone": 0, "food": 0,
    })
    rotation: int = 0                  # 0, 90, 180, 270 degrees
    npc_id: str | None = None

    @property
    def stored_total(self) -> int:
        return sum(self.inventory.values())

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.max_storage_capacity - self.stored_total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": HOUSE_NAMES.get(self.type, self.type.value),
            "position": self.position.to_dict(),
            "inventory": dict(self.inventory),
            "max_storage_capacity": self.max_storage_capacity,
            "npc_id": self.npc_id,
        }


class HouseDirectory:
    """Lookup and storage operations over the village's houses."""

    def __init__(self, storage_capacity: int = 200) -> None:
        self.storage_capacity = storage_capacity
        self._houses: dict[str, House] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._houses)

    def __iter__(self):
        return iter(list(self._houses.values()))

    def add_house(
        self,
        house_type: HouseType | str,
        position: Position,
        rotation: int = 0,
        storage_capacity: int | None = None,
    ) -> str:
        hid = f"house-{self._next_id:04d}"
        self._next_id += 1
        self._houses[hid] = House(
            id=hid,
            type=HouseType(house_type),
            position=position,
            rotation=rotation,
            max_storage_capacity=storage_capacity or self.storage_capacity,
        )
        logger.info("House %s (%s) built at %s", hid, HouseType(house_type).value, position)
        return hid

    def remove_house(self, house_id: str, npc: NPC | None = None) -> bool:
        house = self._houses.pop(house_id, None)
        if house is None:
            return False
        if npc is not None and npc.house_id == house_id:
            npc.house_id = None
        return True

    def get(self, house_id: str | None) -> House | None:
        if house_id is None:
            return None
        return self._houses.get(house_id)

    def get_at(self, position: Position) -> House | None:
        for house in self._houses.values():
            if house.position == position:
                return house
        return None

    def home_position(self, npc: NPC) -> Position | None:
        house = self.get(npc.house_id)
        if house is None:
            if npc.house_id is not None:
                logger.warning("NPC %s references missing house %s", npc.id, npc.house_id)
            return None
        return house.position

    # ------------------------------------------------------------------
    # Residency
    # ------------------------------------------------------------------

    def assign_npc(self, house_id: str, npc: NPC) -> bool:
        """Make *npc* the resident of *house_id*, evicting any previous link."""
        house = self._houses.get(house_id)
        if house is None:
            return False
        if npc.house_id and npc.house_id != house_id:
            self.unassign_npc(npc)
        house.npc_id = npc.id
        npc.house_id = house_id
        return True

    def unassign_npc(self, npc: NPC) -> bool:
        house = self.get(npc.house_id)
        npc.house_id = None
        if house is None:
            return False
        if house.npc_id == npc.id:
            house.npc_id = None
        return True

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def add_resources(self, house_id: str, amounts: dict[str, int]) -> bool:
        """
        Store *amounts* in the house, all-or-nothing.

        Returns False (and stores nothing) if the total would exceed the
        house's remaining storage capacity.
        """
        house = self._houses.get(house_id)
        if house is None:
            return False
        incoming = sum(q for q in amounts.values() if q > 0)
        if incoming > house.remaining_capacity:
            logger.warning(
                "House %s storage full (%d/%d), refused %d units",
                house_id, house.stored_total, house.max_storage_capacity, incoming,
            )
            return False
        for resource, qty in amounts.items():
            if qty > 0:
                house.inventory[resource] = house.inventory.get(resource, 0) + qty
        return True
