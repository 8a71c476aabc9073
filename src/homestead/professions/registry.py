"""
Profession registry.

Resolves a :class:`Profession` to its behaviour once, at NPC creation or
reassignment, instead of re-dispatching on the profession every tick.

Usage::

    registry = ProfessionRegistry()
    registry.register(LumberjackSystem(config, inventory, houses, trees))
    behavior = registry.get(Profession.LUMBERJACK)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homestead.core.agent import Profession
from homestead.professions.base import ProfessionBehavior
from homestead.professions.farming import FarmerSystem
from homestead.professions.harvesting import HunterSystem, LumberjackSystem, MinerSystem

if TYPE_CHECKING:
    from homestead.core.config import SimulationConfig
    from homestead.core.house import HouseDirectory
    from homestead.core.inventory import CarryCapacityModel
    from homestead.core.resources import AnimalRegistry, StoneRegistry, TreeRegistry


class ProfessionRegistry:
    """Maps each profession to the single behaviour instance that serves it."""

    def __init__(self) -> None:
        self._behaviors: dict[Profession, ProfessionBehavior] = {}

    def register(self, behavior: ProfessionBehavior) -> None:
        if behavior.profession == Profession.NONE:
            raise ValueError("Cannot register a behaviour for Profession.NONE")
        self._behaviors[behavior.profession] = behavior

    def unregister(self, profession: Profession) -> None:
        if profession not in self._behaviors:
            raise KeyError(f"Profession '{profession.value}' is not registered")
        del self._behaviors[profession]

    def get(self, profession: Profession) -> ProfessionBehavior | None:
        """Behaviour for *profession*, or None (e.g. for NONE)."""
        return self._behaviors.get(profession)

    def __contains__(self, profession: object) -> bool:
        return profession in self._behaviors

    @property
    def registered(self) -> list[Profession]:
        return list(self._behaviors.keys())


def create_default_registry(
    config: SimulationConfig,
    inventory: CarryCapacityModel,
    houses: HouseDirectory,
    trees: TreeRegistry,
    stones: StoneRegistry,
    animals: AnimalRegistry,
) -> ProfessionRegistry:
    """Registry with the four built-in professions wired to their registries."""
    registry = ProfessionRegistry()
    registry.register(LumberjackSystem(config, inventory, houses, trees))
    registry.register(MinerSystem(config, inventory, houses, stones))
    registry.register(HunterSystem(config, inventory, houses, animals))
    registry.register(FarmerSystem(config, inventory, houses))
    return registry
