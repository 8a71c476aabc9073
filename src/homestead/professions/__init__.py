"""Profession behaviours (strategy interface, built-ins and registry)."""

from homestead.professions.base import ProfessionBehavior, WorkResult
from homestead.professions.farming import FarmerSystem
from homestead.professions.harvesting import (
    HarvestingProfession,
    HunterSystem,
    LumberjackSystem,
    MinerSystem,
)
from homestead.professions.registry import ProfessionRegistry, create_default_registry

__all__ = [
    "ProfessionBehavior",
    "WorkResult",
    "HarvestingProfession",
    "LumberjackSystem",
    "MinerSystem",
    "HunterSystem",
    "FarmerSystem",
    "ProfessionRegistry",
    "create_default_registry",
]
