"""
Harvestable resource registries (trees, stones, animals).

Each registry owns the canonical set of one kind of world object. Damage
drives a resource into a terminal "destroying" phase; it stays in the
registry (so renderers can play the fall/break animation) but is excluded
from every availability query, and is swept out once the despawn delay has
elapsed. Removal is timestamp-driven via :meth:`ResourceRegistry.update`;
there are no timers or callbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator

import numpy as np

from homestead.core.grid import (
    Position,
    is_valid_position,
    manhattan_distance,
    valid_neighbors,
)

logger = logging.getLogger(__name__)


@dataclass
class HarvestableResource:
    """A tree, stone or animal that can be damaged and destroyed."""

    id: str
    kind: str
    type: str
    position: Position
    health: int
    max_health: int
    is_being_destroyed: bool = False
    destruction_start_time: int | None = None
    hit_start_time: int | None = None

    # Animals only
    meat_value: int = 0
    movement_speed_ms: int = 0
    last_move_time: int = 0

    @property
    def is_available(self) -> bool:
        """Live and targetable: not destroying and health above zero."""
        return not self.is_being_destroyed and self.health > 0

    def is_hit_animating(self, now: int, duration: int) -> bool:
        return self.hit_start_time is not None and now - self.hit_start_time < duration

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "type": self.type,
            "position": self.position.to_dict(),
            "health": self.health,
            "max_health": self.max_health,
            "is_being_destroyed": self.is_being_destroyed,
        }


# ---------------------------------------------------------------------------
# Base registry
# ---------------------------------------------------------------------------

class ResourceRegistry:
    """
    Mutable collection of one kind of harvestable object.

    ``add`` does not enforce one-resource-per-cell; callers check
    :meth:`get_at` first (chunk generation does).
    """

    kind: str = "resource"
    default_subtype: str = ""

    def __init__(self, config) -> None:
        self.config = config
        self.settings: dict[str, Any] = config.resource_settings(self.kind)
        self.grid_size: int = config.grid_size
        self._resources: dict[str, HarvestableResource] = {}
        self._next_id: int = 1
        self._generated_chunks: set[tuple[int, int]] = set()

    # ------------------------------------------------------------------
    # Collection protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[HarvestableResource]:
        return iter(list(self._resources.values()))

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._resources

    def get(self, resource_id: str) -> HarvestableResource | None:
        return self._resources.get(resource_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        # Zero-padded so lexical order == creation order; ids are never reused
        rid = f"{self.kind}-{self._next_id:06d}"
        self._next_id += 1
        return rid

    def _subtype_stats(self, subtype: str) -> dict[str, Any]:
        subtypes = self.settings.get("subtypes", {})
        if subtype not in subtypes:
            raise ValueError(
                f"Unknown {self.kind} subtype '{subtype}'. "
                f"Available: {list(subtypes.keys())}"
            )
        return subtypes[subtype]

    def add(self, position: Position, subtype: str | None = None, now: int = 0) -> str | None:
        """Create a resource at *position* and return its id, or None if off-grid."""
        if not is_valid_position(position, self.grid_size):
            logger.debug("Rejected %s at %s: invalid position", self.kind, position)
            return None
        subtype = subtype or self.default_subtype
        stats = self._subtype_stats(subtype)
        rid = self._new_id()
        health = int(stats["health"])
        self._resources[rid] = HarvestableResource(
            id=rid,
            kind=self.kind,
            type=subtype,
            position=position,
            health=health,
            max_health=health,
            meat_value=int(stats.get("meat_value", 0)),
            movement_speed_ms=int(stats.get("movement_speed_ms", 0)),
            last_move_time=now,
        )
        return rid

    def remove(self, resource_id: str) -> bool:
        return self._resources.pop(resource_id, None) is not None

    def damage(self, resource_id: str, amount: int, now: int) -> bool:
        """
        Apply *amount* damage. Returns True iff this call destroyed it.

        Starts the hit animation; at health <= 0 the resource enters the
        irreversible destroying phase and is removed by :meth:`update` once
        ``despawn_delay_ms`` has elapsed.
        """
        resource = self._resources.get(resource_id)
        if resource is None or resource.is_being_destroyed:
            return False

        resource.hit_start_time = now
        resource.health = max(0, resource.health - amount)
        if resource.health <= 0:
            resource.is_being_destroyed = True
            resource.destruction_start_time = now
            logger.info("%s %s destroyed at %s", self.kind, resource_id, resource.position)
            return True
        return False

    def update(self, now: int) -> list[str]:
        """Sweep out resources whose despawn delay has elapsed. Returns removed ids."""
        delay = int(self.settings.get("despawn_delay_ms", 0))
        expired = [
            r.id for r in self._resources.values()
            if r.is_being_destroyed
            and r.destruction_start_time is not None
            and now - r.destruction_start_time >= delay
        ]
        for rid in expired:
            del self._resources[rid]
        if expired:
            logger.debug("Despawned %d %s(s)", len(expired), self.kind)
        return expired

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_at(self, position: Position) -> HarvestableResource | None:
        """Any resource occupying *position*, including ones being destroyed."""
        for resource in self._resources.values():
            if resource.position == position:
                return resource
        return None

    def is_occupied(self, position: Position) -> bool:
        return self.get_at(position) is not None

    def available(self) -> list[HarvestableResource]:
        """Live, targetable resources in ascending id order."""
        return sorted(
            (r for r in self._resources.values() if r.is_available),
            key=lambda r: r.id,
        )

    def find_nearest(
        self,
        position: Position,
        max_distance: int,
        predicate: Callable[[HarvestableResource], bool] | None = None,
    ) -> HarvestableResource | None:
        """
        Nearest available resource within Manhattan *max_distance*.

        Ties on distance go to the lowest id.
        """
        best: HarvestableResource | None = None
        best_key: tuple[int, str] | None = None
        for resource in self._resources.values():
            if not resource.is_available:
                continue
            if predicate is not None and not predicate(resource):
                continue
            distance = manhattan_distance(position, resource.position)
            if distance > max_distance:
                continue
            key = (distance, resource.id)
            if best_key is None or key < best_key:
                best, best_key = resource, key
        return best

    # ------------------------------------------------------------------
    # Chunk generation
    # ------------------------------------------------------------------

    def chunk_density(self, chunk_x: int, chunk_z: int) -> float:
        return float(self.settings.get("density", 0.0))

    def is_chunk_generated(self, chunk_x: int, chunk_z: int) -> bool:
        return (chunk_x, chunk_z) in self._generated_chunks

    def _pick_subtype(self, rng: np.random.Generator) -> str:
        subtypes = self.settings.get("subtypes", {})
        names = list(subtypes.keys())
        weights = np.array([float(subtypes[n].get("weight", 1.0)) for n in names])
        weights = weights / weights.sum()
        return str(rng.choice(names, p=weights))

    def generate_chunk(
        self,
        chunk_x: int,
        chunk_z: int,
        rng: np.random.Generator,
        chunk_size: int | None = None,
        now: int = 0,
        is_blocked: Callable[[Position], bool] | None = None,
    ) -> int:
        """
        Stochastically populate one chunk. Returns the number created.

        Idempotent per chunk key: a chunk already generated is skipped and
        returns 0. Invalid and occupied cells are never populated.
        """
        key = (chunk_x, chunk_z)
        if key in self._generated_chunks:
            return 0
        self._generated_chunks.add(key)

        size = chunk_size or self.config.chunk_size
        density = self.chunk_density(chunk_x, chunk_z)
        start_x, start_z = chunk_x * size, chunk_z * size
        created = 0
        for x in range(start_x, start_x + size):
            for z in range(start_z, start_z + size):
                pos = Position(x, z)
                if not is_valid_position(pos, self.grid_size):
                    continue
                if self.is_occupied(pos) or (is_blocked is not None and is_blocked(pos)):
                    continue
                if rng.random() < density:
                    self.add(pos, self._pick_subtype(rng), now=now)
                    created += 1
        logger.debug("Chunk %s: generated %d %s(s)", key, created, self.kind)
        return created


# ---------------------------------------------------------------------------
# Concrete registries
# ---------------------------------------------------------------------------

class TreeRegistry(ResourceRegistry):
    kind = "tree"
    default_subtype = "pine"


class StoneRegistry(ResourceRegistry):
    kind = "stone"
    default_subtype = "medium"


class AnimalRegistry(ResourceRegistry):
    """Animals: chunk-distance-dependent density and independent wandering."""

    kind = "animal"
    default_subtype = "rabbit"

    def chunk_density(self, chunk_x: int, chunk_z: int) -> float:
        distance = abs(chunk_x) + abs(chunk_z)
        if distance <= int(self.settings.get("near_chunk_distance", 2)):
            return float(self.settings.get("near_density", self.settings["density"]))
        if distance > int(self.settings.get("far_chunk_distance", 5)):
            return float(self.settings.get("far_density", self.settings["density"]))
        return float(self.settings["density"])

    def move(self, animal_id: str, position: Position, now: int) -> bool:
        animal = self._resources.get(animal_id)
        if animal is None or not is_valid_position(position, self.grid_size):
            return False
        animal.position = position
        animal.last_move_time = now
        return True

    def wander(
        self,
        now: int,
        rng: np.random.Generator,
        is_blocked: Callable[[Position], bool] | None = None,
    ) -> int:
        """
        Step each live animal to a random free neighbour.

        Throttled per animal by its ``movement_speed_ms``; each eligible
        animal moves with probability ``wander_chance``. Returns moves made.
        """
        chance = float(self.settings.get("wander_chance", 0.0))
        moved = 0
        for animal in self.available():
            if now - animal.last_move_time < animal.movement_speed_ms:
                continue
            if rng.random() >= chance:
                animal.last_move_time = now
                continue
            options = [
                p for p in valid_neighbors(animal.position, self.grid_size)
                if not self.is_occupied(p) and not (is_blocked and is_blocked(p))
            ]
            if not options:
                continue
            target = options[int(rng.integers(len(options)))]
            self.move(animal.id, target, now)
            moved += 1
        return moved
