"""
Square grid geometry for the Homestead village.

Positions are integer ``(x, z)`` cells on a bounded square centred on the
origin. Movement is orthogonal only; distances are Manhattan distances.
Out-of-range coordinates are simply invalid, never an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, order=True)
class Position:
    """An integer grid cell. Equality is exact integer comparison."""

    x: int
    z: int

    def offset(self, dx: int, dz: int) -> Position:
        return Position(self.x + dx, self.z + dz)

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "z": self.z}

    @classmethod
    def from_dict(cls, d: dict[str, int]) -> Position:
        return cls(int(d["x"]), int(d["z"]))

    def __repr__(self) -> str:
        return f"Position({self.x}, {self.z})"


class Direction(str, Enum):
    """The four orthogonal step directions accepted by ``move``."""

    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"

    @property
    def delta(self) -> tuple[int, int]:
        return _DIRECTION_DELTAS[self]


_DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, 1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, -1),
    Direction.WEST: (-1, 0),
}

# Neighbour order used everywhere a deterministic scan is needed
ORTHOGONAL_DELTAS: tuple[tuple[int, int], ...] = tuple(
    _DIRECTION_DELTAS[d] for d in Direction
)


def half_extent(grid_size: int) -> int:
    """Largest valid absolute coordinate for a grid of ``grid_size`` cells."""
    return grid_size // 2


def is_valid_position(pos: Position, grid_size: int) -> bool:
    """Whether *pos* lies inside the bounded square world."""
    half = half_extent(grid_size)
    return -half <= pos.x <= half and -half <= pos.z <= half


def manhattan_distance(a: Position, b: Position) -> int:
    return abs(b.x - a.x) + abs(b.z - a.z)


def are_adjacent(a: Position, b: Position) -> bool:
    """True when the two cells share an edge (distance exactly 1)."""
    return manhattan_distance(a, b) == 1


def adjacent_positions(pos: Position) -> list[Position]:
    """The four orthogonal neighbours of *pos* (no diagonals, no bounds check)."""
    return [pos.offset(dx, dz) for dx, dz in ORTHOGONAL_DELTAS]


def valid_neighbors(pos: Position, grid_size: int) -> list[Position]:
    """Orthogonal neighbours of *pos* that lie inside the world."""
    return [p for p in adjacent_positions(pos) if is_valid_position(p, grid_size)]


def step_toward(current: Position, target: Position) -> Position:
    """
    Return the next cell one orthogonal step from *current* toward *target*.

    The axis with the larger absolute delta is reduced first; on a tie the
    x axis wins. Returns *current* unchanged when already on the target.
    """
    dx = target.x - current.x
    dz = target.z - current.z
    if dx == 0 and dz == 0:
        return current
    if abs(dx) >= abs(dz):
        return current.offset(1 if dx > 0 else -1, 0)
    return current.offset(0, 1 if dz > 0 else -1)


def direction_delta(direction: Direction | str | tuple[int, int]) -> tuple[int, int] | None:
    """
    Normalise a move request into a unit orthogonal ``(dx, dz)`` delta.

    Accepts a :class:`Direction`, its string value, or a raw tuple. Returns
    ``None`` for anything that is not a single orthogonal step.
    """
    if isinstance(direction, tuple):
        if len(direction) != 2:
            return None
        if not all(isinstance(d, int) and not isinstance(d, bool) for d in direction):
            return None
        dx, dz = direction
        if abs(dx) + abs(dz) != 1:
            return None
        return (dx, dz)
    try:
        return Direction(direction).delta
    except ValueError:
        return None
