"""Tile coordinates, rectangular tile areas and grid neighbourhoods."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

Index = tuple[int, int]

_DIRECTION_NAMES = ("up", "right", "left", "down")
_HEX_DIRECTION_NAMES = (
    "up_right",
    "right",
    "down_right",
    "up_left",
    "left",
    "down_left",
)

_SQUARE_OFFSETS: tuple[Index, ...] = ((0, 1), (1, 0), (-1, 0), (0, -1))
_DIAGONAL_OFFSETS: tuple[Index, ...] = ((1, 1), (-1, 1), (1, -1), (-1, -1))
# Axial hexagonal offsets, ordered so that direction d and (5 - d) are opposite.
_HEX_OFFSETS: tuple[Index, ...] = ((0, 1), (1, 0), (1, -1), (-1, 1), (-1, 0), (0, -1))


class TilemapType(Enum):
    """The shape of the tiles of a map."""

    SQUARE = "square"
    ISOMETRIC = "isometric"
    HEXAGONAL = "hexagonal"

    @property
    def direction_names(self) -> tuple[str, ...]:
        """Names of the neighbour directions, in neighbour order."""
        if self is TilemapType.HEXAGONAL:
            return _HEX_DIRECTION_NAMES
        return _DIRECTION_NAMES

    @property
    def direction_count(self) -> int:
        """Number of non-diagonal neighbours of a tile."""
        return len(self.direction_names)


@dataclass(frozen=True)
class TileArea:
    """A rectangle of tiles starting at ``origin`` and spanning ``extent``."""

    origin: Index
    extent: Index

    def __post_init__(self) -> None:
        width, height = self.extent
        if width < 0 or height < 0:
            raise ValueError(f"tile area extent must not be negative: {self.extent}")
        object.__setattr__(self, "origin", (int(self.origin[0]), int(self.origin[1])))
        object.__setattr__(self, "extent", (int(width), int(height)))

    @property
    def dest(self) -> Index:
        """The last tile inside the area (inclusive corner)."""
        return (
            self.origin[0] + self.extent[0] - 1,
            self.origin[1] + self.extent[1] - 1,
        )

    def size(self) -> int:
        """Number of tiles in the area."""
        return self.extent[0] * self.extent[1]

    def indices(self) -> Iterator[Index]:
        """Yield every tile index in the area, row by row."""
        ox, oy = self.origin
        width, height = self.extent
        for y in range(oy, oy + height):
            for x in range(ox, ox + width):
                yield (x, y)

    def contains(self, index: Index) -> bool:
        """Whether ``index`` lies inside the area."""
        x, y = index
        ox, oy = self.origin
        return ox <= x < ox + self.extent[0] and oy <= y < oy + self.extent[1]


def neighbours(index: Index, ty: TilemapType, allow_diagonal: bool = False) -> list[Index]:
    """Neighbouring indices of ``index``.

    Square and isometric maps list up, right, left, down, followed by the
    four diagonals when ``allow_diagonal`` is set. Hexagonal maps always list
    six neighbours: up_right, right, down_right, up_left, left, down_left.
    In both layouts direction ``d`` is opposite to ``count - 1 - d``.
    """
    x, y = index
    if ty is TilemapType.HEXAGONAL:
        offsets = _HEX_OFFSETS
    elif allow_diagonal:
        offsets = _SQUARE_OFFSETS + _DIAGONAL_OFFSETS
    else:
        offsets = _SQUARE_OFFSETS
    return [(x + dx, y + dy) for dx, dy in offsets]


def manhattan_distance(a: Index, b: Index) -> int:
    """Sum of the absolute coordinate differences between two indices."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])