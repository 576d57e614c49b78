"""Shortest paths over a grid of weighted tiles."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field, replace
from typing import Callable, Hashable, Iterable, Iterator, Optional

from tilealgo.grid import Index, TileArea, TilemapType, manhattan_distance, neighbours

UNREACHED = 2**32 - 1


class PathNotFoundError(LookupError):
    """Raised when no path leads to the destination."""


@dataclass(frozen=True)
class PathTile:
    """A walkable tile and the cost of stepping onto it."""

    cost: int


class PathTilemap:
    """Sparse map of walkable tiles."""

    def __init__(self, tiles: Optional[dict[Index, PathTile]] = None) -> None:
        self._tiles: dict[Index, PathTile] = dict(tiles or {})

    def get(self, index: Index) -> Optional[PathTile]:
        return self._tiles.get(index)

    def set(self, index: Index, tile: PathTile) -> None:
        self._tiles[index] = tile

    def fill_rect_custom(
        self, area: TileArea, factory: Callable[[Index], Optional[PathTile]]
    ) -> None:
        """Set each tile of ``area`` to what ``factory`` returns, skipping ``None``."""
        for index in area.indices():
            tile = factory(index)
            if tile is not None:
                self._tiles[index] = tile

    def copy(self) -> "PathTilemap":
        return PathTilemap(self._tiles)

    def __contains__(self, index: object) -> bool:
        return index in self._tiles

    def __len__(self) -> int:
        return len(self._tiles)


@dataclass
class PathFinder:
    """A request for a path from ``origin`` to ``dest``."""

    origin: Index
    dest: Index
    allow_diagonal: bool = False
    max_steps: Optional[int] = None


@dataclass
class Path:
    """A found path, listed from the destination back toward the origin."""

    nodes: list[Index]
    tilemap: Hashable = None
    current_step: int = 0

    def step(self) -> None:
        """Advance to the next target, or do nothing once arrived."""
        if self.current_step < len(self.nodes):
            self.current_step += 1

    def cur_target(self) -> Index:
        """The current target; raises IndexError once arrived."""
        return self.nodes[self.current_step]

    def is_arrived(self) -> bool:
        return self.current_step >= len(self.nodes)

    def __iter__(self) -> Iterator[Index]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass
class PathNode:
    """A node in the search with its costs and parent link."""

    index: Index
    g_cost: int
    h_cost: int
    cost_to_pass: int
    parent: Optional[Index] = None

    @classmethod
    def toward(cls, index: Index, g_cost: int, dest: Index, cost_to_pass: int) -> "PathNode":
        return cls(index, g_cost, manhattan_distance(dest, index), cost_to_pass)

    def weight(self) -> int:
        return self.g_cost + self.h_cost


class PathGrid:
    """Search state for a single path request."""

    def __init__(
        self,
        finder: PathFinder,
        requester: Hashable,
        tilemap: Hashable,
        path_tilemap: PathTilemap,
    ) -> None:
        self.requester = requester
        self.tilemap = tilemap
        self.allow_diagonal = finder.allow_diagonal
        self.origin = finder.origin
        self.dest = finder.dest
        self.max_steps = finder.max_steps
        self.path_tilemap = path_tilemap
        self.all_nodes: dict[Index, PathNode] = {}
        self.steps = 0
        self._to_explore: list[tuple[int, int, int, PathNode]] = []
        self._order = itertools.count()

    def _push(self, node: PathNode) -> None:
        heapq.heappush(self._to_explore, (node.g_cost, node.h_cost, next(self._order), node))

    def get_or_register(self, index: Index) -> Optional[PathNode]:
        """A copy of the node at ``index``, registering it if it is walkable."""
        node = self.all_nodes.get(index)
        if node is not None:
            return replace(node)
        tile = self.path_tilemap.get(index)
        if tile is None:
            return None
        node = PathNode.toward(index, UNREACHED, self.dest, tile.cost)
        self.all_nodes[index] = node
        return replace(node)

    def neighbours(self, index: Index, ty: TilemapType) -> list[PathNode]:
        found = (self.get_or_register(n) for n in neighbours(index, ty, self.allow_diagonal))
        return [node for node in found if node is not None]

    def find_path(self, ty: TilemapType) -> None:
        origin = PathNode.toward(self.origin, 0, self.dest, 0)
        self._push(origin)
        self.all_nodes[self.origin] = origin

        while self._to_explore:
            if self.max_steps is not None and self.steps > self.max_steps:
                break
            self.steps += 1

            current = heapq.heappop(self._to_explore)[-1]
            if current.index == self.dest:
                return
            if current.g_cost > self.all_nodes[current.index].g_cost:
                continue

            for neighbour in self.neighbours(current.index, ty):
                neighbour.g_cost = current.g_cost + neighbour.cost_to_pass
                neighbour.parent = current.index
                known = self.all_nodes.get(neighbour.index)
                if known is None or known.g_cost > neighbour.g_cost:
                    self.all_nodes[neighbour.index] = neighbour
                    self._push(neighbour)

    def collect_path(self) -> Path:
        """Follow parent links from the destination back to the origin."""
        node = self.all_nodes.get(self.dest)
        if node is None:
            raise PathNotFoundError(f"no path from {self.origin} to {self.dest}")
        nodes: list[Index] = []
        while node.index != self.origin:
            if node.parent is None:
                raise PathNotFoundError(f"no path from {self.origin} to {self.dest}")
            nodes.append(node.index)
            node = self.all_nodes[node.parent]
        return Path(nodes, tilemap=self.tilemap)


@dataclass
class PathFindingQueue:
    """Pending path requests against one walkable tilemap."""

    cache: PathTilemap
    finders: dict[Hashable, PathFinder] = field(default_factory=dict)
    tilemap: Hashable = None

    @classmethod
    def with_schedules(
        cls,
        cache: PathTilemap,
        schedules: Iterable[tuple[Hashable, PathFinder]],
        tilemap: Hashable = None,
    ) -> "PathFindingQueue":
        return cls(cache, dict(schedules), tilemap)

    def schedule(self, requester: Hashable, finder: PathFinder) -> None:
        self.finders[requester] = finder

    def is_empty(self) -> bool:
        return not self.finders

    def run(self, ty: TilemapType) -> dict[Hashable, Path]:
        """Solve every pending request, returning paths keyed by requester."""
        results: dict[Hashable, Path] = {}
        for requester in list(self.finders):
            finder = self.finders.pop(requester)
            grid = PathGrid(finder, requester, self.tilemap, self.cache)
            grid.find_path(ty)
            results[requester] = grid.collect_path()
        return results