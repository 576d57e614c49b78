"""Wave function collapse over a rectangular tile area."""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Sequence

from tilealgo.grid import Index, TileArea, TilemapType, neighbours
from tilealgo.rules import WfcMode, WfcRules

Sampler = Callable[["WfcElement", random.Random], int]


def _ilog10(value: int) -> int:
    if value <= 0:
        raise ValueError(f"tile area must hold at least one tile, got size {value}")
    return len(str(value)) - 1


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True)
class WfcElement:
    """One cell of the grid and the elements it may still become."""

    index: Index
    psbs: int
    collapsed: bool = False
    element_index: Optional[int] = None

    @property
    def entropy(self) -> int:
        """Number of remaining possibilities."""
        return self.psbs.bit_count()

    def possibilities(self) -> list[int]:
        """The element indices still possible, in ascending order."""
        return [i for i in range(self.psbs.bit_length()) if self.psbs >> i & 1]


class WfcData:
    """The collapsed element index of every cell, stored row by row."""

    def __init__(self, area: TileArea) -> None:
        self.area = area
        self.data: list[int] = [0] * area.size()

    def _position(self, index: Index) -> int:
        return index[1] * self.area.extent[0] + index[0]

    def get(self, index: Index) -> Optional[int]:
        """The value at a grid-local index, or None if it lies outside the data."""
        pos = self._position(index)
        if 0 <= pos < len(self.data):
            return self.data[pos]
        return None

    def set(self, index: Index, value: int) -> None:
        pos = self._position(index)
        if not 0 <= pos < len(self.data):
            raise IndexError(f"index {index} lies outside the data")
        self.data[pos] = value

    def elem_idx_to_grid(self, elem_index: int) -> Index:
        """Turn a position in ``data`` into a tile index."""
        width = self.area.extent[0]
        return (
            elem_index % width - self.area.origin[0],
            elem_index // width - self.area.origin[1],
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WfcData):
            return NotImplemented
        return self.area == other.area and self.data == other.data

    def __repr__(self) -> str:
        return f"WfcData(area={self.area!r}, data={self.data!r})"


class WfcRunner:
    """Settings for one wave function collapse run.

    Rule directions are ordered up, right, left, down (six hexagonal
    directions on hexagonal maps).
    """

    def __init__(
        self,
        ty: TilemapType,
        rules: WfcRules,
        area: TileArea,
        seed: Optional[int] = None,
    ) -> None:
        if len(rules) == 0:
            raise ValueError("wave function collapse needs at least one element")
        log = _ilog10(area.size())
        self.ty = ty
        self.rules = rules
        self.area = area
        self.seed = seed
        self.mode = WfcMode.NON_WEIGHTED
        self.weights: tuple[int, ...] = ()
        self.sampler: Optional[Sampler] = None
        self.max_retrace_factor = _clamp(log, 2, 16)
        self.max_retrace_time = _clamp(log, 2, 16) * 100
        self.max_history = _clamp(log, 1, 8) * 20

    def _require_unweighted(self) -> None:
        if self.mode is not WfcMode.NON_WEIGHTED:
            raise ValueError("You can only use one sampler or one weights vector")

    def with_weights(self, weights: Sequence[int]) -> "WfcRunner":
        """Pick elements according to ``weights``, one per element."""
        self._require_unweighted()
        if len(weights) != len(self.rules):
            raise ValueError(
                f"weights length not match! weights: {len(weights)}, rules: {len(self.rules)}"
            )
        self.weights = tuple(weights)
        self.mode = WfcMode.WEIGHTED
        return self

    def with_custom_sampler(self, sampler: Sampler) -> "WfcRunner":
        """Let ``sampler(element, rng)`` choose the element index."""
        self._require_unweighted()
        self.mode = WfcMode.CUSTOM_SAMPLER
        self.sampler = sampler
        return self

    def with_retrace_settings(
        self,
        max_retrace_factor: Optional[int] = None,
        max_retrace_time: Optional[int] = None,
    ) -> "WfcRunner":
        """Tune how hard the run retraces; higher values succeed more often but cost more."""
        if max_retrace_factor is not None:
            if max_retrace_factor > 16:
                raise ValueError("max_retrace_factor should be <= 16")
            self.max_retrace_factor = max_retrace_factor
        if max_retrace_time is not None:
            self.max_retrace_time = max_retrace_time
        return self

    def with_history_settings(self, max_history: int) -> "WfcRunner":
        """Set how many snapshots are kept for retracing."""
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.max_history = max_history
        return self


@dataclass(frozen=True)
class _WfcHistory:
    uncollapsed: frozenset[tuple[int, Index]]
    elements: dict[Index, WfcElement]
    remaining: int


class WfcGrid:
    """The state of a running wave function collapse."""

    def __init__(
        self,
        *,
        ty: TilemapType,
        area: TileArea,
        conn_rules: tuple[tuple[int, ...], ...],
        rng: random.Random,
        mode: WfcMode = WfcMode.NON_WEIGHTED,
        weights: Sequence[int] = (),
        sampler: Optional[Sampler] = None,
        max_history: int = 20,
        max_retrace_factor: int = 2,
        max_retrace_time: int = 200,
    ) -> None:
        count = len(conn_rules)
        full = (1 << count) - 1
        self.ty = ty
        self.area = area
        self.conn_rules = conn_rules
        self.rng = rng
        self.mode = mode
        self.weights = tuple(weights)
        self.sampler = sampler
        self.elements: dict[Index, WfcElement] = {}
        self.uncollapsed: set[tuple[int, Index]] = set()
        width, height = area.extent
        for y in range(height):
            for x in range(width):
                self.elements[(x, y)] = WfcElement((x, y), full)
                self.uncollapsed.add((count, (x, y)))
        self.remaining = area.size()
        self._history: list[Optional[_WfcHistory]] = [None] * max_history
        self._cur_hist = 0
        self.retrace_strength = 1
        self.max_retrace_factor = max_retrace_factor
        self.max_retrace_time = max_retrace_time
        self.retraced_time = 0

    @classmethod
    def from_runner(cls, runner: WfcRunner) -> "WfcGrid":
        rng = random.Random(runner.seed) if runner.seed is not None else random.Random()
        return cls(
            ty=runner.ty,
            area=runner.area,
            conn_rules=runner.rules.masks,
            rng=rng,
            mode=runner.mode,
            weights=runner.weights,
            sampler=runner.sampler,
            max_history=runner.max_history,
            max_retrace_factor=runner.max_retrace_factor,
            max_retrace_time=runner.max_retrace_time,
        )

    def _sample(self, elem: WfcElement) -> int:
        if self.mode is WfcMode.CUSTOM_SAMPLER:
            if self.sampler is None:
                raise ValueError("custom sampler mode needs a sampler")
            return int(self.sampler(elem, self.rng))
        options = elem.possibilities()
        if self.mode is WfcMode.WEIGHTED:
            weights = [self.weights[p] for p in options]
            return self.rng.choices(options, weights=weights)[0]
        return options[self.rng.randrange(len(options))]

    def collapse(self) -> None:
        """Snapshot the state, then collapse the cell with the lowest entropy."""
        self._history[self._cur_hist] = _WfcHistory(
            frozenset(self.uncollapsed), dict(self.elements), self.remaining
        )
        self._cur_hist = (self._cur_hist + 1) % len(self._history)

        index = self.get_min()
        elem = self.elements[index]
        self.uncollapsed.discard((elem.entropy, index))

        choice = self._sample(elem)
        self.elements[index] = replace(
            elem, element_index=choice, psbs=1 << choice, collapsed=True
        )
        self.remaining -= 1
        self.retrace_strength *= self.max_retrace_factor
        self.constrain(index)

    def constrain(self, center: Index) -> None:
        """Spread the constraints of ``center`` outward, retracing on a contradiction."""
        queue = deque([center])
        spread = {center}

        while queue:
            cur = queue.popleft()
            spread.add(cur)
            cur_elem = self.elements[cur]

            for direction, nei_index in enumerate(neighbours(cur, self.ty)):
                nei_elem = self.elements.get(nei_index)
                if nei_elem is None or nei_elem.collapsed or nei_index in spread:
                    continue

                allowed = 0
                for p in cur_elem.possibilities():
                    allowed |= self.conn_rules[p][direction]
                old = nei_elem.psbs
                new = old & allowed
                self.elements[nei_index] = replace(nei_elem, psbs=new)

                if new == 0:
                    self.retrace()
                    return

                if new != old:
                    queue.append(nei_index)
                    self.update_entropy(old.bit_count(), new.bit_count(), nei_index)

        self.retrace_strength = 1

    def update_entropy(self, old: int, new: int, target: Index) -> None:
        self.uncollapsed.discard((old, target))
        self.uncollapsed.add((new, target))

    def retrace(self) -> None:
        """Roll back to an earlier snapshot, giving up once retracing is exhausted."""
        hist_len = len(self._history)
        strength = self.retrace_strength

        if hist_len <= strength:
            self.retraced_time = self.max_retrace_time
        elif self._cur_hist >= strength:
            self._cur_hist -= strength
        else:
            hist_to_be = hist_len - (strength - self._cur_hist)
            if self._history[hist_to_be] is None:
                self.retraced_time = self.max_retrace_time
            else:
                self._cur_hist = hist_to_be

        hist = self._history[(self._cur_hist + hist_len - 1) % hist_len]
        if hist is None:
            self.retraced_time = self.max_retrace_time
            return

        self.remaining = hist.remaining
        self.uncollapsed = set(hist.uncollapsed)
        self.elements = dict(hist.elements)
        self.retraced_time += self.retrace_strength

    def get_min(self) -> Index:
        """A random cell among those with the fewest possibilities."""
        if not self.uncollapsed:
            raise ValueError("no uncollapsed cells are left")
        min_entropy = min(entropy for entropy, _ in self.uncollapsed)
        candidates = sorted(index for entropy, index in self.uncollapsed if entropy == min_entropy)
        return candidates[self.rng.randrange(len(candidates))]

    def generate_data(self) -> Optional[WfcData]:
        """The result, or None if the run gave up."""
        if self.retraced_time >= self.max_retrace_time:
            return None
        data = WfcData(self.area)
        for index, elem in self.elements.items():
            if elem.element_index is None:
                raise ValueError(f"cell {index} has not collapsed")
            data.set(index, elem.element_index)
        return data

    def run(self) -> Optional[WfcData]:
        """Collapse until done or out of retraces, then return the result."""
        while self.remaining > 0 and self.retraced_time < self.max_retrace_time:
            self.collapse()
        return self.generate_data()


@dataclass(frozen=True)
class WfcSource:
    """The tile placed for each element index."""

    tiles: tuple[Any, ...]

    @classmethod
    def from_texture_indices(cls, rules: WfcRules) -> "WfcSource":
        """Use each element index directly as a texture index."""
        return cls(tuple(range(len(rules))))

    def apply(self, data: WfcData) -> dict[Index, Any]:
        """Map every tile index of the result to its tile."""
        return {
            data.elem_idx_to_grid(i): self.tiles[element]
            for i, element in enumerate(data.data)
        }


def run_wfc(runner: WfcRunner) -> Optional[WfcData]:
    """Run wave function collapse to completion; None if it failed."""
    return WfcGrid.from_runner(runner).run()