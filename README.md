# tilealgo

Algorithms for tile grids. Nothing here needs a game engine; all of it works
on plain Python values.

- `tilealgo.grid`: tile indices as `(x, y)` tuples, `TileArea` rectangles,
  `TilemapType` (square, isometric, hexagonal), `neighbours` and
  `manhattan_distance`.
- `tilealgo.pathfinding`: cost-weighted shortest paths over a sparse map of
  walkable tiles.
- `tilealgo.rules`: adjacency rules for wave function collapse, read from
  lists or from a text file.
- `tilealgo.wfc`: wave function collapse with seeding, weights, custom
  samplers and retracing.
- `tilealgo.ldtk`: decorators that make classes into LDtk entities, entity
  tags and enums, built from field values.
- `tilealgo.debug`: heap validation, camera smoothing and frame-stat text.
- `tilealgo.cli`: the `tilealgo` command.

Requires Python 3.10 or later and has no dependencies outside the standard
library.

## Installation

```
pip install .
```

## Grids

```python
from tilealgo.grid import TileArea, TilemapType, neighbours

area = TileArea(origin=(0, 0), extent=(4, 3))
area.size()            # 12
area.contains((3, 2))  # True
list(area.indices())   # row by row, starting at the origin

neighbours((0, 0), TilemapType.SQUARE)
# [(0, 1), (1, 0), (-1, 0), (0, -1)]  -- up, right, left, down
```

With `allow_diagonal=True` square and isometric maps add the four diagonals.
Hexagonal maps always give six neighbours, ordered up_right, right,
down_right, up_left, left, down_left. In every layout direction `d` is the
opposite of direction `count - 1 - d`. A negative extent raises `ValueError`.

## Pathfinding

```python
from tilealgo.grid import TileArea, TilemapType
from tilealgo.pathfinding import PathFinder, PathFindingQueue, PathTile, PathTilemap

tiles = PathTilemap()
tiles.fill_rect_custom(TileArea((0, 0), (10, 10)), lambda index: PathTile(cost=1))

queue = PathFindingQueue(tiles)
queue.schedule("walker", PathFinder(origin=(0, 0), dest=(9, 9)))
paths = queue.run(TilemapType.SQUARE)

path = paths["walker"]
while not path.is_arrived():
    print(path.cur_target())
    path.step()
```

- Only tiles set in the `PathTilemap` are walkable; stepping onto a tile costs
  its `cost`. The search expands the cheapest known node first, breaking ties
  by Manhattan distance to the destination.
- `PathFinder.allow_diagonal` adds diagonal moves on square and isometric
  maps; `max_steps` bounds how many nodes are expanded.
- A `Path` lists its tiles from the destination back toward the origin; the
  origin itself is not included. It supports `len()` and iteration.
- `PathFindingQueue.run` solves every pending request, empties the queue and
  returns the paths keyed by requester. `PathFindingQueue.with_schedules`
  builds a queue from `(requester, finder)` pairs.
- When the destination cannot be reached, `PathGrid.collect_path` (and so
  `run`) raises `PathNotFoundError`.

## Wave function collapse

Rules say, for every element, which elements may sit next to it in each
direction: up, right, left, down on square and isometric grids, the six
hexagonal directions on hexagonal grids.

```python
from tilealgo.grid import TileArea, TilemapType
from tilealgo.rules import WfcRules
from tilealgo.wfc import WfcRunner, WfcSource, run_wfc

rules = WfcRules.from_lists(
    [
        [[0, 1], [0, 1], [0, 1], [0, 1]],  # element 0
        [[0], [0], [0], [0]],              # element 1
    ],
    TilemapType.SQUARE,
)
runner = WfcRunner(TilemapType.SQUARE, rules, TileArea((0, 0), (16, 16)), seed=0)
data = run_wfc(runner.with_retrace_settings(8, 1_000_000))
if data is not None:
    print(data.get((0, 0)))
    tiles = WfcSource.from_texture_indices(rules).apply(data)  # {(x, y): element}
```

- Rules are checked when they are built: an adjacency allowed one way but not
  back raises `WfcRuleConflict`. At most 128 elements are supported.
- `WfcRules.from_file` reads the same nested lists from a text file. Lists may
  use brackets or parentheses and trailing commas, and `//` or `/* */`
  comments are skipped; only integers and lists are understood.
- `WfcRunner.with_weights(weights)` picks elements by weight;
  `with_custom_sampler(sampler)` lets `sampler(element, rng)` choose. Only
  one of the two may be used.
- `with_retrace_settings(max_retrace_factor, max_retrace_time)` and
  `with_history_settings(max_history)` control retracing after a
  contradiction. Their defaults grow with the base-10 logarithm of the area
  size; `max_retrace_factor` may not exceed 16.
- `run_wfc` (or `WfcGrid.run`) returns `WfcData`, or `None` when the retrace
  budget runs out before the grid is solved.

## LDtk entities, enums and tags

```python
from dataclasses import dataclass
from enum import Enum

from tilealgo.ldtk import (
    EntityContext, FieldValue, add_tag, initialize_entity,
    ldtk_entity, ldtk_entity_tag, ldtk_enum, ldtk_field, ldtk_name,
)

@ldtk_enum
class ItemType(Enum):
    Meat = 1
    GreenGem = ldtk_name("Green_gem")

@ldtk_entity(spawn_sprite=True)
@dataclass
class Item:
    ty: ItemType = ldtk_field(name="type")
    price: int = ldtk_field()
    count: int = ldtk_field(default=1)  # never read from LDtk

@ldtk_entity_tag
class Loot:
    pass

context = EntityContext(fields={
    "type": FieldValue.local_enum("ItemType", "Green_gem"),
    "price": FieldValue("Int", 10),
})
item = initialize_entity(Item, context)  # Item(ty=ItemType.GreenGem, price=10, count=1)
add_tag(Loot, context.components)
```

- Enum members answer to their own name and to the name given by
  `ldtk_name`; an unknown identifier raises `ValueError`.
- Fields annotated with a registered enum, `Optional` of it, `list` of it or
  `Optional` of such a list are converted with `enum_from_field`,
  `optional_enum_from_field`, `enum_list_from_field` and
  `optional_enum_list_from_field`; other fields receive the raw value.
  A missing field raises `KeyError`.
- `initialize_entity` calls the entity's `callback(context)` if one was
  given, sets `context.sprite_requested` for `spawn_sprite` and
  `context.global_entity` for `global_entity`, then inserts the new
  instance into `context.components`.
- Misuse, such as a tag class with fields, raises `LdtkDefinitionError`.

## Debug helpers

- `validate_heap(tree, asc=True)` checks a 1-based array heap of
  `(key, value)` slots (`None` for empty ones), returns the number of slots
  checked and raises `HeapValidationError` at the first parent out of order.
- `CameraControl.update(state, camera_input, delta_seconds)` applies one
  frame of `CameraInput` (drag motion, wheel, direction keys, a fast
  modifier) and returns the eased `CameraState`.
- `format_frame_stats(fps, frame_time)` gives text such as
  `"60.00 (16.67 ms)"`, or `None` while either value is missing.
- `CameraAabbScale` holds a camera bounding-box scale, `(1.0, 1.0)` by default.

## Command line

```
tilealgo wfc RULES [--width 16] [--height 16] [--seed 0]
tilealgo path [--size 50] [--finders 4] [--seed N]
```

`tilealgo wfc` collapses a square area using the rules file with retrace
settings 8 and 1,000,000, and prints the element index of every cell, one
row per line with the highest row first. It exits with 1 if the collapse
fails and 2 if the rules cannot be read or are invalid.

`tilealgo path` fills a square of the given size with tiles of random cost
from 0 to 9, runs the given number of requests from `(0, 0)` to the far
corner on an isometric grid, prints the length of each path and then
`Pathfinding tasks done!`.

## What this package does not do

It draws nothing and keeps no tilemap of rendered tiles: results come back
as plain data (`WfcData`, `Path`, dictionaries of tiles) for the caller to
use. It does not read LDtk level files, load or save maps, or run work in the
background; every search and collapse runs to completion in the calling
thread.

## Running the tests

```
pip install .[test]
pytest
```