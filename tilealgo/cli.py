"""Command line demos for wave function collapse and pathfinding."""

from __future__ import annotations

import argparse
import random
import sys
from os import PathLike
from pathlib import Path
from typing import Hashable, Optional, Sequence, Union

from tilealgo.grid import TileArea, TilemapType
from tilealgo.pathfinding import (
    Path as TilePath,
    PathFinder,
    PathFindingQueue,
    PathTile,
    PathTilemap,
)
from tilealgo.rules import WfcRules
from tilealgo.wfc import WfcData, WfcRunner, run_wfc


def run_wfc_demo(
    rules_path: Union[str, PathLike],
    width: int = 16,
    height: int = 16,
    seed: Optional[int] = 0,
) -> Optional[WfcData]:
    """Collapse a square area using the rules in ``rules_path``; None on failure."""
    rules = WfcRules.from_file(rules_path, TilemapType.SQUARE)
    runner = WfcRunner(
        TilemapType.SQUARE, rules, TileArea((0, 0), (width, height)), seed
    ).with_retrace_settings(8, 1_000_000)
    return run_wfc(runner)


def run_pathfinding_demo(
    size: int = 50, finders: int = 4, seed: Optional[int] = None
) -> dict[Hashable, TilePath]:
    """Find paths across a square of randomly weighted tiles, corner to corner."""
    if size < 1:
        raise ValueError(f"size must be at least 1, got {size}")
    rng = random.Random(seed)
    tilemap = PathTilemap()
    tilemap.fill_rect_custom(
        TileArea((0, 0), (size, size)), lambda _: PathTile(rng.randrange(10))
    )
    dest = (size - 1, size - 1)
    queue = PathFindingQueue.with_schedules(
        tilemap, ((i, PathFinder(origin=(0, 0), dest=dest)) for i in range(finders))
    )
    return queue.run(TilemapType.ISOMETRIC)


def render_wfc_data(data: WfcData) -> str:
    """Render the result as rows of element indices, highest row first."""
    width, height = data.area.extent
    return "\n".join(
        " ".join(str(data.get((x, y))) for x in range(width))
        for y in reversed(range(height))
    )


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tilealgo", description="Tile algorithm demos.")
    commands = parser.add_subparsers(dest="command", required=True)

    wfc = commands.add_parser("wfc", help="run wave function collapse")
    wfc.add_argument("rules", type=Path, help="file of adjacency rules")
    wfc.add_argument("--width", type=int, default=16)
    wfc.add_argument("--height", type=int, default=16)
    wfc.add_argument("--seed", type=int, default=0)

    path = commands.add_parser("path", help="run pathfinding")
    path.add_argument("--size", type=int, default=50)
    path.add_argument("--finders", type=int, default=4)
    path.add_argument("--seed", type=int, default=None)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parser().parse_args(argv)

    if args.command == "wfc":
        try:
            data = run_wfc_demo(args.rules, args.width, args.height, args.seed)
        except (OSError, ValueError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        if data is None:
            print("wave function collapse failed", file=sys.stderr)
            return 1
        print(render_wfc_data(data))
        return 0

    try:
        paths = run_pathfinding_demo(args.size, args.finders, args.seed)
    except (LookupError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    for requester, found in paths.items():
        print(f"finder {requester}: {len(found)} steps")
    print("Pathfinding tasks done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())