"""Tile grid algorithms: pathfinding, wave function collapse, LDtk entity helpers and debug aids."""

__version__ = "0.1.0"

__all__ = ["cli", "debug", "grid", "ldtk", "pathfinding", "rules", "wfc"]