"""Debug helpers: heap checks, camera control and frame statistics."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence

Vec2 = tuple[float, float]
Vec3 = tuple[float, float, float]


class HeapValidationError(ValueError):
    """Raised when a binary heap violates its ordering."""


@dataclass(frozen=True)
class CameraAabbScale:
    """Scale applied to the camera bounding box."""

    scale: Vec2 = (1.0, 1.0)


@dataclass
class CameraInput:
    """Input gathered for one frame of camera control."""

    dragging: bool = False
    motion: list[Vec2] = field(default_factory=list)
    wheel: list[float] = field(default_factory=list)
    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False
    fast: bool = False


@dataclass(frozen=True)
class CameraState:
    """Position and zoom of an orthographic camera."""

    translation: Vec3 = (0.0, 0.0, 0.0)
    scale: float = 1.0


@dataclass
class CameraControl:
    """Target the camera eases toward."""

    target_pos: Vec2 = (0.0, 0.0)
    target_scale: float = 1.0

    def update(
        self, state: CameraState, camera_input: CameraInput, delta_seconds: float
    ) -> CameraState:
        """Apply one frame of input and return the new camera state."""
        tx, ty = self.target_pos
        if camera_input.dragging:
            for dx, dy in camera_input.motion:
                tx -= state.scale * dx
                ty += state.scale * dy
        else:
            step = 90.0 * delta_seconds
            if camera_input.fast:
                step *= 2.0
            tx += (int(camera_input.right) - int(camera_input.left)) * step
            ty += (int(camera_input.up) - int(camera_input.down)) * step
        camera_input.motion.clear()
        self.target_pos = (tx, ty)

        target = (tx, ty, 0.0)
        translation = state.translation
        distance_squared = sum((a - b) ** 2 for a, b in zip(translation, target))
        if distance_squared > 0.01:
            t = 40.0 * delta_seconds
            translation = tuple(a + (b - a) * t for a, b in zip(translation, target))

        for amount in camera_input.wheel:
            self.target_scale = max(self.target_scale - amount * 0.02, 0.01)

        scale = state.scale
        if abs(scale - self.target_scale) > 0.01:
            scale += (self.target_scale - scale) * 20.0 * delta_seconds

        return replace(state, translation=translation, scale=scale)


def validate_heap(tree: Sequence[Optional[tuple[Any, Any]]], asc: bool = True) -> int:
    """Check a 1-based array heap of ``(key, value)`` slots.

    Returns the number of occupied slots checked; raises HeapValidationError
    at the first parent that is out of order with a child.
    """
    checked = 0
    for i, entry in enumerate(tree):
        if i == 0 or entry is None:
            continue
        checked += 1
        key = entry[0]
        for child in (2 * i, 2 * i + 1):
            if child >= len(tree) or tree[child] is None:
                continue
            child_key = tree[child][0]
            ordered = key <= child_key if asc else key >= child_key
            if not ordered:
                raise HeapValidationError(f"heap validation failed at index {i}")
    return checked


def format_frame_stats(fps: Optional[float], frame_time: Optional[float]) -> Optional[str]:
    """Text for the frame-rate display, or None while either value is missing."""
    if fps is None or frame_time is None:
        return None
    return f"{fps:.2f} ({frame_time:.2f} ms)"