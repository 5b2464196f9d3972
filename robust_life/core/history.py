# ═══════════════════════════════════════════════════════════════════════════════
# PART 2: HISTORY STORE
# Design: P1 (Dynamical Systems) | Implementation: I3 (State Management)
# ═══════════════════════════════════════════════════════════════════════════════

"""
P1: "A cell can only check a neighbour against what that neighbour's
neighbours looked like a step ago. So we keep the last few generations
around, newest first, and nothing more."

I3: "One boolean array, layers stacked on axis 0. Shift is a slice copy.
The settle counter lives next to it because every edit has to reset it."
"""

from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np


# ── Exceptions ───────────────────────────────────────────────────────────────


class InvalidConfiguration(ValueError):
    """Raised when the automaton is asked to adopt an unusable parameter."""
    pass


class HistoryStore:
    """
    Layered toroidal grid of cell states.

    Layer 0 is the most recent generation, layer range-1 the oldest one
    retained. All coordinates wrap modulo width/height.

    The settle counter gates noise and correction: after any discontinuity
    (edit, load) it is reset to range-1 and counts down one per advance, so
    that a full clean history exists before readings are trusted to it.
    """

    def __init__(self, width: int, height: int, depth: int):
        if width <= 0 or height <= 0:
            raise InvalidConfiguration(f"Invalid dimensions {width}x{height}")
        if depth <= 0:
            raise InvalidConfiguration(f"Invalid visibility range {depth}")

        self._width = int(width)
        self._height = int(height)
        self._range = int(depth)

        self.layers: np.ndarray = np.zeros(
            (self._range, self._width, self._height), dtype=bool
        )
        self.settle_count: int = self._range - 1

    # ── Properties ──────────────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def range(self) -> int:
        """Number of generations retained."""
        return self._range

    @property
    def current(self) -> np.ndarray:
        """Layer 0 (live view, not a copy)."""
        return self.layers[0]

    @property
    def settled(self) -> bool:
        """True once enough clean history has accumulated for correction."""
        return self.settle_count == 0

    # ── Methods ─────────────────────────────────────────────────────────────

    def wrap(self, x: int, y: int) -> Tuple[int, int]:
        return x % self._width, y % self._height

    def cell(self, layer: int, x: int, y: int) -> bool:
        x, y = self.wrap(x, y)
        return bool(self.layers[layer, x, y])

    def window(self, layer: int, cx: int, cy: int, radius: int) -> np.ndarray:
        """Square (2*radius+1) window of a layer centred on (cx, cy), wrapped."""
        xs = np.arange(cx - radius, cx + radius + 1) % self._width
        ys = np.arange(cy - radius, cy + radius + 1) % self._height
        return self.layers[layer][np.ix_(xs, ys)]

    def advance(self, next_layer0: np.ndarray) -> None:
        """Shift every layer one step older and install the new generation."""
        next_layer0 = np.asarray(next_layer0, dtype=bool)
        if next_layer0.shape != (self._width, self._height):
            raise InvalidConfiguration(
                f"Generation shape {next_layer0.shape} does not match "
                f"{(self._width, self._height)}"
            )
        for r in range(self._range - 2, -1, -1):
            self.layers[r + 1] = self.layers[r]
        self.layers[0] = next_layer0

    def toggle_cell(self, x: int, y: int) -> bool:
        """Flip a layer-0 cell. Returns its new state."""
        x, y = self.wrap(x, y)
        self.layers[0, x, y] = not self.layers[0, x, y]
        self.reset_settle()
        return bool(self.layers[0, x, y])

    def set_alive(self, coords: Iterable[Tuple[int, int]]) -> int:
        """Mark cells alive on layer 0. Returns the number of coordinates applied."""
        n = 0
        for x, y in coords:
            x, y = self.wrap(int(x), int(y))
            self.layers[0, x, y] = True
            n += 1
        self.reset_settle()
        return n

    def set_layer_cells(self, layer: int, cells: Iterable[Tuple[int, int]]) -> None:
        """Replace one layer with exactly the given live cells. No wrapping."""
        if not 0 <= layer < self._range:
            raise InvalidConfiguration(f"Invalid history layer {layer}")
        grid = np.zeros((self._width, self._height), dtype=bool)
        for x, y in cells:
            x, y = int(x), int(y)
            if not (0 <= x < self._width and 0 <= y < self._height):
                raise InvalidConfiguration(f"Cell ({x}, {y}) outside {self._width}x{self._height}")
            grid[x, y] = True
        self.layers[layer] = grid

    def clear(self) -> None:
        """Zero all layers. The settle counter is left alone."""
        self.layers[:] = False

    def reset_settle(self) -> None:
        self.settle_count = self._range - 1

    def tick_settle(self) -> None:
        if self.settle_count > 0:
            self.settle_count -= 1

    def get_state(self) -> dict:
        """Serialize as live-cell lists per layer."""
        return {
            "width": self._width,
            "height": self._height,
            "range": self._range,
            "settle_count": self.settle_count,
            "layers": [
                np.argwhere(self.layers[r]).tolist() for r in range(self._range)
            ],
        }
