# ═══════════════════════════════════════════════════════════════════════════════
# PART 3: LIGHT CONE
# Design: P1 (Dynamical Systems) + S2 (Distributed Systems)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════

"""
S2: "Treat every cell as a node. States travel one cell per step, so what a
node sees k steps back is a window of radius k+1. Readings that travelled
further are less trustworthy."

I2: "Each layer is three parallel arrays: states, weights, marks. Layers go
in a flat list, so 'next layer' is just index + 1."
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from robust_life.core.history import HistoryStore
from robust_life.core.rules import neighbourhood_rule


@dataclass
class ConeLayer:
    """One historical window of a cone."""
    index: int
    states: np.ndarray     # bool [dim, dim]
    weights: np.ndarray    # float [dim, dim], confidence in [0, 1]
    marks: np.ndarray      # bool [dim, dim], visited during correction

    @property
    def dimension(self) -> int:
        return self.states.shape[0]

    @property
    def radius(self) -> int:
        return self.dimension // 2


def confidence_weights(
    dimension: int, noise: float, internal_distance: float
) -> np.ndarray:
    """
    Confidence of each position in a square window.

    1 - noise * (manhattan distance from centre + internal distance),
    clipped to [0, 1].
    """
    half = dimension // 2
    offsets = np.abs(np.arange(dimension) - half)
    distance = offsets[:, np.newaxis] + offsets[np.newaxis, :]
    weights = 1.0 - noise * (distance + internal_distance)
    return np.clip(weights, 0.0, 1.0)


class Cone:
    """
    Light-cone evidence around a single cell (cx, cy).

    Layer L has dimension 2(L+1)+1 and is sourced from history layer L.
    Deeper layers are only materialised when noise > 0; with zero noise a
    cone is just the ordinary 3x3 neighbourhood.

    Built fresh for one step and then discarded.
    """

    def __init__(self, cx: int, cy: int, layers: List[ConeLayer], noise: float):
        self.cx = cx
        self.cy = cy
        self.layers = layers
        self.noise = noise

    # ── Properties ──────────────────────────────────────────────────────────

    @property
    def depth(self) -> int:
        """Number of materialised layers."""
        return len(self.layers)

    @property
    def surface(self) -> ConeLayer:
        """Layer 0: the 3x3 neighbourhood from the previous generation."""
        return self.layers[0]

    # ── Methods ─────────────────────────────────────────────────────────────

    def next_state(self) -> bool:
        """Life rule applied to the (possibly corrected) layer-0 window."""
        return neighbourhood_rule(self.surface.states)

    def clear_marks(self) -> None:
        for layer in self.layers:
            layer.marks[:] = False

    def dump(self) -> str:
        """Render every layer as rows of 0/1, innermost first."""
        blocks = []
        for layer in self.layers:
            rows = [
                "".join("1" if s else "0" for s in layer.states[x])
                for x in range(layer.dimension)
            ]
            blocks.append("\n".join(rows))
        return f"Cone dump ({self.cx},{self.cy}):\n" + "\n\n".join(blocks) + "\n"


def build_cone(
    history: HistoryStore,
    cx: int,
    cy: int,
    noise: float,
    internal_distance: float,
) -> Cone:
    """Build the cone centred on (cx, cy) from the current history."""
    depth = history.range if noise > 0.0 else 1

    layers: List[ConeLayer] = []
    for index in range(depth):
        dimension = 2 * (index + 1) + 1
        states = history.window(index, cx, cy, index + 1).copy()
        weights = confidence_weights(dimension, noise, internal_distance)
        marks = np.zeros((dimension, dimension), dtype=bool)
        layers.append(ConeLayer(index, states, weights, marks))

    return Cone(cx, cy, layers, noise)
