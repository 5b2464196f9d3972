# ═══════════════════════════════════════════════════════════════════════════════
# PART 1: LIFE RULE
# Design: P1 (Dynamical Systems) | Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════

"""
B3/S23 transition rule, in scalar form for cone windows and in vectorised
form for whole toroidal generations.
"""

from __future__ import annotations

import numpy as np


def life_rule(alive: bool, live_neighbours: int) -> bool:
    """A live cell survives with 2 or 3 live neighbours; a dead cell is born with 3."""
    if alive:
        return live_neighbours == 2 or live_neighbours == 3
    return live_neighbours == 3


def neighbourhood_rule(window: np.ndarray) -> bool:
    """Apply the rule to the centre of a 3x3 boolean window."""
    centre = bool(window[1, 1])
    count = int(np.count_nonzero(window)) - int(centre)
    return life_rule(centre, count)


def life_step(grid: np.ndarray) -> np.ndarray:
    """One generation of a toroidal grid indexed [x, y]."""
    grid = np.asarray(grid, dtype=bool)
    neighbours = sum(
        np.roll(np.roll(grid, dx, axis=0), dy, axis=1).astype(np.int8)
        for dx in (-1, 0, 1)
        for dy in (-1, 0, 1)
        if not (dx == 0 and dy == 0)
    )
    birth = (neighbours == 3) & ~grid
    survive = ((neighbours == 2) | (neighbours == 3)) & grid
    return birth | survive
