# ═══════════════════════════════════════════════════════════════════════════════
# PART 5: CONSISTENCY CORRECTION
# Design: P1 (Dynamical Systems) + P2 (Statistical Mechanics)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════

"""
P1: "A neighbour's reading should follow from its own neighbourhood one step
earlier. If it doesn't, either the reading or the history is wrong. Keep
going back until the history runs out."

P2: "Evidence from a window is only as good as its weakest reading, so the
nine weights multiply. Two agreeing readings are independent witnesses:
combine with the probabilistic union."
"""

from __future__ import annotations

import numpy as np

from robust_life.core.cone import Cone
from robust_life.core.rules import neighbourhood_rule


def correct(cone: Cone) -> None:
    """
    Correct the eight neighbours of the cone's centre.

    The centre itself is never corrected: its next state is what the
    corrected neighbourhood is used to compute.
    """
    cone.clear_marks()
    for x in range(3):
        for y in range(3):
            if x != 1 or y != 1:
                correct_cell(cone, 0, x, y)


def correct_cell(cone: Cone, layer: int, cx: int, cy: int) -> None:
    """
    Check one reading against the rule prediction from the next-older layer.

    (cx, cy) are local coordinates in `layer`. The same position is at
    (cx+1, cy+1) in the next layer, which is one radius wider.
    """
    current = cone.layers[layer]
    if current.marks[cx, cy]:
        return
    current.marks[cx, cy] = True

    if layer >= cone.depth - 1 or cone.noise == 0.0:
        return

    # Resolve the older evidence first
    for x in range(3):
        for y in range(3):
            correct_cell(cone, layer + 1, cx + x, cy + y)

    older = cone.layers[layer + 1]
    window = older.states[cx:cx + 3, cy:cy + 3]
    predicted = neighbourhood_rule(window)
    weight = float(np.prod(older.weights[cx:cx + 3, cy:cy + 3]))

    if predicted != bool(current.states[cx, cy]):
        # Overrule the reading only if history outweighs it
        if weight > current.weights[cx, cy]:
            current.states[cx, cy] = predicted
            current.weights[cx, cy] = weight
    else:
        current.weights[cx, cy] = 1.0 - (1.0 - weight) * (1.0 - current.weights[cx, cy])
