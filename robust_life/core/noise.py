# ═══════════════════════════════════════════════════════════════════════════════
# PART 4: NOISE INJECTION
# Design: S2 (Distributed Systems) | Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════

"""
Readings flip with probability 1 - weight. All draws come from one seeded
stream, consumed layer by layer, x outer, y inner, so a seed replays a run.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from robust_life.core.cone import Cone


class NoiseSource:
    """
    Seedable stream of uniform [0, 1) draws.

    Backed by numpy's PCG64 generator. The seed is the only determinism
    handle; bit-compatibility with any other generator is not attempted.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def reseed(self, seed: Optional[int]) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def uniform(self, shape: Union[int, Tuple[int, ...]]) -> np.ndarray:
        """Draws in C order, i.e. last axis fastest."""
        return self._rng.random(shape)

    @property
    def state(self) -> Dict[str, Any]:
        return self._rng.bit_generator.state

    def set_state(self, state: Dict[str, Any]) -> None:
        self._rng.bit_generator.state = state


def add_noise(cone: Cone, source: NoiseSource) -> int:
    """
    Flip readings across every materialised layer of a cone.

    Returns the number of flips.
    """
    flips = 0
    for layer in cone.layers:
        draws = source.uniform(layer.states.shape)
        flip = draws >= layer.weights
        layer.states ^= flip
        flips += int(np.count_nonzero(flip))
    return flips
