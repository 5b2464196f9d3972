# ═══════════════════════════════════════════════════════════════════════════════
# PART 6: ROBUST LIFE AUTOMATON (putting it all together)
# Design: Full team
# Implementation: I1 (Systems Architect)
# ═══════════════════════════════════════════════════════════════════════════════


"""
I1: "This is the class that wires everything together. History in, one cone
per cell, noise and correction when the history is settled, rule, commit."
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

import numpy as np

from robust_life.core.cone import build_cone
from robust_life.core.correction import correct
from robust_life.core.history import HistoryStore, InvalidConfiguration
from robust_life.core.noise import NoiseSource, add_noise
from robust_life.core.rules import life_step

logger = logging.getLogger(__name__)

DEFAULT_NOISE_QUANTUM = 0.0
DEFAULT_INTERNAL_DISTANCE = 0.0


@dataclass
class AutomatonConfig:
    """Configuration for a robust life automaton."""
    width: int = 50
    height: int = 50
    range: int = 5                     # Generations retained (visibility range)
    noise: float = DEFAULT_NOISE_QUANTUM
    internal_distance: float = DEFAULT_INTERNAL_DISTANCE  # A cell's distance to itself
    seed: Optional[int] = None         # None = seeded from OS entropy


def validate_noise(noise: float) -> float:
    noise = float(noise)
    if not 0.0 <= noise <= 1.0:
        raise InvalidConfiguration(f"Invalid noise quantum {noise}")
    return noise


def validate_internal_distance(internal_distance: float) -> float:
    internal_distance = float(internal_distance)
    if not (internal_distance >= 0.0 and math.isfinite(internal_distance)):
        raise InvalidConfiguration(f"Invalid internal distance {internal_distance}")
    return internal_distance


class RobustLife:
    """
    Game of Life whose neighbour readings are noisy and self-corrected.

    Each step, every cell builds a light cone from the retained history.
    Once the settle counter has reached zero and noise is positive, the cone
    is corrupted by noise and then corrected against older layers before the
    Life rule is applied to its 3x3 surface.

    All mutation and snapshot reads go through one re-entrant lock.
    """

    def __init__(self, config: Optional[AutomatonConfig] = None):
        self.config = replace(config) if config is not None else AutomatonConfig()
        cfg = self.config

        self.history = HistoryStore(cfg.width, cfg.height, cfg.range)
        self._noise = validate_noise(cfg.noise)
        self._internal_distance = validate_internal_distance(cfg.internal_distance)
        self.noise_source = NoiseSource(cfg.seed)

        self._lock = threading.RLock()
        self._generation: int = 0
        self.last_flips: int = 0

    # ── Properties ──────────────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self.history.width

    @property
    def height(self) -> int:
        return self.history.height

    @property
    def range(self) -> int:
        return self.history.range

    @property
    def noise(self) -> float:
        return self._noise

    @property
    def internal_distance(self) -> float:
        return self._internal_distance

    @property
    def settle_count(self) -> int:
        with self._lock:
            return self.history.settle_count

    @property
    def generation(self) -> int:
        """Steps taken since construction."""
        with self._lock:
            return self._generation

    @property
    def population(self) -> int:
        with self._lock:
            return int(np.count_nonzero(self.history.current))

    @property
    def correcting(self) -> bool:
        """True if the next step will inject noise and correct it."""
        return self.history.settled and self._noise > 0.0

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # ── Configuration ───────────────────────────────────────────────────────

    def set_noise(self, noise: float) -> None:
        with self._lock:
            self._noise = validate_noise(noise)
            self.config.noise = self._noise

    def set_internal_distance(self, internal_distance: float) -> None:
        with self._lock:
            self._internal_distance = validate_internal_distance(internal_distance)
            self.config.internal_distance = self._internal_distance

    def set_random_seed(self, seed: Optional[int]) -> None:
        with self._lock:
            self.noise_source.reseed(seed)
            self.config.seed = seed

    # ── Stepping ────────────────────────────────────────────────────────────

    def step(self) -> np.ndarray:
        """
        Advance one generation. Returns a copy of the new generation.

        Sequence:
        1. Per cell (x outer, y inner): build cone, noise + correct if active,
           apply rule to layer 0
        2. Shift history, install new generation
        3. Count down the settle counter
        """
        with self._lock:
            if self.correcting:
                next_cells = self._noisy_generation()
            else:
                # Every cone would be a bare 3x3 neighbourhood
                next_cells = life_step(self.history.current)
                self.last_flips = 0

            self.history.advance(next_cells)
            self.history.tick_settle()
            self._generation += 1

            logger.debug(
                "generation %d: population=%d settle=%d flips=%d",
                self._generation,
                int(np.count_nonzero(next_cells)),
                self.history.settle_count,
                self.last_flips,
            )
            return next_cells.copy()

    def step_n(self, count: int) -> None:
        if count < 0:
            raise InvalidConfiguration(f"Invalid step count {count}")
        for _ in range(count):
            self.step()

    def _noisy_generation(self) -> np.ndarray:
        next_cells = np.zeros((self.width, self.height), dtype=bool)
        flips = 0
        for x in range(self.width):
            for y in range(self.height):
                cone = build_cone(
                    self.history, x, y, self._noise, self._internal_distance
                )
                flips += add_noise(cone, self.noise_source)
                correct(cone)
                next_cells[x, y] = cone.next_state()
        self.last_flips = flips
        return next_cells

    # ── Editing ─────────────────────────────────────────────────────────────

    def toggle_cell(self, x: int, y: int) -> bool:
        with self._lock:
            return self.history.toggle_cell(x, y)

    def clear(self) -> None:
        with self._lock:
            self.history.clear()

    def seed_from_coordinates(self, coords: Iterable[Tuple[int, int]]) -> int:
        """Set the given cells alive on layer 0 and restart the settle countdown."""
        with self._lock:
            n = self.history.set_alive(coords)
            logger.debug("seeded %d cells, settle=%d", n, self.history.settle_count)
            return n

    def seed_random(self, density: float, seed: Optional[int] = None) -> int:
        """Clear, then seed layer 0 with cells alive at the given density."""
        if not 0.0 <= density <= 1.0:
            raise InvalidConfiguration(f"Invalid cell density {density}")
        rng = np.random.default_rng(seed)
        alive = rng.random((self.width, self.height)) < density
        with self._lock:
            self.history.clear()
            return self.seed_from_coordinates(map(tuple, np.argwhere(alive)))

    def restore(
        self,
        layers: List[List[Tuple[int, int]]],
        settle_count: int,
        generation: int,
        rng_state: dict,
    ) -> None:
        """Install saved history, counters and generator state."""
        if len(layers) != self.range:
            raise InvalidConfiguration(
                f"Expected {self.range} history layers, got {len(layers)}"
            )
        settle_count = int(settle_count)
        generation = int(generation)
        if not 0 <= settle_count < self.range:
            raise InvalidConfiguration(f"Invalid settle count {settle_count}")
        if generation < 0:
            raise InvalidConfiguration(f"Invalid generation {generation}")

        with self._lock:
            for r, cells in enumerate(layers):
                self.history.set_layer_cells(r, cells)
            self.history.settle_count = settle_count
            self.noise_source.set_state(rng_state)
            self._generation = generation

    # ── Reading ─────────────────────────────────────────────────────────────

    def current_generation(self) -> np.ndarray:
        """Read-only snapshot of layer 0, indexed [x, y]."""
        with self._lock:
            snapshot = self.history.current.copy()
        snapshot.flags.writeable = False
        return snapshot

    def live_cells(self) -> List[Tuple[int, int]]:
        with self._lock:
            return [(int(x), int(y)) for x, y in np.argwhere(self.history.current)]

    def dump_cell(self, cx: int, cy: int) -> str:
        """
        Text dump of the history around one cell.

        Layer L is shown as the (2L+1) square centred on the cell, which is
        everything that could have reached it L steps ago.
        """
        lines = [f"Dump for cell {cx},{cy}:"]
        with self._lock:
            for level in range(self.range):
                window = self.history.window(level, cx, cy, level)
                for row in window:
                    lines.append("".join("1" if s else "0" for s in row))
                lines.append("")
        return "\n".join(lines)

    def get_state(self) -> dict:
        """Summary for display and logging."""
        with self._lock:
            return {
                "width": self.width,
                "height": self.height,
                "range": self.range,
                "noise": self._noise,
                "internal_distance": self._internal_distance,
                "seed": self.noise_source.seed,
                "generation": self._generation,
                "settle_count": self.history.settle_count,
                "population": int(np.count_nonzero(self.history.current)),
                "correcting": self.correcting,
            }
