# ═══════════════════════════════════════════════════════════════════════════════
# PART 8: CONTROL VS EXPERIMENT TRIALS
# Design: P2 (Statistical Mechanics) | Implementation: I4 (Integration)
# ═══════════════════════════════════════════════════════════════════════════════

"""
P2: "Single runs prove nothing about a stochastic scheme. Run a clean
control and a noisy experiment from the same soup, compare the final
generation, repeat, and report the success rate."
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from robust_life.core.automaton import (
    AutomatonConfig,
    RobustLife,
    validate_internal_distance,
    validate_noise,
)
from robust_life.core.history import InvalidConfiguration

logger = logging.getLogger(__name__)


@dataclass
class TrialConfig:
    """Configuration for a batch of trials."""
    width: int = 50
    height: int = 50
    num_trials: int = 50
    trial_length: int = 50             # Steps per trial
    cell_density: float = 0.1          # Initial fraction of live cells
    range: int = 5
    noise: float = 0.00005
    internal_distance: float = 0.0
    seed: Optional[int] = None         # Master seed for per-trial seeds


@dataclass
class TrialResult:
    index: int
    seed: int
    matched: bool
    mismatched_cells: int


@dataclass
class TrialReport:
    config: TrialConfig
    results: List[TrialResult] = field(default_factory=list)

    @property
    def successes(self) -> int:
        return sum(1 for r in self.results if r.matched)

    @property
    def errors(self) -> int:
        return len(self.results) - self.successes

    @property
    def success_rate(self) -> float:
        if not self.results:
            return 1.0
        return self.successes / len(self.results)


class TrialRunner:
    """
    Monte Carlo comparison of a noise-free control against a noisy,
    self-correcting experiment.

    The control keeps one generation of history and no noise, so it is the
    plain Game of Life. Both automata start from the same random soup.
    """

    def __init__(self, config: Optional[TrialConfig] = None):
        self.config = config or TrialConfig()
        self._validate()
        cfg = self.config

        self.control = RobustLife(AutomatonConfig(
            width=cfg.width, height=cfg.height, range=1, noise=0.0,
        ))
        self.experiment = RobustLife(AutomatonConfig(
            width=cfg.width,
            height=cfg.height,
            range=cfg.range,
            noise=cfg.noise,
            internal_distance=cfg.internal_distance,
        ))
        self._master = np.random.default_rng(cfg.seed)

    def run(
        self, progress: Optional[Callable[[TrialResult], None]] = None
    ) -> TrialReport:
        """Run all trials. `progress` is called after each one."""
        report = TrialReport(self.config)
        for i in range(self.config.num_trials):
            seed = int(self._master.integers(0, 2**63 - 1))
            result = self.run_trial(i, seed)
            report.results.append(result)
            logger.info(
                "trial %d seed=%d %s", i, seed, "OK" if result.matched else "Error"
            )
            if progress is not None:
                progress(result)

        logger.info(
            "success rate=%.4f (%d/%d)",
            report.success_rate, report.successes, len(report.results),
        )
        return report

    def run_trial(self, index: int, seed: int) -> TrialResult:
        cfg = self.config

        self._init_automaton(self.control, seed)
        self.control.step_n(cfg.trial_length)

        self._init_automaton(self.experiment, seed)
        self.experiment.step_n(cfg.trial_length)

        diff = self.control.current_generation() != self.experiment.current_generation()
        mismatched = int(np.count_nonzero(diff))
        return TrialResult(index, seed, mismatched == 0, mismatched)

    def _init_automaton(self, automaton: RobustLife, seed: int) -> None:
        automaton.set_random_seed(seed)
        automaton.seed_random(self.config.cell_density, seed)

    def _validate(self) -> None:
        cfg = self.config
        if cfg.width <= 0 or cfg.height <= 0:
            raise InvalidConfiguration("Invalid automaton size")
        if cfg.num_trials < 0:
            raise InvalidConfiguration("Invalid number of trials")
        if cfg.trial_length < 0:
            raise InvalidConfiguration("Invalid trial length")
        if not 0.0 <= cfg.cell_density <= 1.0:
            raise InvalidConfiguration("Invalid cell density")
        if cfg.range <= 0:
            raise InvalidConfiguration("Invalid visibility range")
        validate_noise(cfg.noise)
        validate_internal_distance(cfg.internal_distance)
