#!/usr/bin/env python3
"""
Compare noisy self-correcting runs against noise-free control runs.

Usage:
    # Defaults: 50 trials of 50 steps on a 50x50 torus, range 5, noise 5e-5
    python run_trials.py

    # Heavier noise, deeper history, reproducible:
    python run_trials.py --noise 0.001 --range 7 --seed 1234

    # Quick smoke run:
    python run_trials.py --width 20 --height 20 --num-trials 5 --trial-length 10
"""

import argparse
import logging
import sys

from robust_life.core.history import InvalidConfiguration
from robust_life.core.trials import TrialConfig, TrialRunner


def main():
    parser = argparse.ArgumentParser(description="Robust Game of Life trials")
    parser.add_argument("--width", type=int, default=50, help="Automaton width (default: 50)")
    parser.add_argument("--height", type=int, default=50, help="Automaton height (default: 50)")
    parser.add_argument("--num-trials", type=int, default=50, help="Number of trials (default: 50)")
    parser.add_argument("--trial-length", type=int, default=50,
                        help="Steps per trial (default: 50)")
    parser.add_argument("--cell-density", type=float, default=0.1,
                        help="Initial live cell density (default: 0.1)")
    parser.add_argument("--range", type=int, default=5, help="Visibility range (default: 5)")
    parser.add_argument("--noise", type=float, default=0.00005,
                        help="Noise quantum (default: 0.00005)")
    parser.add_argument("--internal-distance", type=float, default=0.0,
                        help="Cell distance to self (default: 0)")
    parser.add_argument("--seed", type=int, default=None, help="Master seed")
    parser.add_argument("--verbose", action="store_true", help="Log each trial")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = TrialConfig(
        width=args.width,
        height=args.height,
        num_trials=args.num_trials,
        trial_length=args.trial_length,
        cell_density=args.cell_density,
        range=args.range,
        noise=args.noise,
        internal_distance=args.internal_distance,
        seed=args.seed,
    )
    try:
        runner = TrialRunner(config)
    except InvalidConfiguration as e:
        print(e, file=sys.stderr)
        sys.exit(1)

    print("Parameters:")
    print(f"Automaton size = {config.width}x{config.height}")
    print(f"Number of trials = {config.num_trials}")
    print(f"Trial length = {config.trial_length}")
    print(f"Cell density = {config.cell_density}")
    print(f"Visibility range = {config.range}")
    print(f"Noise quantum = {config.noise}")
    print(f"Internal distance = {config.internal_distance}")

    print("Begin trials:")

    def progress(result):
        print(f"Trial={result.index}...{'OK' if result.matched else 'Error'}")

    report = runner.run(progress)

    print(
        f"Success rate={report.success_rate} "
        f"({report.successes}/{len(report.results)})"
    )


if __name__ == "__main__":
    main()
