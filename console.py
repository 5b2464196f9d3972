#!/usr/bin/env python3
"""
Interactive console for a robust Game of Life automaton.

Usage:
    # Default 50x50 torus, range 5, no noise:
    python console.py

    # Noisy run with a fixed seed:
    python console.py --noise 0.001 --seed 42

    # Start from a pattern file:
    python console.py --load patterns/glider.txt

    # Smaller board, deeper history:
    python console.py --width 20 --height 20 --range 7
"""

import argparse
import logging

from robust_life.core.automaton import AutomatonConfig, RobustLife
from robust_life.core.history import InvalidConfiguration
from robust_life.core.persistence import (
    CheckpointPersistence,
    PatternPersistence,
    PersistenceError,
)


def render(automaton):
    """Draw layer 0 with y increasing upwards."""
    cells = automaton.current_generation()
    rows = []
    for y in range(automaton.height - 1, -1, -1):
        rows.append("".join("#" if cells[x, y] else "." for x in range(automaton.width)))
    return "\n".join(rows)


def format_state(automaton):
    """Format automaton summary for display."""
    state = automaton.get_state()
    parts = [
        f"  Generation: {state['generation']}",
        f"  Population: {state['population']}",
        f"  Size: {state['width']}x{state['height']}  Range: {state['range']}",
        f"  Noise: {state['noise']}  Internal distance: {state['internal_distance']}",
        f"  Settle: {state['settle_count']}  Correcting: {state['correcting']}",
    ]
    if state["seed"] is not None:
        parts.append(f"  Seed: {state['seed']}")
    return "\n".join(parts)


HELP_TEXT = """
Commands:
  /help                    Show this help
  /show                    Draw the current generation
  /state                   Show automaton summary
  /step [n]                Advance n generations (default 1)

  /toggle <x> <y>          Flip a cell (restarts the settle countdown)
  /clear                   Clear all history
  /random <density>        Clear and seed randomly at density
  /dump <x> <y>            Dump a cell's history neighbourhood

  /noise <q>               Set noise quantum (0-1)
  /internal <d>            Set internal distance (>= 0)
  /seed <s>                Reseed the noise stream

  /load <path>             Load a pattern file
  /save <path>             Save current generation as a pattern file
  /checkpoint <path>       Save full state
  /restore <path>          Restore full state

  quit, exit               End session
""".strip()


def handle_command(user_input, session):
    """Handle slash commands. Returns True if command was handled."""
    if not user_input.startswith("/"):
        return False

    parts = user_input.split()
    cmd = parts[0].lower()
    args = parts[1:]
    automaton = session["automaton"]

    try:
        if cmd == "/help":
            print(f"\n{HELP_TEXT}\n")

        elif cmd == "/show":
            print(f"\n{render(automaton)}\n")

        elif cmd == "/state":
            print(f"\n[State]\n{format_state(automaton)}\n")

        elif cmd == "/step":
            count = int(args[0]) if args else 1
            automaton.step_n(count)
            print(f"\n{render(automaton)}")
            print(f"[Generation {automaton.generation}, population {automaton.population}]\n")

        elif cmd == "/toggle":
            if len(args) < 2:
                print("\nUsage: /toggle <x> <y>\n")
            else:
                alive = automaton.toggle_cell(int(args[0]), int(args[1]))
                print(f"\n[Cell {args[0]},{args[1]} {'alive' if alive else 'dead'}]\n")

        elif cmd == "/clear":
            automaton.clear()
            print("\n[Cleared]\n")

        elif cmd == "/random":
            if not args:
                print("\nUsage: /random <density>\n")
            else:
                n = automaton.seed_random(float(args[0]), automaton.noise_source.seed)
                print(f"\n[Seeded {n} cells]\n")

        elif cmd == "/dump":
            if len(args) < 2:
                print("\nUsage: /dump <x> <y>\n")
            else:
                print(f"\n{automaton.dump_cell(int(args[0]), int(args[1]))}")

        elif cmd == "/noise":
            if not args:
                print("\nUsage: /noise <q>\n")
            else:
                automaton.set_noise(float(args[0]))
                print(f"\n[Noise quantum = {automaton.noise}]\n")

        elif cmd == "/internal":
            if not args:
                print("\nUsage: /internal <d>\n")
            else:
                automaton.set_internal_distance(float(args[0]))
                print(f"\n[Internal distance = {automaton.internal_distance}]\n")

        elif cmd == "/seed":
            if not args:
                print("\nUsage: /seed <s>\n")
            else:
                automaton.set_random_seed(int(args[0]))
                print(f"\n[Seed = {args[0]}]\n")

        elif cmd == "/load":
            if not args:
                print("\nUsage: /load <path>\n")
            else:
                session["automaton"] = PatternPersistence.load(args[0], automaton.config)
                print(f"\n[{args[0]} loaded]\n")

        elif cmd == "/save":
            if not args:
                print("\nUsage: /save <path>\n")
            else:
                PatternPersistence.save(automaton, args[0])
                print(f"\n[{args[0]} saved]\n")

        elif cmd == "/checkpoint":
            if not args:
                print("\nUsage: /checkpoint <path>\n")
            else:
                result = CheckpointPersistence.save(automaton, args[0])
                print(f"\n[Checkpoint {result.path} generation {result.generation}]")
                print(f"  Hash: {result.state_hash[:16]}...  Verified: {result.verified}\n")

        elif cmd == "/restore":
            if not args:
                print("\nUsage: /restore <path>\n")
            else:
                session["automaton"] = CheckpointPersistence.load(args[0])
                print(f"\n[Restored generation {session['automaton'].generation}]\n")

        else:
            print(f"\nUnknown command: {cmd}")
            print("Type /help for available commands.\n")

    except (ValueError, OSError, PersistenceError) as e:
        # InvalidConfiguration is a ValueError
        print(f"\nError: {e}\n")

    return True


def main():
    parser = argparse.ArgumentParser(description="Robust Game of Life console")
    parser.add_argument("--width", type=int, default=50, help="Automaton width (default: 50)")
    parser.add_argument("--height", type=int, default=50, help="Automaton height (default: 50)")
    parser.add_argument("--range", type=int, default=5, help="Visibility range (default: 5)")
    parser.add_argument("--noise", type=float, default=0.0, help="Noise quantum (default: 0)")
    parser.add_argument("--internal-distance", type=float, default=0.0,
                        help="Cell distance to self (default: 0)")
    parser.add_argument("--seed", type=int, default=None, help="Noise stream seed")
    parser.add_argument("--load", default=None, help="Pattern file to load")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = AutomatonConfig(
        width=args.width,
        height=args.height,
        range=args.range,
        noise=args.noise,
        internal_distance=args.internal_distance,
        seed=args.seed,
    )
    try:
        if args.load:
            automaton = PatternPersistence.load(args.load, config)
        else:
            automaton = RobustLife(config)
    except (InvalidConfiguration, PersistenceError, OSError) as e:
        parser.error(str(e))

    session = {"automaton": automaton}

    print(f"\n{'=' * 60}")
    print("  Robust Game of Life")
    print(f"  {automaton.width}x{automaton.height}, range {automaton.range}, noise {automaton.noise}")
    print(f"{'=' * 60}")
    print("  Type /help for commands. Enter on its own steps once.")
    print(f"{'=' * 60}\n")

    while True:
        try:
            user_input = input("life> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\nGoodbye.")
            break

        if user_input.lower() in ("quit", "exit"):
            print("\nGoodbye.")
            break

        if not user_input:
            user_input = "/step"

        if handle_command(user_input, session):
            continue

        print("Commands start with '/'. Type /help.\n")


if __name__ == "__main__":
    main()
