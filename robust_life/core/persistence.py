# ═══════════════════════════════════════════════════════════════════════════════
# PART 7: PERSISTENCE
# Design: I3 (State Management)
# Implementation: I3 (State Management)
# ═══════════════════════════════════════════════════════════════════════════════


"""
I3: "Two formats. Patterns are the plain text files people trade around:
range, noise, dimensions, then live cells. Checkpoints are everything -
every history layer, the settle counter, the generator state - so a noisy
run resumes exactly where it stopped."
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

import numpy as np

from robust_life.core.automaton import AutomatonConfig, RobustLife

logger = logging.getLogger(__name__)

CHECKPOINT_VERSION = "1.0"


# ── Exceptions ───────────────────────────────────────────────────────────────


class PersistenceError(Exception):
    """Base class for persistence errors."""
    pass


class PatternFormatError(PersistenceError):
    """Raised when a pattern file is malformed."""
    pass


class StateCorruptionError(PersistenceError):
    """Raised when a checkpoint is corrupted or invalid."""
    pass


# ── Result / Info Dataclasses ────────────────────────────────────────────────


@dataclass
class SaveResult:
    path: str
    state_hash: str
    timestamp: str
    generation: int
    size_bytes: int
    verified: bool


@dataclass
class VerificationResult:
    valid: bool
    state_hash: str
    error: Optional[str] = None


class _NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.bool_):
            return bool(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


def _state_hash(state_dict: dict) -> str:
    state_json = json.dumps(state_dict, sort_keys=True, cls=_NumpyEncoder)
    return hashlib.sha256(state_json.encode()).hexdigest()


# ── Pattern Files ────────────────────────────────────────────────────────────


class PatternPersistence:
    """
    Plain text pattern format.

        <range>
        <noise quantum>
        <width> <height>
        <x> <y>          one line per live cell

    Blank cell lines are skipped. A loaded automaton starts with its settle
    counter at range-1.
    """

    @classmethod
    def load(cls, path: str, config: Optional[AutomatonConfig] = None) -> RobustLife:
        """
        Load a pattern file.

        Args:
            path: File to read.
            config: Optional base config supplying internal distance and seed.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            PatternFormatError: If the contents are malformed.
        """
        with open(path, "r") as f:
            text = f.read()
        automaton = cls.loads(text, source=str(path), config=config)
        logger.info("loaded %s (%d live cells)", path, automaton.population)
        return automaton

    @classmethod
    def loads(
        cls,
        text: str,
        source: str = "<string>",
        config: Optional[AutomatonConfig] = None,
    ) -> RobustLife:
        lines = text.splitlines()

        depth = cls._parse_range(cls._line(lines, 0, source), source)
        noise = cls._parse_noise(cls._line(lines, 1, source), source)
        width, height = cls._parse_dimensions(cls._line(lines, 2, source), source)

        coords = []
        for line in lines[3:]:
            tokens = line.split()
            if not tokens:
                continue
            coords.append(cls._parse_cell(tokens, width, height, source))

        base = config or AutomatonConfig()
        automaton = RobustLife(AutomatonConfig(
            width=width,
            height=height,
            range=depth,
            noise=noise,
            internal_distance=base.internal_distance,
            seed=base.seed,
        ))
        automaton.seed_from_coordinates(coords)
        return automaton

    @classmethod
    def save(cls, automaton: RobustLife, path: str) -> str:
        """Write the automaton's current generation as a pattern file."""
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w") as f:
            f.write(cls.dumps(automaton))
        logger.info("saved %s", file_path)
        return str(file_path)

    @classmethod
    def dumps(cls, automaton: RobustLife) -> str:
        with automaton.lock:
            lines = [
                str(automaton.range),
                repr(automaton.noise),
                f"{automaton.width} {automaton.height}",
            ]
            lines.extend(f"{x} {y}" for x, y in automaton.live_cells())
        return "\n".join(lines) + "\n"

    # ── Parsing Helpers ──────────────────────────────────────────────────

    @classmethod
    def _line(cls, lines: List[str], index: int, source: str) -> str:
        if index >= len(lines):
            raise PatternFormatError(f"Unexpected EOF on file {source}")
        return lines[index].strip()

    @classmethod
    def _parse_range(cls, s: str, source: str) -> int:
        try:
            depth = int(s, 10)
        except ValueError:
            raise PatternFormatError(
                f"Invalid visibility range value {s} in file {source}"
            ) from None
        if depth <= 0:
            raise PatternFormatError(f"Invalid visibility range value {s} in file {source}")
        return depth

    @classmethod
    def _parse_noise(cls, s: str, source: str) -> float:
        try:
            noise = float(s)
        except ValueError:
            raise PatternFormatError(
                f"Invalid noise quantum value {s} in file {source}"
            ) from None
        if not 0.0 <= noise <= 1.0:
            raise PatternFormatError(f"Invalid noise quantum value {s} in file {source}")
        return noise

    @classmethod
    def _parse_dimensions(cls, s: str, source: str) -> tuple:
        tokens = s.split()
        if len(tokens) < 2:
            raise PatternFormatError(f"Invalid dimensions in file {source}")
        dims = []
        for name, token in zip(("width", "height"), tokens[:2]):
            try:
                value = int(token, 10)
            except ValueError:
                raise PatternFormatError(
                    f"Invalid {name} value {token} in file {source}"
                ) from None
            if value <= 0:
                raise PatternFormatError(f"Invalid {name} value {token} in file {source}")
            dims.append(value)
        return dims[0], dims[1]

    @classmethod
    def _parse_cell(cls, tokens: List[str], width: int, height: int, source: str) -> tuple:
        if len(tokens) < 2:
            raise PatternFormatError(f"Invalid cell values in file {source}")
        cell = []
        for name, token, limit in (("x", tokens[0], width), ("y", tokens[1], height)):
            try:
                value = int(token, 10)
            except ValueError:
                raise PatternFormatError(
                    f"Invalid {name} value {token} in file {source}"
                ) from None
            if value < 0 or value >= limit:
                raise PatternFormatError(f"Invalid {name} value {token} in file {source}")
            cell.append(value)
        return cell[0], cell[1]


# ── Checkpoints ──────────────────────────────────────────────────────────────


class CheckpointPersistence:
    """
    Full-state snapshots with an integrity hash.

    The envelope carries the state and a SHA-256 of its canonical JSON.
    Loading recomputes the hash before restoring anything.
    """

    @classmethod
    def save(cls, automaton: RobustLife, path: str) -> SaveResult:
        with automaton.lock:
            state_dict = cls._extract_state(automaton)

        state_hash = _state_hash(state_dict)
        saved_at = datetime.now().isoformat()

        envelope = {
            "version": CHECKPOINT_VERSION,
            "state": state_dict,
            "verification": {
                "state_hash": state_hash,
                "saved_at": saved_at,
            },
        }

        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w") as f:
            json.dump(envelope, f, indent=2, cls=_NumpyEncoder)

        verification = cls.verify_file(str(file_path))
        logger.info(
            "checkpoint %s at generation %d (verified=%s)",
            file_path, state_dict["generation"], verification.valid,
        )

        return SaveResult(
            path=str(file_path),
            state_hash=state_hash,
            timestamp=saved_at,
            generation=state_dict["generation"],
            size_bytes=file_path.stat().st_size,
            verified=verification.valid,
        )

    @classmethod
    def load(cls, path: str) -> RobustLife:
        """
        Restore an automaton from a checkpoint.

        Raises:
            FileNotFoundError: If file doesn't exist.
            StateCorruptionError: If the version is unsupported, the hash
                doesn't match or the state is unusable.
        """
        with open(path, "r") as f:
            try:
                envelope = json.load(f)
            except json.JSONDecodeError as e:
                raise StateCorruptionError(f"Checkpoint is not valid JSON: {e}") from e

        if not isinstance(envelope, dict):
            raise StateCorruptionError("Checkpoint is not a JSON object")

        version = envelope.get("version", "0")
        if version != CHECKPOINT_VERSION:
            raise StateCorruptionError(f"Unsupported version: {version}")

        state_dict = envelope.get("state")
        if not isinstance(state_dict, dict):
            raise StateCorruptionError("Checkpoint has no state")
        verification = envelope.get("verification")
        if not isinstance(verification, dict):
            raise StateCorruptionError("Checkpoint has no verification block")
        expected = verification.get("state_hash", "")
        computed = _state_hash(state_dict)
        if computed != expected:
            raise StateCorruptionError(
                f"State hash mismatch: expected {expected}, got {computed}"
            )

        try:
            return cls._restore(state_dict)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise StateCorruptionError(f"Invalid checkpoint state: {e}") from e

    @classmethod
    def verify_file(cls, path: str) -> VerificationResult:
        """Check a checkpoint's integrity without restoring it."""
        try:
            with open(path, "r") as f:
                envelope = json.load(f)

            state_dict = envelope.get("state", {})
            computed = _state_hash(state_dict)
            expected = envelope.get("verification", {}).get("state_hash", "")

            if computed != expected:
                return VerificationResult(
                    valid=False,
                    state_hash=computed,
                    error=f"Hash mismatch: expected {expected}, got {computed}",
                )
            return VerificationResult(valid=True, state_hash=computed)

        except (OSError, ValueError, AttributeError) as e:
            return VerificationResult(valid=False, state_hash="", error=str(e))

    # ── State Extraction / Restoration ───────────────────────────────────

    @classmethod
    def _extract_state(cls, automaton: RobustLife) -> dict:
        history = automaton.history.get_state()
        return {
            "config": asdict(automaton.config),
            "generation": automaton.generation,
            "settle_count": history["settle_count"],
            "layers": history["layers"],
            "rng_state": automaton.noise_source.state,
        }

    @classmethod
    def _restore(cls, state_dict: dict) -> RobustLife:
        config = AutomatonConfig(**state_dict["config"])
        automaton = RobustLife(config)
        automaton.restore(
            layers=state_dict["layers"],
            settle_count=state_dict["settle_count"],
            generation=state_dict["generation"],
            rng_state=state_dict["rng_state"],
        )
        return automaton
