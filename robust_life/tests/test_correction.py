"""Tests for consistency correction."""

import numpy as np
import pytest

from robust_life.core.automaton import AutomatonConfig, RobustLife
from robust_life.core.cone import build_cone
from robust_life.core.correction import correct, correct_cell
from robust_life.core.history import HistoryStore
from robust_life.core.noise import NoiseSource, add_noise


@pytest.fixture
def blinker_history():
    """
    Range-2 history of a blinker on an 8x8 torus.

    Layer 1: horizontal (3,4) (4,4) (5,4)
    Layer 0: vertical   (4,3) (4,4) (4,5)
    """
    automaton = RobustLife(AutomatonConfig(width=8, height=8, range=2, noise=0.1))
    automaton.seed_from_coordinates([(3, 4), (4, 4), (5, 4)])
    automaton.step()  # clean step while settling
    assert automaton.settle_count == 0
    return automaton.history


# ── Specified behaviour ─────────────────────────────────────────────────────


def test_strong_history_restores_corrupted_reading(blinker_history):
    """History that outweighs a corrupted reading overrides it."""
    cone = build_cone(blinker_history, 4, 4, noise=0.1, internal_distance=0.0)
    surface, older = cone.layers

    # Local (1, 0) is global (4, 3): alive in layer 0
    assert surface.states[1, 0]
    surface.states[1, 0] = False
    surface.weights[1, 0] = 0.1
    older.weights[:] = 1.0

    correct(cone)

    assert surface.states[1, 0]
    assert surface.weights[1, 0] == pytest.approx(1.0)


def test_weak_history_keeps_reading(blinker_history):
    """History weaker than the reading leaves it unchanged."""
    cone = build_cone(blinker_history, 4, 4, noise=0.1, internal_distance=0.0)
    surface, older = cone.layers

    surface.states[1, 0] = False
    surface.weights[1, 0] = 0.1
    older.weights[:] = 0.5  # 0.5 ** 9 < 0.1

    correct(cone)

    assert not surface.states[1, 0]
    assert surface.weights[1, 0] == pytest.approx(0.1)


def test_agreement_fuses_confidence(blinker_history):
    """Agreeing evidence combines as 1 - (1 - p)(1 - w)."""
    cone = build_cone(blinker_history, 4, 4, noise=0.1, internal_distance=0.0)
    surface, older = cone.layers

    # Local (0, 0) is global (3, 3): dead, and predicted dead
    assert not surface.states[0, 0]
    original = surface.weights[0, 0]
    assert original == pytest.approx(0.8)
    older.weights[:] = 0.5

    correct(cone)

    evidence = 0.5 ** 9
    assert not surface.states[0, 0]
    assert surface.weights[0, 0] == pytest.approx(1 - (1 - evidence) * (1 - original))


def test_consistent_history_is_untouched(blinker_history):
    """Without noise every prediction agrees: states stay, weights only rise."""
    cone = build_cone(blinker_history, 4, 4, noise=0.1, internal_distance=0.0)
    states = [layer.states.copy() for layer in cone.layers]
    weights = [layer.weights.copy() for layer in cone.layers]

    correct(cone)

    for layer, s, w in zip(cone.layers, states, weights):
        assert np.array_equal(layer.states, s)
        assert np.all(layer.weights >= w - 1e-12)


def test_centre_is_never_corrected(blinker_history):
    cone = build_cone(blinker_history, 4, 4, noise=0.1, internal_distance=0.0)
    cone.surface.states[1, 1] = False
    cone.surface.weights[1, 1] = 0.0
    cone.layers[1].weights[:] = 1.0

    correct(cone)

    assert not cone.surface.marks[1, 1]
    assert not cone.surface.states[1, 1]
    assert cone.surface.weights[1, 1] == 0.0
    marks = cone.surface.marks.copy()
    marks[1, 1] = True
    assert marks.all()


# ── Recursion and memoisation ───────────────────────────────────────────────


def test_deeper_layers_fully_visited():
    """The eight surface cells pull in every position of every older layer."""
    h = HistoryStore(9, 9, 3)
    cone = build_cone(h, 4, 4, noise=0.05, internal_distance=0.0)

    correct(cone)

    assert cone.layers[1].marks.all()
    assert cone.layers[2].marks.all()


def test_marked_cell_is_skipped(blinker_history):
    """A visited cell is not recomputed."""
    cone = build_cone(blinker_history, 4, 4, noise=0.1, internal_distance=0.0)
    surface, older = cone.layers
    surface.states[1, 0] = False
    surface.weights[1, 0] = 0.1
    older.weights[:] = 1.0
    surface.marks[1, 0] = True

    correct_cell(cone, 0, 1, 0)

    assert not surface.states[1, 0]


def test_deepest_layer_is_trusted(blinker_history):
    """The oldest layer has no evidence behind it and is left as read."""
    cone = build_cone(blinker_history, 4, 4, noise=0.1, internal_distance=0.0)
    older = cone.layers[1]
    older.states[0, 0] = True
    before = older.weights.copy()

    correct_cell(cone, 1, 0, 0)

    assert older.marks[0, 0]
    assert older.states[0, 0]
    assert np.array_equal(older.weights, before)


def test_zero_noise_cone_is_noop(blinker_history):
    cone = build_cone(blinker_history, 4, 4, noise=0.0, internal_distance=0.0)
    states = cone.surface.states.copy()

    correct(cone)

    assert cone.depth == 1
    assert np.array_equal(cone.surface.states, states)
    assert np.all(cone.surface.weights == 1.0)


# ── Weight bounds ───────────────────────────────────────────────────────────


@pytest.mark.parametrize("noise", [0.01, 0.1, 0.3, 1.0])
@pytest.mark.parametrize("internal_distance", [0.0, 0.5, 3.0])
def test_weights_stay_in_unit_interval(noise, internal_distance):
    rng = np.random.default_rng(17)
    h = HistoryStore(9, 9, 4)
    h.layers[:] = rng.random((4, 9, 9)) < 0.35
    source = NoiseSource(23)

    for cx, cy in [(0, 0), (4, 4), (8, 2)]:
        cone = build_cone(h, cx, cy, noise, internal_distance)
        add_noise(cone, source)
        correct(cone)
        for layer in cone.layers:
            assert np.all(layer.weights >= 0.0)
            assert np.all(layer.weights <= 1.0)
