"""Tests for HistoryStore."""

import numpy as np
import pytest

from robust_life.core.history import HistoryStore, InvalidConfiguration


def test_initial_state():
    """Starts empty with the settle counter at range-1."""
    h = HistoryStore(6, 4, 3)

    assert h.layers.shape == (3, 6, 4)
    assert not h.layers.any()
    assert h.settle_count == 2
    assert not h.settled


def test_advance_shifts_layers():
    """New layer r+1 equals old layer r; new layer 0 is the supplied grid."""
    rng = np.random.default_rng(0)
    h = HistoryStore(5, 5, 4)
    h.layers[:] = rng.random((4, 5, 5)) < 0.5
    old = h.layers.copy()
    nxt = rng.random((5, 5)) < 0.5

    h.advance(nxt)

    assert np.array_equal(h.layers[0], nxt)
    for r in range(3):
        assert np.array_equal(h.layers[r + 1], old[r])


def test_advance_range_one_replaces_only_layer():
    h = HistoryStore(3, 3, 1)
    nxt = np.ones((3, 3), dtype=bool)
    h.advance(nxt)
    assert h.layers.shape == (1, 3, 3)
    assert h.layers[0].all()


def test_advance_rejects_wrong_shape():
    h = HistoryStore(5, 5, 2)
    with pytest.raises(InvalidConfiguration):
        h.advance(np.zeros((4, 5), dtype=bool))


def test_toggle_wraps_and_resets_settle():
    h = HistoryStore(5, 5, 4)
    h.settle_count = 0

    assert h.toggle_cell(-1, 7) is True
    assert h.layers[0, 4, 2]
    assert h.settle_count == 3

    assert h.toggle_cell(4, 2) is False
    assert not h.layers[0, 4, 2]


def test_clear_keeps_settle_count():
    h = HistoryStore(4, 4, 3)
    h.layers[:] = True
    h.settle_count = 1

    h.clear()

    assert not h.layers.any()
    assert h.settle_count == 1


def test_settle_countdown_floors_at_zero():
    h = HistoryStore(4, 4, 3)
    for expected in (1, 0, 0, 0):
        h.tick_settle()
        assert h.settle_count == expected
    assert h.settled


def test_set_alive_counts_and_resets():
    h = HistoryStore(4, 4, 2)
    h.settle_count = 0

    n = h.set_alive([(0, 0), (5, 1), (3, -1)])

    assert n == 3
    assert h.layers[0, 0, 0] and h.layers[0, 0, 1] and h.layers[0, 3, 3]
    assert h.layers[0].sum() == 3
    assert h.settle_count == 1


def test_set_layer_cells_replaces_layer():
    h = HistoryStore(4, 4, 2)
    h.layers[1, 3, 3] = True
    h.settle_count = 0

    h.set_layer_cells(1, [(0, 2), [1, 1]])

    assert h.layers[1].sum() == 2
    assert h.layers[1, 0, 2] and h.layers[1, 1, 1]
    assert not h.layers[1, 3, 3]
    assert h.settle_count == 0


@pytest.mark.parametrize("layer,cells", [
    (0, [(-1, 0)]),
    (0, [(4, 0)]),
    (0, [(0, 4)]),
    (2, []),
    (-1, []),
])
def test_set_layer_cells_rejects_out_of_bounds(layer, cells):
    h = HistoryStore(4, 4, 2)
    with pytest.raises(InvalidConfiguration):
        h.set_layer_cells(layer, cells)
    assert not h.layers.any()


def test_window_wraps():
    h = HistoryStore(5, 5, 1)
    h.layers[0, 4, 4] = True
    h.layers[0, 0, 1] = True

    w = h.window(0, 0, 0, 1)
    assert w.shape == (3, 3)
    assert w[0, 0]   # (-1, -1) -> (4, 4)
    assert w[1, 2]   # (0, 1)
    assert w.sum() == 2


@pytest.mark.parametrize("args", [(0, 5, 2), (5, -1, 2), (5, 5, 0)])
def test_invalid_dimensions(args):
    with pytest.raises(InvalidConfiguration):
        HistoryStore(*args)


def test_get_state_lists_live_cells():
    h = HistoryStore(4, 4, 2)
    h.set_alive([(1, 2)])
    h.advance(np.zeros((4, 4), dtype=bool))

    state = h.get_state()
    assert state["layers"] == [[], [[1, 2]]]
    assert state["settle_count"] == 1
