"""
Dynamic-index arrays: recorded loads and stores follow the index at replay.
"""

import pytest
from numpy.testing import assert_allclose

from aad_tape import ADVar, Function, TapeVector, recording, abort_taping, active_tape


@pytest.fixture(autouse=True)
def clean_context():
    yield
    abort_taping()


def _indexed_function():
    v = TapeVector([10.0, 20.0, 30.0])
    with recording([1.0, 5.0]) as (i, a):
        v[0] = a * 2.0
        y = v[i]
        return Function([i, a], [y])


def test_plain_list_without_recorder():
    v = TapeVector([1.0, 2.0, 3.0])
    v[1] = 7.0
    assert len(v) == 3
    assert v[ADVar(1.0)] == 7.0
    assert list(v) == [1.0, 7.0, 3.0]
    with pytest.raises(IndexError):
        v[3]


def test_load_follows_replayed_index():
    f = _indexed_function()
    assert_allclose(f.evaluate(), [20.0])
    assert_allclose(f.evaluate([2.0, 5.0]), [30.0])
    # element 0 holds the recorded a * 2
    assert_allclose(f.evaluate([0.0, 7.0]), [14.0])


def test_load_derivatives_flow_to_stored_value():
    f = _indexed_function()
    assert_allclose(f.jacobian([0.0, 7.0]), [0.0, 2.0])
    assert_allclose(f.forward(1, [0.0, 1.0], [0.0, 7.0]), [2.0])
    # element 1 is a constant
    assert_allclose(f.jacobian([1.0, 7.0]), [0.0, 0.0])


def test_store_with_tracked_index():
    v = TapeVector([0.0, 0.0])
    with recording([0.0, 3.0]) as (i, a):
        v[i] = a * a
        y = v[0] + v[1]
        f = Function([i, a], [y])

    assert_allclose(f.evaluate(), [9.0])
    assert_allclose(f.evaluate([1.0, 4.0]), [16.0])
    assert_allclose(f.reverse(1, [1.0], [1.0, 4.0]), [0.0, 8.0])
    assert f.size_vecad() == 3


def test_constant_index_reads_are_not_recorded():
    v = TapeVector([1.0, 2.0])
    with recording([3.0]) as (x,):
        tape = active_tape()
        n = len(tape)
        y = v[1]
        assert y == 2.0
        assert len(tape) == n


def test_index_out_of_range_at_replay():
    f = _indexed_function()
    with pytest.raises(IndexError):
        f.evaluate([3.0, 1.0])
    with pytest.raises(IndexError):
        f.reverse(1, [1.0], [-1.0, 1.0])
