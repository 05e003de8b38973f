"""
Recording: independents, function objects, trivial-operation elision,
options, errors and per-context recorders.
"""

import logging
import threading

import numpy as np
import pytest
from numpy.testing import assert_allclose

from aad_tape import (
    ADVar, Function, InnerValue, Tape, TapeOptions, OpCode,
    start_taping, stop_taping, abort_taping, recording, active_tape,
    RecorderBusy, NotIndependent, NotRecording, TapeFrozen, SizeMismatch,
    DomainError, log, describe_tape,
)
from aad_tape.core.node import Arg


@pytest.fixture(autouse=True)
def clean_context():
    yield
    abort_taping()


def test_square_at_three():
    xs = start_taping([3.0])
    y = xs[0] * xs[0]
    f = Function(xs, [y])

    assert active_tape() is None
    assert_allclose(f.evaluate(), [9.0])
    assert_allclose(f.forward(1, [1.0]), [6.0])
    assert_allclose(f.reverse(1, [1.0]), [6.0])
    assert_allclose(f.jacobian(), [6.0])


def test_stop_taping_returns_function():
    xs = start_taping([2.0, 5.0])
    f = stop_taping([xs[0] - xs[1]])
    assert isinstance(f, Function)
    assert f.size_domain == 2
    assert f.size_range == 1
    assert_allclose(f.evaluate(), [-3.0])


def test_values_are_plain_numbers_without_recorder():
    x = ADVar(2.0)
    y = x * 3.0 + 1.0
    assert isinstance(y, ADVar)
    assert y.slot is None
    assert float(y) == 7.0


def test_point_reseeds_replay():
    xs = start_taping([1.0, 2.0])
    f = Function(xs, [xs[0] * xs[1] + xs[0]])
    assert_allclose(f.evaluate([3.0, 4.0]), [15.0])
    assert_allclose(f.reverse(1, [1.0], [3.0, 4.0]), [5.0, 3.0])
    # default point is the recorded one
    assert_allclose(f.evaluate(), [3.0])


def test_advar_inputs_bound_in_place():
    x = ADVar(4.0)
    xs = start_taping([x])
    assert xs[0] is x
    assert x.is_variable
    f = Function(xs, [x * x])
    assert not x.is_variable
    assert_allclose(f.reverse(1, [1.0]), [8.0])


def test_untouched_dependent_is_rejected():
    with recording([1.0]) as xs:
        with pytest.raises(NotIndependent):
            Function(xs, [ADVar(5.0)])


def test_plain_float_dependent_is_rejected():
    with recording([1.0]) as xs:
        with pytest.raises(NotIndependent):
            Function(xs, [xs[0] * 2.0, 3.0])


def test_wrong_independents_are_rejected():
    with recording([1.0, 2.0]) as xs:
        with pytest.raises(NotIndependent):
            Function([xs[1], xs[0]], [xs[0] + xs[1]])


def test_function_requires_recording():
    with pytest.raises(NotRecording):
        Function([], [])
    with pytest.raises(NotIndependent):
        stop_taping([])


def test_repr_of_unbuilt_function():
    f = Function.__new__(Function)
    with pytest.raises(NotRecording):
        f.__init__([], [])
    assert repr(f) == "Function(<not built>)"

    with recording([1.0]) as xs:
        with pytest.raises(NotIndependent):
            f.__init__(xs, [ADVar(5.0)])
    assert repr(f) == "Function(<not built>)"


def test_recorder_busy():
    with recording([1.0]):
        with pytest.raises(RecorderBusy):
            start_taping([2.0])


def test_abort_resets_context():
    start_taping([1.0])
    abort_taping()
    assert active_tape() is None
    xs = start_taping([2.0])
    f = Function(xs, [xs[0] * 3.0])
    assert_allclose(f.jacobian(), [3.0])


def test_recording_aborts_on_exception():
    with pytest.raises(DomainError):
        with recording([-1.0]) as (x,):
            log(x)
    assert active_tape() is None


def test_tape_frozen_after_function():
    xs = start_taping([1.0])
    f = Function(xs, [xs[0] + 1.0])
    with pytest.raises(TapeFrozen):
        f.tape.push(OpCode.NEG, [Arg(True, 0)])
    with pytest.raises(TapeFrozen):
        f.tape.add_constant(2.0)


def test_values_of_old_tape_are_constants():
    xs = start_taping([3.0])
    f = Function(xs, [xs[0] * 2.0])
    with recording([2.0]) as (z,):
        w = z * xs[0]
        g = Function([z], [w])
    assert f.size_op() == 2
    assert_allclose(g.reverse(1, [1.0]), [3.0])


def test_size_mismatch():
    xs = start_taping([1.0, 2.0])
    f = Function(xs, [xs[0] * xs[1]])
    with pytest.raises(SizeMismatch):
        f.forward(1, [1.0])
    with pytest.raises(SizeMismatch):
        f.reverse(1, [1.0, 1.0])
    with pytest.raises(SizeMismatch):
        f.evaluate([1.0])
    with pytest.raises(ValueError):
        f.forward(3, [1.0, 0.0])
    with pytest.raises(ValueError):
        f.reverse(2, [1.0])


# ---------------------------------------------------------------- elision
def test_trivial_operations_do_not_grow_tape():
    with recording([2.0]) as (x,):
        tape = active_tape()
        n = len(tape)
        assert (x + 0.0) is x
        assert (0.0 + x) is x
        assert (x - 0.0) is x
        assert (x * 1.0) is x
        assert (1.0 * x) is x
        assert (x / 1.0) is x
        z = x * 0.0
        assert len(tape) == n
        assert not z.is_variable
        assert float(z) == 0.0


def test_elided_zero_is_a_constant_dependent():
    with recording([2.0]) as (x,):
        f = Function([x], [x * 0.0, 0.0 * x + 1.0, x * 3.0])
    assert f.size_range == 3
    assert f.op_counts() == {"indep": 1, "mul": 1, "par": 2}
    assert_allclose(f.evaluate([5.0]), [0.0, 1.0, 15.0])
    assert_allclose(f.jacobian([5.0]), [0.0, 0.0, 3.0])
    assert_allclose(f.reverse(1, [1.0, 1.0, 1.0]), [3.0])
    assert_allclose(f.forward(2, [1.0]), [0.0, 0.0, 0.0])


def test_constant_derived_from_elided_zero():
    with recording([2.0]) as (x,):
        y = x * 0.0 + 1.0
        assert not y.is_variable
        f = Function([x], [y])
    assert_allclose(f.evaluate(), [1.0])
    assert_allclose(f.jacobian(), [0.0])
    assert "v1 = par(c" in describe_tape(f)


def test_array_constants_are_never_elided():
    with recording([2.0]) as (x,):
        tape = active_tape()
        n = len(tape)
        y = x * InnerValue([1.0, 1.0])
        assert len(tape) == n + 1
        assert y.is_variable


def test_elision_can_be_disabled():
    with recording([2.0], TapeOptions(elide_identical=False)) as (x,):
        y = x + 0.0
        assert y is not x
        assert len(active_tape()) == 2


def test_constant_deduplication():
    with recording([1.0]) as (x,):
        y = x * 2.0 + 2.0
        f = Function([x], [y])
    assert len(f.tape.constants) == 1

    with recording([1.0], TapeOptions(deduplicate_constants=False)) as (x,):
        y = x * 2.0 + 2.0
        g = Function([x], [y])
    assert len(g.tape.constants) == 2
    assert_allclose(g.evaluate([3.0]), f.evaluate([3.0]))


# ---------------------------------------------------------- introspection
def test_properties_of_square():
    xs = start_taping([3.0])
    f = Function(xs, [xs[0] * xs[0]])
    assert f.size_var == 2
    assert f.size_op() == 2
    assert f.size_op_arg() == 2
    assert f.size_par() == 0
    assert f.size_text() == 0
    assert f.size_vecad() == 0

    props = f.properties()
    assert props["op"] == {"count": 2, "unit": 4, "bytes": 8}
    assert props["op_arg"]["bytes"] == 8
    assert props["total"]["bytes"] == 16
    assert f.size_op_seq() == 16
    assert f.op_counts() == {"indep": 1, "mul": 1}


def test_size_par_counts_array_elements():
    with recording([1.0]) as (x,):
        f = Function([x], [x * InnerValue([1.0, 2.0, 3.0]) + 5.0])
    assert f.size_par() == 4
    assert f.properties()["par"]["bytes"] == 32


# ------------------------------------------------------------- from_tape
def test_from_tape():
    t = Tape()
    s0 = t.push(OpCode.INDEP)
    c = t.add_constant(3.0)
    s1 = t.push(OpCode.MUL, [Arg(True, s0), Arg(False, c)])
    f = Function.from_tape(t, [s0], [s1], point=[2.0])

    assert t.frozen
    assert_allclose(f.evaluate(), [6.0])
    assert_allclose(f.reverse(1, [1.0]), [3.0])


def test_from_tape_rejects_unassigned_slots():
    t = Tape()
    s0 = t.push(OpCode.INDEP)
    with pytest.raises(NotIndependent):
        Function.from_tape(t, [s0], [5])

    bad = Tape()
    bad.push(OpCode.INDEP)
    bad.push(OpCode.EXP, [Arg(True, 3)])
    with pytest.raises(NotIndependent):
        Function.from_tape(bad, [0], [1])


def test_from_tape_requires_every_independent():
    t = Tape()
    t.push(OpCode.INDEP)
    t.push(OpCode.INDEP)
    with pytest.raises(NotIndependent):
        Function.from_tape(t, [0], [1])


# ----------------------------------------------------------- concurrency
def test_recorders_are_per_thread():
    n = 4
    barrier = threading.Barrier(n)
    results = [None] * n
    errors = []

    def worker(k):
        try:
            xs = start_taping([float(k + 1)])
            barrier.wait()
            y = xs[0] * xs[0] * xs[0]
            f = Function(xs, [y])
            results[k] = f.reverse(1, [1.0])[0]
        except Exception as exc:  # collected for the main thread
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(k,)) for k in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert_allclose(results, [3.0 * (k + 1) ** 2 for k in range(n)])


def test_concurrent_evaluation_of_one_function():
    xs = start_taping([1.0])
    f = Function(xs, [xs[0] * xs[0]])
    results = {}

    def worker(k):
        results[k] = f.jacobian([float(k)])[0]

    threads = [threading.Thread(target=worker, args=(k,)) for k in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == {k: 2.0 * k for k in range(8)}


def test_debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="aad_tape")
    xs = start_taping([1.0, 2.0])
    Function(xs, [xs[0] + xs[1]])
    messages = [r.getMessage() for r in caplog.records]
    assert any("started taping with 2 independents" in m for m in messages)
    assert any("built function" in m for m in messages)


def test_results_are_float_arrays():
    xs = start_taping([1.0, 2.0])
    f = Function(xs, [xs[0] + xs[1], xs[0] * xs[1]])
    out = f.evaluate()
    assert isinstance(out, np.ndarray)
    assert out.dtype == np.float64


def test_comparison_recording_can_be_disabled():
    with recording([0.5], TapeOptions(record_comparisons=False)) as (x,):
        if x < 1.0:
            y = x * 2.0
        else:
            y = x * 3.0
        f = Function([x], [y])
    assert f.size_op() == 2
    assert f.compare_change([2.0]) == 0
