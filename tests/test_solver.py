import logging
import math

import numpy as np
import pytest

from marquardt_fit import (
    FitDivergenceError,
    FitInputError,
    FitStatus,
    FitTimeoutError,
    LevenbergMarquardtError,
    fit,
    levenberg_marquardt,
    models,
)
from marquardt_fit.residuals import error_calculation
from marquardt_fit.inputs import SampleSet


def line(p):
    return lambda x: p[0] * x + p[1]


def _line_data(a=2.5, b=-1.2):
    x = np.linspace(-5.0, 5.0, 21)
    return {"x": x, "y": a * x + b}


def _decay_data():
    x = np.linspace(0.0, 4.0, 25)
    return {"x": x, "y": 3.0 * np.exp(-0.5 * x)}


def decay(p):
    return lambda x: p[0] * math.exp(-p[1] * x)


def test_linear_fit_converges_from_far_start():
    res = levenberg_marquardt(_line_data(), line, initial_values=[-20.0, 30.0])

    assert res.status is FitStatus.CONVERGED
    assert res.converged
    assert res.parameter_error <= 1e-7
    assert res.iterations <= 100
    np.testing.assert_allclose(res.parameter_values, [2.5, -1.2], atol=1e-4)


def test_fit_is_an_alias():
    assert fit is levenberg_marquardt


def test_already_converged_start_runs_no_iterations():
    calls = []

    def counted(p):
        calls.append(1)
        return line(p)

    res = levenberg_marquardt(_line_data(), counted, initial_values=[2.5, -1.2])
    assert res.iterations == 0
    assert res.converged
    assert res.parameter_error == 0.0
    assert len(calls) == 1
    assert res.n_evaluations == 1


def test_model_calls_per_iteration():
    res = levenberg_marquardt(
        _line_data(), line, initial_values=[0.0, 0.0], max_iterations=1
    )
    # initial error + (current + one per parameter) + trial error
    assert res.n_evaluations == 1 + 3 + 1

    res = levenberg_marquardt(
        _line_data(),
        line,
        initial_values=[0.0, 0.0],
        max_iterations=1,
        central_difference=True,
    )
    assert res.n_evaluations == 1 + 5 + 1


def test_accepted_step_reduces_damping():
    res = levenberg_marquardt(
        _line_data(), line, initial_values=[0.0, 0.0], max_iterations=1
    )
    assert res.iterations == 1
    assert res.damping == pytest.approx(1e-2 / 9)
    assert res.parameter_error < error_calculation(
        SampleSet.coerce(_line_data()), [0.0, 0.0], line, np.ones(21)
    )


def test_rejected_step_keeps_trial_parameters_but_reverts_error():
    data = _line_data(a=2.0, b=1.0)
    initial_error = error_calculation(
        SampleSet.coerce(data), [0.0, 0.0], line, np.ones(21)
    )

    res = levenberg_marquardt(
        data,
        line,
        initial_values=[0.0, 0.0],
        max_iterations=1,
        improvement_threshold=1e12,
    )

    assert res.status is FitStatus.MAX_ITERATIONS
    assert res.parameter_error == initial_error
    np.testing.assert_allclose(res.parameter_values, [2.0, 1.0], rtol=1e-3)
    assert res.damping == pytest.approx(1e-2 * 11)


def test_error_never_increases_across_iterations():
    model = models.gaussian_with_offset()
    x = np.linspace(-4.0, 4.0, 41)
    data = {"x": x, "y": model.eval(x, [0.5, 0.1, 2.0, 0.8])}

    errors = []
    for k in range(0, 15):
        res = levenberg_marquardt(
            data,
            model,
            initial_values=[0.0, 0.0, 1.0, 1.5],
            max_iterations=k,
            vectorized=True,
        )
        assert res.parameter_error >= 0.0
        errors.append(res.parameter_error)

    assert all(b <= a for a, b in zip(errors, errors[1:]))
    assert errors[-1] < errors[0]


def test_equal_bounds_freeze_parameters():
    initial = [1.0, 1.0]
    for k in (1, 5, 100):
        res = levenberg_marquardt(
            _line_data(),
            line,
            initial_values=initial,
            min_values=initial,
            max_values=initial,
            max_iterations=k,
        )
        np.testing.assert_array_equal(res.parameter_values, initial)
        assert res.iterations == k
        assert res.status is FitStatus.MAX_ITERATIONS

    assert res.damping == 1e7


def test_bounds_clamp_the_solution():
    res = levenberg_marquardt(
        _line_data(),
        line,
        initial_values=[0.0, 0.0],
        min_values=[-10.0, -10.0],
        max_values=[2.0, 10.0],
    )
    assert res.parameter_values[0] <= 2.0
    assert res.parameter_values[0] == pytest.approx(2.0)


def test_zero_gradient_difference_holds_parameter():
    res = levenberg_marquardt(
        _line_data(),
        line,
        initial_values=[0.0, 5.0],
        gradient_difference=[0.1, 0.0],
    )
    assert res.parameter_values[1] == 5.0
    # best slope with the intercept pinned is unchanged for symmetric x
    assert res.parameter_values[0] == pytest.approx(2.5, abs=1e-6)


def test_scalar_and_equal_vector_weights_agree():
    data = _decay_data()
    a = levenberg_marquardt(data, decay, initial_values=[1.0, 1.0], weights=2.0)
    b = levenberg_marquardt(
        data, decay, initial_values=[1.0, 1.0], weights=[2.0] * len(data["x"])
    )
    np.testing.assert_array_equal(a.parameter_values, b.parameter_values)
    assert a.parameter_error == b.parameter_error
    assert a.iterations == b.iterations


def test_central_and_forward_difference_reach_the_same_point():
    data = _decay_data()
    opts = {"initialValues": [2.5, 0.7], "gradientDifference": 1e-5}
    forward = levenberg_marquardt(data, decay, opts)
    central = levenberg_marquardt(data, decay, opts, central_difference=True)

    assert forward.converged and central.converged
    np.testing.assert_allclose(forward.parameter_values, [3.0, 0.5], atol=1e-3)
    np.testing.assert_allclose(central.parameter_values, [3.0, 0.5], atol=1e-3)
    np.testing.assert_allclose(
        forward.parameter_values, central.parameter_values, atol=1e-3
    )


def test_tiny_timeout_raises():
    with pytest.raises(FitTimeoutError, match="The execution time is over") as info:
        levenberg_marquardt(_line_data(), line, initial_values=[-20.0, 30.0], timeout=1e-9)
    assert info.value.timeout == 1e-9
    assert isinstance(info.value, TimeoutError)
    assert isinstance(info.value, LevenbergMarquardtError)


def test_generous_timeout_does_not_interfere():
    res = levenberg_marquardt(_line_data(), line, initial_values=[-20.0, 30.0], timeout=600)
    assert res.converged


def _nan_below_zero(p):
    return lambda x: p[0] * x if p[0] >= 0 else math.nan


def test_nan_error_stops_with_diverged_status(caplog):
    x = np.linspace(1.0, 3.0, 5)
    with caplog.at_level(logging.WARNING, logger="marquardt_fit"):
        res = levenberg_marquardt({"x": x, "y": -3.0 * x}, _nan_below_zero, initial_values=[1.0])

    assert res.status is FitStatus.DIVERGED
    assert res.diverged
    assert math.isnan(res.parameter_error)
    assert res.iterations == 0
    # the NaN-producing (clamped) trial parameters are kept
    assert res.parameter_values[0] < 0.0
    assert "diverged" in caplog.text


def test_nan_error_strict_raises():
    x = np.linspace(1.0, 3.0, 5)
    with pytest.raises(FitDivergenceError, match="NaN") as info:
        levenberg_marquardt(
            {"x": x, "y": -3.0 * x}, _nan_below_zero, initial_values=[1.0], strict=True
        )
    assert info.value.result.status is FitStatus.DIVERGED


def test_max_iterations_is_not_an_error():
    res = levenberg_marquardt(
        _decay_data(), decay, initial_values=[1.0, 1.0], max_iterations=2
    )
    assert res.status is FitStatus.MAX_ITERATIONS
    assert not res.converged
    assert res.iterations == 2
    assert "not reached" in res.message


def test_validation_runs_before_any_model_call():
    calls = []

    def counted(p):
        calls.append(1)
        return line(p)

    with pytest.raises(FitInputError):
        levenberg_marquardt({"x": [1.0, 2.0], "y": [1.0]}, counted)
    with pytest.raises(FitInputError):
        levenberg_marquardt({"x": [1.0], "y": [1.0]}, counted)
    with pytest.raises(FitInputError):
        levenberg_marquardt(_line_data(), counted, damping=-1.0)
    assert calls == []


@pytest.mark.parametrize(
    "data, kwargs",
    [
        ({"x": [[1.0, 2.0], [3.0, 4.0]], "y": [1.0, 2.0]}, {}),
        ({"x": ["a", "b"], "y": [1.0, 2.0]}, {}),
        (_line_data(), {"initial_values": [[1.0], [2.0]]}),
        (_line_data(), {"initial_values": ["a", "b"]}),
        (_line_data(), {"min_values": [[0.0, 0.0]], "max_values": [[1.0, 1.0]]}),
        (_line_data(), {"weights": [[1.0]] * 21}),
        (_line_data(), {"weights": ["heavy"] * 21}),
        (_line_data(), {"gradient_difference": [[0.1], [0.1]]}),
    ],
)
def test_nested_or_non_numeric_inputs_raise_before_any_model_call(data, kwargs):
    calls = []

    def counted(p):
        calls.append(1)
        return line(p)

    kwargs.setdefault("initial_values", [1.0, 1.0])
    with pytest.raises(FitInputError, match="number"):
        levenberg_marquardt(data, counted, **kwargs)
    assert calls == []


def test_broadcast_warning_points_at_the_calling_line():
    with pytest.warns(UserWarning, match="weights has 2 entries") as record:
        levenberg_marquardt(_line_data(), line, initial_values=[0.0, 0.0], weights=[1.0, 2.0])
    assert record[0].filename == __file__


def test_parameterized_function_names_reach_the_result():
    model = models.straight_line()
    data = SampleSet(x=_line_data()["x"], y=_line_data()["y"], label="line")
    res = levenberg_marquardt(data, model, initial_values=[0.0, 0.0])

    assert res.converged
    assert res["m"] == pytest.approx(2.5, abs=1e-4)
    assert res["b"] == pytest.approx(-1.2, abs=1e-4)
    assert res.label == "line"


def test_default_initial_values_from_model_signature():
    res = levenberg_marquardt(_line_data(), models.straight_line())
    assert res.converged
    np.testing.assert_allclose(res.parameter_values, [2.5, -1.2], atol=1e-4)


def test_gaussian_fit_from_guess_converges():
    model = models.gaussian_with_offset()
    x = np.linspace(-5.0, 5.0, 80)
    true = [0.7, 0.2, 3.0, 1.1]
    data = {"x": x, "y": model.eval(x, true)}

    res = levenberg_marquardt(
        data,
        model,
        initial_values=model.initial_guess(data),
        gradient_difference=1e-4,
        central_difference=True,
        max_iterations=200,
        vectorized=True,
    )
    assert res.converged
    np.testing.assert_allclose(res.parameter_values[:3], true[:3], atol=1e-3)
    assert abs(res.parameter_values[3]) == pytest.approx(1.1, abs=1e-3)
