"""Tests for the generic least-squares machinery."""

import numpy as np
import pytest
from scipy.optimize import least_squares

from orthofit.optim import (
    LevenbergMarquardt,
    LMSettings,
    NumericalDiff,
    OptimizationStatus,
    ResidualFunction,
)


class ExponentialDecay(ResidualFunction):
    """Residuals of y = a * exp(b * t) against samples."""

    def __init__(self, t, y):
        self.t = np.asarray(t, dtype=float)
        self.y = np.asarray(y, dtype=float)

    @property
    def num_parameters(self):
        return 2

    @property
    def num_residuals(self):
        return len(self.t)

    def __call__(self, x):
        a, b = x
        return a * np.exp(b * self.t) - self.y

    def jacobian(self, x):
        a, b = x
        e = np.exp(b * self.t)
        return np.column_stack([e, a * self.t * e])


class Rosenbrock(ResidualFunction):
    """Rosenbrock's function as residuals [10 (x1 - x0^2), 1 - x0]."""

    @property
    def num_parameters(self):
        return 2

    @property
    def num_residuals(self):
        return 2

    def __call__(self, x):
        return np.array([10.0 * (x[1] - x[0] ** 2), 1.0 - x[0]])


@pytest.fixture
def decay():
    t = np.linspace(0.0, 2.0, 20)
    return ExponentialDecay(t, 2.0 * np.exp(-1.5 * t))


# =============================================================================
# Test NumericalDiff
# =============================================================================

class TestNumericalDiff:
    """Finite-difference Jacobians."""

    def test_forward_difference(self, decay):
        x = np.array([1.5, -1.0])

        J = NumericalDiff(decay, epsilon=1e-6).jacobian(x)

        assert J.shape == (20, 2)
        assert np.allclose(J, decay.jacobian(x), atol=1e-4)

    def test_central_difference_is_more_accurate(self, decay):
        x = np.array([1.5, -1.0])
        J_true = decay.jacobian(x)

        forward = NumericalDiff(decay, epsilon=1e-3, mode="forward").jacobian(x)
        central = NumericalDiff(decay, epsilon=1e-3, mode="central").jacobian(x)

        assert np.abs(central - J_true).max() < np.abs(forward - J_true).max()
        assert np.allclose(central, J_true, atol=1e-5)

    def test_forward_reuses_given_residuals(self, decay):
        x = np.array([1.5, -1.0])
        diff = NumericalDiff(decay)

        diff.jacobian(x, r0=decay(x))

        assert diff.nfev == 2

    def test_central_evaluation_count(self, decay):
        diff = NumericalDiff(decay, mode="central")

        diff.jacobian(np.array([1.5, -1.0]))

        assert diff.nfev == 4

    def test_does_not_modify_input(self, decay):
        x = np.array([1.5, -1.0])

        NumericalDiff(decay, mode="central").jacobian(x)

        assert np.array_equal(x, [1.5, -1.0])

    def test_invalid_settings(self, decay):
        with pytest.raises(ValueError):
            NumericalDiff(decay, epsilon=0.0)
        with pytest.raises(ValueError):
            NumericalDiff(decay, mode="backward")


# =============================================================================
# Test LMSettings
# =============================================================================

class TestLMSettings:
    """Settings validation and conversion."""

    def test_defaults(self):
        settings = LMSettings()

        assert settings.epsilon == 1e-4
        assert settings.difference_mode == "forward"
        assert settings.jacobian == "numerical"

    @pytest.mark.parametrize("kwargs", [
        {"max_iterations": 0},
        {"ftol": -1.0},
        {"epsilon": 0.0},
        {"initial_damping": -1e-3},
        {"damping_up": 1.0},
        {"damping_down": 1.5},
        {"difference_mode": "sideways"},
        {"jacobian": "symbolic"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            LMSettings(**kwargs)

    def test_from_dict_ignores_unknown_keys(self):
        settings = LMSettings.from_dict({"max_iterations": 50, "verbose": True})

        assert settings.max_iterations == 50

    def test_round_trip_through_dict(self):
        settings = LMSettings(max_iterations=12, difference_mode="central")

        assert LMSettings.from_dict(settings.to_dict()) == settings


# =============================================================================
# Test LevenbergMarquardt
# =============================================================================

class TestLevenbergMarquardt:
    """Minimization behaviour."""

    def test_fits_exponential(self, decay):
        result = LevenbergMarquardt(decay).minimize(np.array([1.0, 0.0]))

        assert result.converged
        assert np.allclose(result.x, [2.0, -1.5], atol=1e-6)
        assert result.cost < 1e-12

    def test_fits_exponential_with_analytic_jacobian(self, decay):
        settings = LMSettings(jacobian="analytic")

        result = LevenbergMarquardt(decay, settings).minimize(np.array([1.0, 0.0]))

        assert result.converged
        assert np.allclose(result.x, [2.0, -1.5], atol=1e-8)

    def test_rosenbrock_valley(self):
        result = LevenbergMarquardt(Rosenbrock()).minimize(np.array([-1.2, 1.0]))

        assert np.allclose(result.x, [1.0, 1.0], atol=1e-5)

    def test_cost_history_is_non_increasing(self):
        result = LevenbergMarquardt(Rosenbrock()).minimize(np.array([-1.2, 1.0]))
        costs = [result.initial_cost] + [record.cost for record in result.history]

        assert len(result.history) == result.iterations
        assert all(later <= earlier for earlier, later in zip(costs, costs[1:]))
        assert result.cost == costs[-1]

    def test_rejected_steps_keep_cost(self):
        result = LevenbergMarquardt(Rosenbrock()).minimize(np.array([-1.2, 1.0]))
        costs = [result.initial_cost] + [record.cost for record in result.history]

        for previous, record in zip(costs, result.history):
            if record.accepted:
                assert record.cost < previous
            else:
                assert record.cost == previous

    def test_iteration_limit_still_returns_estimate(self, decay):
        x0 = np.array([1.0, 0.0])
        settings = LMSettings(max_iterations=2)

        result = LevenbergMarquardt(decay, settings).minimize(x0)

        assert result.status == OptimizationStatus.MAX_ITERATIONS
        assert not result.converged
        assert result.iterations == 2
        assert result.cost <= decay.sum_of_squares(x0)

    def test_starting_at_optimum(self, decay):
        result = LevenbergMarquardt(decay, LMSettings(jacobian="analytic")).minimize(
            np.array([2.0, -1.5])
        )

        assert result.status == OptimizationStatus.GRADIENT_TOLERANCE
        assert result.iterations == 0

    def test_does_not_modify_initial_guess(self, decay):
        x0 = np.array([1.0, 0.0])

        LevenbergMarquardt(decay).minimize(x0)

        assert np.array_equal(x0, [1.0, 0.0])

    def test_counts_evaluations(self, decay):
        result = LevenbergMarquardt(decay).minimize(np.array([1.0, 0.0]))

        # Forward differences: one probe per parameter per Jacobian
        assert result.nfev >= 1 + 2 * result.njev
        assert result.njev >= 1

    def test_missing_analytic_jacobian(self):
        lm = LevenbergMarquardt(Rosenbrock(), LMSettings(jacobian="analytic"))

        with pytest.raises(ValueError):
            lm.minimize(np.array([-1.2, 1.0]))

    def test_wrong_parameter_count(self, decay):
        with pytest.raises(ValueError):
            LevenbergMarquardt(decay).minimize(np.zeros(3))

    def test_agrees_with_scipy_on_noisy_data(self):
        rng = np.random.default_rng(7)
        t = np.linspace(0.0, 2.0, 30)
        y = 2.0 * np.exp(-1.5 * t) + rng.normal(0.0, 0.02, t.shape)
        problem = ExponentialDecay(t, y)
        x0 = np.array([1.0, 0.0])

        ours = LevenbergMarquardt(problem, LMSettings(jacobian="analytic")).minimize(x0)
        reference = least_squares(problem, x0, jac=problem.jacobian, method="lm")

        assert np.allclose(ours.x, reference.x, atol=1e-5)
        assert np.isclose(ours.cost, 2.0 * reference.cost, rtol=1e-6)

    def test_result_to_dict(self, decay):
        result = LevenbergMarquardt(decay).minimize(np.array([1.0, 0.0]))

        d = result.to_dict()

        assert d["status"] == result.status.value
        assert d["converged"] == result.converged
        assert len(d["x"]) == 2
