"""
Levenberg-Marquardt minimizer for nonlinear least squares.

Minimizes F(x) = ||r(x)||^2 for any :class:`ResidualFunction`.

Mathematical Background:
========================

Around the current estimate x the residuals are linearized as
r(x + delta) ~ r(x) + J delta, with J the (m, n) Jacobian. The damped
normal equations

    (J^T J + mu * D) delta = -J^T r,    D = diag(J^T J)

interpolate between Gauss-Newton (mu -> 0) and scaled gradient descent
(mu large). Scaling the damping by diag(J^T J) makes the step invariant to
the units of the individual parameters, which matters when angles in radians
sit next to a scale of ~100.

Iteration:
    1. Evaluate r and J at x.
    2. Solve for delta with the current damping mu.
    3. If F(x + delta) < F(x): accept, x <- x + delta, mu <- mu * down,
       re-evaluate J.
       Otherwise: reject, keep x, mu <- mu * up.
    4. Stop on small gradient, small step, small relative reduction of F,
       saturated damping, or the iteration limit.

Only accepted steps move x, so F at the current estimate never increases.
"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np
import scipy.linalg

from ..utils.logger import LoggerMixin
from .numerical_diff import DIFFERENCE_MODES, NumericalDiff
from .residuals import ResidualFunction


JACOBIAN_SOURCES = ("numerical", "analytic")


# =============================================================================
# Enums and Data Classes
# =============================================================================

class OptimizationStatus(Enum):
    """Reasons why the iteration stopped."""
    GRADIENT_TOLERANCE = "gradient_tolerance"
    STEP_TOLERANCE = "step_tolerance"
    COST_TOLERANCE = "cost_tolerance"
    DAMPING_SATURATED = "damping_saturated"
    MAX_ITERATIONS = "max_iterations"

    @property
    def converged(self) -> bool:
        """Whether this status means a tolerance was met."""
        return self in (
            OptimizationStatus.GRADIENT_TOLERANCE,
            OptimizationStatus.STEP_TOLERANCE,
            OptimizationStatus.COST_TOLERANCE,
        )


@dataclass
class LMSettings:
    """
    Settings of the Levenberg-Marquardt iteration.

    Attributes:
        max_iterations: Upper bound on attempted steps (accepted or rejected).
        ftol: Stop when an accepted step reduces F by less than this fraction.
        xtol: Stop when ||delta|| <= xtol * (||x|| + xtol).
        gtol: Stop when max |J^T r| <= gtol.
        initial_damping: Initial mu.
        damping_up: Factor applied to mu after a rejected step.
        damping_down: Factor applied to mu after an accepted step.
        min_damping: Lower bound for mu.
        max_damping: Stop once mu exceeds this value.
        epsilon: Finite-difference step for the numerical Jacobian.
        difference_mode: "forward" or "central".
        jacobian: "numerical" or "analytic".
    """
    max_iterations: int = 200
    ftol: float = 1e-10
    xtol: float = 1e-10
    gtol: float = 1e-10
    initial_damping: float = 1e-2
    damping_up: float = 10.0
    damping_down: float = 0.3
    min_damping: float = 1e-12
    max_damping: float = 1e12
    epsilon: float = 1e-4
    difference_mode: str = "forward"
    jacobian: str = "numerical"

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        for name in ("ftol", "xtol", "gtol"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        for name in ("initial_damping", "min_damping", "max_damping", "epsilon"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.damping_up <= 1.0:
            raise ValueError(f"damping_up must be > 1, got {self.damping_up}")
        if not 0.0 < self.damping_down < 1.0:
            raise ValueError(f"damping_down must be in (0, 1), got {self.damping_down}")
        if self.difference_mode not in DIFFERENCE_MODES:
            raise ValueError(
                f"Unknown difference mode: {self.difference_mode}. Valid: {list(DIFFERENCE_MODES)}"
            )
        if self.jacobian not in JACOBIAN_SOURCES:
            raise ValueError(f"Unknown jacobian source: {self.jacobian}. Valid: {list(JACOBIAN_SOURCES)}")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "LMSettings":
        """
        Create settings from a config dictionary, ignoring unknown keys.

        Values are converted to the field types, since YAML reads numbers
        such as ``1e-4`` (no decimal point) as strings.

        Raises:
            ValueError: If a value cannot be converted or is out of range.
        """
        kwargs = {}
        for f in fields(cls):
            if f.name not in config:
                continue
            value = config[f.name]
            try:
                if f.type is int:
                    number = float(value)
                    if not number.is_integer():
                        raise ValueError(f"not an integer: {value!r}")
                    value = int(number)
                elif f.type is float:
                    value = float(value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid value for {f.name}: {value!r}") from e
            kwargs[f.name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class IterationRecord:
    """
    One attempted step.

    Attributes:
        iteration: 1-based iteration index.
        cost: F at the current estimate after this iteration.
        damping: mu used to compute the step.
        step_norm: ||delta|| (nan if the damped system could not be solved).
        accepted: Whether the step was accepted.
    """
    iteration: int
    cost: float
    damping: float
    step_norm: float
    accepted: bool


@dataclass
class OptimizationResult:
    """
    Outcome of a minimization.

    Attributes:
        x: Final parameter vector (the best accepted estimate).
        cost: F(x), the sum of squared residuals.
        status: Why the iteration stopped.
        iterations: Number of attempted steps.
        nfev: Number of residual evaluations, finite-difference probes included.
        njev: Number of Jacobian evaluations.
        initial_cost: F at the initial guess.
        history: One record per attempted step.
    """
    x: np.ndarray
    cost: float
    status: OptimizationStatus
    iterations: int
    nfev: int
    njev: int
    initial_cost: float
    history: List[IterationRecord] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status.converged

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "x": self.x.tolist(),
            "cost": self.cost,
            "status": self.status.value,
            "converged": self.converged,
            "iterations": self.iterations,
            "nfev": self.nfev,
            "njev": self.njev,
            "initial_cost": self.initial_cost,
        }


# =============================================================================
# Optimizer
# =============================================================================

class LevenbergMarquardt(LoggerMixin):
    """
    Damped Gauss-Newton minimizer.

    The optimizer never raises on non-convergence: it always returns the best
    accepted estimate together with the stopping reason.

    Example:
        >>> lm = LevenbergMarquardt(cost_function, LMSettings(epsilon=1e-4))
        >>> result = lm.minimize(np.array([0, 0, 0, 0, 0, 110.0]))
        >>> print(result.status, result.cost)
    """

    def __init__(
        self,
        function: ResidualFunction,
        settings: Optional[LMSettings] = None,
    ):
        """
        Initialize optimizer.

        Args:
            function: Residual function to minimize.
            settings: Iteration settings (defaults if None).
        """
        self.function = function
        self.settings = settings or LMSettings()
        self._diff = NumericalDiff(
            function,
            epsilon=self.settings.epsilon,
            mode=self.settings.difference_mode,
        )
        self._nfev = 0
        self._njev = 0

    def minimize(self, x0: np.ndarray) -> OptimizationResult:
        """
        Minimize the sum of squared residuals starting from ``x0``.

        Args:
            x0: Initial parameter vector (n,). Not modified.

        Returns:
            OptimizationResult with the final estimate and stopping reason.
        """
        s = self.settings
        x = np.array(x0, dtype=np.float64)
        if x.shape != (self.function.num_parameters,):
            raise ValueError(
                f"x0 must have shape ({self.function.num_parameters},), got {x.shape}"
            )

        self._nfev = 0
        self._njev = 0
        self._diff.nfev = 0

        r = self._residuals(x)
        cost = float(r @ r)
        initial_cost = cost
        J = self._jacobian(x, r)
        A = J.T @ J
        g = J.T @ r

        mu = s.initial_damping
        history: List[IterationRecord] = []
        status = OptimizationStatus.MAX_ITERATIONS
        iterations = 0

        self.logger.debug(f"Initialized: cost={cost:.6g}, x={x}")

        while iterations < s.max_iterations:
            if np.max(np.abs(g)) <= s.gtol:
                status = OptimizationStatus.GRADIENT_TOLERANCE
                break
            if mu > s.max_damping:
                status = OptimizationStatus.DAMPING_SATURATED
                break

            iterations += 1
            delta = self._solve_step(A, g, mu)

            if delta is None:
                history.append(IterationRecord(iterations, cost, mu, float("nan"), False))
                self.logger.debug(f"Iteration {iterations}: singular damped system, mu={mu:.3g}")
                mu *= s.damping_up
                continue

            step_norm = float(np.linalg.norm(delta))
            if step_norm <= s.xtol * (np.linalg.norm(x) + s.xtol):
                status = OptimizationStatus.STEP_TOLERANCE
                history.append(IterationRecord(iterations, cost, mu, step_norm, False))
                break

            x_new = x + delta
            r_new = self._residuals(x_new)
            cost_new = float(r_new @ r_new)

            if np.isfinite(cost_new) and cost_new < cost:
                reduction = (cost - cost_new) / cost
                x, r, cost = x_new, r_new, cost_new
                J = self._jacobian(x, r)
                A = J.T @ J
                g = J.T @ r

                history.append(IterationRecord(iterations, cost, mu, step_norm, True))
                self.logger.debug(
                    f"Iteration {iterations}: accepted, cost={cost:.6g}, mu={mu:.3g}, |step|={step_norm:.3g}"
                )
                mu = max(mu * s.damping_down, s.min_damping)

                if reduction <= s.ftol:
                    status = OptimizationStatus.COST_TOLERANCE
                    break
            else:
                history.append(IterationRecord(iterations, cost, mu, step_norm, False))
                self.logger.debug(
                    f"Iteration {iterations}: rejected, trial cost={cost_new:.6g}, mu={mu:.3g}"
                )
                mu *= s.damping_up

        self.logger.info(
            f"Stopped after {iterations} iterations ({status.value}): "
            f"cost {initial_cost:.6g} -> {cost:.6g}"
        )

        return OptimizationResult(
            x=x,
            cost=cost,
            status=status,
            iterations=iterations,
            nfev=self._nfev + self._diff.nfev,
            njev=self._njev,
            initial_cost=initial_cost,
            history=history,
        )

    def _residuals(self, x: np.ndarray) -> np.ndarray:
        self._nfev += 1
        return np.asarray(self.function(x), dtype=np.float64)

    def _jacobian(self, x: np.ndarray, r: np.ndarray) -> np.ndarray:
        self._njev += 1
        if self.settings.jacobian == "analytic":
            J = self.function.jacobian(x)
            if J is None:
                raise ValueError(
                    f"{type(self.function).__name__} does not provide an analytic Jacobian"
                )
            return np.asarray(J, dtype=np.float64)
        return self._diff.jacobian(x, r0=r)

    @staticmethod
    def _solve_step(A: np.ndarray, g: np.ndarray, mu: float) -> Optional[np.ndarray]:
        """Solve the damped normal equations, None if the system is singular."""
        D = np.maximum(np.diag(A), 1e-12)
        try:
            return scipy.linalg.solve(A + mu * np.diag(D), -g, assume_a="pos")
        except scipy.linalg.LinAlgError:
            return None
