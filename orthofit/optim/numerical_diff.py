"""
Finite-difference Jacobians.

Forward differences:

    J[:, j] = (r(x + h e_j) - r(x)) / h

Central differences:

    J[:, j] = (r(x + h e_j) - r(x - h e_j)) / (2 h)

The step h is absolute and the same for every parameter. For problems whose
residuals are in pixels and whose parameters mix radians with scales of a few
hundred, steps near machine epsilon give a gradient that is numerically zero,
so the default here is 1e-4.
"""

from typing import Optional

import numpy as np

from .residuals import ResidualFunction


DIFFERENCE_MODES = ("forward", "central")


class NumericalDiff:
    """
    Numerical Jacobian of a residual function.

    Example:
        >>> diff = NumericalDiff(cost_function, epsilon=1e-4)
        >>> J = diff.jacobian(x)
        >>> print(J.shape)  # (cost_function.num_residuals, len(x))
    """

    def __init__(
        self,
        function: ResidualFunction,
        epsilon: float = 1e-4,
        mode: str = "forward",
    ):
        """
        Initialize the differentiator.

        Args:
            function: Residual function to differentiate.
            epsilon: Perturbation step applied to each parameter.
            mode: "forward" or "central".
        """
        if epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {epsilon}")
        if mode not in DIFFERENCE_MODES:
            raise ValueError(f"Unknown difference mode: {mode}. Valid: {list(DIFFERENCE_MODES)}")

        self.function = function
        self.epsilon = float(epsilon)
        self.mode = mode

        # Residual evaluations spent on probes
        self.nfev = 0

    def jacobian(
        self,
        x: np.ndarray,
        r0: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Approximate the Jacobian at ``x``.

        Args:
            x: Parameter vector (n,).
            r0: Residuals at ``x`` if already known (forward mode reuses them).

        Returns:
            np.ndarray: Jacobian (m, n).
        """
        x = np.asarray(x, dtype=np.float64)
        h = self.epsilon

        if self.mode == "forward" and r0 is None:
            r0 = self._evaluate(x)

        J = np.zeros((self.function.num_residuals, x.size))
        for j in range(x.size):
            x_plus = x.copy()
            x_plus[j] += h
            r_plus = self._evaluate(x_plus)

            if self.mode == "forward":
                J[:, j] = (r_plus - r0) / h
            else:
                x_minus = x.copy()
                x_minus[j] -= h
                r_minus = self._evaluate(x_minus)
                J[:, j] = (r_plus - r_minus) / (2.0 * h)

        return J

    def _evaluate(self, x: np.ndarray) -> np.ndarray:
        self.nfev += 1
        return np.asarray(self.function(x), dtype=np.float64)
