"""
Residual function interface for nonlinear least squares.

A residual function maps a parameter vector x (n,) to a residual vector
r(x) (m,). The optimizers in this package minimize

    F(x) = ||r(x)||^2

and only ever talk to a problem through this interface, so the model that
produces the residuals stays independent of the iteration mechanics.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class ResidualFunction(ABC):
    """
    Abstract residual function.

    Subclasses implement :meth:`__call__` and report their dimensions.
    Overriding :meth:`jacobian` provides closed-form derivatives; the default
    returns None, meaning the caller has to differentiate numerically.
    """

    @property
    @abstractmethod
    def num_parameters(self) -> int:
        """Length n of the parameter vector."""

    @property
    @abstractmethod
    def num_residuals(self) -> int:
        """Length m of the residual vector."""

    @abstractmethod
    def __call__(self, parameters: np.ndarray) -> np.ndarray:
        """Evaluate the residual vector (m,) at ``parameters`` (n,)."""

    def jacobian(self, parameters: np.ndarray) -> Optional[np.ndarray]:
        """Closed-form Jacobian (m, n), or None if not available."""
        return None

    def sum_of_squares(self, parameters: np.ndarray) -> float:
        """Sum of squared residuals at ``parameters``."""
        r = np.asarray(self(parameters), dtype=np.float64)
        return float(r @ r)
