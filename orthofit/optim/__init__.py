"""
Generic nonlinear least-squares machinery.

Classes:
    ResidualFunction: Interface for "evaluate residuals at parameters".
    NumericalDiff: Finite-difference Jacobian of a residual function.
    LevenbergMarquardt: Damped Gauss-Newton minimizer.
    LMSettings: Tolerances, damping policy and differentiation settings.
    OptimizationResult: Final estimate, cost, stopping reason and history.
    OptimizationStatus: Stopping reasons.
"""

from .residuals import ResidualFunction
from .numerical_diff import NumericalDiff
from .levenberg_marquardt import (
    IterationRecord,
    LevenbergMarquardt,
    LMSettings,
    OptimizationResult,
    OptimizationStatus,
)

__all__ = [
    "ResidualFunction",
    "NumericalDiff",
    "LevenbergMarquardt",
    "LMSettings",
    "OptimizationResult",
    "OptimizationStatus",
    "IterationRecord",
]
