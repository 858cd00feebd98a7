"""Orthographic camera and pose estimation from 2D-3D correspondences."""

__version__ = "0.1.0"

from . import optim
from . import fitting
from . import utils

from .fitting import (
    EstimatorConfig,
    Frustum,
    RenderingParameters,
    estimate_orthographic_camera,
    fit_orthographic_camera,
)

__all__ = [
    "optim",
    "fitting",
    "utils",
    "EstimatorConfig",
    "Frustum",
    "RenderingParameters",
    "estimate_orthographic_camera",
    "fit_orthographic_camera",
]
