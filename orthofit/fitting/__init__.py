"""
Pose and camera fitting from 2D-3D correspondences.

This package estimates the pose of a 3D model and the viewing frustum of an
orthographic camera from landmark points localized in an image and their
corresponding model vertices.

Classes:
    OrthographicParameterProjection: Reprojection residuals of the 6-parameter model.
    RenderingParameters: Estimated rotation, translation and frustum.
    Frustum: Orthographic viewing volume extents.
    EstimatorConfig: Initial guess and optimizer settings.
    CameraFit: Rendering parameters plus the optimizer outcome.

Standalone Functions:
    estimate_orthographic_camera: Estimate rendering parameters.
    fit_orthographic_camera: Estimate rendering parameters and keep the optimizer status.
    load_estimator_config: Read an EstimatorConfig from YAML.
    euler_to_rotation_matrix: Composite roll-pitch-yaw rotation.
    project_orthographic: Orthographic projection of model points.

Example Usage:
    >>> from orthofit.fitting import estimate_orthographic_camera
    >>>
    >>> params = estimate_orthographic_camera(image_points, model_points, 640, 480)
    >>> modelview = params.modelview_matrix()
    >>> projection = params.frustum.projection_matrix()
"""

from .projection import euler_to_rotation_matrix, project_orthographic
from .cost_function import OrthographicParameterProjection
from .rendering_parameters import Frustum, RenderingParameters
from .camera_estimation import (
    CameraFit,
    EstimatorConfig,
    estimate_orthographic_camera,
    fit_orthographic_camera,
    load_estimator_config,
)

__all__ = [
    # Classes
    "OrthographicParameterProjection",
    "RenderingParameters",
    "Frustum",
    "EstimatorConfig",
    "CameraFit",
    # Standalone functions
    "estimate_orthographic_camera",
    "fit_orthographic_camera",
    "load_estimator_config",
    "euler_to_rotation_matrix",
    "project_orthographic",
]
