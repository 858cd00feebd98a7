"""
Reprojection cost of an orthographic camera.

The parameter vector is

    x = [pitch, yaw, roll, t_x, t_y, frustum_scale]

and the residuals of N correspondences are interleaved per point:

    r = [u_0 - x_0, v_0 - y_0, u_1 - x_1, v_1 - y_1, ...]    (2N,)

where (u_i, v_i) is the orthographic projection of model point i (see
:mod:`orthofit.fitting.projection`) and (x_i, y_i) the observed image point.
"""

import numpy as np

from ..optim.residuals import ResidualFunction
from .projection import (
    GENERATOR_X,
    GENERATOR_Y,
    GENERATOR_Z,
    axis_rotations,
    project_orthographic,
    to_cartesian,
)


NUM_PARAMETERS = 6


class OrthographicParameterProjection(ResidualFunction):
    """
    Residuals between observed image points and projected model points.

    Holds private copies of the correspondences and is otherwise stateless:
    every call is a pure function of the parameter vector.

    Attributes:
        image_points: Observed 2D points (N, 2).
        model_points: 3D model points (N, 3).
        width: Image width in pixels.
        height: Image height in pixels.

    Example:
        >>> cost = OrthographicParameterProjection(image_points, model_points, 640, 480)
        >>> r = cost(np.array([0, 0.2, 0, 10, -5, 100.0]))
        >>> print(r.shape)  # (2N,)
    """

    def __init__(
        self,
        image_points: np.ndarray,
        model_points: np.ndarray,
        width: int,
        height: int,
    ):
        """
        Initialize cost function.

        Args:
            image_points: Observed 2D points (N, 2).
            model_points: Corresponding 3D points (N, 3) or homogeneous (N, 4).
            width: Image width in pixels.
            height: Image height in pixels.
        """
        self.image_points = np.atleast_2d(np.array(image_points, dtype=np.float64))
        self.model_points = to_cartesian(model_points).copy()

        if self.image_points.ndim != 2 or self.image_points.shape[1] != 2:
            raise ValueError(f"image points must be (N, 2), got {self.image_points.shape}")
        if len(self.image_points) != len(self.model_points):
            raise ValueError(
                f"Got {len(self.image_points)} image points but {len(self.model_points)} model points"
            )
        if not (np.all(np.isfinite(self.image_points)) and np.all(np.isfinite(self.model_points))):
            raise ValueError("Correspondences contain non-finite values")

        self.image_points.flags.writeable = False
        self.model_points.flags.writeable = False

        self.width = int(width)
        self.height = int(height)

    @property
    def num_parameters(self) -> int:
        return NUM_PARAMETERS

    @property
    def num_residuals(self) -> int:
        return 2 * len(self.image_points)

    @property
    def aspect(self) -> float:
        """Image aspect ratio width / height."""
        return self.width / self.height

    def project(self, parameters: np.ndarray) -> np.ndarray:
        """
        Project the model points with the given parameters.

        Args:
            parameters: [pitch, yaw, roll, t_x, t_y, frustum_scale].

        Returns:
            np.ndarray: Projected points (N, 2).
        """
        pitch, yaw, roll, t_x, t_y, scale = np.asarray(parameters, dtype=np.float64)
        R_x, R_y, R_z = axis_rotations(pitch, yaw, roll)
        return project_orthographic(self.model_points, R_z @ R_x @ R_y, (t_x, t_y), scale)

    def __call__(self, parameters: np.ndarray) -> np.ndarray:
        return (self.project(parameters) - self.image_points).reshape(-1)

    def jacobian(self, parameters: np.ndarray) -> np.ndarray:
        """
        Closed-form Jacobian of the residuals.

        With R = R_z R_x R_y and dR(a)/da = R(a) K for the axis generator K:

            dR/dpitch = R_z R_x K_x R_y
            dR/dyaw   = R K_y
            dR/droll  = K_z R

        Args:
            parameters: [pitch, yaw, roll, t_x, t_y, frustum_scale].

        Returns:
            np.ndarray: Jacobian (2N, 6), rows interleaved like the residuals.
        """
        pitch, yaw, roll, t_x, t_y, scale = np.asarray(parameters, dtype=np.float64)
        R_x, R_y, R_z = axis_rotations(pitch, yaw, roll)
        R = R_z @ R_x @ R_y

        rotation_derivatives = (
            R_z @ R_x @ GENERATOR_X @ R_y,
            R @ GENERATOR_Y,
            GENERATOR_Z @ R,
        )

        J = np.zeros((self.num_residuals, NUM_PARAMETERS))
        for j, dR in enumerate(rotation_derivatives):
            J[:, j] = (scale * (self.model_points @ dR[:2].T)).reshape(-1)

        J[0::2, 3] = scale
        J[1::2, 4] = scale
        J[:, 5] = (self.model_points @ R[:2].T + (t_x, t_y)).reshape(-1)

        return J
