"""
Estimated model pose and orthographic camera frustum.

The rotation and translation transform the model from model space to camera
space and, together with the frustum, fully describe the imaging process of
a model instance under an orthographic projection. Both can be turned into
OpenGL-conformant matrices:

    modelview  = T(t_x, t_y, 0) @ R_z(roll) @ R_x(pitch) @ R_y(yaw)
    projection = glOrtho(left, right, bottom, top, near, far)
"""

from dataclasses import dataclass
from typing import Any, Dict

import numpy as np

from .projection import euler_to_rotation_matrix, project_orthographic, wrap_angle


@dataclass(frozen=True)
class Frustum:
    """
    Orthographic viewing volume extents in the image plane.

    Attributes:
        left: Left clipping plane.
        right: Right clipping plane.
        bottom: Bottom clipping plane.
        top: Top clipping plane.
    """
    left: float
    right: float
    bottom: float
    top: float

    @classmethod
    def from_scale(cls, scale: float, width: int, height: int) -> "Frustum":
        """
        Frustum of a given scale, shaped like the image.

        Args:
            scale: Half the frustum height.
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            Frustum with right / top equal to width / height.
        """
        aspect = width / height
        return cls(
            left=-aspect * scale,
            right=aspect * scale,
            bottom=-scale,
            top=scale,
        )

    @property
    def aspect(self) -> float:
        return (self.right - self.left) / (self.top - self.bottom)

    def projection_matrix(self, near: float = -1.0, far: float = 1.0) -> np.ndarray:
        """
        OpenGL orthographic projection matrix (glOrtho layout).

        Args:
            near: Near clipping plane.
            far: Far clipping plane.

        Returns:
            np.ndarray: 4x4 projection matrix.
        """
        l, r, b, t = self.left, self.right, self.bottom, self.top
        return np.array([
            [2.0 / (r - l), 0.0, 0.0, -(r + l) / (r - l)],
            [0.0, 2.0 / (t - b), 0.0, -(t + b) / (t - b)],
            [0.0, 0.0, -2.0 / (far - near), -(far + near) / (far - near)],
            [0.0, 0.0, 0.0, 1.0],
        ])

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {"l": self.left, "r": self.right, "b": self.bottom, "t": self.top}


@dataclass(frozen=True)
class RenderingParameters:
    """
    Model pose and camera frustum estimated from 2D-3D correspondences.

    Attributes:
        r_x: Pitch in radians.
        r_y: Yaw in radians. Positive means the subject is looking left.
        r_z: Roll in radians. Positive tilts the subject's head to its right.
        t_x: Translation along x, in model units.
        t_y: Translation along y, in model units.
        frustum: Orthographic viewing frustum; its top is the frustum scale.
    """
    r_x: float
    r_y: float
    r_z: float
    t_x: float
    t_y: float
    frustum: Frustum

    @classmethod
    def from_parameter_vector(
        cls,
        parameters: np.ndarray,
        width: int,
        height: int,
    ) -> "RenderingParameters":
        """
        Assemble rendering parameters from an estimated parameter vector.

        A negative scale describes the same projection as the positive scale
        with the model rolled by pi and the translation negated; results are
        reported in that positive-scale form, with angles wrapped to [-pi, pi).

        Args:
            parameters: [pitch, yaw, roll, t_x, t_y, frustum_scale].
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            RenderingParameters.
        """
        pitch, yaw, roll, t_x, t_y, scale = (float(p) for p in parameters)

        if scale < 0:
            scale, roll, t_x, t_y = -scale, roll + np.pi, -t_x, -t_y

        return cls(
            r_x=wrap_angle(pitch),
            r_y=wrap_angle(yaw),
            r_z=wrap_angle(roll),
            t_x=t_x,
            t_y=t_y,
            frustum=Frustum.from_scale(scale, width, height),
        )

    @property
    def scale(self) -> float:
        return self.frustum.top

    @property
    def parameter_vector(self) -> np.ndarray:
        """[pitch, yaw, roll, t_x, t_y, frustum_scale]."""
        return np.array([self.r_x, self.r_y, self.r_z, self.t_x, self.t_y, self.scale])

    def rotation_matrix(self) -> np.ndarray:
        """3x3 rotation R_z(roll) @ R_x(pitch) @ R_y(yaw)."""
        return euler_to_rotation_matrix(self.r_x, self.r_y, self.r_z)

    def modelview_matrix(self) -> np.ndarray:
        """4x4 model-view matrix: rotation followed by the (t_x, t_y, 0) translation."""
        T = np.eye(4)
        T[:3, :3] = self.rotation_matrix()
        T[0, 3] = self.t_x
        T[1, 3] = self.t_y
        return T

    def project(self, model_points: np.ndarray) -> np.ndarray:
        """
        Project model points with the estimated pose and scale.

        Args:
            model_points: (N, 3) or (N, 4) model points.

        Returns:
            np.ndarray: Image points (N, 2).
        """
        return project_orthographic(
            model_points, self.rotation_matrix(), (self.t_x, self.t_y), self.scale
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "r_x": self.r_x,
            "r_y": self.r_y,
            "r_z": self.r_z,
            "t_x": self.t_x,
            "t_y": self.t_y,
            "frustum": self.frustum.to_dict(),
        }
