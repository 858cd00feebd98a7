"""
Orthographic projection utilities.

Mathematical Background:
========================

Rotation Convention:
--------------------
Angles are in radians. The model is rotated by yaw (about y) first, then
pitch (about x), then roll (about z):

    R = R_z(roll) @ R_x(pitch) @ R_y(yaw)

which is the extrinsic "yxz" Euler sequence with angles (yaw, pitch, roll).

Orthographic Projection:
------------------------
A model point P is rotated, translated in the image plane and scaled. Depth
is dropped, so it never influences the projected position:

    [u]         ( [R_0 . P]   [t_x] )
    [v] = s  *  ( [R_1 . P] + [t_y] )

Where:
    - R_0, R_1: first two rows of R
    - (t_x, t_y): translation in model units
    - s: frustum scale
"""

from typing import Tuple

import numpy as np
from scipy.spatial.transform import Rotation


# Generators of the rotation groups about x, y and z: dR(a)/da = R(a) @ K
GENERATOR_X = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, -1.0], [0.0, 1.0, 0.0]])
GENERATOR_Y = np.array([[0.0, 0.0, 1.0], [0.0, 0.0, 0.0], [-1.0, 0.0, 0.0]])
GENERATOR_Z = np.array([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])


def axis_rotations(
    pitch: float,
    yaw: float,
    roll: float,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Elementary rotations of the pose angles.

    Args:
        pitch: Rotation about x in radians.
        yaw: Rotation about y in radians.
        roll: Rotation about z in radians.

    Returns:
        Tuple[np.ndarray, np.ndarray, np.ndarray]: (R_x(pitch), R_y(yaw), R_z(roll)).
    """
    R_x = Rotation.from_euler("x", pitch).as_matrix()
    R_y = Rotation.from_euler("y", yaw).as_matrix()
    R_z = Rotation.from_euler("z", roll).as_matrix()
    return R_x, R_y, R_z


def euler_to_rotation_matrix(pitch: float, yaw: float, roll: float) -> np.ndarray:
    """
    Composite rotation R_z(roll) @ R_x(pitch) @ R_y(yaw).

    Example:
        >>> R = euler_to_rotation_matrix(0.0, np.pi / 2, 0.0)
        >>> R @ np.array([0.0, 0.0, 1.0])  # +z turns into +x (up to rounding)
    """
    return Rotation.from_euler("yxz", [yaw, pitch, roll]).as_matrix()


def to_cartesian(model_points: np.ndarray) -> np.ndarray:
    """
    Drop the homogeneous coordinate of model points.

    Args:
        model_points: (N, 3) or (N, 4) points; the 4th coordinate is 1.

    Returns:
        np.ndarray: (N, 3) float64 points.
    """
    points = np.atleast_2d(np.asarray(model_points, dtype=np.float64))
    if points.ndim != 2 or points.shape[1] not in (3, 4):
        raise ValueError(f"model points must be (N, 3) or (N, 4), got {points.shape}")
    return points[:, :3]


def project_orthographic(
    model_points: np.ndarray,
    rotation: np.ndarray,
    translation: np.ndarray,
    scale: float,
) -> np.ndarray:
    """
    Project 3D model points with an orthographic camera.

    Args:
        model_points: (N, 3) or (N, 4) model points.
        rotation: 3x3 rotation matrix.
        translation: (2,) image-plane translation (t_x, t_y).
        scale: Frustum scale s.

    Returns:
        np.ndarray: Projected points (N, 2).
    """
    points = to_cartesian(model_points)
    translation = np.asarray(translation, dtype=np.float64).reshape(2)
    return scale * (points @ rotation[:2].T + translation)


def wrap_angle(angle: float) -> float:
    """Wrap an angle in radians to [-pi, pi); angles already in range are returned as is."""
    if -np.pi <= angle < np.pi:
        return float(angle)
    return float((angle + np.pi) % (2.0 * np.pi) - np.pi)
