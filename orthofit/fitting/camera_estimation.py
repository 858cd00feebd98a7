"""
Orthographic camera estimation from 2D-3D correspondences.

Estimates six parameters [r_x, r_y, r_z, t_x, t_y, frustum_scale]: the first
five describe how to transform the model, the last one the size of the
camera's viewing frustum. The problem is solved with Levenberg-Marquardt on
the reprojection residuals of :class:`OrthographicParameterProjection`.

The six parameters need at least six correspondences.

Known limitations:
    - The initial guess is fixed (zero pose, frustum scale 110).
    - Near-coplanar or collinear model points are not detected and can give
      poor estimates without any warning.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from ..optim.levenberg_marquardt import LevenbergMarquardt, LMSettings, OptimizationResult
from ..utils.config_loader import load_config
from ..utils.logger import get_logger, log_function_call
from .cost_function import OrthographicParameterProjection
from .rendering_parameters import RenderingParameters


logger = get_logger(__name__)

MIN_CORRESPONDENCES = 6

# Rough hand-chosen scale that works for typical image sizes.
# TODO: initialize from the ratio of image-point to model-point spread.
DEFAULT_INITIAL_FRUSTUM_SCALE = 110.0


# =============================================================================
# Configuration and Results
# =============================================================================

@dataclass
class EstimatorConfig:
    """
    Estimator configuration.

    Attributes:
        initial_frustum_scale: Frustum scale of the initial guess.
        optimizer: Levenberg-Marquardt settings.
    """
    initial_frustum_scale: float = DEFAULT_INITIAL_FRUSTUM_SCALE
    optimizer: LMSettings = field(default_factory=LMSettings)

    def __post_init__(self):
        """Validate inputs after initialization."""
        if not np.isfinite(self.initial_frustum_scale) or self.initial_frustum_scale == 0:
            raise ValueError(
                f"initial_frustum_scale must be finite and non-zero, got {self.initial_frustum_scale}"
            )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "EstimatorConfig":
        """
        Create from a config dictionary with ``estimator`` and ``optimizer`` sections.

        Args:
            config: Configuration dictionary (e.g., from configs/default.yaml).

        Returns:
            EstimatorConfig.
        """
        estimator = config.get("estimator") or {}
        return cls(
            initial_frustum_scale=float(
                estimator.get("initial_frustum_scale", DEFAULT_INITIAL_FRUSTUM_SCALE)
            ),
            optimizer=LMSettings.from_dict(config.get("optimizer") or {}),
        )

    def initial_parameters(self) -> np.ndarray:
        """Initial guess [0, 0, 0, 0, 0, initial_frustum_scale]."""
        x0 = np.zeros(6)
        x0[5] = self.initial_frustum_scale
        return x0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "estimator": {"initial_frustum_scale": self.initial_frustum_scale},
            "optimizer": self.optimizer.to_dict(),
        }


def load_estimator_config(
    config_path: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None,
) -> EstimatorConfig:
    """
    Load estimator configuration from a YAML file.

    Args:
        config_path: Path to config file.
        overrides: Optional overrides to apply.

    Returns:
        EstimatorConfig.
    """
    return EstimatorConfig.from_dict(load_config(config_path, overrides))


@dataclass(frozen=True)
class CameraFit:
    """
    Rendering parameters together with the optimizer outcome.

    Attributes:
        rendering_parameters: Estimated pose and frustum.
        optimization: Final cost, stopping reason and iteration history.
        num_points: Number of correspondences used.
    """
    rendering_parameters: RenderingParameters
    optimization: OptimizationResult
    num_points: int

    @property
    def converged(self) -> bool:
        return self.optimization.converged

    @property
    def cost(self) -> float:
        """Sum of squared reprojection residuals in pixels^2."""
        return self.optimization.cost

    @property
    def rms_error(self) -> float:
        """Root-mean-square reprojection distance per point in pixels."""
        return float(np.sqrt(self.cost / self.num_points))


# =============================================================================
# Estimation
# =============================================================================

@log_function_call(logger)
def fit_orthographic_camera(
    image_points: np.ndarray,
    model_points: np.ndarray,
    width: int,
    height: int,
    config: Optional[EstimatorConfig] = None,
) -> CameraFit:
    """
    Estimate pose and frustum, keeping the optimizer's status.

    Args:
        image_points: N observed 2D points (N, 2).
        model_points: N corresponding 3D points (N, 3), or (N, 4) with w = 1.
        width: Image width in pixels.
        height: Image height in pixels.
        config: Estimator configuration (defaults if None).

    Returns:
        CameraFit. Non-convergence is reported through
        ``fit.optimization.status``, never raised.
    """
    assert len(image_points) == len(model_points), (
        f"Got {len(image_points)} image points but {len(model_points)} model points"
    )
    assert len(image_points) >= MIN_CORRESPONDENCES, (
        f"Need at least {MIN_CORRESPONDENCES} correspondences, got {len(image_points)}"
    )
    assert width > 0 and height > 0, f"Invalid image size {width}x{height}"

    config = config or EstimatorConfig()

    cost_function = OrthographicParameterProjection(image_points, model_points, width, height)
    optimizer = LevenbergMarquardt(cost_function, config.optimizer)
    result = optimizer.minimize(config.initial_parameters())

    params = RenderingParameters.from_parameter_vector(result.x, width, height)
    logger.debug(
        f"Estimated r=({params.r_x:.4f}, {params.r_y:.4f}, {params.r_z:.4f}), "
        f"t=({params.t_x:.3f}, {params.t_y:.3f}), scale={params.scale:.3f}, "
        f"status={result.status.value}"
    )

    return CameraFit(
        rendering_parameters=params,
        optimization=result,
        num_points=len(image_points),
    )


def estimate_orthographic_camera(
    image_points: np.ndarray,
    model_points: np.ndarray,
    width: int,
    height: int,
    config: Optional[EstimatorConfig] = None,
) -> RenderingParameters:
    """
    Estimate model pose and orthographic frustum from 2D-3D correspondences.

    Args:
        image_points: N observed 2D points (N, 2).
        model_points: N corresponding 3D points (N, 3), or (N, 4) with w = 1.
        width: Image width in pixels.
        height: Image height in pixels.
        config: Estimator configuration (defaults if None).

    Returns:
        RenderingParameters. Always the best estimate found, whether or not
        the optimizer converged. The optimized vector is reported in
        canonical form: a negative scale s is returned as -s with roll + pi
        and the translation negated (the same projection, with a frustum
        where left < right and bottom < top), and angles outside [-pi, pi)
        are wrapped into that range. Otherwise the angles and translation
        are the optimizer's values unchanged.

    Raises:
        AssertionError: If the point counts differ or are below six.

    Example:
        >>> params = estimate_orthographic_camera(image_points, model_points, 640, 480)
        >>> print(params.r_y, params.frustum.top)
    """
    return fit_orthographic_camera(image_points, model_points, width, height, config).rendering_parameters
