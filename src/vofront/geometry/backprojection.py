"""Depth map to point cloud backprojection."""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass

import numpy as np

from ..camera import CameraModel
from ..errors import EmptyInput, InvalidDimensions, WrongFormat

logger = logging.getLogger(__name__)

_DEPTH_DTYPES = (np.float32, np.float64)


@dataclass(frozen=True)
class BackprojectionConfig:
    """Depth filtering and sampling for backprojection.

    Attributes:
        depth_min: Exclusive lower depth bound (meters)
        depth_max: Inclusive upper depth bound (meters), None for no bound
        stride: Pixel sampling step in both axes. Values < 1 are clamped to 1.
    """

    depth_min: float = 0.0
    depth_max: float | None = None
    stride: int = 1

    def __post_init__(self) -> None:
        """Clamp stride to at least 1."""
        object.__setattr__(self, "stride", max(int(self.stride), 1))

    def with_depth_max(self, depth_max: float | None) -> BackprojectionConfig:
        """Return a copy with a new upper depth bound."""
        return dataclasses.replace(self, depth_max=depth_max)

    def with_stride(self, stride: int) -> BackprojectionConfig:
        """Return a copy with a new sampling stride."""
        return dataclasses.replace(self, stride=stride)


def sampled_pixel_count(rows: int, cols: int, stride: int) -> int:
    """Return the number of pixels visited with the given stride."""
    stride = max(stride, 1)
    return math.ceil(rows / stride) * math.ceil(cols / stride)


def _validate_depth_map(depth_map: np.ndarray | None) -> np.ndarray:
    if depth_map is None:
        raise EmptyInput("Depth map must be non-empty")

    depth = np.asarray(depth_map)
    if depth.size == 0:
        raise EmptyInput(f"Depth map must be non-empty, got shape {depth.shape}")
    if depth.dtype not in _DEPTH_DTYPES:
        raise WrongFormat(f"Depth map must be float32 or float64, got {depth.dtype}")

    if depth.ndim == 3:
        if depth.shape[2] != 1:
            raise WrongFormat(
                f"Depth map must be single channel, got {depth.shape[2]} channels"
            )
        depth = depth[:, :, 0]

    if depth.ndim != 2 or depth.shape[0] <= 0 or depth.shape[1] <= 0:
        raise InvalidDimensions(f"Invalid depth map dimensions: {depth.shape}")

    return depth


def depth_map_to_point_cloud(
    depth_map: np.ndarray,
    camera: CameraModel,
    config: BackprojectionConfig | None = None,
) -> np.ndarray:
    """Convert a depth map (meters) to a point cloud in the camera frame.

    Pixels are sampled in row-major order with step `config.stride` in both
    axes. Each sampled pixel (v, u) with a finite depth z such that
    depth_min < z (<= depth_max, when set) produces the point::

        x = (u - cx) / fx * z
        y = (v - cy) / fy * z
        z = z

    Skipped pixels leave no gap in the output.

    Args:
        depth_map: HxW (or HxWx1) float32/float64 depth map, row = v, col = u
        camera: Camera whose intrinsics are used for backprojection
        config: Filtering and sampling. Defaults to depth_min=0,
            no depth_max, stride=1.

    Returns:
        Nx3 array of points with the depth map's dtype, N <= number of
        sampled pixels

    Raises:
        EmptyInput: If the depth map is None or empty
        WrongFormat: If the depth map is not single-channel floating point
        InvalidDimensions: If the depth map is not 2-D
    """
    depth = _validate_depth_map(depth_map)
    cfg = config or BackprojectionConfig()
    dtype = depth.dtype.type

    stride = cfg.stride
    sampled = depth[::stride, ::stride]
    v, u = np.meshgrid(
        np.arange(0, depth.shape[0], stride, dtype=dtype),
        np.arange(0, depth.shape[1], stride, dtype=dtype),
        indexing="ij",
    )

    # Comparisons with NaN are False, so non-finite values drop out here too
    valid = np.isfinite(sampled) & (sampled > dtype(cfg.depth_min))
    if cfg.depth_max is not None:
        valid &= sampled <= dtype(cfg.depth_max)

    z = sampled[valid]
    fx, fy = dtype(camera.fx), dtype(camera.fy)
    cx, cy = dtype(camera.cx), dtype(camera.cy)

    points = np.empty((len(z), 3), dtype=dtype)
    points[:, 0] = (u[valid] - cx) / fx * z
    points[:, 1] = (v[valid] - cy) / fy * z
    points[:, 2] = z

    logger.debug(
        "Backprojected %d/%d sampled pixels (stride=%d)",
        len(points),
        sampled.size,
        stride,
    )
    return points
