"""Homogeneous 4x4 transforms applied to point clouds."""

from __future__ import annotations

import logging

import numpy as np

from ..errors import InvalidInput

logger = logging.getLogger(__name__)


def make_transform(
    rotation: np.ndarray, translation: np.ndarray, scale: float = 1.0
) -> np.ndarray:
    """Build a 4x4 homogeneous transform from a rotation and translation.

    The bottom-right entry holds 1 / scale, so the perspective divide in
    `transform_point_cloud` scales every point by `scale`.

    Args:
        rotation: 3x3 rotation matrix
        translation: 3D translation vector (any shape that flattens to 3)
        scale: Uniform scale applied after rotation and translation

    Returns:
        4x4 float64 transformation matrix [[R, t], [0, 1/scale]]

    Raises:
        InvalidInput: If shapes are wrong or scale is zero
    """
    R = np.asarray(rotation, dtype=np.float64)
    t = np.asarray(translation, dtype=np.float64).flatten()

    if R.shape != (3, 3):
        raise InvalidInput(f"Rotation must be 3x3, got {R.shape}")
    if t.shape != (3,):
        raise InvalidInput(f"Translation must be (3,), got {t.shape}")
    if scale == 0:
        raise InvalidInput("Scale must be non-zero")

    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = R
    T[:3, 3] = t
    T[3, 3] = 1.0 / scale
    return T


def transform_point_cloud(points: np.ndarray, transform: np.ndarray) -> np.ndarray:
    """Apply a 4x4 homogeneous transform to a point cloud.

    For each point (x, y, z) the homogeneous product with the rows of the
    matrix gives (x', y', z', w). When w != 0 the result is
    (x'/w, y'/w, z'/w); when w == 0 the unnormalized (x', y', z') is
    returned, which callers should treat as a degenerate transform.

    Args:
        points: Nx3 array of points
        transform: 4x4 float32 or float64 matrix. float64 values are
            narrowed to float32 before use.

    Returns:
        New Nx3 float32 array in the same order as the input

    Raises:
        InvalidInput: If transform is not a 4x4 float32/float64 array or
            points is not Nx3
    """
    m = np.asarray(transform)
    if m.shape != (4, 4):
        raise InvalidInput(f"Transform must be 4x4, got {m.shape}")
    if m.dtype not in (np.float32, np.float64):
        raise InvalidInput(f"Transform must be float32 or float64, got {m.dtype}")
    m = m.astype(np.float32)

    pts = np.asarray(points, dtype=np.float32)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise InvalidInput(f"Points must be Nx3, got {pts.shape}")

    homogeneous = pts @ m[:, :3].T + m[:, 3]
    out = homogeneous[:, :3].copy()
    w = homogeneous[:, 3]

    nonzero = w != 0
    out[nonzero] /= w[nonzero, None]

    degenerate = len(w) - int(np.count_nonzero(nonzero))
    if degenerate:
        logger.warning("%d points with w == 0 left unnormalized", degenerate)

    return out
