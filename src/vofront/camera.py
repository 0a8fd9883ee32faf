"""Pinhole camera model with lens distortion and point undistortion."""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np
import yaml

from .errors import InvalidDimensions, InvalidInput, InvalidIntrinsics, OpenCVError

logger = logging.getLogger(__name__)

# Coefficient counts accepted by cv2.undistortPoints
_DISTORTION_LENGTHS = (0, 4, 5, 8, 12, 14)


@dataclass(frozen=True)
class CameraModel:
    """Calibrated pinhole camera (intrinsics, distortion, image size).

    The intrinsic matrix is always the canonical pinhole form::

        K = [[fx, 0, cx],
             [0, fy, cy],
             [0,  0,  1]]

    Instances are immutable. To change intrinsics, build a new model with
    `with_intrinsics` and hand the new reference to whoever needs it.

    Attributes:
        fx: Focal length along x (pixels)
        fy: Focal length along y (pixels)
        cx: Principal point x (pixels)
        cy: Principal point y (pixels)
        image_width: Image width (pixels)
        image_height: Image height (pixels)
        distortion: OpenCV-ordered distortion coefficients
            (k1, k2, p1, p2[, k3[, k4, k5, k6[, ...]]]), possibly empty
    """

    fx: float
    fy: float
    cx: float
    cy: float
    image_width: int
    image_height: int
    distortion: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        """Validate and normalize fields."""
        if self.image_width <= 0 or self.image_height <= 0:
            raise InvalidDimensions(
                f"Invalid image dimensions: width={self.image_width}, "
                f"height={self.image_height}"
            )

        for name in ("fx", "fy"):
            value = float(getattr(self, name))
            if not math.isfinite(value) or value == 0.0:
                raise InvalidIntrinsics(f"{name} must be finite and non-zero, got {value}")
            object.__setattr__(self, name, value)

        for name in ("cx", "cy"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise InvalidIntrinsics(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, value)

        distortion = tuple(float(d) for d in self.distortion)
        if len(distortion) not in _DISTORTION_LENGTHS:
            raise InvalidIntrinsics(
                f"Expected {_DISTORTION_LENGTHS} distortion coefficients, "
                f"got {len(distortion)}"
            )
        if not all(math.isfinite(d) for d in distortion):
            raise InvalidIntrinsics("Distortion coefficients must be finite")

        object.__setattr__(self, "distortion", distortion)
        object.__setattr__(self, "image_width", int(self.image_width))
        object.__setattr__(self, "image_height", int(self.image_height))

    @classmethod
    def from_matrix(
        cls,
        camera_matrix: np.ndarray,
        distortion: np.ndarray | tuple[float, ...] | list[float] | None,
        width: int,
        height: int,
    ) -> CameraModel:
        """Create a camera from a 3x3 intrinsic matrix.

        Only fx, fy, cx, cy are read from the matrix; skew and the bottom
        row are ignored so that K is always canonical.

        Args:
            camera_matrix: 3x3 float64 intrinsic matrix
            distortion: Distortion coefficients, or None/empty for none
            width: Image width in pixels
            height: Image height in pixels

        Raises:
            InvalidIntrinsics: If the matrix is not a 3x3 float64 array
            InvalidDimensions: If width or height is not positive
        """
        if not isinstance(camera_matrix, np.ndarray) or camera_matrix.dtype != np.float64:
            raise InvalidIntrinsics("Camera matrix must be a float64 numpy array")
        if camera_matrix.shape != (3, 3):
            raise InvalidIntrinsics(
                f"Camera matrix is invalid size. Expected 3x3, got {camera_matrix.shape}"
            )

        coeffs = () if distortion is None else tuple(np.asarray(distortion, dtype=np.float64).ravel())
        return cls(
            fx=camera_matrix[0, 0],
            fy=camera_matrix[1, 1],
            cx=camera_matrix[0, 2],
            cy=camera_matrix[1, 2],
            image_width=width,
            image_height=height,
            distortion=coeffs,
        )

    @classmethod
    def from_params(
        cls,
        fx: float,
        fy: float,
        cx: float,
        cy: float,
        width: int,
        height: int,
        distortion: tuple[float, ...] = (),
    ) -> CameraModel:
        """Create a camera from scalar intrinsics (no distortion by default)."""
        return cls(
            fx=fx,
            fy=fy,
            cx=cx,
            cy=cy,
            image_width=width,
            image_height=height,
            distortion=tuple(distortion),
        )

    @classmethod
    def from_dict(cls, data: dict) -> CameraModel:
        """Create a camera from a EuRoC-style calibration mapping.

        Expected keys::

            intrinsics: [fu, fv, cu, cv]
            distortion_coefficients: [k1, k2, p1, p2]   # optional
            resolution: [width, height]

        Raises:
            InvalidIntrinsics: If intrinsics or distortion are malformed
            InvalidDimensions: If the resolution is missing or invalid
        """
        intrinsics = data.get("intrinsics")
        if intrinsics is None or len(intrinsics) != 4:
            raise InvalidIntrinsics(f"Expected 4 intrinsics [fu, fv, cu, cv], got {intrinsics}")

        resolution = data.get("resolution")
        if resolution is None or len(resolution) != 2:
            raise InvalidDimensions(f"Expected resolution [width, height], got {resolution}")

        distortion = data.get("distortion_coefficients") or ()
        fx, fy, cx, cy = intrinsics
        return cls(
            fx=fx,
            fy=fy,
            cx=cx,
            cy=cy,
            image_width=resolution[0],
            image_height=resolution[1],
            distortion=tuple(distortion),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> CameraModel:
        """Load a camera from a EuRoC sensor.yaml calibration file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            InvalidIntrinsics: If the file content is not a calibration mapping
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Calibration file not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise InvalidIntrinsics(f"Invalid calibration file: {yaml_path}")

        camera = cls.from_dict(data)
        logger.debug("Loaded camera from %s: %s", path, camera)
        return camera

    def with_intrinsics(self, **changes: float) -> CameraModel:
        """Return a new camera with some fields replaced.

        Example:
            >>> zoomed = camera.with_intrinsics(fx=camera.fx * 2, fy=camera.fy * 2)
        """
        return dataclasses.replace(self, **changes)

    @property
    def intrinsic_matrix(self) -> np.ndarray:
        """Return 3x3 camera intrinsic matrix K (fresh float64 array)."""
        return np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )

    @property
    def distortion_array(self) -> np.ndarray:
        """Return distortion coefficients as a float64 array for OpenCV."""
        return np.array(self.distortion, dtype=np.float64)

    @property
    def image_size(self) -> tuple[int, int]:
        """Return image size as (width, height)."""
        return (self.image_width, self.image_height)

    @property
    def has_distortion(self) -> bool:
        """Return True if any distortion coefficients are set."""
        return len(self.distortion) > 0

    def undistort_points(self, points: np.ndarray, normalized: bool = False) -> np.ndarray:
        """Remove lens distortion from observed pixel coordinates.

        Uses OpenCV's iterative distortion inversion. Without distortion
        coefficients this is the identity map on pixel coordinates.

        Args:
            points: Nx2 array of distorted pixel coordinates (u, v)
            normalized: If True, return normalized image coordinates
                ((u - cx) / fx, (v - cy) / fy) instead of pixels

        Returns:
            Nx2 float64 array of ideal coordinates, same order as input

        Raises:
            InvalidInput: If points is not an Nx2 array of finite numbers
            OpenCVError: If OpenCV fails to undistort
        """
        try:
            pts = np.asarray(points, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Points must be numeric: {e}") from e
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise InvalidInput(f"Points must be Nx2, got {pts.shape}")
        if not np.isfinite(pts).all():
            raise InvalidInput("Points must be finite")
        if len(pts) == 0:
            return np.empty((0, 2), dtype=np.float64)

        if not self.has_distortion:
            if not normalized:
                return pts.copy()
            return np.column_stack(
                [(pts[:, 0] - self.cx) / self.fx, (pts[:, 1] - self.cy) / self.fy]
            )

        K = self.intrinsic_matrix
        try:
            undistorted = cv2.undistortPoints(
                pts.reshape(-1, 1, 2),
                K,
                self.distortion_array,
                P=None if normalized else K,
            )
        except cv2.error as e:
            raise OpenCVError("undistort_points", str(e)) from e

        return undistorted.reshape(-1, 2).astype(np.float64)
