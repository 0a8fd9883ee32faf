"""Keypoint detection and descriptor extraction (ORB and SIFT)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import cv2
import numpy as np

from ..errors import InvalidInput, OpenCVError

# ORB always produces 256-bit (32 byte) rBRIEF descriptors
ORB_DESCRIPTOR_BITS = 256
SIFT_DESCRIPTOR_SIZE = 128

_SCORE_TYPES = {
    "fast": cv2.ORB_FAST_SCORE,
    "harris": cv2.ORB_HARRIS_SCORE,
}


class DescriptorKind(Enum):
    """Descriptor representation, which decides the matching distance."""

    BINARY = "binary"  # packed bits, Hamming distance
    FLOAT = "float"  # real vectors, L2 distance


@dataclass(frozen=True)
class ORBConfig:
    """Configuration for multi-scale ORB detection.

    Attributes:
        max_features: Maximum number of keypoints retained per frame
        scale_factor: Pyramid decimation ratio (>1.0). 1.2 means each level
            is 1.2x smaller than the previous.
        n_levels: Number of pyramid levels for multi-scale detection
        edge_threshold: Border margin (pixels) where keypoints are discarded
        fast_threshold: Minimum FAST corner response for a keypoint
        descriptor_bits: Binary descriptor width in bits
        first_level: Pyramid level that holds the source image
        wta_k: Number of points compared per descriptor element (2, 3 or 4)
        score_type: Keypoint ranking, "fast" or "harris"
        patch_size: Size of the patch used by the oriented BRIEF descriptor
    """

    max_features: int = 500
    scale_factor: float = 1.2
    n_levels: int = 8
    edge_threshold: int = 31
    fast_threshold: int = 20
    descriptor_bits: int = ORB_DESCRIPTOR_BITS
    first_level: int = 0
    wta_k: int = 2
    score_type: str = "fast"
    patch_size: int = 31

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_features < 1:
            raise InvalidInput(f"max_features must be >= 1, got {self.max_features}")
        if not self.scale_factor > 1.0:
            raise InvalidInput(f"scale_factor must be > 1.0, got {self.scale_factor}")
        if self.n_levels < 1:
            raise InvalidInput(f"n_levels must be >= 1, got {self.n_levels}")
        if self.edge_threshold < 0:
            raise InvalidInput(f"edge_threshold must be >= 0, got {self.edge_threshold}")
        if self.fast_threshold < 0:
            raise InvalidInput(f"fast_threshold must be >= 0, got {self.fast_threshold}")
        if self.descriptor_bits != ORB_DESCRIPTOR_BITS:
            raise InvalidInput(
                f"ORB descriptors are {ORB_DESCRIPTOR_BITS} bits, got {self.descriptor_bits}"
            )
        if self.first_level < 0:
            raise InvalidInput(f"first_level must be >= 0, got {self.first_level}")
        if self.wta_k not in (2, 3, 4):
            raise InvalidInput(f"wta_k must be 2, 3 or 4, got {self.wta_k}")
        if self.score_type not in _SCORE_TYPES:
            raise InvalidInput(
                f"score_type must be one of {sorted(_SCORE_TYPES)}, got {self.score_type!r}"
            )
        if self.patch_size < 2:
            raise InvalidInput(f"patch_size must be >= 2, got {self.patch_size}")

    @property
    def descriptor_bytes(self) -> int:
        """Return descriptor width in bytes."""
        return self.descriptor_bits // 8


class FeatureDetector:
    """ORB feature detector for sparse feature extraction.

    ORB (Oriented FAST and Rotated BRIEF) is a fast, rotation-invariant
    feature detector that produces binary descriptors suitable for
    real-time SLAM applications. Detection is repeated over an image
    pyramid of `n_levels` scales for scale invariance.
    """

    descriptor_kind = DescriptorKind.BINARY

    def __init__(self, config: ORBConfig | None = None) -> None:
        """Initialize ORB detector.

        Args:
            config: Detector configuration. Uses defaults if None.
        """
        self._config = config or ORBConfig()
        self._orb = cv2.ORB_create(
            nfeatures=self._config.max_features,
            scaleFactor=self._config.scale_factor,
            nlevels=self._config.n_levels,
            edgeThreshold=self._config.edge_threshold,
            firstLevel=self._config.first_level,
            WTA_K=self._config.wta_k,
            scoreType=_SCORE_TYPES[self._config.score_type],
            patchSize=self._config.patch_size,
            fastThreshold=self._config.fast_threshold,
        )

    def detect(
        self, image: np.ndarray, mask: np.ndarray | None = None
    ) -> tuple[tuple[cv2.KeyPoint, ...], np.ndarray]:
        """Detect ORB keypoints and compute their descriptors.

        Args:
            image: Grayscale uint8 image
            mask: Optional binary mask where 255 = detect, 0 = ignore.
                Must be same size as image.

        Returns:
            Tuple of (keypoints, descriptors) where descriptors is an
            Nx32 uint8 array (0x32 when nothing was found)

        Raises:
            OpenCVError: If ORB fails on the image
        """
        try:
            keypoints, descriptors = self._orb.detectAndCompute(image, mask)
        except cv2.error as e:
            raise OpenCVError("ORB detectAndCompute", str(e)) from e

        # Handle case where no features are detected
        if keypoints is None or descriptors is None:
            return (), np.empty((0, self._config.descriptor_bytes), dtype=np.uint8)

        return tuple(keypoints), descriptors

    @property
    def config(self) -> ORBConfig:
        """Return detector configuration."""
        return self._config

    @property
    def max_features(self) -> int:
        """Return maximum number of features to detect."""
        return self._config.max_features

    @property
    def edge_threshold(self) -> int:
        """Return border margin in pixels."""
        return self._config.edge_threshold


class SIFTDetector:
    """SIFT detector producing 128-dimensional float descriptors.

    Used when a float descriptor (matched by L2 distance) is preferred over
    ORB's binary one. SIFT has no border parameter, so keypoints closer than
    `edge_threshold` to the image border are dropped after detection.
    """

    descriptor_kind = DescriptorKind.FLOAT

    def __init__(
        self,
        max_features: int = 500,
        n_octave_layers: int = 3,
        contrast_threshold: float = 0.04,
        edge_threshold: int = 31,
    ) -> None:
        """Initialize SIFT detector.

        Args:
            max_features: Maximum number of keypoints retained (best first)
            n_octave_layers: Layers per octave in the scale space
            contrast_threshold: Minimum contrast for a keypoint to be kept
            edge_threshold: Border margin (pixels) where keypoints are discarded
        """
        if max_features < 1:
            raise InvalidInput(f"max_features must be >= 1, got {max_features}")
        if edge_threshold < 0:
            raise InvalidInput(f"edge_threshold must be >= 0, got {edge_threshold}")

        self._max_features = max_features
        self._edge_threshold = edge_threshold
        self._sift = cv2.SIFT_create(
            nfeatures=max_features,
            nOctaveLayers=n_octave_layers,
            contrastThreshold=contrast_threshold,
        )

    def detect(
        self, image: np.ndarray, mask: np.ndarray | None = None
    ) -> tuple[tuple[cv2.KeyPoint, ...], np.ndarray]:
        """Detect SIFT keypoints and compute their descriptors.

        Returns:
            Tuple of (keypoints, descriptors) where descriptors is an
            Nx128 float32 array

        Raises:
            OpenCVError: If SIFT fails on the image
        """
        try:
            keypoints, descriptors = self._sift.detectAndCompute(image, mask)
        except cv2.error as e:
            raise OpenCVError("SIFT detectAndCompute", str(e)) from e

        if keypoints is None or descriptors is None or len(keypoints) == 0:
            return (), np.empty((0, SIFT_DESCRIPTOR_SIZE), dtype=np.float32)

        height, width = image.shape[:2]
        margin = self._edge_threshold
        keep = [
            i
            for i, kp in enumerate(keypoints)
            if margin <= kp.pt[0] < width - margin and margin <= kp.pt[1] < height - margin
        ]
        keep = keep[: self._max_features]

        return (
            tuple(keypoints[i] for i in keep),
            np.ascontiguousarray(descriptors[keep], dtype=np.float32),
        )

    @property
    def max_features(self) -> int:
        """Return maximum number of features to detect."""
        return self._max_features

    @property
    def edge_threshold(self) -> int:
        """Return border margin in pixels."""
        return self._edge_threshold
