"""Immutable frame holding an image with its keypoints and descriptors."""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from .errors import InvalidInput
from .features.detector import DescriptorKind


def _readonly_copy(array: np.ndarray) -> np.ndarray:
    owned = np.array(array, copy=True)
    owned.flags.writeable = False
    return owned


@dataclass(frozen=True, eq=False)
class Frame:
    """Output of feature extraction for a single image.

    Frames are created once by `FeatureFrontEnd.extract` and never change.
    The frame keeps its own read-only copies of the image and descriptor
    arrays, so later writes to the caller's buffers do not reach it.

    Attributes:
        id: Sequence number assigned by the front-end
        image: Image the features were extracted from
        keypoints: Tuple of OpenCV KeyPoint objects
        descriptors: NxD descriptor array, one row per keypoint
            (uint8 for binary descriptors, float32 for float descriptors)
    """

    id: int
    image: np.ndarray
    keypoints: tuple[cv2.KeyPoint, ...]
    descriptors: np.ndarray

    def __post_init__(self) -> None:
        """Check keypoint/descriptor agreement and freeze buffers."""
        keypoints = tuple(self.keypoints)
        descriptors = np.asarray(self.descriptors)

        if descriptors.ndim != 2:
            raise InvalidInput(f"Descriptors must be 2-D, got shape {descriptors.shape}")
        if len(keypoints) != descriptors.shape[0]:
            raise InvalidInput(
                f"Keypoint/descriptor count mismatch: {len(keypoints)} keypoints, "
                f"{descriptors.shape[0]} descriptors"
            )

        object.__setattr__(self, "keypoints", keypoints)
        object.__setattr__(self, "image", _readonly_copy(self.image))
        object.__setattr__(self, "descriptors", _readonly_copy(descriptors))

    @property
    def points(self) -> np.ndarray:
        """Return Nx2 array of keypoint (x, y) coordinates."""
        if len(self.keypoints) == 0:
            return np.empty((0, 2), dtype=np.float32)
        return np.array([kp.pt for kp in self.keypoints], dtype=np.float32)

    @property
    def descriptor_kind(self) -> DescriptorKind:
        """Return BINARY for uint8 descriptors, FLOAT otherwise."""
        if self.descriptors.dtype == np.uint8:
            return DescriptorKind.BINARY
        return DescriptorKind.FLOAT

    def __len__(self) -> int:
        """Return number of keypoints."""
        return len(self.keypoints)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"Frame(id={self.id}, image={self.image.shape}, "
            f"keypoints={len(self.keypoints)})"
        )
