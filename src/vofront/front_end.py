"""Feature extraction and frame-to-frame matching."""

from __future__ import annotations

import logging

import cv2
import numpy as np

from .config import FrontEndConfig, MatchingConfig
from .errors import (
    EmptyInput,
    InvalidDimensions,
    NoKeypointsFound,
    OpenCVError,
    WrongFormat,
)
from .features.detector import DescriptorKind, FeatureDetector, SIFTDetector
from .features.matcher import DescriptorMatcher, Matches
from .frame import Frame

logger = logging.getLogger(__name__)

_COLOR_CONVERSIONS = {
    3: cv2.COLOR_BGR2GRAY,
    4: cv2.COLOR_BGRA2GRAY,
}


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Validate an 8-bit image and convert it to single-channel grayscale.

    Args:
        image: HxW, HxWx1, HxWx3 (BGR) or HxWx4 (BGRA) uint8 image

    Returns:
        HxW uint8 grayscale image

    Raises:
        EmptyInput: If image is None or has no pixels
        WrongFormat: If image is not uint8 or has an unsupported channel count
        InvalidDimensions: If image is not 2-D or 3-D
    """
    if image is None:
        raise EmptyInput("Image must not be None")

    image = np.asarray(image)
    if image.size == 0:
        raise EmptyInput(f"Image must be non-empty, got shape {image.shape}")
    if image.dtype != np.uint8:
        raise WrongFormat(f"Image must be uint8, got {image.dtype}")

    if image.ndim == 2:
        return np.ascontiguousarray(image)
    if image.ndim != 3:
        raise InvalidDimensions(f"Image must be 2-D or 3-D, got shape {image.shape}")

    channels = image.shape[2]
    if channels == 1:
        return np.ascontiguousarray(image[:, :, 0])
    if channels not in _COLOR_CONVERSIONS:
        raise WrongFormat(f"Unsupported channel count: {channels}")

    try:
        return cv2.cvtColor(image, _COLOR_CONVERSIONS[channels])
    except cv2.error as e:
        raise OpenCVError("cvtColor", str(e)) from e


class FeatureFrontEnd:
    """Extracts keypoints into Frames and matches pairs of Frames.

    The detector chosen at construction fixes the descriptor kind and with
    it the matching distance (Hamming for ORB, L2 for SIFT). The only
    mutable state is the frame id counter, so an instance must not be
    shared between threads without external locking.

    Example:
        >>> front_end = FeatureFrontEnd()
        >>> frame_a = front_end.extract(image_a)
        >>> frame_b = front_end.extract(image_b)
        >>> matches = front_end.match(frame_a, frame_b)
        >>> pts_a, pts_b = matches.point_pairs(frame_a, frame_b, min_count=8)
    """

    def __init__(
        self,
        detector: FeatureDetector | SIFTDetector | None = None,
        matching: MatchingConfig | None = None,
    ) -> None:
        """Initialize front-end.

        Args:
            detector: Keypoint detector. Uses a default ORB detector if None.
            matching: Default thresholds for `match`. Uses defaults if None.
        """
        self._detector = detector or FeatureDetector()
        self._matcher = DescriptorMatcher(self._detector.descriptor_kind)
        self._matching = matching or MatchingConfig()
        self._frame_id: int = 0

    @classmethod
    def from_config(cls, config: FrontEndConfig) -> FeatureFrontEnd:
        """Create an ORB front-end from a loaded configuration."""
        return cls(detector=FeatureDetector(config.orb), matching=config.matching)

    def extract(
        self,
        image: np.ndarray,
        mask: np.ndarray | None = None,
        require_keypoints: bool = False,
    ) -> Frame:
        """Detect keypoints and descriptors and wrap them in a new Frame.

        Color images are converted to grayscale before detection. The frame
        keeps the image as supplied.

        Args:
            image: uint8 grayscale, BGR or BGRA image
            mask: Optional binary detection mask (255 = detect)
            require_keypoints: If True, an empty result is an error

        Returns:
            Frame with the next sequence id

        Raises:
            EmptyInput, WrongFormat, InvalidDimensions: For malformed images
            NoKeypointsFound: If require_keypoints and nothing was detected
            OpenCVError: If detection fails inside OpenCV
        """
        gray = to_grayscale(image)
        keypoints, descriptors = self._detector.detect(gray, mask)

        if require_keypoints and len(keypoints) == 0:
            raise NoKeypointsFound(
                f"No keypoints found in {gray.shape[1]}x{gray.shape[0]} image"
            )

        frame = Frame(
            id=self._frame_id,
            image=image,
            keypoints=keypoints,
            descriptors=descriptors,
        )
        self._frame_id += 1

        if len(frame) == 0:
            logger.warning("Frame %d: no keypoints detected", frame.id)
        else:
            logger.debug("Frame %d: %d keypoints", frame.id, len(frame))

        return frame

    def match(
        self,
        frame_a: Frame,
        frame_b: Frame,
        ratio_threshold: float | None = None,
        max_distance: float | None = None,
    ) -> Matches:
        """Match every keypoint of frame A to its best candidate in frame B.

        A match is kept iff nearest < ratio_threshold * second_nearest and
        nearest < max_distance. Frames with fewer than two keypoints in B
        produce an empty result. Output follows frame A's keypoint order.

        Args:
            frame_a: Query frame
            frame_b: Train frame
            ratio_threshold: Lowe's ratio. Defaults to the configured value.
            max_distance: Absolute distance gate. Defaults to the configured value.

        Returns:
            Matches between the two frames

        Raises:
            WrongFormat: If the frames' descriptors don't fit this front-end
        """
        if ratio_threshold is None:
            ratio_threshold = self._matching.ratio_threshold
        if max_distance is None:
            max_distance = self._matching.max_distance

        if ratio_threshold <= 0:
            logger.warning("ratio_threshold=%s rejects all matches", ratio_threshold)

        matches = self._matcher.match(
            frame_a.descriptors, frame_b.descriptors, ratio_threshold, max_distance
        )
        logger.debug(
            "Frames %d -> %d: %d/%d matches accepted",
            frame_a.id,
            frame_b.id,
            len(matches),
            len(frame_a),
        )
        return matches

    @property
    def next_frame_id(self) -> int:
        """Return the id the next extracted frame will get."""
        return self._frame_id

    @property
    def descriptor_kind(self) -> DescriptorKind:
        """Return the descriptor kind produced and matched by this front-end."""
        return self._matcher.descriptor_kind

    @property
    def matching(self) -> MatchingConfig:
        """Return default matching thresholds."""
        return self._matching
