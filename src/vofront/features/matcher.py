"""Descriptor matching between two frames with Lowe's ratio test."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

import cv2
import numpy as np

from ..errors import NotEnoughPoints, OpenCVError, WrongFormat
from .detector import DescriptorKind

if TYPE_CHECKING:
    from ..frame import Frame


@dataclass(frozen=True)
class Correspondence:
    """A single match between keypoint `index_a` in frame A and `index_b` in frame B."""

    index_a: int
    index_b: int
    distance: float  # descriptor-space distance, lower is better


@dataclass
class Matches:
    """Ordered set of correspondences between two frames.

    Order follows frame A's keypoint order.

    Attributes:
        index_a: Indices into frame A's keypoints
        index_b: Indices into frame B's keypoints
        distances: Descriptor distances between matched keypoints
    """

    index_a: np.ndarray  # (N,) int
    index_b: np.ndarray  # (N,) int
    distances: np.ndarray  # (N,) float32

    @classmethod
    def empty(cls) -> Matches:
        """Return a match set with no correspondences."""
        return cls(
            index_a=np.empty(0, dtype=np.int32),
            index_b=np.empty(0, dtype=np.int32),
            distances=np.empty(0, dtype=np.float32),
        )

    def __len__(self) -> int:
        """Return number of matches."""
        return len(self.index_a)

    def __iter__(self) -> Iterator[Correspondence]:
        """Iterate over matches as Correspondence values."""
        for a, b, d in zip(self.index_a, self.index_b, self.distances):
            yield Correspondence(index_a=int(a), index_b=int(b), distance=float(d))

    def __getitem__(self, i: int) -> Correspondence:
        """Return the i-th correspondence."""
        return Correspondence(
            index_a=int(self.index_a[i]),
            index_b=int(self.index_b[i]),
            distance=float(self.distances[i]),
        )

    def filter_by_distance(self, max_distance: float) -> Matches:
        """Return new Matches keeping only distances strictly below max_distance."""
        mask = self.distances < max_distance
        return Matches(
            index_a=self.index_a[mask],
            index_b=self.index_b[mask],
            distances=self.distances[mask],
        )

    def point_pairs(
        self, frame_a: Frame, frame_b: Frame, min_count: int = 0
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return matched keypoint coordinates for a pose solver.

        Args:
            frame_a: Frame the `index_a` indices refer to
            frame_b: Frame the `index_b` indices refer to
            min_count: Minimum number of pairs the caller needs

        Returns:
            Tuple of (points_a, points_b), each Nx2 float32

        Raises:
            NotEnoughPoints: If fewer than min_count matches are available
        """
        if len(self) < min_count:
            raise NotEnoughPoints(required=min_count, available=len(self))
        return frame_a.points[self.index_a], frame_b.points[self.index_b]


def _batch_distances(desc_a: np.ndarray, desc_b: np.ndarray, norm_type: int) -> np.ndarray:
    if len(desc_a) == 0 or len(desc_b) == 0:
        return np.zeros((len(desc_a), len(desc_b)), dtype=np.float32)
    try:
        dist, _ = cv2.batchDistance(desc_a, desc_b, -1, normType=norm_type)
    except cv2.error as e:
        raise OpenCVError("batch_distance", str(e)) from e
    return dist.astype(np.float32)


def hamming_distances(desc_a: np.ndarray, desc_b: np.ndarray) -> np.ndarray:
    """Return the NxM matrix of Hamming distances between packed binary descriptors."""
    return _batch_distances(desc_a, desc_b, cv2.NORM_HAMMING)


def l2_distances(desc_a: np.ndarray, desc_b: np.ndarray) -> np.ndarray:
    """Return the NxM matrix of Euclidean distances between float descriptors."""
    return _batch_distances(desc_a, desc_b, cv2.NORM_L2)


class DescriptorMatcher:
    """Brute-force two-nearest-neighbour matcher with Lowe's ratio test.

    The distance function is fixed at construction from the descriptor
    kind: Hamming for binary descriptors, L2 for float descriptors. A match
    is accepted only if the best distance is below both `ratio_threshold`
    times the second-best distance and the absolute `max_distance` gate.

    Ties are broken toward the lowest index in frame B, so results are
    stable across runs.
    """

    def __init__(self, descriptor_kind: DescriptorKind = DescriptorKind.BINARY) -> None:
        """Initialize matcher.

        Args:
            descriptor_kind: Representation of descriptors to be matched
        """
        self._kind = descriptor_kind
        if descriptor_kind is DescriptorKind.BINARY:
            self._distance_fn = hamming_distances
        else:
            self._distance_fn = l2_distances

    def _check_descriptors(self, desc_a: np.ndarray, desc_b: np.ndarray) -> None:
        expected = np.uint8 if self._kind is DescriptorKind.BINARY else np.float32
        for desc in (desc_a, desc_b):
            if desc.ndim != 2 or desc.dtype != expected:
                raise WrongFormat(
                    f"{self._kind.value} descriptors must be 2-D {np.dtype(expected).name}, "
                    f"got {desc.ndim}-D {desc.dtype}"
                )
        if desc_a.shape[1] != desc_b.shape[1]:
            raise WrongFormat(
                f"Descriptor widths differ: {desc_a.shape[1]} vs {desc_b.shape[1]}"
            )

    def two_nearest(
        self, desc_a: np.ndarray, desc_b: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Find the two nearest frame-B neighbours of every frame-A descriptor.

        Requires at least two descriptors in desc_b.

        Returns:
            Tuple of (nearest_index, nearest_distance, second_distance),
            each of length len(desc_a)
        """
        dist = self._distance_fn(desc_a, desc_b).astype(np.float64)
        rows = np.arange(len(desc_a))

        # argmin returns the first occurrence on ties
        nearest = np.argmin(dist, axis=1)
        nearest_dist = dist[rows, nearest].copy()

        dist[rows, nearest] = np.inf
        second_dist = dist.min(axis=1)

        return nearest, nearest_dist, second_dist

    def match(
        self,
        desc_a: np.ndarray,
        desc_b: np.ndarray,
        ratio_threshold: float,
        max_distance: float,
    ) -> Matches:
        """Match descriptors from frame A to frame B.

        Args:
            desc_a: NxD descriptors of frame A
            desc_b: MxD descriptors of frame B
            ratio_threshold: Lowe's ratio; best must be < ratio * second best.
                Values <= 0 reject every match.
            max_distance: Best distance must be strictly below this

        Returns:
            Matches ordered by frame-A index

        Raises:
            WrongFormat: If descriptors do not fit this matcher's kind
            OpenCVError: If the distance computation fails
        """
        self._check_descriptors(desc_a, desc_b)

        # Either side with fewer than two descriptors gives no matches
        if len(desc_a) < 2 or len(desc_b) < 2 or ratio_threshold <= 0:
            return Matches.empty()

        nearest, nearest_dist, second_dist = self.two_nearest(desc_a, desc_b)

        accept = (nearest_dist < ratio_threshold * second_dist) & (nearest_dist < max_distance)
        index_a = np.flatnonzero(accept)

        return Matches(
            index_a=index_a.astype(np.int32),
            index_b=nearest[index_a].astype(np.int32),
            distances=nearest_dist[index_a].astype(np.float32),
        )

    @property
    def descriptor_kind(self) -> DescriptorKind:
        """Return the descriptor kind this matcher handles."""
        return self._kind
