"""Keypoint detection and descriptor matching.

Components:
- FeatureDetector: Multi-scale ORB detection (binary descriptors)
- SIFTDetector: SIFT detection (float descriptors)
- DescriptorMatcher: Two-nearest-neighbour matching with Lowe's ratio test
"""

from .detector import DescriptorKind, FeatureDetector, ORBConfig, SIFTDetector
from .matcher import (
    Correspondence,
    DescriptorMatcher,
    Matches,
    hamming_distances,
    l2_distances,
)

__all__ = [
    # Detection
    "DescriptorKind",
    "FeatureDetector",
    "ORBConfig",
    "SIFTDetector",
    # Matching
    "Correspondence",
    "DescriptorMatcher",
    "Matches",
    "hamming_distances",
    "l2_distances",
]
