"""vofront - measurement front-end for visual odometry.

Turns camera frames and depth maps into matched keypoints, point clouds
and transformed point clouds for a pose-estimation back-end.
"""

import logging

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .camera import CameraModel
from .config import FrontEndConfig, MatchingConfig, config_from_dict, load_config
from .errors import (
    EmptyInput,
    InvalidDimensions,
    InvalidInput,
    InvalidIntrinsics,
    NoKeypointsFound,
    NotEnoughPoints,
    OpenCVError,
    VOFrontError,
    WrongFormat,
)
from .features import (
    Correspondence,
    DescriptorKind,
    DescriptorMatcher,
    FeatureDetector,
    Matches,
    ORBConfig,
    SIFTDetector,
)
from .frame import Frame
from .front_end import FeatureFrontEnd
from .geometry import (
    BackprojectionConfig,
    depth_map_to_point_cloud,
    make_transform,
    transform_point_cloud,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    # Camera
    "CameraModel",
    # Frames and features
    "Frame",
    "FeatureFrontEnd",
    "FeatureDetector",
    "SIFTDetector",
    "ORBConfig",
    "DescriptorKind",
    "DescriptorMatcher",
    "Matches",
    "Correspondence",
    # Geometry
    "BackprojectionConfig",
    "depth_map_to_point_cloud",
    "transform_point_cloud",
    "make_transform",
    # Configuration
    "FrontEndConfig",
    "MatchingConfig",
    "config_from_dict",
    "load_config",
    # Errors
    "VOFrontError",
    "InvalidInput",
    "InvalidDimensions",
    "WrongFormat",
    "EmptyInput",
    "InvalidIntrinsics",
    "NotEnoughPoints",
    "NoKeypointsFound",
    "OpenCVError",
]
