"""Depth backprojection and rigid transforms for point clouds."""

from .backprojection import BackprojectionConfig, depth_map_to_point_cloud, sampled_pixel_count
from .transform import make_transform, transform_point_cloud

__all__ = [
    "BackprojectionConfig",
    "depth_map_to_point_cloud",
    "sampled_pixel_count",
    "make_transform",
    "transform_point_cloud",
]
