#!/usr/bin/env python3
"""Demo script: backproject a depth map and move it into a world frame.

A synthetic depth map (a tilted plane) stands in for the output of a
depth-estimation model.

Usage:
    python examples/depth_demo.py [--stride 4] [--depth-max 8.0]
"""

import argparse
import logging

import numpy as np

from vofront import (
    BackprojectionConfig,
    CameraModel,
    depth_map_to_point_cloud,
    make_transform,
    transform_point_cloud,
)


def synthetic_depth(width: int, height: int) -> np.ndarray:
    """Return a plane receding from 2 m (top) to 10 m (bottom) with a hole."""
    rows = np.linspace(2.0, 10.0, height, dtype=np.float32)
    depth = np.repeat(rows[:, None], width, axis=1)
    depth[height // 3 : height // 2, width // 3 : width // 2] = np.nan
    return depth


def main() -> None:
    """Run the backprojection demo."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--stride", type=int, default=4)
    parser.add_argument("--depth-min", type=float, default=0.1)
    parser.add_argument("--depth-max", type=float, default=8.0)
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG)

    camera = CameraModel.from_params(525.0, 525.0, 319.5, 239.5, 640, 480)
    depth = synthetic_depth(camera.image_width, camera.image_height)

    config = BackprojectionConfig(depth_min=args.depth_min, depth_max=args.depth_max, stride=args.stride)
    cloud = depth_map_to_point_cloud(depth, camera, config)
    print(f"Camera-frame cloud: {len(cloud)} points")
    print(f"  z range: [{cloud[:, 2].min():.2f}, {cloud[:, 2].max():.2f}] m")

    # Pose of the camera in the world: 30 degree yaw, 1.5 m up
    yaw = np.deg2rad(30.0)
    R = np.array(
        [[np.cos(yaw), 0.0, np.sin(yaw)], [0.0, 1.0, 0.0], [-np.sin(yaw), 0.0, np.cos(yaw)]]
    )
    T_world_camera = make_transform(R, [0.0, -1.5, 0.0])

    world = transform_point_cloud(cloud, T_world_camera)
    centroid = world.mean(axis=0)
    print(f"World-frame centroid: [{centroid[0]:.2f}, {centroid[1]:.2f}, {centroid[2]:.2f}]")


if __name__ == "__main__":
    main()
