#!/usr/bin/env python3
"""Demo script: extract ORB features from two images and match them.

Usage:
    python examples/match_demo.py image1.jpg image2.jpg [--config frontend.yaml]
"""

import argparse
import logging

import cv2
import numpy as np

from vofront import FeatureFrontEnd, FrontEndConfig, NotEnoughPoints, load_config


def main() -> None:
    """Run the two-frame matching demo."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("image1", help="First image")
    parser.add_argument("image2", help="Second image")
    parser.add_argument("--config", help="Optional front-end YAML config")
    parser.add_argument("--min-matches", type=int, default=8)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config) if args.config else FrontEndConfig()
    front_end = FeatureFrontEnd.from_config(config)

    images = []
    for path in (args.image1, args.image2):
        image = cv2.imread(path, cv2.IMREAD_COLOR)
        if image is None:
            raise SystemExit(f"Failed to load image: {path}")
        images.append(image)

    frame1 = front_end.extract(images[0])
    frame2 = front_end.extract(images[1])
    print(f"Frame {frame1.id}: {len(frame1)} keypoints")
    print(f"Frame {frame2.id}: {len(frame2)} keypoints")

    matches = front_end.match(frame1, frame2)
    print(f"Accepted {len(matches)} matches "
          f"(ratio < {front_end.matching.ratio_threshold}, "
          f"distance < {front_end.matching.max_distance})")

    try:
        pts1, pts2 = matches.point_pairs(frame1, frame2, min_count=args.min_matches)
    except NotEnoughPoints as e:
        print(f"Cannot estimate motion: {e}")
        return

    if config.camera is not None:
        pts1 = config.camera.undistort_points(pts1)
        pts2 = config.camera.undistort_points(pts2)

    flow = np.linalg.norm(pts2 - pts1, axis=1)
    print(f"Median pixel displacement: {np.median(flow):.2f}")


if __name__ == "__main__":
    main()
