"""YAML configuration for the measurement front-end.

A configuration file may contain any of these sections::

    camera:            # EuRoC sensor.yaml keys
      intrinsics: [458.654, 457.296, 367.215, 248.375]
      distortion_coefficients: [-0.283, 0.074, 0.0002, 1.8e-05]
      resolution: [752, 480]
    orb:
      max_features: 1000
      fast_threshold: 15
    matching:
      ratio_threshold: 0.7
      max_distance: 50
    backprojection:
      depth_min: 0.1
      depth_max: 20.0
      stride: 4

Omitted sections fall back to their defaults.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .camera import CameraModel
from .errors import InvalidInput
from .features.detector import ORBConfig
from .geometry.backprojection import BackprojectionConfig

_SECTIONS = ("camera", "orb", "matching", "backprojection")


@dataclass(frozen=True)
class MatchingConfig:
    """Thresholds for descriptor matching.

    Attributes:
        ratio_threshold: Lowe's ratio test threshold. A match is accepted
            only if best_distance < ratio * second_best_distance.
            Lower values = stricter matching. Typical range: 0.7-0.8
        max_distance: Absolute distance gate. ORB descriptors are 256 bits,
            so the largest possible Hamming distance is 256.
    """

    ratio_threshold: float = 0.75
    max_distance: float = 50.0


@dataclass(frozen=True)
class FrontEndConfig:
    """Complete front-end configuration."""

    camera: CameraModel | None = None
    orb: ORBConfig = field(default_factory=ORBConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    backprojection: BackprojectionConfig = field(default_factory=BackprojectionConfig)


def _build_section(cls: type, name: str, values: dict):
    if not isinstance(values, dict):
        raise InvalidInput(f"Section '{name}' must be a mapping, got {type(values).__name__}")

    known = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise InvalidInput(f"Unknown keys in section '{name}': {unknown}")

    return cls(**values)


def config_from_dict(data: dict) -> FrontEndConfig:
    """Build a FrontEndConfig from a parsed mapping.

    Raises:
        InvalidInput: If a section is unknown or contains unknown keys
    """
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise InvalidInput(f"Unknown configuration sections: {unknown}")

    camera = None
    if data.get("camera") is not None:
        if not isinstance(data["camera"], dict):
            raise InvalidInput("Section 'camera' must be a mapping")
        camera = CameraModel.from_dict(data["camera"])

    return FrontEndConfig(
        camera=camera,
        orb=_build_section(ORBConfig, "orb", data.get("orb") or {}),
        matching=_build_section(MatchingConfig, "matching", data.get("matching") or {}),
        backprojection=_build_section(
            BackprojectionConfig, "backprojection", data.get("backprojection") or {}
        ),
    )


def load_config(yaml_path: str | Path) -> FrontEndConfig:
    """Load front-end configuration from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidInput: If the file is not a mapping or has unknown keys
    """
    path = Path(yaml_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return FrontEndConfig()
    if not isinstance(data, dict):
        raise InvalidInput(f"Config file must contain a mapping: {yaml_path}")

    return config_from_dict(data)
