"""Tests for depth map backprojection."""

import numpy as np
import pytest

from vofront.camera import CameraModel
from vofront.errors import EmptyInput, InvalidDimensions, WrongFormat
from vofront.geometry import BackprojectionConfig, depth_map_to_point_cloud, sampled_pixel_count


@pytest.fixture
def unit_camera() -> CameraModel:
    """Camera with fx=fy=1 and principal point at the origin, so x=u*z, y=v*z."""
    return CameraModel.from_params(1.0, 1.0, 0.0, 0.0, 3, 3)


class TestBackprojectionConfig:
    """Test BackprojectionConfig defaults and builders."""

    def test_defaults(self):
        """Test default depth_min=0, no depth_max, stride 1."""
        config = BackprojectionConfig()
        assert config.depth_min == 0.0
        assert config.depth_max is None
        assert config.stride == 1

    @pytest.mark.parametrize("stride", [0, -3])
    def test_stride_clamped(self, stride: int):
        """Test that strides below 1 are clamped to 1."""
        assert BackprojectionConfig(stride=stride).stride == 1
        assert BackprojectionConfig().with_stride(stride).stride == 1

    def test_builders_return_copies(self):
        """Test that builder helpers don't modify the original."""
        base = BackprojectionConfig(depth_min=0.5)
        config = base.with_depth_max(5.0).with_stride(2)

        assert config == BackprojectionConfig(depth_min=0.5, depth_max=5.0, stride=2)
        assert base.depth_max is None


class TestDepthMapToPointCloud:
    """Test depth_map_to_point_cloud."""

    def test_basic_2x2(self, unit_camera: CameraModel):
        """Test row-major output for a 2x2 depth map."""
        depth = np.array([[1.0, 2.0], [3.0, 4.0]], dtype=np.float32)

        cloud = depth_map_to_point_cloud(depth, unit_camera, BackprojectionConfig(depth_min=0.0))

        expected = [[0, 0, 1], [2, 0, 2], [0, 3, 3], [4, 4, 4]]
        assert cloud.shape == (4, 3)
        assert cloud.dtype == np.float32
        np.testing.assert_allclose(cloud, expected, atol=1e-6)

    def test_min_max_and_stride(self, unit_camera: CameraModel):
        """Test that stride 2 plus depth bounds keep only (v=0, u=2)."""
        depth = np.array(
            [[0.0, 0.6, 5.0], [1.0, 2.0, 3.0], [np.nan, 10.0, 0.4]], dtype=np.float32
        )
        config = BackprojectionConfig(depth_min=0.5).with_depth_max(5.0).with_stride(2)

        cloud = depth_map_to_point_cloud(depth, unit_camera, config)

        assert cloud.shape == (1, 3)
        np.testing.assert_allclose(cloud[0], [10.0, 0.0, 5.0], atol=1e-6)

    def test_single_pixel_pinhole(self):
        """Test the pinhole formula for a single valid pixel."""
        camera = CameraModel.from_params(525.0, 520.0, 319.5, 239.5, 640, 480)
        depth = np.zeros((480, 640), dtype=np.float32)
        v, u, z = 100, 400, 2.5
        depth[v, u] = z

        cloud = depth_map_to_point_cloud(depth, camera, BackprojectionConfig(depth_max=3.0))

        expected = [(u - 319.5) / 525.0 * z, (v - 239.5) / 520.0 * z, z]
        assert cloud.shape == (1, 3)
        np.testing.assert_allclose(cloud[0], expected, rtol=1e-5)

    def test_invalid_values_filtered(self, unit_camera: CameraModel):
        """Test that NaN, inf, <= depth_min and > depth_max pixels are dropped."""
        depth = np.array(
            [[np.nan, np.inf, -np.inf], [1.0, 1.5, 2.0], [2.5, 3.0, 3.5]], dtype=np.float64
        )
        config = BackprojectionConfig(depth_min=1.0, depth_max=3.0)

        cloud = depth_map_to_point_cloud(depth, unit_camera, config)

        # Survivors: 1.5, 2.0, 2.5, 3.0 (depth_max is inclusive, depth_min exclusive)
        np.testing.assert_allclose(cloud[:, 2], [1.5, 2.0, 2.5, 3.0])
        assert cloud.dtype == np.float64

    def test_default_config(self, unit_camera: CameraModel):
        """Test that None config keeps all positive finite depths."""
        depth = np.array([[0.0, -1.0, 0.001]], dtype=np.float32)
        cloud = depth_map_to_point_cloud(depth, unit_camera)
        assert len(cloud) == 1

    @pytest.mark.parametrize("rows, cols, stride", [(5, 7, 1), (5, 7, 2), (5, 7, 3), (4, 4, 4), (3, 2, 5)])
    def test_stride_visits_ceil_grid(self, unit_camera: CameraModel, rows: int, cols: int, stride: int):
        """Test that stride k visits ceil(rows/k) x ceil(cols/k) pixels."""
        depth = np.ones((rows, cols), dtype=np.float32)
        cloud = depth_map_to_point_cloud(depth, unit_camera, BackprojectionConfig(stride=stride))

        expected = -(-rows // stride) * -(-cols // stride)
        assert len(cloud) == expected == sampled_pixel_count(rows, cols, stride)

    def test_strided_coordinates(self, unit_camera: CameraModel):
        """Test that strided samples use original pixel coordinates."""
        depth = np.ones((5, 5), dtype=np.float32)
        cloud = depth_map_to_point_cloud(depth, unit_camera, BackprojectionConfig(stride=2))

        expected_uv = [(u, v) for v in (0, 2, 4) for u in (0, 2, 4)]
        np.testing.assert_allclose(cloud[:, :2], expected_uv)

    def test_single_channel_axis(self, unit_camera: CameraModel):
        """Test that an HxWx1 depth map is accepted."""
        depth = np.ones((2, 3, 1), dtype=np.float32)
        assert len(depth_map_to_point_cloud(depth, unit_camera)) == 6

    def test_empty(self, unit_camera: CameraModel):
        """Test that empty depth maps are rejected."""
        with pytest.raises(EmptyInput):
            depth_map_to_point_cloud(np.zeros((0, 4), dtype=np.float32), unit_camera)
        with pytest.raises(EmptyInput):
            depth_map_to_point_cloud(None, unit_camera)

    @pytest.mark.parametrize("dtype", [np.uint8, np.uint16, np.int32, np.float16])
    def test_wrong_dtype(self, unit_camera: CameraModel, dtype):
        """Test that non-float32/64 depth maps are rejected."""
        with pytest.raises(WrongFormat):
            depth_map_to_point_cloud(np.ones((2, 2), dtype=dtype), unit_camera)

    def test_multi_channel(self, unit_camera: CameraModel):
        """Test that multi-channel depth maps are rejected."""
        with pytest.raises(WrongFormat, match="single channel"):
            depth_map_to_point_cloud(np.ones((2, 2, 3), dtype=np.float32), unit_camera)

    def test_wrong_dimensions(self, unit_camera: CameraModel):
        """Test that 1-D depth buffers are rejected."""
        with pytest.raises(InvalidDimensions):
            depth_map_to_point_cloud(np.ones(4, dtype=np.float32), unit_camera)
