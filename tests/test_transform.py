"""Tests for homogeneous point cloud transforms."""

import numpy as np
import pytest

from vofront.errors import InvalidInput
from vofront.geometry import make_transform, transform_point_cloud


@pytest.fixture
def cloud() -> np.ndarray:
    """Random point cloud."""
    rng = np.random.default_rng(5)
    return rng.uniform(-10.0, 10.0, size=(100, 3)).astype(np.float32)


def _rotation_z(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


class TestTransformPointCloud:
    """Test transform_point_cloud."""

    @pytest.mark.parametrize("dtype", [np.float32, np.float64])
    def test_identity(self, cloud: np.ndarray, dtype):
        """Test that the identity leaves points unchanged."""
        result = transform_point_cloud(cloud, np.eye(4, dtype=dtype))

        assert result.dtype == np.float32
        np.testing.assert_allclose(result, cloud, atol=1e-6)

    def test_translation(self, cloud: np.ndarray):
        """Test that a pure translation shifts every point."""
        T = np.eye(4)
        T[:3, 3] = [1.5, -2.0, 0.25]

        result = transform_point_cloud(cloud, T)

        np.testing.assert_allclose(result - cloud, np.tile([1.5, -2.0, 0.25], (100, 1)), atol=1e-5)

    def test_rotation(self):
        """Test a 90 degree rotation about z."""
        T = make_transform(_rotation_z(np.pi / 2), [0.0, 0.0, 0.0])
        result = transform_point_cloud(np.array([[1.0, 0.0, 2.0]]), T)
        np.testing.assert_allclose(result, [[0.0, 1.0, 2.0]], atol=1e-6)

    def test_perspective_divide(self):
        """Test that w != 1 divides the result."""
        T = np.eye(4)
        T[3, 3] = 2.0
        result = transform_point_cloud(np.array([[2.0, 4.0, 6.0]]), T)
        np.testing.assert_allclose(result, [[1.0, 2.0, 3.0]])

    def test_zero_w_unnormalized(self):
        """Test that w == 0 returns the unnormalized product."""
        T = np.eye(4)
        T[:3, 3] = [1.0, 1.0, 1.0]
        T[3, 3] = 0.0

        points = np.array([[1.0, 2.0, 3.0], [0.0, 0.0, 0.0]])
        result = transform_point_cloud(points, T)

        np.testing.assert_allclose(result, [[2.0, 3.0, 4.0], [1.0, 1.0, 1.0]])

    def test_w_depends_on_point(self):
        """Test per-point w: only points with w == 0 skip the divide."""
        T = np.eye(4)
        T[3] = [1.0, 0.0, 0.0, 0.0]  # w = x

        result = transform_point_cloud(np.array([[2.0, 4.0, 6.0], [0.0, 5.0, 7.0]]), T)

        np.testing.assert_allclose(result, [[1.0, 2.0, 3.0], [0.0, 5.0, 7.0]])

    def test_preserves_order_and_input(self, cloud: np.ndarray):
        """Test that output is a new array with one row per input point."""
        original = cloud.copy()
        T = make_transform(_rotation_z(0.3), [1.0, 2.0, 3.0])

        result = transform_point_cloud(cloud, T)

        assert result.shape == cloud.shape
        assert result is not cloud
        np.testing.assert_array_equal(cloud, original)
        expected = cloud.astype(np.float64) @ T[:3, :3].T + T[:3, 3]
        np.testing.assert_allclose(result, expected, atol=1e-4)

    def test_empty_cloud(self):
        """Test that an empty cloud stays empty."""
        result = transform_point_cloud(np.empty((0, 3)), np.eye(4))
        assert result.shape == (0, 3)

    @pytest.mark.parametrize("shape", [(3, 3), (4, 3), (3, 4), (16,)])
    def test_wrong_transform_shape(self, cloud: np.ndarray, shape):
        """Test that non-4x4 transforms are rejected."""
        with pytest.raises(InvalidInput, match="4x4"):
            transform_point_cloud(cloud, np.zeros(shape))

    def test_wrong_transform_dtype(self, cloud: np.ndarray):
        """Test that integer transforms are rejected."""
        with pytest.raises(InvalidInput, match="float32 or float64"):
            transform_point_cloud(cloud, np.eye(4, dtype=np.int64))

    def test_wrong_points_shape(self):
        """Test that non-Nx3 points are rejected."""
        with pytest.raises(InvalidInput, match="Nx3"):
            transform_point_cloud(np.zeros((5, 2)), np.eye(4))


class TestMakeTransform:
    """Test make_transform."""

    def test_layout(self):
        """Test [[R, t], [0, 1]] layout."""
        R = _rotation_z(0.5)
        T = make_transform(R, np.array([[1.0], [2.0], [3.0]]))

        np.testing.assert_array_equal(T[:3, :3], R)
        np.testing.assert_array_equal(T[:3, 3], [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(T[3], [0.0, 0.0, 0.0, 1.0])

    def test_scale(self):
        """Test that scale is applied through the homogeneous divide."""
        T = make_transform(np.eye(3), [1.0, 0.0, 0.0], scale=2.0)
        result = transform_point_cloud(np.array([[1.0, 1.0, 1.0]]), T)
        np.testing.assert_allclose(result, [[4.0, 2.0, 2.0]])

    def test_invalid(self):
        """Test input validation."""
        with pytest.raises(InvalidInput):
            make_transform(np.eye(4), [0, 0, 0])
        with pytest.raises(InvalidInput):
            make_transform(np.eye(3), [0, 0])
        with pytest.raises(InvalidInput):
            make_transform(np.eye(3), [0, 0, 0], scale=0.0)
