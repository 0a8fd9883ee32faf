"""Exception types raised by the measurement front-end.

All input validation happens before any computation, so a raised error
means nothing was partially processed. Failures inside OpenCV are wrapped
in OpenCVError so callers can tell which operation failed.
"""


class VOFrontError(Exception):
    """Base class for all front-end errors."""


class InvalidInput(VOFrontError, ValueError):
    """Caller-supplied data is malformed (wrong shape, type or value)."""


class InvalidDimensions(InvalidInput):
    """An image, depth map or camera has non-positive or unsupported dimensions."""


class WrongFormat(InvalidInput):
    """A buffer has the wrong dtype or channel layout."""


class EmptyInput(InvalidInput):
    """A required buffer is None or has no elements."""


class InvalidIntrinsics(VOFrontError, ValueError):
    """Camera intrinsics are degenerate or malformed."""


class NotEnoughPoints(VOFrontError):
    """Fewer correspondences or points than a downstream step requires."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Not enough points: {available} available, {required} required"
        )
        self.required = required
        self.available = available


class NoKeypointsFound(VOFrontError):
    """Feature extraction produced no keypoints when some were required."""


class OpenCVError(VOFrontError):
    """An OpenCV call failed inside a front-end operation."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
