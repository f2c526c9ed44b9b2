"""Signal filtering utilities for grade smoothing."""

from __future__ import annotations

from collections import deque

from ruck_analytics.core.exceptions import InvalidParameterError


class SmoothingFilter:
    """Weighted moving average filter for smoothing sequences.

    Uses a sliding window; each value carries a weight, and newer entries
    can be favored with a linear recency ramp.
    """

    def __init__(self, window_size: int = 5, recency_weighted: bool = False) -> None:
        """Initialize smoothing filter.

        Args:
            window_size: Number of samples in sliding window
            recency_weighted: Scale the i-th oldest sample by (i + 1) / len
        """
        if window_size < 1:
            raise InvalidParameterError(f"window_size must be >= 1, got {window_size}")

        self.window_size = window_size
        self.recency_weighted = recency_weighted
        self._buffer: deque[tuple[float, float]] = deque(maxlen=window_size)

    @property
    def is_ready(self) -> bool:
        """Check if buffer is full."""
        return len(self._buffer) >= self.window_size

    def __len__(self) -> int:
        return len(self._buffer)

    def reset(self) -> None:
        """Clear filter buffer."""
        self._buffer.clear()

    def update(self, value: float, weight: float = 1.0) -> float:
        """Add value and return smoothed result.

        Args:
            value: New measurement
            weight: Relative reliability of the measurement (>= 0)

        Returns:
            Weighted average of the window, or the plain average when every
            weight is zero
        """
        self._buffer.append((value, max(0.0, weight)))
        return self.value

    @property
    def value(self) -> float:
        """Current weighted average (0.0 when empty)."""
        if not self._buffer:
            return 0.0

        count = len(self._buffer)
        weighted_sum = 0.0
        total_weight = 0.0
        for index, (value, weight) in enumerate(self._buffer):
            if self.recency_weighted:
                weight *= (index + 1) / count
            weighted_sum += value * weight
            total_weight += weight

        if total_weight <= 0.0:
            return sum(v for v, _ in self._buffer) / count
        return weighted_sum / total_weight


class ExponentialFilter:
    """Exponential smoothing with continuity across updates."""

    def __init__(self, alpha: float = 0.5) -> None:
        """Initialize exponential filter.

        Args:
            alpha: Weight of each new value in (0, 1]; 1.0 disables smoothing
        """
        if not 0.0 < alpha <= 1.0:
            raise InvalidParameterError(f"alpha must be in (0, 1], got {alpha}")

        self.alpha = alpha
        self._value: float | None = None

    @property
    def value(self) -> float | None:
        """Last filtered value, or None before the first update."""
        return self._value

    def reset(self) -> None:
        """Reset filter state."""
        self._value = None

    def update(self, value: float) -> float:
        """Blend a new value into the running estimate.

        The first value seeds the filter unchanged.
        """
        if self._value is None:
            self._value = value
        else:
            self._value = self.alpha * value + (1.0 - self.alpha) * self._value
        return self._value
