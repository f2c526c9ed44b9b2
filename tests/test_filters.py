"""Tests for signal filtering utilities."""

from __future__ import annotations

import pytest

from ruck_analytics.core.exceptions import InvalidParameterError
from ruck_analytics.processing.filters import ExponentialFilter, SmoothingFilter


class TestSmoothingFilter:
    """Tests for the moving average filter."""

    def test_smooths_values(self) -> None:
        """Should compute moving average."""
        sf = SmoothingFilter(window_size=3)

        result1 = sf.update(1.0)
        result2 = sf.update(2.0)
        result3 = sf.update(3.0)

        assert result1 == 1.0  # Only one value
        assert result2 == 1.5  # Average of 1, 2
        assert result3 == 2.0  # Average of 1, 2, 3

    def test_sliding_window(self) -> None:
        """Should maintain sliding window."""
        sf = SmoothingFilter(window_size=3)

        sf.update(1.0)
        sf.update(2.0)
        sf.update(3.0)
        result = sf.update(6.0)  # Window is now [2, 3, 6]

        assert pytest.approx(result) == (2 + 3 + 6) / 3
        assert len(sf) == 3

    def test_weights_favor_reliable_values(self) -> None:
        """Heavier samples pull the average toward them."""
        sf = SmoothingFilter(window_size=2)

        sf.update(0.0, weight=1.0)
        result = sf.update(10.0, weight=3.0)

        assert result == pytest.approx(7.5)

    def test_recency_weighting(self) -> None:
        """Newer samples count more when recency weighting is on."""
        sf = SmoothingFilter(window_size=2, recency_weighted=True)

        sf.update(0.0)
        result = sf.update(3.0)  # weights 1/2 and 1

        assert result == pytest.approx(2.0)

    def test_zero_weights_fall_back_to_mean(self) -> None:
        """All-zero weights still produce a defined average."""
        sf = SmoothingFilter(window_size=3)

        sf.update(2.0, weight=0.0)
        result = sf.update(4.0, weight=0.0)

        assert result == 3.0

    def test_is_ready_property(self) -> None:
        """is_ready should indicate when buffer is full."""
        sf = SmoothingFilter(window_size=3)

        assert not sf.is_ready
        sf.update(1.0)
        assert not sf.is_ready
        sf.update(2.0)
        assert not sf.is_ready
        sf.update(3.0)
        assert sf.is_ready

    def test_reset_clears_buffer(self) -> None:
        """Reset should clear the buffer."""
        sf = SmoothingFilter(window_size=3)

        sf.update(1.0)
        sf.update(2.0)
        sf.update(3.0)

        sf.reset()

        assert not sf.is_ready
        assert sf.value == 0.0
        result = sf.update(10.0)
        assert result == 10.0  # Only value in buffer

    def test_invalid_window(self) -> None:
        """A window needs at least one slot."""
        with pytest.raises(InvalidParameterError):
            SmoothingFilter(window_size=0)


class TestExponentialFilter:
    """Tests for the exponential filter."""

    def test_first_value_seeds(self) -> None:
        """The first update passes through unchanged."""
        ef = ExponentialFilter(alpha=0.3)

        assert ef.value is None
        assert ef.update(4.0) == 4.0

    def test_blends_updates(self) -> None:
        """Later values are blended with the running estimate."""
        ef = ExponentialFilter(alpha=0.25)

        ef.update(0.0)
        result = ef.update(8.0)

        assert result == pytest.approx(2.0)

    def test_alpha_one_tracks_input(self) -> None:
        """Alpha of one disables smoothing."""
        ef = ExponentialFilter(alpha=1.0)

        ef.update(1.0)
        assert ef.update(5.0) == 5.0

    def test_reset(self) -> None:
        """Reset forgets the running estimate."""
        ef = ExponentialFilter()
        ef.update(3.0)

        ef.reset()

        assert ef.value is None

    @pytest.mark.parametrize("alpha", [0.0, -0.1, 1.5])
    def test_invalid_alpha(self, alpha: float) -> None:
        """Alpha must lie in (0, 1]."""
        with pytest.raises(InvalidParameterError):
            ExponentialFilter(alpha=alpha)
