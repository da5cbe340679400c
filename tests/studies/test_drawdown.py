"""Tests for drawdown episodes"""

from datetime import date

import pytest

from quantlab.studies.drawdown import drawdown_analysis, find_drawdown_episodes


@pytest.fixture
def two_episode_bars(make_bars):
    # Mon 2024-01-01 .. Tue 2024-01-09
    return make_bars([100, 110, 99, 105, 111, 100, 95])


class TestDrawdownEpisodes:
    """Test peak, trough and recovery detection"""

    def test_episodes(self, two_episode_bars):
        """Test a recovered episode followed by an open one"""
        first, second = find_drawdown_episodes(two_episode_bars)

        assert first.peak_date == date(2024, 1, 2)
        assert first.trough_date == date(2024, 1, 3)
        assert first.recovery_date == date(2024, 1, 5)
        assert first.depth == pytest.approx(10.0)
        assert first.days_to_trough == 1
        assert first.days_to_recover == 2
        assert first.recovered

        assert second.peak_date == date(2024, 1, 5)
        assert second.trough_date == date(2024, 1, 9)
        assert second.depth == pytest.approx(16 / 111 * 100)
        assert second.recovery_date is None
        assert second.days_to_recover is None
        assert not second.recovered

    def test_monotonic_rise(self, trending_bars):
        """Test no episodes without a decline"""
        assert find_drawdown_episodes(trending_bars) == []


class TestDrawdownAnalysis:
    """Test the drawdown summary"""

    def test_summary(self, two_episode_bars, study_params):
        """Test aggregate depth and duration figures"""
        result = drawdown_analysis(two_episode_bars, study_params)
        assert result.drawdown_count == 2
        assert result.max_drawdown == pytest.approx(16 / 111 * 100)
        assert result.current_drawdown == pytest.approx(16 / 111 * 100)
        assert result.avg_drawdown == pytest.approx((10 + 16 / 111 * 100) / 2)
        assert result.avg_recovery_days == pytest.approx(2.0)
        # Open episode runs from its peak (Fri) to the last bar (Tue)
        assert result.longest_drawdown_days == 4

    def test_no_drawdown(self, trending_bars, study_params):
        """Test zeros on a monotonic rise"""
        result = drawdown_analysis(trending_bars, study_params)
        assert result.max_drawdown == 0.0
        assert result.current_drawdown == 0.0
        assert result.episodes == []
