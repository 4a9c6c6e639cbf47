"""
Tests for arbitrage window detection.
"""

from datetime import date

import pytest


def block_labels(n):
    return [f'{i * 15 // 60:02d}:{i * 15 % 60:02d}' for i in range(n)]


def to_minutes(label):
    hours, minutes = label.split(':')
    return int(hours) * 60 + int(minutes)


class TestThresholds:
    """Tests for percentile thresholds."""

    def test_index_based_percentiles(self):
        from iex_arbitrage.arbitrage import calculate_thresholds
        prices = [float(p) for p in reversed(range(1, 101))]

        charge, discharge = calculate_thresholds(prices)

        assert charge == 11.0
        assert discharge == 91.0

    def test_full_day(self):
        from iex_arbitrage.arbitrage import calculate_thresholds
        prices = [float(p) for p in range(96)]

        # floor(9.6) = 9, floor(86.4) = 86
        assert calculate_thresholds(prices) == (9.0, 86.0)

    def test_single_price(self):
        from iex_arbitrage.arbitrage import calculate_thresholds
        assert calculate_thresholds([3.5]) == (3.5, 3.5)

    def test_charge_checked_first(self):
        from iex_arbitrage.arbitrage import classify_price
        from iex_arbitrage.models import WindowKind

        assert classify_price(10.0, 10.0, 10.0) == WindowKind.CHARGE
        assert classify_price(11.0, 10.0, 12.0) is None
        assert classify_price(12.0, 10.0, 12.0) == WindowKind.DISCHARGE


class TestFindWindows:
    """Tests for merging classified blocks into windows."""

    def test_runs_are_merged(self):
        from iex_arbitrage.arbitrage import find_windows
        from iex_arbitrage.models import WindowKind

        prices = [1.0, 1.0, 5.0, 9.0, 9.0, 5.0, 1.0]
        windows = find_windows(block_labels(7), prices, 1.0, 9.0)

        assert len(windows) == 3
        assert windows[0].kind == WindowKind.CHARGE
        assert (windows[0].start_time_label, windows[0].end_time_label) == ('00:00', '00:15')
        assert windows[0].block_count == 2
        assert windows[1].kind == WindowKind.DISCHARGE
        assert (windows[1].start_time_label, windows[1].end_time_label) == ('00:45', '01:00')
        assert windows[1].average_price == pytest.approx(9.0)
        assert windows[2].start_time_label == windows[2].end_time_label == '01:30'

    def test_kind_switch_closes_window(self):
        from iex_arbitrage.arbitrage import find_windows
        from iex_arbitrage.models import WindowKind

        windows = find_windows(block_labels(2), [1.0, 9.0], 1.0, 9.0)

        assert [w.kind for w in windows] == [WindowKind.CHARGE, WindowKind.DISCHARGE]

    def test_average_price(self):
        from iex_arbitrage.arbitrage import find_windows

        windows = find_windows(block_labels(3), [1.0, 2.0, 3.0], 2.0, 10.0)

        assert len(windows) == 1
        assert windows[0].average_price == pytest.approx(1.5)

    def test_no_windows(self):
        from iex_arbitrage.arbitrage import find_windows
        assert find_windows(block_labels(3), [5.0, 5.0, 5.0], 1.0, 9.0) == []


class TestAnalyzeDay:
    """Tests for per-day analysis."""

    def test_flat_day_is_one_charge_window(self):
        from iex_arbitrage.arbitrage import analyze_day
        from iex_arbitrage.models import WindowKind

        day = analyze_day('01-01-2024', block_labels(4), [10.0] * 4)

        assert day.charge_threshold == day.discharge_threshold == 10.0
        assert len(day.windows) == 1
        window = day.windows[0]
        assert window.kind == WindowKind.CHARGE
        assert (window.start_time_label, window.end_time_label) == ('00:00', '00:45')
        assert window.block_count == 4

    def test_daily_extremes(self):
        from iex_arbitrage.arbitrage import analyze_day

        day = analyze_day('01-01-2024', block_labels(4), [3.0, 1.0, 4.0, 2.0])

        assert day.daily_min == 1.0
        assert day.daily_max == 4.0


class TestDetectArbitrageWindows:
    """Tests over a full simulated forecast."""

    @pytest.fixture
    def result(self):
        from datetime import datetime, timedelta
        from iex_arbitrage.models import HistoricalPoint
        from iex_arbitrage.simulator import simulate

        start = datetime(2024, 3, 1)
        history = [
            HistoricalPoint.from_timestamp(start + timedelta(minutes=15 * i), 3 + (i % 96) / 24)
            for i in range(96 * 3)
        ]
        return simulate(history, forecast_days=3)

    def test_one_analysis_per_day(self, result):
        assert [d.day_label for d in result.arbitrage_days] == ['04-03-2024', '05-03-2024', '06-03-2024']

    def test_windows_chronological_and_disjoint(self, result):
        for day in result.arbitrage_days:
            previous_end = -1
            for window in day.windows:
                start = to_minutes(window.start_time_label)
                end = to_minutes(window.end_time_label)
                assert start <= end
                assert start > previous_end
                previous_end = end

    def test_window_blocks_match_thresholds(self, result):
        from iex_arbitrage.arbitrage import group_by_day
        from iex_arbitrage.models import WindowKind

        by_day = group_by_day(result.forecasts)
        for day in result.arbitrage_days:
            prices = {p.time_block_label: p.predicted_price for p in by_day[day.day_label]}
            for window in day.windows:
                inside = [
                    price for label, price in prices.items()
                    if to_minutes(window.start_time_label) <= to_minutes(label) <= to_minutes(window.end_time_label)
                ]
                assert len(inside) == window.block_count
                if window.kind == WindowKind.CHARGE:
                    assert all(p <= day.charge_threshold for p in inside)
                else:
                    assert all(p >= day.discharge_threshold for p in inside)
                assert day.daily_min <= window.average_price <= day.daily_max

    def test_group_by_day_keeps_order(self):
        from iex_arbitrage.arbitrage import group_by_day
        from iex_arbitrage.models import ForecastPoint

        points = [
            ForecastPoint(date(2024, 1, 2), '02-01-2024', '00:00', 1.0, 0.5, 1.5),
            ForecastPoint(date(2024, 1, 1), '01-01-2024', '00:00', 1.0, 0.5, 1.5),
            ForecastPoint(date(2024, 1, 2), '02-01-2024', '00:15', 1.0, 0.5, 1.5),
        ]

        grouped = group_by_day(points)

        assert list(grouped) == ['02-01-2024', '01-01-2024']
        assert len(grouped['02-01-2024']) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
