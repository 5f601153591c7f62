"""Tests for sync engine data models."""

from datetime import datetime, timezone

import pytest

from taodash.sync.models import FetchState, PriceSeries, PriceSnapshot, SeriesPoint, Timeframe, ViewModel


class TestTimeframe:
    """Unit tests for the Timeframe enum."""

    def test_values_are_days(self):
        assert [tf.days for tf in Timeframe] == [1, 7, 14, 30, 180, 365]

    def test_labels(self):
        assert [tf.label for tf in Timeframe] == ["1d", "7d", "14d", "30d", "6mo", "1yr"]

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("7d", Timeframe.D7),
            ("6mo", Timeframe.D180),
            ("180d", Timeframe.D180),
            ("1YR", Timeframe.D365),
            ("30", Timeframe.D30),
            (14, Timeframe.D14),
            (Timeframe.D1, Timeframe.D1),
        ],
    )
    def test_parse(self, raw, expected):
        assert Timeframe.parse(raw) is expected

    @pytest.mark.parametrize("raw", ["2d", "week", 90, ""])
    def test_parse_rejects_unknown(self, raw):
        with pytest.raises(ValueError):
            Timeframe.parse(raw)


class TestPriceSnapshot:
    """Unit tests for the PriceSnapshot model."""

    def test_optional_fields_default_to_none(self):
        snap = PriceSnapshot(price=310.5, observed_at=1.0)
        assert snap.high_24h is None
        assert snap.low_24h is None
        assert snap.change_24h_pct is None
        assert snap.all_time_high is None
        assert snap.all_time_high_date is None

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            PriceSnapshot(price=-1.0)

    def test_negative_change_allowed(self):
        snap = PriceSnapshot(price=300.0, change_24h_pct=-4.2)
        assert snap.change_24h_pct == -4.2

    def test_immutability(self):
        snap = PriceSnapshot(price=310.5)
        with pytest.raises(AttributeError):
            snap.price = 200.0

    def test_to_dict(self):
        ath_date = datetime(2024, 3, 7, 18, 45, tzinfo=timezone.utc)
        snap = PriceSnapshot(
            price=310.5,
            high_24h=320.0,
            low_24h=295.0,
            change_24h_pct=2.1,
            all_time_high=757.6,
            all_time_high_date=ath_date,
            observed_at=1234567890.0,
        )
        result = snap.to_dict()
        assert result["price"] == 310.5
        assert result["high_24h"] == 320.0
        assert result["low_24h"] == 295.0
        assert result["change_24h_pct"] == 2.1
        assert result["all_time_high_date"] == "2024-03-07T18:45:00+00:00"
        assert result["observed_at"] == 1234567890.0


class TestPriceSeries:
    """Unit tests for PriceSeries."""

    def test_from_pairs_sorts_ascending(self):
        series = PriceSeries.from_pairs([[3000, 3.0], [1000, 1.0], [2000, 2.0]])
        assert [p.timestamp for p in series] == [1000, 2000, 3000]

    def test_from_pairs_deduplicates_timestamps(self):
        series = PriceSeries.from_pairs([[1000, 1.0], [1000, 1.5], [2000, 2.0]])
        assert len(series) == 2
        assert series.points[0] == SeriesPoint(1000, 1.5)

    def test_from_pairs_coerces_types(self):
        series = PriceSeries.from_pairs([[1000.0, 5]])
        point = series.points[0]
        assert isinstance(point.timestamp, int)
        assert isinstance(point.price, float)

    def test_unordered_points_rejected(self):
        with pytest.raises(ValueError):
            PriceSeries((SeriesPoint(2000, 1.0), SeriesPoint(1000, 1.0)))

    def test_to_pairs(self):
        series = PriceSeries.from_pairs([[1000, 1.0], [2000, 2.0]])
        assert series.to_pairs() == [[1000, 1.0], [2000, 2.0]]

    def test_empty(self):
        assert len(PriceSeries()) == 0


class TestViewModel:
    """Unit tests for ViewModel derived properties."""

    def test_initial_state(self):
        view = ViewModel(selected_timeframe=Timeframe.D7)
        assert view.snapshot is None
        assert view.previous_snapshot is None
        assert len(view.series) == 0
        assert view.snapshot_loading is True
        assert view.series_loading is True
        assert view.error_message is None
        assert view.snapshot_state is FetchState.IDLE
        assert view.has_data is False
        assert view.is_stale is False

    def test_error_without_data_is_not_stale(self):
        view = ViewModel(selected_timeframe=Timeframe.D7, error_message="boom")
        assert view.is_stale is False

    def test_error_with_data_is_stale(self):
        view = ViewModel(
            selected_timeframe=Timeframe.D7,
            snapshot=PriceSnapshot(price=300.0),
            error_message="boom",
        )
        assert view.is_stale is True

    def test_direction_up(self):
        view = ViewModel(
            selected_timeframe=Timeframe.D7,
            snapshot=PriceSnapshot(price=301.0),
            previous_snapshot=PriceSnapshot(price=300.0),
        )
        assert view.price_changed is True
        assert view.direction == "up"

    def test_direction_down(self):
        view = ViewModel(
            selected_timeframe=Timeframe.D7,
            snapshot=PriceSnapshot(price=299.0),
            previous_snapshot=PriceSnapshot(price=300.0),
        )
        assert view.direction == "down"

    def test_first_snapshot_is_flat(self):
        view = ViewModel(selected_timeframe=Timeframe.D7, snapshot=PriceSnapshot(price=300.0))
        assert view.price_changed is False
        assert view.direction == "flat"

    def test_to_dict(self):
        view = ViewModel(
            selected_timeframe=Timeframe.D180,
            snapshot=PriceSnapshot(price=300.0, observed_at=1.0),
            series=PriceSeries.from_pairs([[1000, 1.0]]),
            series_timeframe=Timeframe.D180,
        )
        result = view.to_dict()
        assert result["selected_timeframe"] == "6mo"
        assert result["series_timeframe"] == "6mo"
        assert result["series"] == [[1000, 1.0]]
        assert result["snapshot"]["price"] == 300.0
        assert result["previous_snapshot"] is None
        assert result["snapshot_state"] == "idle"
        assert result["direction"] == "flat"
