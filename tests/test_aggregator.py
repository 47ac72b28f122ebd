"""Tests del agregador horario."""

from unittest.mock import MagicMock

from conftest import HOUR, insert_samples
from usage_monitor.aggregation import HourlyAggregator, summarize_window
from usage_monitor.core.domain import RawSample
from usage_monitor.core.errors import PersistenceFailure
from usage_monitor.infrastructure.persistence import UsageStore


# =========================================================
# summarize_window (puro)
# =========================================================

class TestSummarizeWindow:
    def test_fewer_than_two_samples_is_no_summary(self):
        assert summarize_window(HOUR, []) is None
        assert summarize_window(HOUR, [RawSample(HOUR, 1, 1)]) is None

    def test_totals_and_peaks(self):
        samples = [
            RawSample(HOUR, 1_000, 100),
            RawSample(HOUR + 1, 3_000, 300),
            RawSample(HOUR + 2, 4_000, 400),
        ]

        summary = summarize_window(HOUR, samples)

        assert summary.period_start == HOUR
        assert summary.period_end == HOUR + 3600
        assert summary.total_download == 3_000
        assert summary.total_upload == 300
        assert summary.peak_download_speed == 2_000
        assert summary.peak_upload_speed == 200
        assert summary.sample_count == 3

    def test_totals_come_from_first_and_last_sample(self):
        """Con un reinicio a mitad de la hora el total último-primero se recorta a 0."""
        samples = [
            RawSample(HOUR, 5_000, 5_000),
            RawSample(HOUR + 1, 100, 100),
            RawSample(HOUR + 2, 900, 900),
        ]

        summary = summarize_window(HOUR, samples)

        assert summary.total_download == 0
        assert summary.total_upload == 0
        assert summary.peak_download_speed == 800
        assert summary.peak_upload_speed == 800

    def test_peak_scan_includes_gap_intervals(self):
        samples = [
            RawSample(HOUR, 0, 0),
            RawSample(HOUR + 1, 1_000, 100),
            RawSample(HOUR + 100, 1_000_000, 10_000),  # hueco de 99s
        ]

        summary = summarize_window(HOUR, samples)

        assert summary.peak_download_speed == 999_000 // 99
        assert summary.peak_upload_speed == 100

    def test_peak_scan_skips_non_positive_intervals(self):
        samples = [
            RawSample(HOUR + 5, 0, 0),
            RawSample(HOUR + 5, 1_000_000, 1_000_000),
            RawSample(HOUR + 6, 1_000_010, 1_000_001),
        ]

        summary = summarize_window(HOUR, samples)

        assert summary.peak_download_speed == 10
        assert summary.peak_upload_speed == 1


# =========================================================
# HourlyAggregator contra SQLite
# =========================================================

class TestHourlyAggregator:
    def test_aggregates_and_persists(self, store):
        insert_samples(store, [
            (HOUR, 1_000, 100),
            (HOUR + 1, 3_000, 300),
            (HOUR + 2, 4_000, 400),
        ])

        summary = HourlyAggregator(store).aggregate_hour(HOUR)

        assert summary is not None
        assert store.get_summary(HOUR) == summary

    def test_samples_outside_window_are_ignored(self, store):
        insert_samples(store, [
            (HOUR - 1, 0, 0),
            (HOUR, 1_000, 100),
            (HOUR + 3599, 2_000, 200),
            (HOUR + 3600, 900_000, 90_000),
        ])

        summary = HourlyAggregator(store).aggregate_hour(HOUR)

        assert summary.sample_count == 2
        assert summary.total_download == 1_000
        assert summary.total_upload == 100

    def test_hour_start_is_truncated(self, store):
        insert_samples(store, [(HOUR + 10, 0, 0), (HOUR + 20, 100, 10)])

        summary = HourlyAggregator(store).aggregate_hour(HOUR + 1234)

        assert summary.period_start == HOUR

    def test_insufficient_data_writes_nothing(self, store):
        insert_samples(store, [(HOUR + 10, 0, 0)])

        assert HourlyAggregator(store).aggregate_hour(HOUR) is None
        assert store.get_summary(HOUR) is None

    def test_reaggregation_is_idempotent(self, store):
        insert_samples(store, [(HOUR, 0, 0), (HOUR + 1, 500, 50), (HOUR + 2, 700, 90)])
        aggregator = HourlyAggregator(store)

        first = aggregator.aggregate_hour(HOUR)
        second = aggregator.aggregate_hour(HOUR)

        assert first == second
        rows = store.summaries_between(HOUR, HOUR + 3600)
        assert rows == [first]

    def test_reaggregation_overwrites_with_new_data(self, store):
        insert_samples(store, [(HOUR, 0, 0), (HOUR + 1, 500, 50)])
        aggregator = HourlyAggregator(store)
        aggregator.aggregate_hour(HOUR)

        insert_samples(store, [(HOUR + 2, 2_500, 250)])
        aggregator.aggregate_hour(HOUR)

        stored = store.get_summary(HOUR)
        assert stored.total_download == 2_500
        assert stored.sample_count == 3
        assert len(store.summaries_between(HOUR, HOUR + 3600)) == 1

    def test_aggregate_range_covers_each_hour(self, store):
        insert_samples(store, [
            (HOUR, 0, 0), (HOUR + 60, 100, 10),
            (HOUR + 3600, 100, 10), (HOUR + 3660, 400, 40),
            (HOUR + 7200, 400, 40),  # una sola muestra: sin resumen
        ])

        summaries = HourlyAggregator(store).aggregate_range(HOUR, HOUR + 3 * 3600)

        assert [s.period_start for s in summaries] == [HOUR, HOUR + 3600]
        assert [s.total_download for s in summaries] == [100, 300]


class TestAggregatorFailures:
    def test_read_failure_is_absorbed(self):
        store = MagicMock(spec=UsageStore)
        store.samples_between.side_effect = PersistenceFailure("samples_between", RuntimeError("locked"))

        assert HourlyAggregator(store).aggregate_hour(HOUR) is None
        store.upsert_summary.assert_not_called()

    def test_upsert_failure_still_returns_summary(self):
        store = MagicMock(spec=UsageStore)
        store.samples_between.return_value = [RawSample(HOUR, 0, 0), RawSample(HOUR + 1, 10, 1)]
        store.upsert_summary.side_effect = PersistenceFailure("upsert_summary", RuntimeError("disk full"))

        summary = HourlyAggregator(store).aggregate_hour(HOUR)

        assert summary is not None
        assert summary.total_download == 10
        store.upsert_summary.assert_called_once_with(summary)
