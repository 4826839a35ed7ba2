"""Unit tests for the descriptive statistics of a report run."""

import pytest

from art_pipeline.aggregates import latest_year_per_country
from art_pipeline.merge import filter_and_join, filter_indicator
from art_pipeline.quality_metrics import ReportSummary, summarize
from tests.conftest import ART_LABEL, make_indicators, make_metadata


def _summarize(indicators, metadata):
    filtered = filter_indicator(indicators, ART_LABEL)
    merged = filter_and_join(indicators, metadata, ART_LABEL)
    return summarize(filtered, merged, latest_year_per_country(merged))


@pytest.mark.unit
class TestSummarize:
    """Test the run summary."""

    def test_coverage_and_latest_statistics(self, sample_indicators, sample_metadata):
        summary = _summarize(sample_indicators, sample_metadata)

        assert summary.total_records == 4
        assert summary.total_countries == 3
        assert (summary.year_range_min, summary.year_range_max) == (2015, 2019)
        assert summary.latest_records == 3
        assert summary.latest_total == 170000.0
        assert summary.latest_mean == 85000.0
        assert summary.latest_max == 120000.0
        assert summary.leading_country == "Mozambique"

    def test_missing_values_are_counted_not_zeroed(self, sample_indicators, sample_metadata):
        summary = _summarize(sample_indicators, sample_metadata)

        assert summary.missing_values == 1
        # Kenya's missing value does not drag the mean down
        assert summary.latest_median == 85000.0
        assert "1 record(s) without an observation value" in summary.issues

    def test_join_misses(self, sample_indicators):
        metadata = make_metadata([("Mozambique", "MOZ", 480.5), ("Kenya", "KEN", 1450.0)])

        summary = _summarize(sample_indicators, metadata)

        assert summary.join_misses == 1
        assert summary.missing_gdp == 1

    def test_tied_latest_years_reported(self):
        indicators = make_indicators([
            ("Lesotho", "LSO", ART_LABEL, 2020, 10.0),
            ("Lesotho", "LSO", ART_LABEL, 2020, 12.0),
        ])
        metadata = make_metadata([("Lesotho", "LSO", 1100.0)])

        summary = _summarize(indicators, metadata)

        assert summary.latest_records == 2
        assert "1 extra latest-year record(s) from tied years" in summary.issues

    def test_no_records(self, sample_indicators, sample_metadata):
        summary = _summarize(sample_indicators.iloc[0:0], sample_metadata)

        assert summary.total_records == 0
        assert summary.year_range_min is None
        assert summary.latest_mean is None
        assert summary.leading_country is None
        assert summary.issues == ["No records found for the target indicator"]

    def test_to_dict(self, sample_indicators, sample_metadata):
        summary = _summarize(sample_indicators, sample_metadata)

        as_dict = summary.to_dict()

        assert isinstance(summary, ReportSummary)
        assert as_dict["total_records"] == 4
        assert isinstance(as_dict["issues"], list)
