"""Unit tests for the filter-and-join stage.

Tests cover:
- Exact indicator label matching
- Left join cardinality and join misses
- Compound (alpha_3_code, country) key
- Countries present only in metadata
"""

import numpy as np
import pandas as pd
import pytest

from art_pipeline.merge import filter_and_join, filter_indicator, join_metadata
from tests.conftest import ART_LABEL, GDP_SOURCE, OTHER_LABEL, make_indicators, make_metadata


@pytest.mark.unit
class TestFilterIndicator:
    """Test selection of the target indicator."""

    def test_keeps_only_matching_rows(self, sample_indicators):
        filtered = filter_indicator(sample_indicators, ART_LABEL)

        assert len(filtered) == 4
        assert set(filtered["indicator"]) == {ART_LABEL}

    def test_match_is_exact(self):
        indicators = make_indicators([
            ("Kenya", "KEN", ART_LABEL.lower(), 2019, 1.0),
            ("Kenya", "KEN", ART_LABEL + " ", 2019, 2.0),
            ("Kenya", "KEN", ART_LABEL, 2019, 3.0),
            ("Kenya", "KEN", None, 2019, 4.0),
        ])

        filtered = filter_indicator(indicators, ART_LABEL)

        assert filtered["obs_value"].tolist() == [3.0]

    def test_no_matches_is_empty_not_error(self, sample_indicators):
        filtered = filter_indicator(sample_indicators, "Not an indicator")

        assert filtered.empty
        assert list(filtered.columns) == list(sample_indicators.columns)

    def test_preserves_order_and_index(self, sample_indicators):
        filtered = filter_indicator(sample_indicators, ART_LABEL)

        assert filtered["time_period"].tolist() == [2015, 2019, 2015, 2019]
        assert filtered.index.tolist() == [0, 1, 2, 3]


@pytest.mark.unit
class TestJoinMetadata:
    """Test the left join onto country metadata."""

    def test_output_count_equals_filtered_count(self, sample_indicators, sample_metadata):
        filtered = filter_indicator(sample_indicators, ART_LABEL)

        merged = join_metadata(filtered, sample_metadata)

        assert len(merged) == len(filtered)
        assert merged["country"].tolist() == filtered["country"].tolist()

    def test_adds_metadata_fields(self, sample_indicators, sample_metadata):
        merged = filter_and_join(sample_indicators, sample_metadata, ART_LABEL)

        assert merged["gdp_per_capita"].tolist() == [480.5, 480.5, 6001.4, 1450.0]
        assert merged[GDP_SOURCE].tolist() == merged["gdp_per_capita"].tolist()
        assert merged["has_metadata"].all()

    def test_join_miss_keeps_row_with_missing_metadata(self, sample_indicators):
        metadata = make_metadata([("Mozambique", "MOZ", 480.5)])

        merged = filter_and_join(sample_indicators, metadata, ART_LABEL)

        assert len(merged) == 4
        south_africa = merged[merged["alpha_3_code"] == "ZAF"].iloc[0]
        assert np.isnan(south_africa["gdp_per_capita"])
        assert not south_africa["has_metadata"]
        assert south_africa["obs_value"] == 50000.0

    def test_both_key_parts_must_match(self):
        """Same code under a different display name is a join miss."""
        filtered = make_indicators([("Viet Nam", "VNM", ART_LABEL, 2019, 10.0)])
        metadata = make_metadata([("Vietnam", "VNM", 2500.0)])

        merged = join_metadata(filtered, metadata)

        assert len(merged) == 1
        assert np.isnan(merged["gdp_per_capita"].iloc[0])

    def test_missing_keys_never_match(self):
        filtered = make_indicators([("Kosovo", None, ART_LABEL, 2019, 10.0)])
        metadata = make_metadata([("Kosovo", None, 4000.0)])

        merged = join_metadata(filtered, metadata)

        assert len(merged) == 1
        assert not merged["has_metadata"].iloc[0]
        assert np.isnan(merged["gdp_per_capita"].iloc[0])

    def test_metadata_only_country_absent(self, sample_indicators, sample_metadata):
        merged = filter_and_join(sample_indicators, sample_metadata, ART_LABEL)

        assert "NGA" not in set(merged["alpha_3_code"])

    def test_clashing_columns_get_suffix(self):
        filtered = make_indicators([("Kenya", "KEN", ART_LABEL, 2019, 10.0)]).assign(
            source="UNICEF"
        )
        metadata = make_metadata([("Kenya", "KEN", 1450.0)]).assign(source="World Bank")

        merged = join_metadata(filtered, metadata)

        assert merged["source"].iloc[0] == "UNICEF"
        assert merged["source_metadata"].iloc[0] == "World Bank"

    def test_duplicate_metadata_keys_repeat_rows(self):
        filtered = make_indicators([("Kenya", "KEN", ART_LABEL, 2019, 10.0)])
        metadata = make_metadata([("Kenya", "KEN", 1450.0), ("Kenya", "KEN", 1460.0)])

        merged = join_metadata(filtered, metadata)

        assert merged["gdp_per_capita"].tolist() == [1450.0, 1460.0]

    def test_metadata_without_gdp_column(self):
        filtered = make_indicators([("Kenya", "KEN", ART_LABEL, 2019, 10.0)])
        metadata = pd.DataFrame({"country": ["Kenya"], "alpha_3_code": ["KEN"]})

        merged = join_metadata(filtered, metadata)

        assert merged["has_metadata"].iloc[0]
        assert np.isnan(merged["gdp_per_capita"].iloc[0])

    def test_inputs_are_not_modified(self, sample_indicators, sample_metadata):
        indicators_before = sample_indicators.copy()
        metadata_before = sample_metadata.copy()

        filter_and_join(sample_indicators, sample_metadata, ART_LABEL)

        pd.testing.assert_frame_equal(sample_indicators, indicators_before)
        pd.testing.assert_frame_equal(sample_metadata, metadata_before)


def test_other_indicator_never_joined(sample_indicators, sample_metadata):
    merged = filter_and_join(sample_indicators, sample_metadata, ART_LABEL)

    assert OTHER_LABEL not in set(merged["indicator"])
    assert 999.0 not in set(merged["obs_value"].dropna())
