"""Pytest configuration and shared fixtures for the ART report tests.

This module provides fixtures for:
- In-memory indicator, metadata and geometry tables
- The same tables written to temporary CSV files
- Temporary directories
- DuckDB connections
"""

import tempfile
from pathlib import Path
from typing import Dict, Generator

import duckdb
import numpy as np
import pandas as pd
import pytest

ART_LABEL = "Reported number of children (aged 0-14) receiving ART"
OTHER_LABEL = "Estimated number of children (aged 0-14) living with HIV"
GDP_SOURCE = "GDP per capita (constant 2015 US$)"


def make_indicators(rows) -> pd.DataFrame:
    """Build a typed indicator table from (country, code, label, year, value) rows."""
    frame = pd.DataFrame(
        rows, columns=["country", "alpha_3_code", "indicator", "time_period", "obs_value"]
    )
    frame["time_period"] = frame["time_period"].astype("Int64")
    frame["obs_value"] = frame["obs_value"].astype("float64")
    return frame


def make_metadata(rows) -> pd.DataFrame:
    """Build a typed metadata table from (country, code, gdp) rows."""
    frame = pd.DataFrame(rows, columns=["country", "alpha_3_code", GDP_SOURCE])
    frame[GDP_SOURCE] = frame[GDP_SOURCE].astype("float64")
    return frame


# ============================================================================
# Test Data Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def sample_indicators() -> pd.DataFrame:
    """Indicator rows covering two years, a second indicator and a missing value.

    Returns:
        Pandas DataFrame with indicator test data
    """
    return make_indicators([
        ("Mozambique", "MOZ", ART_LABEL, 2015, 80000.0),
        ("Mozambique", "MOZ", ART_LABEL, 2019, 120000.0),
        ("South Africa", "ZAF", ART_LABEL, 2015, 50000.0),
        ("Kenya", "KEN", OTHER_LABEL, 2019, 999.0),
        ("Kenya", "KEN", ART_LABEL, 2019, np.nan),
    ])


@pytest.fixture(scope="function")
def sample_metadata() -> pd.DataFrame:
    """Country metadata, including a country with no indicator data.

    Returns:
        Pandas DataFrame with metadata test data
    """
    return make_metadata([
        ("Mozambique", "MOZ", 480.5),
        ("South Africa", "ZAF", 6001.4),
        ("Kenya", "KEN", 1450.0),
        ("Nigeria", "NGA", 2100.0),
    ])


@pytest.fixture(scope="function")
def twelve_countries() -> pd.DataFrame:
    """Latest-year indicator rows for twelve countries with distinct values."""
    codes = ["AGO", "BWA", "CMR", "COD", "ETH", "KEN", "LSO", "MOZ", "MWI", "NGA", "TZA", "ZAF"]
    return make_indicators([
        (f"Country {code}", code, ART_LABEL, 2020, float(1000 * (i + 1)))
        for i, code in enumerate(codes)
    ])


@pytest.fixture(scope="function")
def sample_geometry() -> pd.DataFrame:
    """Map geometry with two resolvable regions and one unresolvable one."""
    squares = []
    for group, (region, x0) in enumerate(
        [("Mozambique", 30.0), ("South Africa", 20.0), ("Atlantis", -30.0)], start=1
    ):
        corners = [(x0, -20.0), (x0 + 5, -20.0), (x0 + 5, -15.0), (x0, -15.0)]
        for order, (long, lat) in enumerate(corners, start=1):
            squares.append((long, lat, group, order, region))
    frame = pd.DataFrame(squares, columns=["long", "lat", "group", "order", "region"])
    frame["group"] = frame["group"].astype("Int64")
    frame["order"] = frame["order"].astype("Int64")
    return frame


# ============================================================================
# Temporary File Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for testing.

    Yields:
        Path to temporary directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def source_files(
    temp_dir: Path,
    sample_indicators: pd.DataFrame,
    sample_metadata: pd.DataFrame,
    sample_geometry: pd.DataFrame,
) -> Dict[str, Path]:
    """Write the sample tables to CSV files.

    Args:
        temp_dir: Temporary directory path
        sample_indicators: Sample indicator table
        sample_metadata: Sample metadata table
        sample_geometry: Sample geometry table

    Returns:
        Dictionary mapping source names to file paths
    """
    raw_dir = temp_dir / "raw"
    raw_dir.mkdir()

    indicators = sample_indicators.assign(unit_measure="Number")
    metadata = sample_metadata.assign(Population=[32_000_000, 60_000_000, 54_000_000, 213_000_000])

    paths = {
        "indicators": raw_dir / "indicators.csv",
        "metadata": raw_dir / "metadata.csv",
        "geometry": raw_dir / "world_map.csv",
    }
    indicators.to_csv(paths["indicators"], index=False)
    metadata.to_csv(paths["metadata"], index=False)
    sample_geometry.to_csv(paths["geometry"], index=False)
    return paths


# ============================================================================
# DuckDB Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def duckdb_connection() -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """Provide an in-memory DuckDB connection for testing.

    Yields:
        DuckDB connection object
    """
    con = duckdb.connect(":memory:")
    yield con
    con.close()
