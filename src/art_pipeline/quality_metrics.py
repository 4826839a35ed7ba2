"""Descriptive statistics and data quality summary for a report run.

This module summarises the in-scope indicator data: coverage (countries,
years), latest-year totals and distribution, and the data quality issues
handled by exclusion (missing values, join misses, missing GDP).
"""

from dataclasses import asdict, dataclass, field
from typing import List, Optional

import pandas as pd

from art_pipeline.logging_config import create_logger
from art_pipeline.schemas import COUNTRY_KEY, GDP_COLUMN

logger = create_logger(__name__)


@dataclass
class ReportSummary:
    """Descriptive statistics for the indicator in scope."""

    total_records: int
    total_countries: int
    year_range_min: Optional[int]
    year_range_max: Optional[int]
    latest_records: int
    latest_total: float
    latest_mean: Optional[float]
    latest_median: Optional[float]
    latest_max: Optional[float]
    leading_country: Optional[str]
    missing_values: int
    join_misses: int
    missing_gdp: int
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _optional_float(value) -> Optional[float]:
    return None if pd.isna(value) else float(value)


def summarize(
    filtered: pd.DataFrame, merged: pd.DataFrame, latest: pd.DataFrame
) -> ReportSummary:
    """Build the descriptive statistics of a run.

    Args:
        filtered: Indicator rows of the target indicator
        merged: Filtered rows joined to metadata
        latest: Latest-year selection of the merged rows

    Returns:
        ReportSummary for the run
    """
    years = filtered["time_period"].dropna()
    latest_values = latest["obs_value"].dropna()

    leading_country = None
    if not latest_values.empty:
        leading_country = latest.loc[latest_values.idxmax(), "country"]

    missing_values = int(filtered["obs_value"].isna().sum())
    join_misses = int((~merged["has_metadata"].astype(bool)).sum())
    missing_gdp = int(merged[GDP_COLUMN].isna().sum())

    issues = []
    if filtered.empty:
        issues.append("No records found for the target indicator")
    if missing_values:
        issues.append(f"{missing_values} record(s) without an observation value")
    if join_misses:
        issues.append(f"{join_misses} record(s) without a metadata match")
    if missing_gdp:
        issues.append(f"{missing_gdp} merged record(s) without GDP per capita")
    ties = int(latest.duplicated(subset=[COUNTRY_KEY]).sum()) if not latest.empty else 0
    if ties:
        issues.append(f"{ties} extra latest-year record(s) from tied years")

    summary = ReportSummary(
        total_records=len(filtered),
        total_countries=int(filtered[COUNTRY_KEY].dropna().nunique()),
        year_range_min=int(years.min()) if not years.empty else None,
        year_range_max=int(years.max()) if not years.empty else None,
        latest_records=len(latest),
        latest_total=float(latest_values.sum()),
        latest_mean=_optional_float(latest_values.mean()),
        latest_median=_optional_float(latest_values.median()),
        latest_max=_optional_float(latest_values.max()),
        leading_country=leading_country,
        missing_values=missing_values,
        join_misses=join_misses,
        missing_gdp=missing_gdp,
        issues=issues,
    )

    logger.info(
        f"📊 {summary.total_records} records, {summary.total_countries} countries, "
        f"years {summary.year_range_min}-{summary.year_range_max}"
    )
    for issue in issues:
        logger.warning(f"   {issue}")
    return summary
