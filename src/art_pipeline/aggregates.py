"""Aggregators that derive the datasets behind each report chart.

Every function here is a pure transform: inputs are never modified and
outputs follow input row order unless a sort is part of the contract.

- latest_year_per_country: map
- top_n_countries: ranked bar chart
- scatter_pairs / fit_ols: scatter plot and trend line
- yearly_totals: time series
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import ibis
import numpy as np
import pandas as pd
from scipy import stats

from art_pipeline.logging_config import create_logger
from art_pipeline.schemas import COUNTRY_KEY, GDP_COLUMN

logger = create_logger(__name__)

DEFAULT_TOP_N = 10


def _present(value) -> bool:
    return value is not None and not pd.isna(value)


def latest_year_per_country(records: pd.DataFrame, key: str = COUNTRY_KEY) -> pd.DataFrame:
    """Keep, per country code, every record at that country's latest year.

    Two passes: the first collects the maximum ``time_period`` per code,
    the second keeps the rows that sit at their code's maximum. Ties at the
    maximum year are all kept. Rows with a missing code or year are dropped.
    """
    latest: Dict[str, int] = {}
    for code, year in zip(records[key], records["time_period"]):
        if not (_present(code) and _present(year)):
            continue
        year = int(year)
        if code not in latest or year > latest[code]:
            latest[code] = year

    keep = [
        _present(code) and _present(year) and int(year) == latest[code]
        for code, year in zip(records[key], records["time_period"])
    ]
    selected = records.loc[keep].reset_index(drop=True)
    logger.info(
        f"📅 Latest-year selection kept {len(selected)} rows for {len(latest)} countries"
    )
    return selected


def top_n_countries(records: pd.DataFrame, n: int = DEFAULT_TOP_N) -> pd.DataFrame:
    """Return the ``n`` latest-year records with the largest ``obs_value``.

    Rows with a missing value are not ranked. Equal values keep their
    input order.
    """
    eligible = latest_year_per_country(records).dropna(subset=["obs_value"])
    ranked = eligible.sort_values("obs_value", ascending=False, kind="mergesort")
    top = ranked.head(max(n, 0)).reset_index(drop=True)
    if len(top) < n:
        logger.warning(f"Only {len(top)} eligible record(s) for a top {n} ranking")
    return top


def scatter_pairs(merged: pd.DataFrame) -> pd.DataFrame:
    """Return the (gdp_per_capita, obs_value) pairs where both are present."""
    pairs = merged.dropna(subset=[GDP_COLUMN, "obs_value"])
    columns = [c for c in ("country", COUNTRY_KEY, "time_period") if c in pairs.columns]
    dropped = len(merged) - len(pairs)
    if dropped:
        logger.info(f"Scatter extraction dropped {dropped} row(s) missing GDP or value")
    return pairs[columns + [GDP_COLUMN, "obs_value"]].reset_index(drop=True)


@dataclass(frozen=True)
class OlsFit:
    """Ordinary least squares fit of obs_value on gdp_per_capita.

    Descriptive only; used to draw the trend line and its band.
    """

    slope: float
    intercept: float
    slope_stderr: float
    intercept_stderr: float
    residual_stderr: float
    r_squared: float
    n: int
    x_mean: float
    x_sum_squares: float

    def predict(self, x) -> np.ndarray:
        return self.intercept + self.slope * np.asarray(x, dtype=float)

    def standard_error(self, x) -> np.ndarray:
        """Standard error of the fitted mean response at ``x``."""
        x = np.asarray(x, dtype=float)
        return self.residual_stderr * np.sqrt(
            1.0 / self.n + (x - self.x_mean) ** 2 / self.x_sum_squares
        )

    def confidence_band(self, x, level: float = 0.95) -> Tuple[np.ndarray, np.ndarray]:
        """Lower and upper bounds of the mean response at ``x``."""
        t_crit = stats.t.ppf((1.0 + level) / 2.0, self.n - 2)
        fitted = self.predict(x)
        margin = t_crit * self.standard_error(x)
        return fitted - margin, fitted + margin

    def to_dict(self) -> dict:
        return {
            "slope": self.slope,
            "intercept": self.intercept,
            "slope_stderr": self.slope_stderr,
            "intercept_stderr": self.intercept_stderr,
            "residual_stderr": self.residual_stderr,
            "r_squared": self.r_squared,
            "n": self.n,
        }


def fit_ols(pairs: pd.DataFrame) -> Optional[OlsFit]:
    """Fit obs_value = intercept + slope * gdp_per_capita.

    Returns None when fewer than three pairs exist or GDP is constant.
    """
    x = pairs[GDP_COLUMN].to_numpy(dtype=float)
    y = pairs["obs_value"].to_numpy(dtype=float)
    n = len(x)

    if n < 3:
        logger.warning(f"Not enough scatter pairs for a regression fit ({n})")
        return None
    if np.ptp(x) == 0:
        logger.warning("GDP per capita is constant across pairs; no regression fit")
        return None

    result = stats.linregress(x, y)
    residuals = y - (result.intercept + result.slope * x)
    residual_stderr = float(np.sqrt(np.sum(residuals ** 2) / (n - 2)))
    x_mean = float(x.mean())

    fit = OlsFit(
        slope=float(result.slope),
        intercept=float(result.intercept),
        slope_stderr=float(result.stderr),
        intercept_stderr=float(result.intercept_stderr),
        residual_stderr=residual_stderr,
        r_squared=float(result.rvalue ** 2),
        n=n,
        x_mean=x_mean,
        x_sum_squares=float(np.sum((x - x_mean) ** 2)),
    )
    logger.info(
        f"📈 OLS fit over {n} pairs: slope={fit.slope:.4g}, "
        f"intercept={fit.intercept:.4g}, r²={fit.r_squared:.3f}"
    )
    return fit


def yearly_totals(records: pd.DataFrame) -> pd.DataFrame:
    """Sum ``obs_value`` per ``time_period`` over every record.

    Missing values are left out of the sums, and years with no present
    value do not appear. Output is ordered by ascending year.
    """
    valid = records.dropna(subset=["time_period", "obs_value"])
    source = pd.DataFrame(
        {
            "time_period": valid["time_period"].astype("int64").to_numpy(),
            "obs_value": valid["obs_value"].astype("float64").to_numpy(),
        }
    )

    table = ibis.memtable(source)
    expr = (
        table.group_by("time_period")
        .aggregate(total=table.obs_value.sum())
        .order_by("time_period")
    )
    totals = expr.execute()[["time_period", "total"]].reset_index(drop=True)
    logger.info(f"🧮 Yearly totals computed for {len(totals)} year(s)")
    return totals


@dataclass
class DerivedDatasets:
    """The four datasets consumed by the report charts."""

    latest_year: pd.DataFrame
    top_countries: pd.DataFrame
    scatter_pairs: pd.DataFrame
    yearly_totals: pd.DataFrame
    fit: Optional[OlsFit] = None

    def tables(self) -> Dict[str, pd.DataFrame]:
        return {
            "latest_year": self.latest_year,
            "top_countries": self.top_countries,
            "scatter_pairs": self.scatter_pairs,
            "yearly_totals": self.yearly_totals,
        }


def build_derived_datasets(
    filtered: pd.DataFrame, merged: pd.DataFrame, top_n: int = DEFAULT_TOP_N
) -> DerivedDatasets:
    """Run every aggregator over the filtered and merged tables."""
    pairs = scatter_pairs(merged)
    return DerivedDatasets(
        latest_year=latest_year_per_country(merged),
        top_countries=top_n_countries(merged, top_n),
        scatter_pairs=pairs,
        yearly_totals=yearly_totals(filtered),
        fit=fit_ols(pairs),
    )
