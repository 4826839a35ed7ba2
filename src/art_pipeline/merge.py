"""Filter-and-join stage of the report pipeline.

Selects the rows of the target indicator and left-joins them onto the
country metadata on the compound key (alpha_3_code, country).
"""

import pandas as pd

from art_pipeline.logging_config import create_logger
from art_pipeline.schemas import GDP_COLUMN, GDP_SOURCE_COLUMN, JOIN_KEYS

logger = create_logger(__name__)

METADATA_SUFFIX = "_metadata"


def filter_indicator(indicators: pd.DataFrame, label: str) -> pd.DataFrame:
    """Keep the rows whose ``indicator`` exactly equals ``label``.

    Args:
        indicators: Indicator table
        label: Target indicator label

    Returns:
        Matching rows in their original order, with a fresh index
    """
    mask = indicators["indicator"].eq(label).fillna(False).astype(bool)
    filtered = indicators.loc[mask].reset_index(drop=True)
    logger.info(
        f"🔎 Indicator filter kept {len(filtered)} of {len(indicators)} rows "
        f"for '{label}'"
    )
    return filtered


def join_metadata(filtered: pd.DataFrame, metadata: pd.DataFrame) -> pd.DataFrame:
    """Left-join indicator rows onto metadata on (alpha_3_code, country).

    Every indicator row is kept; metadata columns are missing where no
    metadata row matches. Metadata rows with a missing key never match.
    Non-key metadata columns that clash with indicator columns get a
    ``_metadata`` suffix. A ``gdp_per_capita`` column and a boolean
    ``has_metadata`` column are added.

    Args:
        filtered: Indicator rows of the target indicator
        metadata: Country metadata table

    Returns:
        Merged table in indicator row order
    """
    keyed = metadata.dropna(subset=JOIN_KEYS)
    right = keyed.assign(has_metadata=True)

    merged = filtered.merge(
        right,
        how="left",
        on=JOIN_KEYS,
        suffixes=("", METADATA_SUFFIX),
        sort=False,
    )

    if GDP_SOURCE_COLUMN in merged.columns:
        merged[GDP_COLUMN] = merged[GDP_SOURCE_COLUMN].astype("float64")
    else:
        merged[GDP_COLUMN] = float("nan")

    merged["has_metadata"] = merged["has_metadata"].eq(True)
    matched = merged["has_metadata"]
    misses = int((~matched).sum())
    if misses:
        unmatched = sorted(
            merged.loc[~matched, "alpha_3_code"].dropna().astype(str).unique()
        )
        logger.warning(
            f"{misses} indicator row(s) have no metadata match "
            f"(codes: {unmatched[:10]}{'...' if len(unmatched) > 10 else ''})"
        )

    return merged.reset_index(drop=True)


def filter_and_join(
    indicators: pd.DataFrame, metadata: pd.DataFrame, label: str
) -> pd.DataFrame:
    """Filter the indicator table to ``label`` and join it to metadata."""
    merged = join_metadata(filter_indicator(indicators, label), metadata)
    logger.info(f"🔗 Merged table has {len(merged)} rows")
    return merged
