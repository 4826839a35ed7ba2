"""Ingest module for loading the report's source tables.

This module reads the indicator, country-metadata and map-geometry CSV files
through DuckDB into pandas DataFrames. Every row and column is preserved;
only the declared column types are applied.
"""

import os
import time
from typing import Dict, Optional, Tuple

import duckdb
import pandas as pd

from art_pipeline.exceptions import LoadError
from art_pipeline.logging_config import create_logger
from art_pipeline.schemas import (
    GEOMETRY_SCHEMA,
    INDICATOR_SCHEMA,
    JOIN_KEYS,
    METADATA_SCHEMA,
)

# Initialize logger
logger = create_logger(__name__)


def apply_schema(frame: pd.DataFrame, schema: Dict[str, str], source: str) -> pd.DataFrame:
    """Apply declared column types to a freshly loaded table.

    :param frame: Table with every column read as text
    :param schema: Mapping of column name to declared type
    :param source: Source name used in log messages
    :return: A copy of the table with typed columns
    :raises LoadError: If a declared column is missing
    """
    missing = [column for column in schema if column not in frame.columns]
    if missing:
        raise LoadError(f"{source} is missing required column(s): {', '.join(missing)}")

    typed = frame.copy()
    for column, declared in schema.items():
        raw = typed[column]
        if declared == "String":
            typed[column] = raw.astype(object).where(raw.notna(), None)
            continue

        numeric = pd.to_numeric(raw, errors="coerce")
        if declared == "Int":
            # Non-integral years or ids are treated as missing
            numeric = numeric.where(numeric.isna() | (numeric % 1 == 0))
            typed[column] = numeric.astype("Int64")
        else:
            typed[column] = numeric.astype("float64")

        coerced = int((raw.notna() & numeric.isna()).sum())
        if coerced:
            logger.warning(
                f"{source}: {coerced} non-numeric value(s) in '{column}' treated as missing"
            )

    return typed


class Loader:
    """Load the source tables of the ART report.

    Files are read with DuckDB's CSV reader (header row, every column as
    text, source row order preserved) and returned as pandas DataFrames
    with the declared column types applied. No rows are filtered.
    """

    def __init__(self, connection: Optional[duckdb.DuckDBPyConnection] = None) -> None:
        """Initialize the Loader with a DuckDB connection.

        :param connection: DuckDB connection. If None, an in-memory one is created.
        """
        self.con = connection if connection else duckdb.connect()
        self.con.execute("SET preserve_insertion_order = true")
        self.rows_loaded = 0

    def read_csv(self, path: str, source: str) -> pd.DataFrame:
        """Read a delimited file into a DataFrame of text columns.

        :param path: Path to the CSV file
        :param source: Source name used in log and error messages
        :return: DataFrame with every row and column of the file
        :raises LoadError: If the file is missing or unreadable
        """
        if not path or not os.path.isfile(path):
            raise LoadError(f"{source} file not found: {path}")

        start = time.time()
        try:
            frame = self.con.execute(
                "SELECT * FROM read_csv(?, header = true, all_varchar = true)",
                [path],
            ).fetchdf()
        except duckdb.Error as e:
            raise LoadError(f"Unable to read {source} file {path}: {e}") from e

        self.rows_loaded += len(frame)
        logger.info(
            f"📥 Loaded {source} from {path}: "
            f"{len(frame)} rows, {len(frame.columns)} columns in {time.time() - start:.2f}s"
        )
        return frame

    def load_indicators(self, path: str) -> pd.DataFrame:
        """Load the indicator table.

        :param path: Path to the indicator CSV
        :return: Indicator table with declared types
        :raises LoadError: If the file is unreadable or lacks a required column
        """
        return apply_schema(self.read_csv(path, "indicators"), INDICATOR_SCHEMA, "indicators")

    def load_metadata(self, path: str, strict_keys: bool = False) -> pd.DataFrame:
        """Load the country metadata table and check its join keys.

        :param path: Path to the metadata CSV
        :param strict_keys: Raise instead of warn on duplicate join keys
        :return: Metadata table with declared types
        :raises LoadError: If the file is unreadable, lacks a required column,
            or has duplicate keys while strict_keys is set
        """
        metadata = apply_schema(self.read_csv(path, "metadata"), METADATA_SCHEMA, "metadata")
        duplicates = check_unique_keys(metadata)
        if duplicates and strict_keys:
            raise LoadError(
                f"metadata has {duplicates} row(s) sharing an {tuple(JOIN_KEYS)} key"
            )
        return metadata

    def load_geometry(self, path: str) -> pd.DataFrame:
        """Load the map geometry table.

        :param path: Path to the geometry CSV
        :return: Geometry table with declared types
        :raises LoadError: If the file is unreadable or lacks a required column
        """
        return apply_schema(self.read_csv(path, "geometry"), GEOMETRY_SCHEMA, "geometry")

    def load_all(
        self,
        indicators_path: str,
        metadata_path: str,
        geometry_path: Optional[str] = None,
        strict_keys: bool = False,
    ) -> Tuple[pd.DataFrame, pd.DataFrame, Optional[pd.DataFrame]]:
        """Load the indicator, metadata and (when given) geometry tables.

        :return: (indicators, metadata, geometry); geometry is None without a path
        :raises LoadError: If any requested table cannot be loaded
        """
        logger.info("🚀 Loading source tables")
        indicators = self.load_indicators(indicators_path)
        metadata = self.load_metadata(metadata_path, strict_keys=strict_keys)
        geometry = self.load_geometry(geometry_path) if geometry_path else None
        logger.info(f"✅ Source tables loaded: {self.rows_loaded} rows in total")
        return indicators, metadata, geometry

    def close(self) -> None:
        self.con.close()


def check_unique_keys(metadata: pd.DataFrame) -> int:
    """Count metadata rows whose join key is shared with an earlier row.

    Rows with a missing key component are ignored since they never join.

    :param metadata: Metadata table
    :return: Number of surplus rows (0 when every key is unique)
    """
    keyed = metadata.dropna(subset=JOIN_KEYS)
    duplicates = int(keyed.duplicated(subset=JOIN_KEYS).sum())
    if duplicates:
        sample = (
            keyed.loc[keyed.duplicated(subset=JOIN_KEYS, keep=False), JOIN_KEYS]
            .drop_duplicates()
            .head(5)
            .to_records(index=False)
            .tolist()
        )
        logger.warning(
            f"⚠️ metadata has {duplicates} duplicate key row(s), e.g. {sample}; "
            "joined indicator rows will be repeated"
        )
    return duplicates
