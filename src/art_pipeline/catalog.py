"""Catalog module for exporting the report's derived datasets.

This module writes the derived tables next to the rendered charts so each
chart's data can be inspected or reused.
"""

import os
from typing import Dict

import ibis
import pandas as pd
from pandas.api.types import is_object_dtype, is_string_dtype

from art_pipeline.exceptions import ExportError
from art_pipeline.logging_config import create_logger, log_exception

# Set up logging
logger = create_logger(__name__)


def _as_table(table) -> ibis.Expr:
    if not isinstance(table, pd.DataFrame):
        return table
    # Text columns that are entirely missing would otherwise get a null type
    text_columns = [
        column
        for column, dtype in table.dtypes.items()
        if is_object_dtype(dtype) or is_string_dtype(dtype)
    ]
    return ibis.memtable(table.astype({column: "string" for column in text_columns}))


def save_csv(table, local_path: str) -> None:
    """Save a table locally as a CSV file.

    Args:
        table: pandas DataFrame or Ibis table expression to be saved.
        local_path: Local file path where the CSV file will be saved.
    """
    try:
        _as_table(table).to_csv(local_path)
        logger.info(f"💾 Table successfully saved to local CSV file: {local_path}")

    except Exception as e:
        log_exception(logger, e, context="CSV Save")
        raise ExportError(f"Unable to write {local_path}: {e}") from e


def save_parquet(table, local_path: str) -> None:
    """Save a table locally as a Parquet file.

    Args:
        table: pandas DataFrame or Ibis table expression to be saved.
        local_path: Local file path where the Parquet file will be saved.
    """
    try:
        _as_table(table).to_parquet(local_path)
        logger.info(f"💾 Table successfully saved to local Parquet file: {local_path}")

    except Exception as e:
        log_exception(logger, e, context="Parquet Save")
        raise ExportError(f"Unable to write {local_path}: {e}") from e


WRITERS = {"csv": save_csv, "parquet": save_parquet}


def save_datasets(
    tables: Dict[str, pd.DataFrame], output_dir: str, fmt: str = "csv"
) -> Dict[str, str]:
    """Write each named table to ``output_dir`` as ``<name>.<fmt>``.

    Args:
        tables: Mapping of dataset name to table
        output_dir: Directory to write into, created if absent
        fmt: ``csv`` or ``parquet``

    Returns:
        Mapping of dataset name to written file path
    """
    if fmt not in WRITERS:
        raise ExportError(f"Unsupported export format: {fmt}")

    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise ExportError(f"Unable to create output directory {output_dir}: {e}") from e

    paths = {}
    for name, table in tables.items():
        path = os.path.join(output_dir, f"{name}.{fmt}")
        WRITERS[fmt](table, path)
        paths[name] = path
    return paths
