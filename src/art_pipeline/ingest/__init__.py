"""Ingest package for loading the report's source tables.

This package reads the indicator, metadata and geometry files into
in-memory tables for the ART report pipeline.
"""

from art_pipeline.ingest.run import Loader, apply_schema, check_unique_keys

__all__ = ["Loader", "apply_schema", "check_unique_keys"]
