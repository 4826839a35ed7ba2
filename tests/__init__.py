"""Test suite for the ART report pipeline.

This package contains:
- Unit tests for individual modules
- Integration tests for complete report runs
"""
