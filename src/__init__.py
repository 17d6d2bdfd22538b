"""Shuttle position monitor — multi-market lending position aggregation."""
