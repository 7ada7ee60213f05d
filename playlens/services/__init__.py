"""Enrichment services."""
