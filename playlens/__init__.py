"""Playlens: playlist enrichment service."""
