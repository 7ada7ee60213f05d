"""Upstream API clients and payload contracts."""
