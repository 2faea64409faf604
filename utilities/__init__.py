"""Shared helpers for the API server and management scripts."""
