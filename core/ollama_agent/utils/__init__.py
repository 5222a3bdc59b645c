"""Utility helpers: logging setup and transcript formatting."""
