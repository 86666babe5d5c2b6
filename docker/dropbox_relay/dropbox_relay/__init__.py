"""Dropbox OAuth token relay."""

__version__ = "0.1.0"
