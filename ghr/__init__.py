"""Publish GitHub releases and reconcile their assets."""

__version__ = "0.1.0"
