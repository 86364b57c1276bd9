"""Parallel painting of collected points."""
