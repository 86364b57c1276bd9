"""Colouring and image export."""
