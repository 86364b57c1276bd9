"""Geometry, transforms, descriptions, canvas and the chaos game itself."""
