"""State/store layer.

This package is the single source of truth for how incoming location
data from the stream, the backend seed request and the local sensor is
merged into a deterministic snapshot of tracked entities.
"""
