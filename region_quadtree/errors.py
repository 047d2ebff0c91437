"""Error types raised by the region quadtree core."""

from __future__ import annotations


class QuadtreeError(ValueError):
    """Base class for every error the quadtree core raises."""


class InvalidInput(QuadtreeError):
    """The pixel buffer (or a tree handed to the codec) is malformed."""


class ConfigError(QuadtreeError):
    """A build parameter such as tolerance or min_leaf_size is out of range."""


class CorruptData(QuadtreeError):
    """Persisted quadtree bytes could not be decoded."""
