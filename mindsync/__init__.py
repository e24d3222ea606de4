"""Incremental local mirror of a Minds activity feed."""

__version__ = "0.1.0"

__all__ = ["__version__"]
