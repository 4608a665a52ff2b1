"""Streaming SQL statement segmentation, INSERT rewriting and batch loading."""

__version__ = "0.1.0"
