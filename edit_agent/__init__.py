"""Iterative image edit agent: generate, judge, refine, stream progress."""

__version__ = "1.0.0"
