"""Split computation and split lifecycle."""

from .engine import SplitEngine

__all__ = ["SplitEngine"]
