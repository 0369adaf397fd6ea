"""Blog post output."""

from .formatter import OutputFormatter

__all__ = ["OutputFormatter"]
