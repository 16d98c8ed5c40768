"""Fantasy cricket lineup scoring and optimization engine."""

__version__ = "0.1.0"
