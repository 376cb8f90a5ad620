"""FORGE candidate ranking engine."""

__version__ = "0.3.0"
