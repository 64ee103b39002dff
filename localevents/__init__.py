"""Local events data-sourcing engine."""

__version__ = "1.0.0"
