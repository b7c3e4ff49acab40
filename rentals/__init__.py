"""Credit-based car rental booking and pricing engine."""

__version__ = "1.0.0"
