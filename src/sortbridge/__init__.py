"""Background sorting with ordered event delivery to an observer context."""

__version__ = "0.1.0"
