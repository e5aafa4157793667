"""Implementation packages for RewindKit time-travel debugging."""

__version__ = "0.1.0"
