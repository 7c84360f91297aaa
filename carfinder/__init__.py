"""carfinder - vehicle recommendation service."""

__version__ = "1.0.0"
