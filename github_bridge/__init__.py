"""Bridge between GitHub pull requests and chat channels."""

__version__ = "0.1.0"
