"""cyberismo - file-backed data handler for cards and project resources."""

__version__ = "0.1.0"
