"""dirnotes - command line for directory annotations."""

__version__ = "0.1.0"
