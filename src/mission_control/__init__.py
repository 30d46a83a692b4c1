"""Mission Control: a small team task board."""

__version__ = "0.1.0"
