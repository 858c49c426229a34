"""Cross-platform music link converter."""

__version__ = "0.2.0"
