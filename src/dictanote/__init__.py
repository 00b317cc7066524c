"""Dictanote - dictate edits into a block-structured note."""

__version__ = "0.1.0"
