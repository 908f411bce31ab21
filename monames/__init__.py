"""Monames: a two-team word-association game with pluggable AI players."""

__version__ = "0.1.0"
