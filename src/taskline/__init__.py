"""taskline: a line-command personal task tracker with a flat-file store."""

__version__ = "0.1.0"
