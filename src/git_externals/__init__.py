"""Manage external git repositories declared in a ``.gitexternals`` file."""

__version__ = "0.1.0"
