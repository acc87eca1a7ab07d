"""Back up and restore Zen Browser profiles through a Git repository."""

__version__ = "0.1.0"
