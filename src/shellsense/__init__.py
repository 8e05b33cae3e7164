"""ShellSense - error detection and fix ranking for interactive shell sessions."""

__version__ = "0.4.0"

__all__ = ["__version__"]
