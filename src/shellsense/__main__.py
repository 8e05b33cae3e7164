"""Allow running ShellSense as ``python -m shellsense``."""

from shellsense.cli import app

if __name__ == "__main__":
    app()
