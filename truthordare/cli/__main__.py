"""CLI entry point.

Allows running the CLI as a module: python -m truthordare.cli
"""

from truthordare.cli import app

if __name__ == "__main__":
    app()
