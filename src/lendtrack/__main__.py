"""Main entry point for the lendtrack package."""

from lendtrack.cli import app


if __name__ == "__main__":
    app()
